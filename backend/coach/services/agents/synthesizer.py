"""Synthesizer: merges analyzer outputs into one prioritized coaching response."""

import logging
import re
import time
from typing import List, Optional

from ...schemas.agents.analysis import ActionItem, AgentAnalysis, CoachingResponse, Priority
from ...schemas.agents.context import BusinessContext, BusinessStage
from ...schemas.agents.trace import ExecutionTrace, TraceEventType
from .keywords import SynthesisTables, contains_any

logger = logging.getLogger(__name__)

_FIRST_SENTENCE = re.compile(r"^([^.!?]*[.!?])")


class Synthesizer:
    """Builds the narrative, action items, next steps and framework list.

    Leverage precedence is fixed: CFA work beats offer work, which beats the
    generic money-model recommendation. Both predicates only look at the
    business context, the analyses just have to be present.
    """

    def __init__(self, tables: Optional[SynthesisTables] = None):
        self.tables = tables or SynthesisTables()

    @property
    def name(self) -> str:
        return "synthesizer"

    def synthesize(
        self,
        analyses: List[AgentAnalysis],
        context: BusinessContext,
        trace: Optional[ExecutionTrace] = None,
    ) -> CoachingResponse:
        """Merge analyses into a CoachingResponse.

        Args:
            analyses: Analyzer outputs in execution order (sentinels included)
            context: Business context of the request
            trace: Optional execution trace for logging

        Returns:
            CoachingResponse carrying the analyses unchanged
        """
        start_time = time.time()

        response = CoachingResponse(
            analysis=analyses,
            synthesis=self.synthesize_findings(analyses, context),
            action_items=self.generate_action_items(analyses),
            next_steps=self.generate_next_steps(context),
            frameworks=self.identify_frameworks(analyses),
        )

        if trace is not None:
            trace.add_event(
                TraceEventType.SYNTHESIS,
                agent=self.name,
                data={
                    "analyses": len(analyses),
                    "action_items": len(response.action_items),
                    "frameworks": len(response.frameworks),
                    "tables_version": self.tables.version,
                },
                duration_ms=(time.time() - start_time) * 1000,
            )
        return response

    # ============================================
    # Predicates
    # ============================================

    @staticmethod
    def _thirty_day_gross_profit(context: BusinessContext) -> float:
        monthly_revenue = context.current_revenue / 12 if context.current_revenue else 0
        return monthly_revenue * (context.gross_margin / 100) / (context.customer_count or 1)

    def needs_cfa_work(self, context: BusinessContext) -> bool:
        """True unless 30-day gross profit per customer is known to exceed CAC."""
        if not context.cac or not context.gross_margin:
            return True
        return self._thirty_day_gross_profit(context) <= context.cac

    @staticmethod
    def needs_offer_work(context: BusinessContext) -> bool:
        return not context.gross_margin or context.gross_margin < 80

    # ============================================
    # Narrative
    # ============================================

    def synthesize_findings(self, analyses: List[AgentAnalysis], context: BusinessContext) -> str:
        synthesis = "Based on the comprehensive analysis using Alex Hormozi's frameworks:\n\n"
        synthesis += f"**Biggest Leverage Opportunity**: {self.identify_biggest_leverage(analyses, context)}\n\n"
        synthesis += f"**Business Fundamentals Assessment**:\n{self.analyze_fundamentals(context)}\n\n"
        synthesis += f"**Strategic Direction**: {self.provide_strategic_direction(context)}\n\n"
        return synthesis

    def identify_biggest_leverage(self, analyses: List[AgentAnalysis], context: BusinessContext) -> str:
        agent_types = {analysis.agent_type for analysis in analyses}

        if "financial" in agent_types and self.needs_cfa_work(context):
            return ("Achieving Client Financed Acquisition (30-day gross profit > CAC) - "
                    "this will unlock unlimited growth")
        if "offer" in agent_types and self.needs_offer_work(context):
            return "Grand Slam Offer optimization - improving your value equation to command premium pricing"
        return "Money model architecture - building systematic revenue optimization"

    def analyze_fundamentals(self, context: BusinessContext) -> str:
        fundamentals = ""
        if context.cac and context.gross_margin:
            fundamentals += f"• **Advertising Level**: {self.describe_advertising_level(context)}\n"
        fundamentals += f"• **Current Business Stage**: {context.business_stage}\n"
        fundamentals += f"• **Primary Constraint**: {self.identify_constraint(context)}\n"
        return fundamentals

    def describe_advertising_level(self, context: BusinessContext) -> str:
        """Simplified advertising level from the context alone."""
        if not context.cac or not context.ltv or not context.gross_margin:
            return "Data insufficient"

        gross_profit = self._thirty_day_gross_profit(context)
        if context.ltv <= context.cac:
            return "Level 0 (Unprofitable - Critical Issue)"
        if gross_profit <= context.cac:
            return "Level 1 (Basic Viability - Needs Improvement)"
        if gross_profit <= context.cac * 2:
            return "Level 2 (Self-Funding Growth - Good)"
        return "Level 3 (Unlimited Scale - Excellent)"

    def identify_constraint(self, context: BusinessContext) -> str:
        if self.needs_cfa_work(context):
            return "Cash flow and growth funding"
        if self.needs_offer_work(context):
            return "Offer attractiveness and pricing power"
        return "Operational capacity and systems"

    @staticmethod
    def provide_strategic_direction(context: BusinessContext) -> str:
        stage = context.business_stage
        if stage == BusinessStage.STARTUP:
            return ("Focus on achieving Product-Market Fit through Grand Slam Offer development, "
                    "then optimize for Client Financed Acquisition.")
        if stage == BusinessStage.GROWTH:
            return "Prioritize money model architecture and CFA achievement to enable unlimited advertising scale."
        if stage == BusinessStage.SCALE:
            return ("Optimize operational constraints and build systematic revenue optimization "
                    "across all touchpoints.")
        return "Focus on strategic acquisitions and market expansion while maintaining CFA across all channels."

    # ============================================
    # Action items
    # ============================================

    def generate_action_items(self, analyses: List[AgentAnalysis]) -> List[ActionItem]:
        """Flatten recommendations into ranked action items, at most `max_action_items`."""
        items = [
            ActionItem(
                title=self.extract_action_title(rec),
                description=rec,
                priority=self.determine_priority(rec),
                timeline=self.estimate_timeline(rec),
                frameworks=self.identify_applicable_frameworks(rec),
            )
            for analysis in analyses
            for rec in analysis.recommendations
        ]

        weights = self.tables.priority_weights
        # sorted() is stable, ties keep analyzer order
        items = sorted(items, key=lambda item: weights.get(item.priority, 4))
        return items[:self.tables.max_action_items]

    def extract_action_title(self, recommendation: str) -> str:
        length = self.tables.title_length
        match = _FIRST_SENTENCE.match(recommendation)
        if match:
            return match.group(1)[:length] + "..."
        return recommendation[:length] + "..."

    def determine_priority(self, recommendation: str) -> str:
        rec_lower = recommendation.lower()
        if contains_any(rec_lower, self.tables.critical_keywords):
            return Priority.CRITICAL.value
        if contains_any(rec_lower, self.tables.high_keywords):
            return Priority.HIGH.value
        return Priority.MEDIUM.value

    def estimate_timeline(self, recommendation: str) -> str:
        rec_lower = recommendation.lower()
        for rule in self.tables.timeline_rules:
            if rule.matches(rec_lower):
                return rule.value
        return self.tables.default_timeline

    def identify_applicable_frameworks(self, recommendation: str) -> List[str]:
        rec_lower = recommendation.lower()
        return [rule.value for rule in self.tables.recommendation_frameworks if rule.matches(rec_lower)]

    # ============================================
    # Next steps and frameworks
    # ============================================

    def generate_next_steps(self, context: BusinessContext) -> List[str]:
        if self.needs_cfa_work(context):
            steps = [
                "Calculate your current 30-day gross profit per customer",
                "Identify immediate upsell opportunities to reach CFA",
                "Test the top 3 CFA strategies within 2 weeks",
            ]
        else:
            steps = [
                "Document your current money model architecture",
                "Identify the next constraint limiting growth",
                "Scale advertising spend systematically",
            ]
        steps.append("Schedule weekly metrics review to track progress")
        return steps

    def identify_frameworks(self, analyses: List[AgentAnalysis]) -> List[str]:
        """Frameworks attributed to the analyses, first-insertion order, no duplicates."""
        frameworks: List[str] = []
        for analysis in analyses:
            attributed = self.tables.agent_frameworks.get(analysis.agent_type)
            if attributed is None:
                logger.warning(f"[Synthesizer] No framework attribution for agent type '{analysis.agent_type}'")
                continue
            for framework in attributed:
                if framework not in frameworks:
                    frameworks.append(framework)
        return frameworks
