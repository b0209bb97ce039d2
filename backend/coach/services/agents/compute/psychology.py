"""Psychology optimizer: upsell timing, buying psychology and behavioral triggers."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import (
    BuyingPsychology,
    ConversionOptimization,
    DecisionFactor,
    OptimalMoment,
    PsychologyMetrics,
    TriggerAnalysis,
    UpsellTimingAnalysis,
)
from ..base import ComputeAgent
from ..keywords import KeywordRule, contains_any
from .numbers import format_number, round_half_up


class UpsellMoment(BaseModel):
    moment: str
    description: str
    best_for: str
    base_potential: int
    used_keywords: List[str]
    used_timing: Optional[str] = None


class TriggerRule(BaseModel):
    """A behavioral trigger: present on `present_keywords`, strong on `strong_keywords`."""
    trigger: str
    present_keywords: List[str]
    strong_keywords: List[str] = Field(default_factory=list)
    strong_effectiveness: int
    weak_effectiveness: int
    recommendations: List[str]


def _default_moments() -> List[UpsellMoment]:
    return [
        UpsellMoment(
            moment="immediately",
            description="Right after the initial purchase decision",
            best_for="Complementary products that solve immediate next problems",
            base_potential=8,
            used_keywords=["immediate"],
            used_timing="immediately",
        ),
        UpsellMoment(
            moment="next_step",
            description="24-72 hours after initial purchase",
            best_for="Education-based upsells and onboarding enhancements",
            base_potential=9,
            used_keywords=["follow up", "email"],
            used_timing="follow_up",
        ),
        UpsellMoment(
            moment="big_win",
            description="After customer achieves a significant milestone",
            best_for="Advanced products that build on their success",
            base_potential=8,
            used_keywords=["milestone", "success"],
        ),
        UpsellMoment(
            moment="halfway",
            description="At the midpoint of their journey/program",
            best_for="Acceleration products and additional support",
            base_potential=7,
            used_keywords=["middle", "halfway"],
        ),
        UpsellMoment(
            moment="last_chance",
            description="At the end of their program or before leaving",
            best_for="Continuity offers and next-level programs",
            base_potential=5,
            used_keywords=["end", "final"],
            used_timing="end_of_service",
        ),
    ]


def _default_triggers() -> List[TriggerRule]:
    # social_proof and authority take their strength from the business context
    return [
        TriggerRule(
            trigger="scarcity",
            present_keywords=["limited", "exclusive"],
            strong_keywords=["limited"],
            strong_effectiveness=7,
            weak_effectiveness=2,
            recommendations=["Add inventory counters", "Create member-only access", "Limit enrollment periods"],
        ),
        TriggerRule(
            trigger="urgency",
            present_keywords=["deadline", "expires"],
            strong_keywords=["deadline"],
            strong_effectiveness=6,
            weak_effectiveness=2,
            recommendations=["Add countdown timers", "Create time-limited bonuses", "Set enrollment deadlines"],
        ),
        TriggerRule(
            trigger="social_proof",
            present_keywords=["testimonial", "reviews"],
            strong_effectiveness=8,
            weak_effectiveness=4,
            recommendations=["Display customer count", "Show recent purchases", "Feature success stories"],
        ),
        TriggerRule(
            trigger="authority",
            present_keywords=["expert", "certified"],
            strong_effectiveness=7,
            weak_effectiveness=4,
            recommendations=["Highlight credentials", "Show media mentions", "Display awards and recognition"],
        ),
        TriggerRule(
            trigger="reciprocity",
            present_keywords=["free", "bonus"],
            strong_keywords=["free"],
            strong_effectiveness=6,
            weak_effectiveness=3,
            recommendations=["Provide valuable free content", "Add surprise bonuses", "Offer free consultations"],
        ),
    ]


class PsychologyTables(BaseModel):
    version: str = "1"
    moments: List[UpsellMoment] = Field(default_factory=_default_moments)
    # First matching rule wins
    timing_rules: List[KeywordRule] = Field(default_factory=lambda: [
        KeywordRule(keywords=["after", "end"], value="end_of_service"),
        KeywordRule(keywords=["immediate", "checkout"], value="immediately"),
        KeywordRule(keywords=["email", "follow up"], value="follow_up"),
    ])
    price_sensitive_keywords: List[str] = Field(default_factory=lambda: ["expensive", "price", "cost"])
    premium_keywords: List[str] = Field(default_factory=lambda: ["premium", "high-end"])
    active_cycle_keywords: List[str] = Field(default_factory=lambda: ["buy now", "purchase"])
    conversion_by_stage: Dict[str, float] = Field(default_factory=lambda: {
        BusinessStage.MATURE.value: 8,
        BusinessStage.GROWTH.value: 6,
    })
    default_conversion: float = 5
    max_conversion: float = 25
    triggers: List[TriggerRule] = Field(default_factory=_default_triggers)
    max_recommendations: int = 10
    confidence_cap: int = 90


class PsychologyOptimizerAgent(ComputeAgent):
    """Optimizes when and how offers are presented.

    Uses the 5 Upsell Moments, a customer-type classification and five
    behavioral triggers. Customer type checks price keywords before premium
    ones, so a query about "premium price" reads as price-sensitive.
    """

    diagnostic_questions = [
        "When do you currently try to upsell your customers?",
        "What objections do customers most commonly raise?",
        "How do customers typically find out about your offers?",
        "What makes customers hesitate before buying?",
        "Do you track when customers are most likely to make additional purchases?",
        "What social proof elements do you currently use?",
        "How do you create urgency in your offers?",
        "What happens when customers say no to an offer?",
    ]

    def __init__(self, tables: Optional[PsychologyTables] = None):
        self.tables = tables or PsychologyTables()

    @property
    def name(self) -> str:
        return "psychology_optimizer"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.PSYCHOLOGY

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        query_lower = query.lower()

        timing = self.analyze_upsell_timing(context, query_lower)
        psychology = self.analyze_buying_psychology(context, query_lower)
        conversion = self.evaluate_conversion_optimization(context, psychology)
        triggers = self.analyze_behavioral_triggers(context, query_lower)
        trigger_score = round_half_up(sum(t.effectiveness for t in triggers) / len(triggers))

        used = sum(1 for m in timing.optimal_moments if m.currently_used)
        findings = [
            f"Upsell Timing Score: {timing.timing_score}/10",
            f"Optimal Moments Used: {used}/{len(timing.optimal_moments)}",
            f"Customer Type: {psychology.customer_type}",
            f"Buying Cycle: {psychology.buying_cycle}",
            f"Psychological State: {psychology.psychological_state}",
            f"Current Conversion Estimate: {format_number(conversion.current_conversion)}%",
            f"Potential Conversion: {format_number(conversion.potential_conversion)}%",
            f"Conversion Barriers: {len(conversion.conversion_barriers)}",
            f"Behavioral Triggers Score: {trigger_score}/10",
        ]

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=self._recommendations(timing, psychology, conversion, triggers, context),
            metrics=PsychologyMetrics(
                upsell_timing=timing,
                buying_psychology=psychology,
                conversion_optimization=conversion,
                behavioral_triggers=triggers,
                trigger_score=trigger_score,
            ),
            confidence=self._confidence(context),
        )

    def analyze_upsell_timing(self, context: BusinessContext, query_lower: str) -> UpsellTimingAnalysis:
        current_timing = "unknown"
        for rule in self.tables.timing_rules:
            if rule.matches(query_lower):
                current_timing = rule.value
                break

        boost = 1 if context.business_stage == BusinessStage.MATURE and context.ltv and context.ltv > 5000 else 0
        moments = [
            OptimalMoment(
                moment=m.moment,
                description=m.description,
                conversion_potential=min(m.base_potential + boost, 10),
                currently_used=contains_any(query_lower, m.used_keywords)
                or (m.used_timing is not None and m.used_timing == current_timing),
                implementation=m.best_for,
            )
            for m in self.tables.moments
        ]

        used = sum(1 for m in moments if m.currently_used)
        timing_score = round_half_up(used / len(moments) * 10)

        improvements = []
        if timing_score < 5:
            improvements.append("Implement systematic upsell timing based on customer psychology")
            improvements.append("Stop trying to upsell at the point of greatest satisfaction")
        for moment in moments:
            if not moment.currently_used and moment.conversion_potential > 7:
                improvements.append(f"Add {moment.moment} upsells: {moment.implementation}")

        return UpsellTimingAnalysis(
            current_timing=current_timing,
            optimal_moments=moments,
            timing_score=timing_score,
            improvements=improvements,
        )

    def analyze_buying_psychology(self, context: BusinessContext, query_lower: str) -> BuyingPsychology:
        tables = self.tables

        customer_type = "deliberate"
        if contains_any(query_lower, tables.price_sensitive_keywords):
            customer_type = "price-sensitive"
        elif contains_any(query_lower, tables.premium_keywords) or (context.gross_margin and context.gross_margin > 80):
            customer_type = "hyper-buyer"

        buying_cycle = "active" if contains_any(query_lower, tables.active_cycle_keywords) else "research"

        factors = [
            DecisionFactor(
                factor="Price/Value Ratio",
                importance=9 if customer_type == "price-sensitive" else 6,
                current_address=8 if context.gross_margin and context.gross_margin > 70 else 5,
                optimization_actions=["Improve value stacking", "Add bonuses and guarantees"],
            ),
            DecisionFactor(
                factor="Trust/Credibility",
                importance=8,
                current_address=8 if context.business_stage == BusinessStage.MATURE else 4,
                optimization_actions=["Add testimonials", "Showcase results", "Provide guarantees"],
            ),
            DecisionFactor(
                factor="Urgency/Scarcity",
                importance=7,
                current_address=3,
                optimization_actions=["Add time-limited bonuses", "Show inventory levels", "Create deadline pressure"],
            ),
            DecisionFactor(
                factor="Social Proof",
                importance=8,
                current_address=6 if context.customer_count and context.customer_count > 100 else 3,
                optimization_actions=["Display customer count", "Show recent purchases", "Feature success stories"],
            ),
        ]

        if buying_cycle == "active" and customer_type == "hyper-buyer":
            state = "Ready to buy - maximize value and create urgency"
        elif buying_cycle == "research" and customer_type == "deliberate":
            state = "Information gathering - provide proof and reduce risk"
        elif customer_type == "price-sensitive":
            state = "Price focused - emphasize value and ROI"
        else:
            state = "Standard buying psychology - follow proven frameworks"

        return BuyingPsychology(
            customer_type=customer_type,
            buying_cycle=buying_cycle,
            decision_factors=factors,
            psychological_state=state,
        )

    def evaluate_conversion_optimization(
        self,
        context: BusinessContext,
        psychology: BuyingPsychology,
    ) -> ConversionOptimization:
        current = self.tables.conversion_by_stage.get(context.business_stage, self.tables.default_conversion)

        factors = psychology.decision_factors
        average_gap = sum(f.importance - f.current_address for f in factors) / len(factors)
        potential = min(current + average_gap * 2, self.tables.max_conversion)

        barriers: List[str] = []
        quick_wins: List[str] = []
        fixes: List[str] = []
        for factor in factors:
            gap = factor.importance - factor.current_address
            if gap > 3:
                barriers.append(f"{factor.factor}: {gap} point gap")
                quick_wins.append(factor.optimization_actions[0])
                fixes.extend(factor.optimization_actions)

        return ConversionOptimization(
            current_conversion=current,
            potential_conversion=potential,
            conversion_barriers=barriers,
            quick_wins=list(dict.fromkeys(quick_wins)),
            psychology_fixes=list(dict.fromkeys(fixes)),
        )

    def analyze_behavioral_triggers(self, context: BusinessContext, query_lower: str) -> List[TriggerAnalysis]:
        strong_by_context = {
            "social_proof": bool(context.customer_count and context.customer_count > 50),
            "authority": context.business_stage == BusinessStage.MATURE,
        }

        triggers = []
        for rule in self.tables.triggers:
            if rule.trigger in strong_by_context:
                strong = strong_by_context[rule.trigger]
            else:
                strong = contains_any(query_lower, rule.strong_keywords)
            triggers.append(TriggerAnalysis(
                trigger=rule.trigger,
                present=contains_any(query_lower, rule.present_keywords),
                effectiveness=rule.strong_effectiveness if strong else rule.weak_effectiveness,
                recommendations=list(rule.recommendations),
            ))
        return triggers

    def _recommendations(
        self,
        timing: UpsellTimingAnalysis,
        psychology: BuyingPsychology,
        conversion: ConversionOptimization,
        triggers: List[TriggerAnalysis],
        context: BusinessContext,
    ) -> List[str]:
        recommendations = ["Sell at the point of greatest deprivation, not greatest satisfaction"]
        recommendations.extend(timing.improvements)
        recommendations.extend(conversion.quick_wins[:3])

        if psychology.customer_type == "hyper-buyer":
            recommendations.append("Create premium, high-value offers with immediate access")
            recommendations.append("Use exclusivity and VIP positioning")
        elif psychology.customer_type == "price-sensitive":
            recommendations.append("Emphasize ROI and payment plans")
            recommendations.append("Use downsell strategies for rejected prospects")
        else:
            recommendations.append("Provide comprehensive proof and risk reversal")
            recommendations.append("Use social proof and testimonials heavily")

        for trigger in triggers:
            if trigger.effectiveness < 6:
                recommendations.append(trigger.recommendations[0])

        if context.business_stage == BusinessStage.STARTUP:
            recommendations.append("Focus on building trust and credibility first")
            recommendations.append("Use founder story and personal connection")
        elif context.business_stage == BusinessStage.SCALE:
            recommendations.append("Implement systematic psychological triggers across all touchpoints")
            recommendations.append("Use advanced behavioral economics principles")

        recommendations.append(
            "Create hyper-buying cycles by solving one problem completely before introducing the next"
        )
        recommendations.append(
            "Use the bike shop example: when someone buys a bike, "
            "they enter hyper-buying mode for all bike accessories"
        )
        return recommendations[:self.tables.max_recommendations]

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 60
        if context.customer_count and context.customer_count > 100:
            confidence += 15
        if context.business_stage in (BusinessStage.GROWTH, BusinessStage.SCALE):
            confidence += 10
        if context.ltv and context.cac and context.ltv > context.cac * 3:
            confidence += 15
        return min(confidence, self.tables.confidence_cap)
