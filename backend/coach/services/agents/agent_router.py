"""IntelligentAgentRouter: explains which agent should lead a query.

The routing decision is advisory. It drives the UI (who leads, who
supports, in what order) and is computed independently of the analyzer
selection the conductor actually runs.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from ...schemas.agents.routing import (
    AgentCapability,
    AgentPerformanceSummary,
    AgentSelection,
    QueryAnalysis,
    RoutingAnalytics,
    RoutingDecision,
)
from .compute.numbers import round_half_up
from .keywords import RoutingTables, contains_any

logger = logging.getLogger(__name__)

COMPLEXITY_LEVELS = ["simple", "medium", "complex", "strategic"]


class IntelligentAgentRouter:
    """Scores the known agents against a query and picks primary/secondary agents.

    Capabilities start from the routing tables and drift with
    `update_agent_performance`, so routing adapts to observed results.
    """

    def __init__(self, tables: Optional[RoutingTables] = None):
        self.tables = tables or RoutingTables()
        self.capabilities: Dict[str, AgentCapability] = {
            cap.name: cap.model_copy() for cap in self.tables.capabilities
        }
        self.query_history: Deque[QueryAnalysis] = deque(maxlen=self.tables.history_limit)
        self.agent_performance: Dict[str, List[float]] = {}

    # ============================================
    # Query analysis
    # ============================================

    def analyze_query(self, query: str, business_context: Optional[Dict[str, Any]] = None) -> QueryAnalysis:
        """Classify intent, complexity, urgency, contexts and frameworks of a query.

        The analysis is appended to the (bounded) query history.
        """
        query_lower = query.lower()
        words = query_lower.split()

        intent = self.detect_intent(query_lower)
        complexity = self.assess_complexity(query_lower, words, business_context)
        urgency = self.detect_urgency(query_lower)
        contexts = self.extract_business_context(query_lower)
        frameworks = self.identify_frameworks(query_lower)

        analysis = QueryAnalysis(
            intent=intent,
            complexity=complexity,
            urgency=urgency,
            business_context=contexts,
            frameworks=frameworks,
            confidence=self.calculate_analysis_confidence(intent, complexity, contexts),
        )
        self.query_history.append(analysis)
        return analysis

    def detect_intent(self, query_lower: str) -> str:
        for intent, patterns in self.tables.intent_patterns.items():
            if contains_any(query_lower, patterns):
                return intent
        return "general"

    def assess_complexity(
        self,
        query_lower: str,
        words: List[str],
        business_context: Optional[Dict[str, Any]] = None,
    ) -> str:
        score = 0

        if len(words) > 20:
            score += 2
        elif len(words) > 10:
            score += 1

        score += sum(1 for concept in self.tables.concepts if concept in query_lower)

        if contains_any(query_lower, self.tables.strategic_keywords):
            score += 3

        if business_context and len([v for v in business_context.values() if v is not None]) > 5:
            score += 1

        if score >= 6:
            return "strategic"
        if score >= 4:
            return "complex"
        if score >= 2:
            return "medium"
        return "simple"

    def detect_urgency(self, query_lower: str) -> str:
        for level, keywords in self.tables.urgency_keywords.items():
            if contains_any(query_lower, keywords):
                return level
        return "medium"

    def extract_business_context(self, query_lower: str) -> List[str]:
        return [
            context for context, patterns in self.tables.context_patterns.items()
            if contains_any(query_lower, patterns)
        ]

    def identify_frameworks(self, query_lower: str) -> List[str]:
        return [
            framework for framework, keywords in self.tables.framework_keywords.items()
            if contains_any(query_lower, keywords)
        ]

    @staticmethod
    def calculate_analysis_confidence(intent: str, complexity: str, contexts: List[str]) -> float:
        confidence = 0.5
        if intent != "general":
            confidence += 0.2
        confidence += min(len(contexts) * 0.1, 0.3)
        if complexity == "simple":
            confidence += 0.1
        return min(confidence, 0.95)

    # ============================================
    # Routing
    # ============================================

    def route_query(
        self,
        query: str,
        business_context: Optional[Dict[str, Any]] = None,
        session_type: Optional[str] = None,
    ) -> RoutingDecision:
        """Produce a RoutingDecision for a query.

        Args:
            query: User's free-text question
            business_context: Context fields as a dict (None values are ignored)
            session_type: Accepted for symmetry with the conductor, unused

        Returns:
            RoutingDecision with primary, secondary, plan and reasoning
        """
        return self.decide(query, self.analyze_query(query, business_context))

    def decide(self, query: str, analysis: QueryAnalysis) -> RoutingDecision:
        """Routing decision for an already analyzed query."""
        ranked = self.score_agents(analysis, query.lower())

        primary = self.select_primary_agent(ranked, analysis)
        secondary = self.select_secondary_agents(ranked, analysis, primary)
        collaborative = self.should_use_collaborative_mode(analysis, secondary)

        decision = RoutingDecision(
            primary=primary,
            secondary=secondary,
            collaborative_mode=collaborative,
            execution_plan=self.create_execution_plan(primary, secondary, collaborative),
            reasoning=self.generate_reasoning(analysis, primary, secondary, collaborative),
        )
        logger.debug(
            f"[Router] {analysis.complexity}/{analysis.intent} -> {primary.agent} "
            f"(+{len(secondary)} secondary, collaborative={collaborative})"
        )
        return decision

    def score_agents(self, analysis: QueryAnalysis, query_lower: str) -> List[Tuple[str, float]]:
        """Score every agent and rank them, highest first.

        The sort is stable, so equal scores keep capability-table order.
        """
        scores = []
        for name, capability in self.capabilities.items():
            expertise = [exp.lower() for exp in capability.expertise]

            score = 20 * sum(1 for exp in expertise if exp in query_lower)
            score += 15 * sum(
                1 for framework in analysis.frameworks
                if any(exp in framework.lower() for exp in expertise)
            )
            score += capability.success_rate * 10
            score += capability.average_confidence * 10
            if analysis.urgency == "critical" and capability.avg_response_time < 2:
                score += 10
            score += capability.priority

            scores.append((name, score))

        return sorted(scores, key=lambda item: item[1], reverse=True)

    def select_primary_agent(self, ranked: List[Tuple[str, float]], analysis: QueryAnalysis) -> AgentSelection:
        name, score = ranked[0]
        return AgentSelection(
            agent=name,
            reason=f"Best match for {analysis.intent} intent with {round_half_up(score)} compatibility score",
            confidence=min(score / 100, 0.95),
            expected_frameworks=list(analysis.frameworks),
            estimated_time=self.capabilities[name].avg_response_time,
            prerequisites=[],
        )

    def select_secondary_agents(
        self,
        ranked: List[Tuple[str, float]],
        analysis: QueryAnalysis,
        primary: AgentSelection,
    ) -> List[AgentSelection]:
        return [
            AgentSelection(
                agent=name,
                reason=f"Complementary expertise for {analysis.complexity} analysis",
                confidence=min(score / 120, 0.85),
                expected_frameworks=[],
                estimated_time=self.capabilities[name].avg_response_time,
                prerequisites=[primary.agent],
            )
            for name, score in ranked[1:4]
            if score > 30 and name != primary.agent
        ]

    @staticmethod
    def should_use_collaborative_mode(analysis: QueryAnalysis, secondary: List[AgentSelection]) -> bool:
        return (
            analysis.complexity in ("strategic", "complex")
            or len(analysis.frameworks) > 2
            or len(secondary) > 1
        )

    @staticmethod
    def create_execution_plan(
        primary: AgentSelection,
        secondary: List[AgentSelection],
        collaborative: bool,
    ) -> List[str]:
        if collaborative and secondary:
            return [
                "1. Initialize collaborative analysis session",
                f"2. {primary.agent} leads primary analysis",
                f"3. {', '.join(s.agent for s in secondary)} provide complementary insights",
                "4. Cross-validate findings and recommendations",
                "5. Synthesize comprehensive response",
            ]

        plan = [f"1. {primary.agent} performs focused analysis"]
        if secondary:
            plan.append(f"2. {secondary[0].agent} validates findings")
        # Numbering is fixed, a plan without a validator skips step 2
        plan.append("3. Generate actionable recommendations")
        return plan

    @staticmethod
    def generate_reasoning(
        analysis: QueryAnalysis,
        primary: AgentSelection,
        secondary: List[AgentSelection],
        collaborative: bool,
    ) -> str:
        reasoning = (
            f"Query analyzed as {analysis.complexity} {analysis.intent} with "
            f"{round_half_up(analysis.confidence * 100)}% confidence. "
        )
        reasoning += f"Selected {primary.agent} as primary agent due to {primary.reason}. "
        if collaborative:
            reasoning += (
                f"Collaborative mode enabled with {len(secondary)} supporting agents "
                f"for comprehensive analysis. "
            )
        if analysis.urgency in ("critical", "high"):
            reasoning += f"High priority routing due to {analysis.urgency} urgency. "
        return reasoning

    # ============================================
    # Performance tracking
    # ============================================

    def update_agent_performance(self, agent_name: str, confidence: float, success: bool) -> None:
        """Record one outcome for an agent.

        Args:
            agent_name: Capability name (e.g. "offer-analyzer")
            confidence: Confidence of the outcome on a 0-1 scale
            success: Whether the agent produced a usable result
        """
        window = self.agent_performance.setdefault(agent_name, [])
        window.append(confidence if success else 0)
        if len(window) > self.tables.performance_window:
            del window[0]

        capability = self.capabilities.get(agent_name)
        if capability is None:
            logger.warning(f"[Router] Performance update for unknown agent '{agent_name}'")
            return
        capability.average_confidence = sum(window) / len(window)
        capability.success_rate = sum(1 for value in window if value > 0) / len(window)

    def get_routing_analytics(self) -> RoutingAnalytics:
        distribution = {level: 0 for level in COMPLEXITY_LEVELS}
        for analysis in self.query_history:
            distribution[analysis.complexity] = distribution.get(analysis.complexity, 0) + 1

        return RoutingAnalytics(
            total_queries=len(self.query_history),
            agent_performance=[
                AgentPerformanceSummary(
                    name=name,
                    success_rate=cap.success_rate,
                    average_confidence=cap.average_confidence,
                    avg_response_time=cap.avg_response_time,
                )
                for name, cap in self.capabilities.items()
            ],
            query_complexity_distribution=distribution,
        )


# Global router instance
_agent_router: Optional[IntelligentAgentRouter] = None


def get_agent_router() -> IntelligentAgentRouter:
    """Get or create the global router instance."""
    global _agent_router
    if _agent_router is None:
        _agent_router = IntelligentAgentRouter()
    return _agent_router
