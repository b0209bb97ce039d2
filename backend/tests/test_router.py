"""Tests for the IntelligentAgentRouter."""
import pytest

from coach.services.agents.agent_router import IntelligentAgentRouter
from coach.services.agents.keywords import RoutingTables


CONSTRAINT_QUESTION = "What's my biggest business constraint right now?"
STRATEGIC_QUESTION = (
    "Give me a comprehensive strategy for my entire business covering offer, sales, marketing and operations"
)


# =============================================================================
# Query analysis
# =============================================================================

class TestQueryAnalysis:

    def test_constraint_question(self, router):
        analysis = router.analyze_query(CONSTRAINT_QUESTION)

        assert analysis.intent == "diagnose"
        assert analysis.complexity == "simple"
        assert analysis.urgency == "medium"
        assert analysis.business_context == []
        assert analysis.frameworks == ["4 Universal Constraints"]
        assert analysis.confidence == pytest.approx(0.8)

    def test_strategic_question(self, router):
        analysis = router.analyze_query(STRATEGIC_QUESTION)
        assert analysis.complexity == "strategic"

    def test_rich_context_adds_complexity(self, router):
        context = {"a": 1, "b": 2, "c": 3, "d": 4, "e": 5, "f": 6, "g": None}
        plain = router.assess_complexity("offer", ["offer"])
        rich = router.assess_complexity("offer", ["offer"], context)

        assert plain == "simple"
        assert rich == "medium"

    def test_urgency_levels(self, router):
        assert router.detect_urgency("this is urgent") == "critical"
        assert router.detect_urgency("i need this soon") == "high"
        assert router.detect_urgency("just curious") == "low"

    def test_contexts(self, router):
        contexts = router.extract_business_context("my saas startup sells subscriptions online")
        assert contexts == ["saas", "online", "startup"]

    def test_confidence_capped(self):
        confidence = IntelligentAgentRouter.calculate_analysis_confidence("plan", "simple", ["a", "b", "c", "d"])
        assert confidence == 0.95


# =============================================================================
# Routing decisions
# =============================================================================

class TestRouting:

    def test_constraint_question_routes_to_constraint_analyzer(self, router):
        decision = router.route_query(CONSTRAINT_QUESTION)

        assert decision.primary.agent == "constraint-analyzer"
        assert decision.secondary == []
        assert decision.collaborative_mode is False
        assert decision.execution_plan == [
            "1. constraint-analyzer performs focused analysis",
            "3. Generate actionable recommendations",
        ]

    def test_expertise_match_wins(self, router):
        decision = router.route_query("How should I improve my offer pricing?")

        assert decision.primary.agent == "offer-analyzer"
        assert decision.primary.expected_frameworks == ["Grand Slam Offer"]

    def test_strategic_is_collaborative(self, router):
        decision = router.route_query(STRATEGIC_QUESTION)

        assert decision.collaborative_mode is True
        assert decision.primary.agent == "constraint-analyzer"
        assert [s.agent for s in decision.secondary] == ["coaching-methodology"]
        assert decision.execution_plan[0] == "1. Initialize collaborative analysis session"
        assert "Collaborative mode enabled with 1 supporting agents" in decision.reasoning

    def test_secondary_agents_depend_on_primary(self, router):
        decision = router.route_query("upsell revenue streams and continuity with cac and ltv metrics")

        assert decision.secondary
        assert len(decision.secondary) <= 3
        for selection in decision.secondary:
            assert selection.prerequisites == [decision.primary.agent]
            assert selection.agent != decision.primary.agent
            assert selection.confidence <= 0.85

    def test_critical_urgency_in_reasoning(self, router):
        decision = router.route_query("urgent: my sales are failing")
        assert "High priority routing due to critical urgency" in decision.reasoning

    def test_primary_confidence_capped(self, router):
        decision = router.route_query("cac ltv cfa metrics profitability unit economics")
        assert decision.primary.agent == "financial-calculator"
        assert decision.primary.confidence == 0.95


# =============================================================================
# Performance and analytics
# =============================================================================

class TestPerformance:

    def test_update_moves_capability(self, router):
        router.update_agent_performance("offer-analyzer", 0.5, True)
        router.update_agent_performance("offer-analyzer", 0.9, False)

        capability = router.capabilities["offer-analyzer"]
        assert capability.average_confidence == pytest.approx(0.25)
        assert capability.success_rate == pytest.approx(0.5)

    def test_window_is_bounded(self, router):
        for _ in range(60):
            router.update_agent_performance("offer-analyzer", 0.7, True)
        assert len(router.agent_performance["offer-analyzer"]) == 50

    def test_unknown_agent_is_tolerated(self, router):
        router.update_agent_performance("ghost", 0.5, True)
        assert "ghost" not in router.capabilities

    def test_routers_do_not_share_capabilities(self):
        first = IntelligentAgentRouter()
        second = IntelligentAgentRouter()
        first.update_agent_performance("offer-analyzer", 0.1, False)

        assert second.capabilities["offer-analyzer"].success_rate == pytest.approx(0.85)

    def test_history_is_bounded(self):
        router = IntelligentAgentRouter(RoutingTables(history_limit=3))
        for _ in range(5):
            router.analyze_query(CONSTRAINT_QUESTION)

        analytics = router.get_routing_analytics()
        assert analytics.total_queries == 3
        assert analytics.query_complexity_distribution == {"simple": 3, "medium": 0, "complex": 0, "strategic": 0}
        assert len(analytics.agent_performance) == 7
