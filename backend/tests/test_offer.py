"""Tests for the offer analyzer (Value Equation, positioning, pricing power)."""
import pytest

from coach.schemas.agents.context import BusinessContext
from coach.services.agents.compute.offer import OfferAnalyzerAgent, value_equation_score


@pytest.fixture
def agent():
    return OfferAnalyzerAgent()


class TestValueEquation:
    """(Dream x Likelihood) / (Time x Effort) x 10."""

    def test_formula(self):
        assert value_equation_score(7, 6, 5, 5) == pytest.approx(16.8)
        assert value_equation_score(9, 8, 2, 2) == pytest.approx(180)

    def test_defaults_without_keywords(self, agent, empty_context):
        score = agent.analyze_value_equation(empty_context, "Tell me about my business")

        assert (score.dream_outcome, score.perceived_likelihood) == (7, 6)
        assert (score.time_delay, score.effort_sacrifice) == (5, 5)
        assert score.improvements == ["Increase perceived likelihood with proof, testimonials, and guarantees"]

    def test_query_keywords_override(self, agent, empty_context):
        score = agent.analyze_value_equation(
            empty_context, "A revolutionary, guaranteed, instant, done for you program"
        )

        assert score.dream_outcome == 9
        assert score.perceived_likelihood == 8
        assert score.time_delay == 2
        assert score.effort_sacrifice == 2

    def test_later_rule_wins(self, agent, empty_context):
        """'simple' hits both the dream outcome and effort tables."""
        score = agent.analyze_value_equation(empty_context, "a simple offer")

        assert score.dream_outcome == 5
        assert score.effort_sacrifice == 4

    def test_established_business_is_more_credible(self, agent, full_context):
        score = agent.analyze_value_equation(full_context, "my offer")
        assert score.perceived_likelihood == 8

    def test_primary_weakness_inverts_time_and_effort(self, agent, empty_context):
        score = agent.analyze_value_equation(empty_context, "my offer")
        # Time delay 5 inverts to 5, below likelihood 6
        assert agent.identify_primary_weakness(score) == "Time Delay"


class TestOfferAnalysis:

    def test_findings(self, agent, cfa_context):
        analysis = agent.analyze("How good is my offer?", cfa_context)

        assert analysis.agent_type == "offer"
        assert analysis.findings[0] == "Value Equation Score: 16.8/10"
        assert analysis.findings[2] == "Market position: value"
        assert analysis.findings[4] == "Pricing assessment: underpriced"
        assert analysis.findings[5] == "Pricing power score: 8/10"

    def test_low_margin_is_economy_position(self, agent):
        position = agent.assess_competitive_position(BusinessContext(gross_margin=40))

        assert position.market_position == "economy"
        assert "Low pricing power indicates weak differentiation" in position.competitive_gaps

    def test_high_margin_is_premium_position(self, agent, full_context):
        position = agent.assess_competitive_position(full_context)

        assert position.market_position == "premium"
        assert position.competitive_gaps == []

    def test_confidence(self, agent, empty_context, full_context):
        assert agent.analyze("offer", empty_context).confidence == 50
        assert agent.analyze("offer", full_context).confidence == 95

    def test_grand_slam_recommendations_always_present(self, agent, empty_context):
        analysis = agent.analyze("offer", empty_context)
        assert analysis.recommendations[-3].startswith("Apply the 'Grand Slam Offer' framework")
