"""Tests for the psychology optimizer (upsell timing, buyer types, triggers)."""
import pytest

from coach.schemas.agents.context import BusinessContext, BusinessStage
from coach.services.agents.compute.psychology import PsychologyOptimizerAgent


@pytest.fixture
def agent():
    return PsychologyOptimizerAgent()


class TestUpsellTiming:

    def test_no_moments_used(self, agent, empty_context):
        timing = agent.analyze_upsell_timing(empty_context, "how do i sell more")

        assert timing.current_timing == "unknown"
        assert timing.timing_score == 0
        assert not any(m.currently_used for m in timing.optimal_moments)

    def test_first_timing_rule_wins(self, agent, empty_context):
        """'after' is checked before 'checkout'."""
        timing = agent.analyze_upsell_timing(empty_context, "i upsell after checkout")
        assert timing.current_timing == "end_of_service"

    def test_immediate_moment(self, agent, empty_context):
        timing = agent.analyze_upsell_timing(empty_context, "i upsell immediately")
        used = [m.moment for m in timing.optimal_moments if m.currently_used]

        assert timing.current_timing == "immediately"
        assert used == ["immediately"]
        assert timing.timing_score == 2

    def test_mature_high_ltv_boosts_potential(self, agent):
        context = BusinessContext(business_stage=BusinessStage.MATURE, ltv=6000)
        timing = agent.analyze_upsell_timing(context, "")
        assert [m.conversion_potential for m in timing.optimal_moments] == [9, 10, 9, 8, 6]


class TestBuyingPsychology:

    def test_deliberate_researcher(self, agent, empty_context):
        psychology = agent.analyze_buying_psychology(empty_context, "tell me more")

        assert psychology.customer_type == "deliberate"
        assert psychology.buying_cycle == "research"
        assert psychology.psychological_state == "Information gathering - provide proof and reduce risk"

    def test_price_checked_before_premium(self, agent, empty_context):
        psychology = agent.analyze_buying_psychology(empty_context, "premium price")
        assert psychology.customer_type == "price-sensitive"

    def test_hyper_buyer_ready_to_buy(self, agent, empty_context):
        psychology = agent.analyze_buying_psychology(empty_context, "premium clients want to buy now")

        assert psychology.customer_type == "hyper-buyer"
        assert psychology.buying_cycle == "active"
        assert psychology.psychological_state == "Ready to buy - maximize value and create urgency"


class TestPsychologyAnalysis:

    def test_findings(self, agent, empty_context):
        analysis = agent.analyze("tell me more", empty_context)

        assert analysis.agent_type == "psychology"
        assert analysis.findings[0] == "Upsell Timing Score: 0/10"
        assert analysis.findings[1] == "Optimal Moments Used: 0/5"
        assert analysis.findings[5] == "Current Conversion Estimate: 5%"

    def test_potential_conversion_is_capped(self, agent, empty_context):
        conversion = agent.analyze("tell me more", empty_context).metrics.conversion_optimization
        assert conversion.current_conversion <= conversion.potential_conversion <= 25

    def test_recommendations(self, agent, empty_context):
        analysis = agent.analyze("tell me more", empty_context)

        assert analysis.recommendations[0] == "Sell at the point of greatest deprivation, not greatest satisfaction"
        assert len(analysis.recommendations) <= 10

    def test_confidence(self, agent, empty_context):
        assert agent.analyze("", empty_context).confidence == 60
        context = BusinessContext(customer_count=500, cac=100, ltv=1000, business_stage=BusinessStage.GROWTH)
        assert agent.analyze("", context).confidence == 90
