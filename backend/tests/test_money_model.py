"""Tests for the money model architect (4-Prong Money Model)."""
import pytest

from coach.schemas.agents.context import BusinessContext, BusinessStage
from coach.services.agents.compute.money_model import MoneyModelArchitectAgent, MoneyModelTables


@pytest.fixture
def agent():
    return MoneyModelArchitectAgent()


class TestFourProngAssessment:

    def test_nothing_in_place(self, agent, empty_context):
        assessment = agent.assess_four_prong_model(empty_context, "What should I do?")

        assert not assessment.attraction.exists
        assert not assessment.upsell.exists
        assert not assessment.downsell.exists
        assert not assessment.continuity.exists
        assert assessment.overall_maturity == 2
        assert assessment.strongest_prong == "Upsell"
        assert assessment.weakest_prong == "Attraction"

    def test_query_mentions_prongs(self, agent, empty_context):
        assessment = agent.assess_four_prong_model(
            empty_context, "I have an upsell, a payment plan and a subscription"
        )

        assert assessment.upsell.effectiveness == 6
        assert assessment.downsell.effectiveness == 5
        assert assessment.continuity.effectiveness == 7
        assert assessment.strongest_prong == "Continuity"

    def test_attraction_liquidates_cac(self, agent, cfa_context):
        """Monthly gross profit of 150 covers a CAC of 100."""
        attraction = agent.assess_four_prong_model(cfa_context, "").attraction

        assert attraction.exists
        assert attraction.effectiveness == 8
        assert attraction.current_implementation == "Achieving CAC liquidation"

    def test_scale_stage_implies_continuity(self, agent):
        context = BusinessContext(business_stage=BusinessStage.SCALE)
        assert agent.assess_four_prong_model(context, "").continuity.exists


class TestMoneyModelAnalysis:

    def test_findings(self, agent, empty_context):
        analysis = agent.analyze("What should I do?", empty_context)

        assert analysis.agent_type == "money-model"
        assert analysis.findings[0] == "4-Prong Model Maturity: 2/10"
        assert analysis.findings[3] == "Customer Journey Touchpoints: 4"
        # Startup main offer of $500 at 10% conversion
        assert analysis.findings[4] == "Revenue Per Customer: $50.00"
        assert analysis.findings[5] == "Missed Opportunities: 4"
        assert analysis.findings[6] == "Quick Wins Available: 2"
        assert analysis.findings[7] == "Revenue Optimization Potential: 150%"

    def test_zero_revenue_has_no_improvement_potential(self, empty_context):
        tables = MoneyModelTables(main_offer_revenue_by_stage={}, default_main_offer_revenue=0)
        analysis = MoneyModelArchitectAgent(tables).analyze("revenue", empty_context)

        assert analysis.metrics.revenue_optimization.improvement_potential == 0
        assert analysis.metrics.monetization_gaps.underperforming_areas == []

    def test_huge_revenue_per_customer_uses_exponent_form(self, agent):
        analysis = agent.analyze("revenue", BusinessContext(current_revenue=1.2e30, customer_count=1))

        assert analysis.findings[4].startswith("Revenue Per Customer: $")
        assert "e+" in analysis.findings[4]

    def test_recommendations_capped(self, agent, empty_context):
        analysis = agent.analyze("What should I do?", empty_context)
        assert len(analysis.recommendations) <= 12
        assert analysis.recommendations[0] == "Implement the complete 4-Prong Money Model for maximum customer value"

    def test_confidence(self, agent, empty_context, cfa_context):
        assert agent.analyze("revenue", empty_context).confidence == 40
        assert agent.analyze("revenue", cfa_context).confidence == 85
