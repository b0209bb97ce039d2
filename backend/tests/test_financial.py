"""Tests for the financial calculator (CFA and the advertising level state machine)."""
import math

import pytest

from coach.schemas.agents.context import BusinessContext, BusinessStage
from coach.services.agents.compute.financial import (
    FinancialCalculatorAgent,
    calculate_cfa_ratio,
    calculate_payback_period,
    classify_advertising_level,
)


@pytest.fixture
def agent():
    return FinancialCalculatorAgent()


# =============================================================================
# Client Financed Acquisition
# =============================================================================

class TestCFA:
    """30-day gross profit against CAC."""

    def test_cfa_achieved(self, agent, cfa_context):
        """GP 150 against CAC 100 achieves CFA at 1.5x."""
        analysis = agent.analyze("How is my CAC?", cfa_context)

        assert analysis.agent_type == "financial"
        assert analysis.findings[0] == "CFA Status: ACHIEVED"
        assert analysis.findings[1] == "30-day GP/CAC ratio: 1.50x"
        assert analysis.metrics.cfa_analysis.achieves_cfa is True
        assert analysis.metrics.cfa_analysis.cfa_ratio == pytest.approx(1.5)

    def test_cfa_not_achieved(self, agent, no_cfa_context):
        """GP 180 against CAC 200 misses CFA by $20."""
        analysis = agent.analyze("How is my CAC?", no_cfa_context)

        assert analysis.findings[0] == "CFA Status: NOT ACHIEVED"
        assert analysis.findings[1] == "30-day GP/CAC ratio: 0.90x"
        assert analysis.recommendations[0] == "Need to increase 30-day gross profit by $20.00 to achieve CFA"

    def test_cfa_ratio_zero_without_cac(self):
        assert calculate_cfa_ratio(150, 0) == 0

    def test_payback_infinite_without_gross_profit(self):
        assert math.isinf(calculate_payback_period(100, 0))

    def test_negative_cac_is_flagged_and_ignored(self, agent):
        analysis = agent.analyze("cac", BusinessContext(cac=-5, gross_margin=50))

        assert analysis.findings[0] == "Invalid CAC (-5) - treated as 0"
        assert analysis.metrics.cfa_analysis.cac == 0
        assert analysis.metrics.cfa_analysis.achieves_cfa is False

    def test_tiny_cac_reports_ratios_in_exponent_form(self, agent):
        analysis = agent.analyze("cac", BusinessContext(cac=1e-26, ltv=10, gross_margin=50))

        assert analysis.findings[1].startswith("30-day GP/CAC ratio: ")
        assert "e+" in analysis.findings[1]
        assert "e+" in analysis.findings[4]
        assert analysis.findings[4].startswith("LTV/CAC ratio: ")

    def test_huge_revenue_is_analyzed(self, agent):
        analysis = agent.analyze("cac", BusinessContext(current_revenue=1.2e30, customer_count=1, cac=100))

        assert analysis.findings[0] == "CFA Status: ACHIEVED"
        assert "e+" in analysis.findings[1]
        assert "e+" in analysis.recommendations[0]


# =============================================================================
# Advertising levels
# =============================================================================

class TestAdvertisingLevel:
    """Level 0-3 from LTV/CAC and the CFA ratio."""

    @pytest.mark.parametrize("ltv_cac,cfa,expected", [
        (0.5, 3.0, 0),
        (1.0, 3.0, 0),
        (3.0, 0.5, 1),
        (3.0, 1.0, 1),
        (3.0, 1.5, 2),
        (3.0, 2.0, 3),
        (10.0, 4.0, 3),
    ])
    def test_classification(self, ltv_cac, cfa, expected):
        assert classify_advertising_level(ltv_cac, cfa) == expected

    def test_missing_ltv_is_level_zero(self, agent, cfa_context):
        """Without LTV the LTV/CAC ratio is 0, so even an achieved CFA is Level 0."""
        analysis = agent.analyze("cac", cfa_context)

        assert analysis.findings[2] == "Current Advertising Level: 0"
        assert analysis.metrics.advertising_level.current_level == 0

    def test_ltv_below_cac_is_level_zero(self, agent):
        analysis = agent.analyze("ltv", BusinessContext(ltv=50, cac=100))
        assert analysis.metrics.advertising_level.current_level == 0

    def test_ltv_equal_to_cac_is_level_zero(self, agent):
        analysis = agent.analyze("ltv", BusinessContext(ltv=100, cac=100, gross_margin=90))
        assert analysis.metrics.advertising_level.current_level == 0

    def test_level_three(self, agent):
        context = BusinessContext(
            current_revenue=1_200_000,
            customer_count=250,
            cac=100,
            ltv=4000,
            gross_margin=85,
        )
        analysis = agent.analyze("cac", context)

        assert analysis.metrics.advertising_level.current_level == 3
        assert analysis.metrics.business_metrics.growth_constraint == "operational"

    def test_level_never_drops_as_gross_profit_grows(self, agent):
        """Raising 30-day gross profit at fixed CAC and LTV never lowers the level."""
        previous = -1
        for revenue in (6000, 12000, 24000, 36000, 48000, 96000):
            context = BusinessContext(
                current_revenue=revenue,
                customer_count=10,
                cac=100,
                ltv=1000,
                gross_margin=50,
            )
            level = agent.analyze("cac", context).metrics.advertising_level.current_level
            assert level >= previous
            previous = level
        assert previous == 3


# =============================================================================
# Confidence and determinism
# =============================================================================

class TestConfidence:

    def test_nothing_known(self, agent, empty_context):
        assert agent.analyze("cac", empty_context).confidence == 30

    def test_capped(self, agent, full_context):
        assert agent.analyze("cac", full_context).confidence == 90

    def test_deterministic(self, agent, cfa_context):
        first = agent.analyze("How is my CAC?", cfa_context)
        second = agent.analyze("How is my CAC?", cfa_context)
        assert first.model_dump() == second.model_dump()

    def test_stage_estimate_without_revenue(self, agent):
        """Missing revenue falls back to a stage-keyed monthly revenue estimate."""
        startup = agent.estimate_monthly_revenue_per_customer(BusinessContext())
        mature = agent.estimate_monthly_revenue_per_customer(
            BusinessContext(business_stage=BusinessStage.MATURE)
        )
        assert startup > 0
        assert mature > 0
