"""Tests for the synthesizer."""
import pytest

from coach.schemas.agents.analysis import AgentAnalysis
from coach.schemas.agents.context import BusinessContext
from coach.schemas.agents.trace import ExecutionTrace, TraceEventType
from coach.services.agents.synthesizer import Synthesizer


@pytest.fixture
def synthesizer():
    return Synthesizer()


def _analysis(agent_type, recommendations=None, confidence=50):
    return AgentAnalysis(agent_type=agent_type, recommendations=recommendations or [], confidence=confidence)


# =============================================================================
# Leverage and fundamentals
# =============================================================================

class TestLeverage:
    """CFA work beats offer work, which beats the money model."""

    def test_cfa_first(self, synthesizer, no_cfa_context):
        leverage = synthesizer.identify_biggest_leverage([_analysis("financial"), _analysis("offer")], no_cfa_context)
        assert leverage.startswith("Achieving Client Financed Acquisition")

    def test_offer_when_cfa_achieved(self, synthesizer, cfa_context):
        leverage = synthesizer.identify_biggest_leverage([_analysis("financial"), _analysis("offer")], cfa_context)
        assert leverage.startswith("Grand Slam Offer optimization")

    def test_money_model_fallback(self, synthesizer, no_cfa_context):
        leverage = synthesizer.identify_biggest_leverage([_analysis("psychology")], no_cfa_context)
        assert leverage.startswith("Money model architecture")

    def test_missing_cac_needs_cfa_work(self, synthesizer, empty_context):
        assert synthesizer.needs_cfa_work(empty_context)

    def test_advertising_level_needs_ltv(self, synthesizer, cfa_context):
        assert synthesizer.describe_advertising_level(cfa_context) == "Data insufficient"

    def test_advertising_level_zero(self, synthesizer):
        context = BusinessContext(cac=100, ltv=100, gross_margin=50)
        assert synthesizer.describe_advertising_level(context) == "Level 0 (Unprofitable - Critical Issue)"

    def test_synthesis_sections(self, synthesizer, cfa_context):
        text = synthesizer.synthesize_findings([_analysis("offer")], cfa_context)

        assert "**Biggest Leverage Opportunity**" in text
        assert "**Business Fundamentals Assessment**" in text
        assert "• **Current Business Stage**: growth" in text
        assert "**Strategic Direction**: Prioritize money model architecture" in text


# =============================================================================
# Action items
# =============================================================================

class TestActionItems:

    def test_priority_and_timeline(self, synthesizer):
        items = synthesizer.generate_action_items([_analysis("offer", [
            "Document the process.",
            "Test a higher price on your offer.",
            "Implement an upsell to reach CFA.",
        ])])

        assert [i.priority for i in items] == ["critical", "high", "medium"]
        assert items[0].timeline == "2-4 weeks"
        assert items[1].timeline == "1-2 weeks"
        assert items[0].frameworks == ["Client Financed Acquisition", "4-Prong Money Model"]

    def test_ties_keep_analyzer_order(self, synthesizer):
        items = synthesizer.generate_action_items([
            _analysis("offer", ["First thing"]),
            _analysis("financial", ["Second thing"]),
        ])
        assert [i.description for i in items] == ["First thing", "Second thing"]

    def test_at_most_eight(self, synthesizer):
        analyses = [_analysis("offer", [f"Step {n}" for n in range(20)])]
        assert len(synthesizer.generate_action_items(analyses)) == 8

    def test_title_is_first_sentence(self, synthesizer):
        assert synthesizer.extract_action_title("Raise prices. Then test.") == "Raise prices...."
        assert synthesizer.extract_action_title("No punctuation here") == "No punctuation here..."


# =============================================================================
# Full response
# =============================================================================

class TestSynthesize:

    def test_frameworks_deduplicated_in_order(self, synthesizer):
        frameworks = synthesizer.identify_frameworks([
            _analysis("constraint-analyzer"),
            _analysis("offer"),
            _analysis("constraint-analyzer"),
        ])
        assert frameworks == [
            "4 Universal Constraints",
            "Sequential Constraint Solving",
            "Grand Slam Offer",
            "Value Equation",
        ]

    def test_unknown_agent_type_contributes_no_frameworks(self, synthesizer):
        assert synthesizer.identify_frameworks([_analysis("mystery")]) == []

    def test_next_steps(self, synthesizer, no_cfa_context, cfa_context):
        assert synthesizer.generate_next_steps(no_cfa_context)[0] == "Calculate your current 30-day gross profit per customer"
        assert synthesizer.generate_next_steps(cfa_context)[0] == "Document your current money model architecture"
        assert synthesizer.generate_next_steps(cfa_context)[-1] == "Schedule weekly metrics review to track progress"

    def test_analyses_passed_through_and_traced(self, synthesizer, cfa_context):
        analyses = [_analysis("offer", ["Raise prices."]), _analysis("financial", confidence=0)]
        trace = ExecutionTrace(session_id="s", user_query="q")

        response = synthesizer.synthesize(analyses, cfa_context, trace)

        assert response.analysis == analyses
        assert len(response.action_items) == 1
        assert trace.events_of(TraceEventType.SYNTHESIS)[0].data["analyses"] == 2
