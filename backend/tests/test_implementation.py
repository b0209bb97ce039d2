"""Tests for the implementation planner."""
import pytest

from coach.schemas.agents.analysis import AgentAnalysis
from coach.schemas.agents.context import BusinessContext, BusinessStage
from coach.schemas.agents.metrics import PriorityItem
from coach.services.agents.compute.implementation import ImplementationPlannerAgent, bucket_priority


@pytest.fixture
def agent():
    return ImplementationPlannerAgent()


def _item(impact, urgency):
    return PriorityItem(action="a", impact=impact, effort=1, urgency=urgency, frameworks=[], dependencies=[])


class TestPriorityBuckets:

    @pytest.mark.parametrize("impact,urgency,expected", [
        (9, 10, "critical"),
        (8, 8, "critical"),
        (7, 8, "high"),
        (7, 6, "high"),
        (6, 5, "medium"),
        (5, 4, "medium"),
        (9, 3, "low"),
    ])
    def test_first_match_wins(self, impact, urgency, expected):
        assert bucket_priority(_item(impact, urgency)) == expected

    def test_catalog_matrix(self, agent):
        matrix = agent.build_priority_matrix()

        assert len(matrix.critical) == 2
        assert len(matrix.high) == 5
        assert len(matrix.medium) == 1
        assert matrix.low == []


class TestImplementationPlan:

    def test_startup_defaults_to_offer_and_cfa(self, agent, empty_context):
        plan = agent.create_implementation_plan(empty_context, "where do I start")

        assert plan.focus_areas == ["offer", "cfa"]
        assert [p.phase for p in plan.phases] == [
            "Foundation Setup",
            "Quick Wins Implementation",
            "CFA Achievement",
            "Grand Slam Offer Development",
            "Optimization & Scale",
        ]
        assert plan.total_duration == 16

    def test_query_focus(self, agent, empty_context):
        plan = agent.create_implementation_plan(empty_context, "upsell roadmap")

        assert plan.focus_areas == ["money-model", "revenue"]
        assert "4-Prong Money Model" in [p.phase for p in plan.phases]

    def test_mature_without_keywords_keeps_only_fixed_phases(self, agent):
        plan = agent.create_implementation_plan(BusinessContext(business_stage=BusinessStage.MATURE), "help")

        assert plan.focus_areas == ["optimization", "scale"]
        assert len(plan.phases) == 3

    def test_timeline_covers_every_week(self, agent, empty_context):
        plan = agent.create_implementation_plan(empty_context, "")
        timeline = agent.create_detailed_timeline(plan)

        assert [w.week for w in timeline.weeks] == list(range(1, plan.total_duration + 1))
        assert len(timeline.milestones) == len(plan.phases)
        assert timeline.milestones[-1].week == plan.total_duration


class TestImplementationAnalysis:

    def test_findings(self, agent, empty_context):
        analysis = agent.analyze("where do I start", empty_context)

        assert analysis.agent_type == "implementation"
        assert analysis.findings[0] == "Implementation Timeline: 16 weeks"
        assert analysis.findings[3] == "Critical Actions: 2"
        assert analysis.findings[5] == "Quick Wins Available: 2"
        assert analysis.findings[8] == "Estimated Budget: $18000"
        assert analysis.findings[12] == "High-Risk Items: 4"
        assert len(analysis.recommendations) <= 12

    def test_records_upstream_agents(self, agent, empty_context):
        prior = [
            AgentAnalysis(agent_type="offer", confidence=50),
            AgentAnalysis(agent_type="financial", confidence=30),
        ]
        analysis = agent.analyze("plan", empty_context, prior)

        assert analysis.metrics.upstream_agents == ["offer", "financial"]
