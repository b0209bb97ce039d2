"""Tests for the agent registry and trace helpers."""
import pytest

from coach.schemas.agents.task import AnalysisRequest, Task
from coach.schemas.agents.trace import ExecutionTrace, TraceEventType
from coach.services.agents.base import Agent, ComputeAgent
from coach.services.agents.compute.constraint import ConstraintAnalyzerAgent
from coach.services.agents.compute.financial import FinancialCalculatorAgent
from coach.services.agents.tracing import format_trace_summary, trace_fallback, trace_task
from coach.services.agents.workflows import WorkflowAgent


class TestRegistry:

    def test_lookup_by_analyzer(self, registry):
        agent = FinancialCalculatorAgent()
        registry.register(agent)

        assert registry.get_agent_for_analyzer("financial") is agent
        assert registry.get_agent("financial_calculator") is agent
        assert registry.get_agent_for_analyzer("offer") is None

    def test_register_replaces_same_analyzer(self, registry):
        registry.register(FinancialCalculatorAgent())
        remote = WorkflowAgent("financial")
        registry.register(remote)

        assert registry.get_agent_for_analyzer("financial") is remote
        assert registry.list_agents() == ["workflow:financial-calculator"]

    def test_agents_satisfy_protocol(self):
        assert isinstance(ConstraintAnalyzerAgent(), Agent)
        assert isinstance(WorkflowAgent("offer"), Agent)


class TestExecute:

    @pytest.mark.asyncio
    async def test_execute_wraps_analysis(self, cfa_context):
        trace = ExecutionTrace(session_id="s", user_query="q")
        task = Task(analyzer="financial")

        result = await FinancialCalculatorAgent().execute(
            task, AnalysisRequest(query="cac", business_context=cfa_context), {}, trace
        )

        assert result.success
        assert result.analysis.agent_type == "financial"
        completed = trace.events_of(TraceEventType.TASK_COMPLETED)[0]
        assert completed.data["findings"] == len(result.analysis.findings)

    def test_only_compute_agents_analyze_in_process(self):
        assert isinstance(FinancialCalculatorAgent(), ComputeAgent)
        assert not isinstance(WorkflowAgent("offer"), ComputeAgent)
        assert not hasattr(WorkflowAgent("offer"), "analyze")


class TestTracing:

    def test_trace_task_records_failure_and_reraises(self):
        trace = ExecutionTrace(session_id="s", user_query="q")

        with pytest.raises(ValueError):
            with trace_task(trace, "t1", "agent"):
                raise ValueError("bad input")

        failed = trace.events_of(TraceEventType.TASK_FAILED)
        assert failed[0].data == {"error": "bad input"}
        assert trace.tasks_failed == 1

    def test_summary(self):
        trace = ExecutionTrace(session_id="s", user_query="What's my constraint?")
        trace.mode = "local"
        trace_fallback(trace, "master_conductor_failed", error="HTTP 500")
        trace.finalize(response="done", success=True)

        summary = format_trace_summary(trace)
        assert "Mode: local" in summary
        assert "Fallback: master_conductor_failed" in summary
        assert "Success: True" in summary
