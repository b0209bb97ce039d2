"""Helpers that write coaching events into an ExecutionTrace."""

import time
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from ...schemas.agents.trace import ExecutionTrace, TraceEventType


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


@contextmanager
def trace_task(
    trace: ExecutionTrace,
    task_id: str,
    agent_name: str,
) -> Generator[Dict[str, Any], None, None]:
    """Trace one analyzer run.

    The caller fills the yielded dict (confidence, finding counts...) and it
    becomes the TASK_COMPLETED payload. An exception is recorded as
    TASK_FAILED and re-raised.
    """
    started = time.perf_counter()
    outcome: Dict[str, Any] = {}
    trace.add_event(TraceEventType.TASK_STARTED, agent=agent_name, task_id=task_id)

    try:
        yield outcome
    except Exception as e:
        trace.add_event(
            TraceEventType.TASK_FAILED,
            agent=agent_name,
            task_id=task_id,
            data={"error": str(e) or type(e).__name__},
            duration_ms=_elapsed_ms(started),
        )
        raise

    trace.add_event(
        TraceEventType.TASK_COMPLETED,
        agent=agent_name,
        task_id=task_id,
        data=outcome,
        duration_ms=_elapsed_ms(started),
    )


def trace_workflow_call(
    trace: ExecutionTrace,
    workflow: str,
    started: float,
    task_id: Optional[str] = None,
    **data: Any,
) -> None:
    """Record a finished remote workflow call. `started` is a perf_counter value."""
    trace.add_event(
        TraceEventType.WORKFLOW_CALL,
        agent=workflow,
        task_id=task_id,
        data={"workflow": workflow, **data},
        duration_ms=_elapsed_ms(started),
    )


def trace_fallback(trace: ExecutionTrace, reason: str, **data: Any) -> None:
    """Record that the conductor left its primary path."""
    trace.add_event(
        TraceEventType.FALLBACK_TRIGGERED,
        data={"reason": reason, **data},
    )


def format_trace_summary(trace: ExecutionTrace) -> str:
    """Multi-line digest of a trace for debug logs."""
    query = trace.user_query if len(trace.user_query) <= 50 else trace.user_query[:50] + "..."
    lines = [
        f"Trace {trace.trace_id} [{query}]",
        f"  Mode: {trace.mode or 'unknown'}",
        f"  Success: {trace.success} in {trace.total_duration_ms:.0f}ms",
        f"  Analyzers: {trace.tasks_executed} ok, {trace.tasks_failed} failed, "
        f"{trace.workflow_calls} workflow calls",
    ]

    if trace.dag:
        for task in trace.dag.tasks:
            after = f" after {', '.join(task.depends_on)}" if task.depends_on else ""
            lines.append(f"    {task.analyzer}{after}: {task.status}")

    for agent, duration_ms in trace.analyzer_timings().items():
        lines.append(f"    {agent}: {duration_ms:.0f}ms")

    for event in trace.events_of(TraceEventType.FALLBACK_TRIGGERED):
        lines.append(f"  Fallback: {event.data.get('reason')}")

    return "\n".join(lines)
