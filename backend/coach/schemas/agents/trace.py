"""Per-request execution trace.

One ExecutionTrace follows a coaching request from session lookup through
analyzer selection, the task DAG, every analyzer or workflow call, and the
synthesis. Counters are derived from the recorded events.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
import uuid

from .task import TaskDAG


class TraceEventType(str, Enum):
    SESSION_LOADED = "session_loaded"
    ANALYZERS_SELECTED = "analyzers_selected"
    DAG_CREATED = "dag_created"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    WORKFLOW_CALL = "workflow_call"
    FALLBACK_TRIGGERED = "fallback_triggered"
    SYNTHESIS = "synthesis"


class TraceEvent(BaseModel):
    event_type: TraceEventType
    agent: Optional[str] = None  # analyzer agent or workflow name
    task_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    duration_ms: Optional[float] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    class Config:
        use_enum_values = True


class ExecutionTrace(BaseModel):
    """Everything that happened while answering one coaching query.

    `mode` is the path that produced the answer: "master-conductor",
    "local" or "remote".
    """
    trace_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    session_id: str
    user_query: str
    mode: Optional[str] = None
    dag: Optional[TaskDAG] = None
    events: List[TraceEvent] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    total_duration_ms: float = 0
    final_response: Optional[str] = None
    success: bool = False

    def add_event(
        self,
        event_type: TraceEventType,
        agent: Optional[str] = None,
        task_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        self.events.append(TraceEvent(
            event_type=event_type,
            agent=agent,
            task_id=task_id,
            data=data or {},
            duration_ms=duration_ms,
        ))

    def events_of(self, event_type: TraceEventType) -> List[TraceEvent]:
        return [e for e in self.events if e.event_type == event_type]

    @property
    def tasks_executed(self) -> int:
        return len(self.events_of(TraceEventType.TASK_COMPLETED))

    @property
    def tasks_failed(self) -> int:
        return len(self.events_of(TraceEventType.TASK_FAILED))

    @property
    def workflow_calls(self) -> int:
        return len(self.events_of(TraceEventType.WORKFLOW_CALL))

    def analyzer_timings(self) -> Dict[str, float]:
        """Duration of each finished analyzer task, keyed by agent name."""
        timings: Dict[str, float] = {}
        for event in self.events:
            if event.event_type in (TraceEventType.TASK_COMPLETED, TraceEventType.TASK_FAILED) and event.agent:
                timings[event.agent] = event.duration_ms or 0
        return timings

    def finalize(self, response: Optional[str] = None, success: bool = False) -> None:
        self.final_response = response
        self.success = success
        self.total_duration_ms = (datetime.now() - self.started_at).total_seconds() * 1000
