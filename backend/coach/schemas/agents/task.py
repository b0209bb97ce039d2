"""Task and DAG schemas for the coaching conductor."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
import uuid

from .analysis import AgentAnalysis
from .context import AnalyzerId, BusinessContext, SessionType


class AnalysisRequest(BaseModel):
    """Inputs shared by every task of one coaching request."""
    query: str
    business_context: BusinessContext = Field(default_factory=BusinessContext)
    session_type: SessionType = SessionType.DIAGNOSTIC
    user_id: Optional[str] = None

    class Config:
        use_enum_values = True
        validate_default = True


class TaskStatus(str, Enum):
    """Status of a task in the execution pipeline."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Task(BaseModel):
    """One analyzer invocation in the execution DAG.

    The implementation planner depends on every other selected analyzer,
    all other tasks are independent and run in the same level.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    analyzer: AnalyzerId
    depends_on: List[str] = Field(default_factory=list)  # Task IDs
    status: TaskStatus = TaskStatus.PENDING
    result: Optional[AgentAnalysis] = None
    error: Optional[str] = None
    assigned_agent: Optional[str] = None

    class Config:
        use_enum_values = True


class TaskDAG(BaseModel):
    """Directed Acyclic Graph of analyzer tasks for one query."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    query_summary: str
    session_type: str
    tasks: List[Task] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class TaskResult(BaseModel):
    """Outcome of one analyzer invocation.

    success=True carries `analysis`; success=False carries `error`.
    """
    task_id: str
    analyzer: AnalyzerId
    success: bool
    analysis: Optional[AgentAnalysis] = None
    error: Optional[str] = None
    duration_ms: float = 0

    class Config:
        use_enum_values = True

    @classmethod
    def ok(cls, task_id: str, analyzer: str, analysis: AgentAnalysis, duration_ms: float = 0) -> "TaskResult":
        return cls(task_id=task_id, analyzer=analyzer, success=True, analysis=analysis, duration_ms=duration_ms)

    @classmethod
    def err(cls, task_id: str, analyzer: str, error: str, duration_ms: float = 0) -> "TaskResult":
        return cls(task_id=task_id, analyzer=analyzer, success=False, error=error, duration_ms=duration_ms)
