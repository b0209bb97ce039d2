"""Agent system schemas."""

from .context import (
    AnalyzerId,
    EXECUTION_ORDER,
    BusinessStage,
    SessionType,
    BusinessContext,
)
from .analysis import (
    Priority,
    AgentAnalysis,
    ActionItem,
    CoachingResponse,
)
from .task import (
    AnalysisRequest,
    TaskStatus,
    Task,
    TaskDAG,
    TaskResult,
)
from .trace import (
    TraceEventType,
    TraceEvent,
    ExecutionTrace,
)
from .routing import (
    AgentCapability,
    QueryAnalysis,
    AgentSelection,
    RoutingDecision,
    RoutingAnalytics,
)
from .memory import (
    UserFeedback,
    ConversationTurn,
    ContextualRecommendations,
    ConversationContext,
    MemoryAnalytics,
)

__all__ = [
    "AnalyzerId",
    "EXECUTION_ORDER",
    "BusinessStage",
    "SessionType",
    "BusinessContext",
    "Priority",
    "AgentAnalysis",
    "ActionItem",
    "CoachingResponse",
    "AnalysisRequest",
    "TaskStatus",
    "Task",
    "TaskDAG",
    "TaskResult",
    "TraceEventType",
    "TraceEvent",
    "ExecutionTrace",
    "AgentCapability",
    "QueryAnalysis",
    "AgentSelection",
    "RoutingDecision",
    "RoutingAnalytics",
    "UserFeedback",
    "ConversationTurn",
    "ContextualRecommendations",
    "ConversationContext",
    "MemoryAnalytics",
]
