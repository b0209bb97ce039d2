from typing import List, Optional
from pydantic import Field

from .agents.analysis import CoachingResponse
from .agents.context import BusinessContext, CamelModel
from .agents.memory import UserFeedback
from .agents.routing import RoutingDecision


class CoachingRequest(CamelModel):
    """Request to the coaching endpoint."""
    query: str
    business_context: Optional[BusinessContext] = None
    session_type: str = "diagnostic"
    user_id: str
    session_id: Optional[str] = None


class CoachingApiResponse(CoachingResponse):
    """Coaching response plus the bookkeeping the client needs for follow-ups."""
    session_id: str
    turn_id: str
    trace_id: str
    mode: str  # master-conductor | local | remote
    routing: Optional[RoutingDecision] = None


class RouteRequest(CamelModel):
    """Request a routing decision without running any analyzer."""
    query: str
    business_context: Optional[BusinessContext] = None
    session_type: Optional[str] = None


class FeedbackRequest(CamelModel):
    user_id: str
    turn_id: str
    feedback: UserFeedback
    session_id: Optional[str] = None


class DiagnosticQuestions(CamelModel):
    analyzer: str
    questions: List[str] = Field(default_factory=list)
