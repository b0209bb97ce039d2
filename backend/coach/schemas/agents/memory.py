"""Conversation memory schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import Field
import uuid

from .context import CamelModel
from .routing import QueryAnalysis


class UserFeedback(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ConversationTurn(CamelModel):
    """One answered query, as remembered for a user."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:12])
    timestamp: datetime = Field(default_factory=datetime.now)
    user_query: str
    agent_response: str
    selected_agent: str
    query_analysis: QueryAnalysis
    success: bool
    user_feedback: Optional[UserFeedback] = None
    execution_time: float = 0  # ms
    insights: List[str] = Field(default_factory=list)
    follow_up_suggestions: List[str] = Field(default_factory=list)


class BusinessMemory(CamelModel):
    """What has been learned about the user's business across turns."""
    previous_analyses: List[str] = Field(default_factory=list)
    preferred_frameworks: List[str] = Field(default_factory=list)


class Adaptations(CamelModel):
    response_style: str = "balanced"
    detail_level: str = "moderate"  # brief | moderate | comprehensive


class ContextualRecommendations(CamelModel):
    agent_suggestions: List[str] = Field(default_factory=list)
    framework_recommendations: List[str] = Field(default_factory=list)
    related_topics: List[str] = Field(default_factory=list)
    previous_insights: List[str] = Field(default_factory=list)
    warning_flags: List[str] = Field(default_factory=list)


class ConversationContext(CamelModel):
    recent_queries: List[str] = Field(default_factory=list)
    dominant_intent: str
    average_complexity: str
    business_focus: List[str] = Field(default_factory=list)
    communication_pattern: str


class AgentScore(CamelModel):
    agent: str
    score: float


class FrameworkScore(CamelModel):
    framework: str
    score: float


class MemoryAnalytics(CamelModel):
    total_conversations: int
    success_rate: float
    average_execution_time: float
    top_agents: List[AgentScore] = Field(default_factory=list)
    top_frameworks: List[FrameworkScore] = Field(default_factory=list)
    recent_topics: List[str] = Field(default_factory=list)
    ongoing_projects: List[str] = Field(default_factory=list)
    business_context: BusinessMemory
    adaptations: Adaptations
