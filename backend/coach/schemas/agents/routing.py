"""Routing decision schemas for the IntelligentAgentRouter."""

from typing import Dict, List
from pydantic import Field

from .context import CamelModel


class AgentCapability(CamelModel):
    """Static description plus rolling performance of a routable agent."""
    name: str
    description: str
    expertise: List[str] = Field(default_factory=list)
    priority: int
    average_confidence: float
    success_rate: float
    avg_response_time: float  # seconds


class QueryAnalysis(CamelModel):
    intent: str
    complexity: str  # simple | medium | complex | strategic
    urgency: str  # low | medium | high | critical
    business_context: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    confidence: float


class AgentSelection(CamelModel):
    agent: str
    reason: str
    confidence: float
    expected_frameworks: List[str] = Field(default_factory=list)
    estimated_time: float
    prerequisites: List[str] = Field(default_factory=list)


class RoutingDecision(CamelModel):
    """Primary/secondary agent choice used to drive the UI.

    Computed independently of the conductor's analyzer selection.
    """
    primary: AgentSelection
    secondary: List[AgentSelection] = Field(default_factory=list)
    collaborative_mode: bool
    execution_plan: List[str] = Field(default_factory=list)
    reasoning: str


class AgentPerformanceSummary(CamelModel):
    name: str
    success_rate: float
    average_confidence: float
    avg_response_time: float


class RoutingAnalytics(CamelModel):
    total_queries: int
    agent_performance: List[AgentPerformanceSummary]
    query_complexity_distribution: Dict[str, int]
