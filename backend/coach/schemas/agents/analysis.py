"""Analyzer output and coaching response schemas."""

from enum import Enum
from typing import List, Optional
from pydantic import Field

from .context import CamelModel
from .metrics import AnalyzerMetrics


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AgentAnalysis(CamelModel):
    """Output of a single analyzer invocation.

    Produced once per invocation and never mutated afterwards.
    """
    agent_type: str
    findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    metrics: Optional[AnalyzerMetrics] = None
    confidence: float = Field(ge=0, le=100)

    class Config:
        frozen = True


class ActionItem(CamelModel):
    """A prioritized action derived from analyzer recommendations."""
    title: str
    description: str
    priority: Priority
    timeline: str
    frameworks: List[str] = Field(default_factory=list)


class CoachingResponse(CamelModel):
    """Synthesized answer to a coaching query."""
    analysis: List[AgentAnalysis] = Field(default_factory=list)
    synthesis: str
    action_items: List[ActionItem] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
