"""Business context and analyzer identity schemas."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class AnalyzerId(str, Enum):
    """Identifiers of the analyzers the conductor can run.

    The string values double as the `agentType` of every AgentAnalysis.
    """
    OFFER = "offer"
    MONEY_MODEL = "money-model"
    FINANCIAL = "financial"
    PSYCHOLOGY = "psychology"
    IMPLEMENTATION = "implementation"
    CONSTRAINT = "constraint-analyzer"
    COACHING = "coaching-methodology"


# Order in which analyses are run and reported
EXECUTION_ORDER = [
    AnalyzerId.OFFER,
    AnalyzerId.MONEY_MODEL,
    AnalyzerId.FINANCIAL,
    AnalyzerId.PSYCHOLOGY,
    AnalyzerId.IMPLEMENTATION,
    AnalyzerId.CONSTRAINT,
    AnalyzerId.COACHING,
]


class BusinessStage(str, Enum):
    STARTUP = "startup"
    GROWTH = "growth"
    SCALE = "scale"
    MATURE = "mature"


class SessionType(str, Enum):
    DIAGNOSTIC = "diagnostic"
    STRATEGIC = "strategic"
    IMPLEMENTATION = "implementation"


class CamelModel(BaseModel):
    """Base for records that cross the API (snake_case here, camelCase on the wire)."""

    class Config:
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True


class BusinessContext(CamelModel):
    """Normalized facts about a business, passed into every analyzer.

    Every number is optional. Analyzers treat a missing value (or 0) as
    unknown and fall back to documented defaults instead of raising.
    Counts, LTV and margin are range-checked here; a negative CAC is
    accepted and reported by the financial calculator.
    """
    industry: Optional[str] = None
    current_revenue: Optional[float] = None  # annual
    customer_count: Optional[int] = Field(None, ge=0)
    cac: Optional[float] = None
    ltv: Optional[float] = Field(None, ge=0)
    gross_margin: Optional[float] = Field(None, ge=0, le=100)  # percent
    business_stage: BusinessStage = BusinessStage.STARTUP

    class Config:
        frozen = True
        validate_default = True
