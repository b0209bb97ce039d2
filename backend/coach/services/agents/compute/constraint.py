"""Constraint analyzer: diagnoses which of the 4 Universal Constraints limits growth."""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import ConstraintMetrics
from ..base import ComputeAgent
from .numbers import format_number


class ConstraintProfile(BaseModel):
    label: str
    description: str
    keywords: List[str]
    root_cause: str
    next_constraint: str
    action_plan: List[str]


def _default_profiles() -> Dict[str, ConstraintProfile]:
    # Dict order is the order query keywords are checked in
    return {
        "LEADS": ConstraintProfile(
            label="Lead Generation",
            description="Not enough qualified prospects",
            keywords=["leads", "traffic", "awareness", "prospects"],
            root_cause="Insufficient reach and no lead magnet that pulls in qualified prospects",
            next_constraint="Sales conversion once lead flow is consistent",
            action_plan=[
                "Audit current lead sources and cost per lead",
                "Launch a lead magnet that solves one narrow problem completely",
                "Scale the core four: warm outreach, cold outreach, content and paid ads",
            ],
        ),
        "SALES": ConstraintProfile(
            label="Sales Conversion",
            description="Can't convert prospects to customers",
            keywords=["conversion", "close", "closing", "sales"],
            root_cause="Offer positioning and value communication gaps",
            next_constraint="Delivery optimization once sales constraint resolved",
            action_plan=[
                "Audit current sales process and conversion metrics",
                "Analyze offer positioning against Grand Slam Offer framework",
                "Implement conversion optimization testing",
            ],
        ),
        "DELIVERY": ConstraintProfile(
            label="Delivery & Retention",
            description="Can't retain customers or deliver efficiently",
            keywords=["churn", "retention", "delivery", "fulfillment", "refund"],
            root_cause="Fulfillment that does not scale with customer volume",
            next_constraint="Profit optimization once delivery is systematized",
            action_plan=[
                "Map the onboarding and fulfillment process end to end",
                "Identify the top three churn reasons from recent cancellations",
                "Systematize delivery so quality does not depend on the founder",
            ],
        ),
        "PROFIT": ConstraintProfile(
            label="Profitability",
            description="Good revenue but poor margins",
            keywords=["margin", "profit", "cash flow", "pricing"],
            root_cause="Pricing below delivered value and acquisition cost not liquidated early",
            next_constraint="Lead generation once unit economics support scaling",
            action_plan=[
                "Recalculate gross margin and 30-day gross profit per customer",
                "Raise prices using the value equation and test with new customers",
                "Add upsells that liquidate CAC within the first 30 days",
            ],
        ),
    }


class ConstraintTables(BaseModel):
    version: str = "1"
    profiles: Dict[str, ConstraintProfile] = Field(default_factory=_default_profiles)
    minimum_margin: float = 50
    minimum_customers: int = 100
    default_constraint: str = "SALES"
    frameworks: List[str] = Field(default_factory=lambda: [
        "4 Universal Constraints",
        "Sequential Constraint Solving",
    ])
    max_recommendations: int = 8
    confidence_cap: int = 90


class ConstraintAnalyzerAgent(ComputeAgent):
    """Finds the single constraint to work on: LEADS, SALES, DELIVERY or PROFIT.

    The query decides first; without a keyword hit the business metrics do,
    and SALES is the fallback when neither carries a signal.
    """

    diagnostic_questions = [
        "How many qualified leads do you generate each month?",
        "What percentage of qualified prospects become customers?",
        "How many customers cancel or ask for refunds each month?",
        "What is your gross margin after fulfillment costs?",
        "Which part of the business would break first if demand doubled?",
        "How long does it take to deliver the promised result?",
        "What have you already tried to grow in the last 90 days?",
        "Where does most of your time go each week?",
    ]

    def __init__(self, tables: Optional[ConstraintTables] = None):
        self.tables = tables or ConstraintTables()

    @property
    def name(self) -> str:
        return "constraint_analyzer"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.CONSTRAINT

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        diagnosis = self.diagnose(query, context)

        findings = [
            f"Primary Constraint: {diagnosis.primary_constraint} ({diagnosis.label})",
            f"Constraint Evidence: {diagnosis.evidence}",
            f"Root Cause: {diagnosis.root_cause}",
            f"Next Constraint: {diagnosis.next_constraint}",
        ]

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=diagnosis.action_plan[:self.tables.max_recommendations],
            metrics=diagnosis,
            confidence=self._confidence(context, diagnosis.signal),
        )

    def diagnose(self, query: str, context: BusinessContext) -> ConstraintMetrics:
        """Pick the primary constraint and describe why."""
        constraint, evidence, signal = self._from_query(query.lower())
        if constraint is None:
            constraint, evidence, signal = self._from_context(context)

        profile = self.tables.profiles[constraint]
        return ConstraintMetrics(
            primary_constraint=constraint,
            label=profile.label,
            evidence=evidence,
            signal=signal,
            root_cause=profile.root_cause,
            next_constraint=profile.next_constraint,
            action_plan=list(profile.action_plan),
            applicable_frameworks=list(self.tables.frameworks),
        )

    def _from_query(self, query_lower: str) -> Tuple[Optional[str], str, str]:
        for constraint, profile in self.tables.profiles.items():
            for keyword in profile.keywords:
                if keyword in query_lower:
                    return constraint, f'{profile.description} (query mentions "{keyword}")', "query"
        return None, "", ""

    def _from_context(self, context: BusinessContext) -> Tuple[str, str, str]:
        tables = self.tables
        profiles = tables.profiles

        if context.ltv and context.cac and context.ltv <= context.cac:
            return (
                "PROFIT",
                f"{profiles['PROFIT'].description}: LTV ${format_number(context.ltv)} "
                f"does not exceed CAC ${format_number(context.cac)}",
                "context",
            )
        if context.gross_margin and context.gross_margin < tables.minimum_margin:
            return (
                "PROFIT",
                f"{profiles['PROFIT'].description}: gross margin of {format_number(context.gross_margin)}% "
                f"is below {format_number(tables.minimum_margin)}%",
                "context",
            )
        if context.customer_count is not None and context.customer_count < tables.minimum_customers:
            return (
                "LEADS",
                f"{profiles['LEADS'].description}: only {context.customer_count} customers",
                "context",
            )
        if context.business_stage in (BusinessStage.SCALE, BusinessStage.MATURE):
            return (
                "DELIVERY",
                f"{profiles['DELIVERY'].description}: typical for a {context.business_stage} stage business",
                "context",
            )

        default = tables.default_constraint
        return default, f"{profiles[default].description}: no dominant signal in query or metrics", "default"

    def _confidence(self, context: BusinessContext, signal: str) -> int:
        confidence = 50
        for value in (context.cac, context.ltv, context.gross_margin, context.customer_count):
            if value:
                confidence += 10
        if signal == "query":
            confidence += 10
        return min(confidence, self.tables.confidence_cap)
