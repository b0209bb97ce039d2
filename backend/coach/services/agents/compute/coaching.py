"""Coaching methodology: constraint-first coaching plan on top of the constraint diagnosis."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext
from ....schemas.agents.metrics import CoachingMetrics
from ..base import ComputeAgent
from ..keywords import KeywordRule
from .constraint import ConstraintAnalyzerAgent


class CoachingTables(BaseModel):
    version: str = "1"
    constraint_frameworks: Dict[str, str] = Field(default_factory=lambda: {
        "LEADS": "3 Levels of Advertising",
        "SALES": "Grand Slam Offer",
        "DELIVERY": "4-Prong Money Model",
        "PROFIT": "Client Financed Acquisition",
    })
    leading_framework: str = "4 Universal Constraints"
    closing_framework: str = "Systematic Constraint Resolution"
    quote_rules: List[KeywordRule] = Field(default_factory=lambda: [
        KeywordRule(
            keywords=["stalled", "stuck"],
            value="The fastest way to grow is to identify your constraint, "
                  "then focus 100% of your energy on solving it.",
        ),
    ])
    default_quote: str = "Perfect one at a time - don't try to fix everything at once."
    coaching_response: str = (
        "Based on your situation, we need to systematically identify which of the 4 Universal "
        "Constraints is limiting your growth, then apply the appropriate Alex Hormozi framework to resolve it."
    )
    steps: List[str] = Field(default_factory=lambda: [
        "Diagnose: Identify the primary constraint",
        "Focus: Apply 100% energy to that constraint",
        "Resolve: Use proven frameworks systematically",
        "Move: Only tackle next constraint once current is solved",
    ])
    expected_outcomes: str = "Clear constraint resolution and sustainable growth acceleration"
    max_recommendations: int = 8
    confidence_cap: int = 90


class CoachingMethodologyAgent(ComputeAgent):
    """Applies the constraint-first coaching method."""

    diagnostic_questions = [
        "What is the one result you want in the next 90 days?",
        "What is stopping you from getting that result today?",
        "Which of leads, sales, delivery or profit feels most broken?",
        "What would you stop doing if you could only focus on one thing?",
        "How do you decide what to work on each week?",
        "What advice have you received but not implemented?",
        "Who is accountable for the number that matters most?",
        "What does success look like twelve months from now?",
    ]

    def __init__(
        self,
        tables: Optional[CoachingTables] = None,
        constraint_analyzer: Optional[ConstraintAnalyzerAgent] = None,
    ):
        self.tables = tables or CoachingTables()
        self.constraint_analyzer = constraint_analyzer or ConstraintAnalyzerAgent()

    @property
    def name(self) -> str:
        return "coaching_methodology"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.COACHING

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        tables = self.tables
        diagnosis = self.constraint_analyzer.diagnose(query, context)

        frameworks = [tables.leading_framework]
        specific = tables.constraint_frameworks.get(diagnosis.primary_constraint)
        if specific:
            frameworks.append(specific)
        frameworks.append(tables.closing_framework)

        query_lower = query.lower()
        quote = next((rule.value for rule in tables.quote_rules if rule.matches(query_lower)), tables.default_quote)

        metrics = CoachingMetrics(
            primary_constraint=diagnosis.primary_constraint,
            applicable_frameworks=frameworks,
            alex_quote=quote,
            coaching_response=tables.coaching_response,
            action_plan=list(tables.steps),
            expected_outcomes=tables.expected_outcomes,
        )

        findings = [
            f"Primary Constraint: {metrics.primary_constraint}",
            f"Applied Frameworks: {', '.join(metrics.applicable_frameworks)}",
            f'Alex Quote: "{metrics.alex_quote}"',
            f"Expected Outcomes: {metrics.expected_outcomes}",
        ]
        recommendations = [metrics.coaching_response] + metrics.action_plan

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=recommendations[:tables.max_recommendations],
            metrics=metrics,
            confidence=self._confidence(context),
        )

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 60
        for value in (context.cac, context.ltv, context.gross_margin):
            if value:
                confidence += 10
        return min(confidence, self.tables.confidence_cap)
