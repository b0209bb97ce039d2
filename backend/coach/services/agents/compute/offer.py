"""Offer analyzer: Value Equation scoring, competitive position and pricing power."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import (
    CompetitivePosition,
    OfferMetrics,
    PricingStrategy,
    ValueEquationScore,
)
from ..base import ComputeAgent
from ..keywords import contains_any
from .numbers import format_number, round_to


class ScoreRule(BaseModel):
    """Sets a sub-score to `score` when any keyword occurs in the query."""
    keywords: List[str]
    score: int


class OfferTables(BaseModel):
    """Value Equation defaults and query triggers.

    Rules of one dimension are applied in order and a later hit overrides an
    earlier one, so "simple" lands on the last matching rule.
    """
    version: str = "1"
    default_dream_outcome: int = 7
    default_perceived_likelihood: int = 6
    default_time_delay: int = 5
    default_effort_sacrifice: int = 5
    established_revenue: float = 1_000_000
    established_likelihood: int = 8
    dream_outcome_rules: List[ScoreRule] = Field(default_factory=lambda: [
        ScoreRule(keywords=["transform", "revolutionary"], score=9),
        ScoreRule(keywords=["improve", "better"], score=7),
        ScoreRule(keywords=["basic", "simple"], score=5),
    ])
    likelihood_rules: List[ScoreRule] = Field(default_factory=lambda: [
        ScoreRule(keywords=["guaranteed", "proven"], score=8),
        ScoreRule(keywords=["new", "experimental"], score=4),
    ])
    time_delay_rules: List[ScoreRule] = Field(default_factory=lambda: [
        ScoreRule(keywords=["instant", "immediate"], score=2),
        ScoreRule(keywords=["week", "month"], score=4),
        ScoreRule(keywords=["year", "long-term"], score=8),
    ])
    effort_rules: List[ScoreRule] = Field(default_factory=lambda: [
        ScoreRule(keywords=["done for you", "automated"], score=2),
        ScoreRule(keywords=["easy", "simple"], score=4),
        ScoreRule(keywords=["complex", "intensive"], score=8),
    ])
    confidence_cap: int = 95


def _apply_rules(query_lower: str, rules: List[ScoreRule], score: int) -> int:
    for rule in rules:
        if contains_any(query_lower, rule.keywords):
            score = rule.score
    return score


def value_equation_score(dream_outcome: int, perceived_likelihood: int, time_delay: int, effort_sacrifice: int) -> float:
    """(Dream Outcome x Perceived Likelihood) / (Time Delay x Effort & Sacrifice) x 10, 2 decimals."""
    raw = (dream_outcome * perceived_likelihood) / (time_delay * effort_sacrifice) * 10
    return round_to(raw, 2)


class OfferAnalyzerAgent(ComputeAgent):
    """Scores an offer with the Grand Slam Offer Value Equation."""

    diagnostic_questions = [
        "What specific outcome does your offer promise?",
        "How certain are customers that your solution will work?",
        "How long does it take to see results?",
        "How much effort does the customer have to put in?",
        "What makes your offer different from competitors?",
        "What problems does your offer solve vs. create?",
        "How do customers currently solve this problem?",
        "What would make this offer irresistible?",
    ]

    def __init__(self, tables: Optional[OfferTables] = None):
        self.tables = tables or OfferTables()

    @property
    def name(self) -> str:
        return "offer_analyzer"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.OFFER

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        value_equation = self.analyze_value_equation(context, query)
        weakness = self.identify_primary_weakness(value_equation)
        competitive = self.assess_competitive_position(context)
        pricing = self.evaluate_pricing_strategy(context, value_equation)

        findings = [
            f"Value Equation Score: {format_number(value_equation.overall_score)}/10",
            f"Primary weakness: {weakness}",
            f"Market position: {competitive.market_position}",
            f"Unique advantages identified: {len(competitive.unique_advantages)}",
            f"Pricing assessment: {pricing.current_pricing}",
            f"Pricing power score: {pricing.pricing_power}/10",
        ]

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=self._recommendations(value_equation, competitive, pricing, context),
            metrics=OfferMetrics(
                value_equation=value_equation,
                primary_weakness=weakness,
                competitive=competitive,
                pricing=pricing,
            ),
            confidence=self._confidence(context),
        )

    def analyze_value_equation(self, context: BusinessContext, query: str) -> ValueEquationScore:
        tables = self.tables
        query_lower = query.lower()

        dream_outcome = _apply_rules(query_lower, tables.dream_outcome_rules, tables.default_dream_outcome)

        perceived_likelihood = tables.default_perceived_likelihood
        if (
            context.business_stage == BusinessStage.MATURE
            and context.current_revenue
            and context.current_revenue > tables.established_revenue
        ):
            perceived_likelihood = tables.established_likelihood
        perceived_likelihood = _apply_rules(query_lower, tables.likelihood_rules, perceived_likelihood)

        time_delay = _apply_rules(query_lower, tables.time_delay_rules, tables.default_time_delay)
        effort_sacrifice = _apply_rules(query_lower, tables.effort_rules, tables.default_effort_sacrifice)

        improvements = []
        if dream_outcome < 7:
            improvements.append("Enhance the dream outcome - make the end result more compelling")
        if perceived_likelihood < 7:
            improvements.append("Increase perceived likelihood with proof, testimonials, and guarantees")
        if time_delay > 5:
            improvements.append("Reduce time delay - provide faster results or interim victories")
        if effort_sacrifice > 5:
            improvements.append("Reduce effort and sacrifice required from the customer")

        return ValueEquationScore(
            dream_outcome=dream_outcome,
            perceived_likelihood=perceived_likelihood,
            time_delay=time_delay,
            effort_sacrifice=effort_sacrifice,
            overall_score=value_equation_score(dream_outcome, perceived_likelihood, time_delay, effort_sacrifice),
            improvements=improvements,
        )

    @staticmethod
    def identify_primary_weakness(value_equation: ValueEquationScore) -> str:
        """Weakest Value Equation component; time delay and effort are inverted first."""
        scores = [
            ("Dream Outcome", value_equation.dream_outcome),
            ("Perceived Likelihood", value_equation.perceived_likelihood),
            ("Time Delay", 10 - value_equation.time_delay),
            ("Effort & Sacrifice", 10 - value_equation.effort_sacrifice),
        ]
        weakest = scores[0]
        for candidate in scores[1:]:
            if candidate[1] < weakest[1]:
                weakest = candidate
        return weakest[0]

    def assess_competitive_position(self, context: BusinessContext) -> CompetitivePosition:
        advantages = []
        gaps = []
        market_position = "value"

        if context.gross_margin and context.gross_margin > 80:
            market_position = "premium"
            advantages.append("High-margin business model")
        elif context.gross_margin and context.gross_margin < 50:
            market_position = "economy"
            gaps.append("Low pricing power indicates weak differentiation")

        if context.business_stage == BusinessStage.MATURE:
            advantages.append("Market experience and established operations")
        else:
            gaps.append("Need to establish market credibility")

        return CompetitivePosition(
            unique_advantages=advantages,
            competitive_gaps=gaps,
            market_position=market_position,
        )

    def evaluate_pricing_strategy(self, context: BusinessContext, value_equation: ValueEquationScore) -> PricingStrategy:
        current_pricing = "optimal"
        pricing_power = 5
        recommendations = []
        margin = context.gross_margin
        score = value_equation.overall_score

        if score > 7 and margin and margin < 80:
            current_pricing = "underpriced"
            pricing_power = 8
            recommendations.append("Your value score is high but margins are low - you have significant pricing power")
        elif score < 4 and margin and margin > 70:
            current_pricing = "overpriced"
            pricing_power = 3
            recommendations.append("Low value score with high margins suggests price resistance - improve value first")

        if pricing_power > 6:
            recommendations.append("Test 20-50% price increases with new customers")
            recommendations.append("Bundle additional services to justify premium pricing")
        else:
            recommendations.append("Focus on increasing value before raising prices")
            recommendations.append("Consider value-based pricing models")

        if pricing_power > 7:
            recommended = "Premium pricing strategy - you can charge 2-3x current market rates"
        elif pricing_power > 5:
            recommended = "Value pricing strategy - price 20-50% above market average"
        else:
            recommended = "Competitive pricing strategy - focus on value improvement first"

        return PricingStrategy(
            current_pricing=current_pricing,
            recommended_pricing=recommended,
            pricing_power=pricing_power,
            recommendations=recommendations,
        )

    def _recommendations(
        self,
        value_equation: ValueEquationScore,
        competitive: CompetitivePosition,
        pricing: PricingStrategy,
        context: BusinessContext,
    ) -> List[str]:
        recommendations = list(value_equation.improvements)
        recommendations.extend(pricing.recommendations)

        if competitive.competitive_gaps:
            recommendations.append("Address competitive gaps through positioning and proof elements")

        if context.business_stage == BusinessStage.STARTUP:
            recommendations.append("Focus on creating an irresistible offer before scaling marketing")
            recommendations.append("Test multiple offer variations to find product-market fit")
        elif context.business_stage == BusinessStage.GROWTH:
            recommendations.append("Optimize offer stack to increase average order value")
            recommendations.append("Create tiered pricing to capture more market segments")

        recommendations.extend([
            "Apply the 'Grand Slam Offer' framework: Make it so good people feel stupid saying no",
            "Add scarcity and urgency elements to increase conversion",
            "Create clear value stacks that exceed price by 10x or more",
        ])
        return recommendations

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 50
        if context.current_revenue:
            confidence += 15
        if context.gross_margin:
            confidence += 15
        if context.cac and context.ltv:
            confidence += 20
        return min(confidence, self.tables.confidence_cap)
