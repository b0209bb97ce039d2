"""Financial calculator: Client-Financed Acquisition and the advertising levels."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import (
    AdvertisingLevel,
    BusinessMetrics,
    CFAAnalysis,
    FinancialMetrics,
    GrowthProjections,
)
from ..base import ComputeAgent
from .numbers import INFINITY, ratio, round_half_up, to_fixed


class GrowthProfile(BaseModel):
    monthly_growth_potential: int
    scaling_bottlenecks: List[str]


def _default_levels() -> List[AdvertisingLevel]:
    return [
        AdvertisingLevel(
            current_level=0,
            level_description="Unprofitable - losing money on each customer",
            requirements="LTV must be greater than CAC",
            next_level_actions=[
                "Increase lifetime value through better retention",
                "Reduce customer acquisition cost",
                "Improve offer to justify higher pricing",
            ],
        ),
        AdvertisingLevel(
            current_level=1,
            level_description="Basic Viability - profitable but cash flow constrained",
            requirements="30-day gross profit > CAC",
            next_level_actions=[
                "Add immediate upsells after initial purchase",
                "Implement front-loaded payment terms",
                "Create higher-margin initial offers",
            ],
        ),
        AdvertisingLevel(
            current_level=2,
            level_description="Self-Funding Growth - can reinvest profits",
            requirements="30-day gross profit > 2x CAC",
            next_level_actions=[
                "Optimize upsell sequences for faster payback",
                "Increase initial transaction value",
                "Test premium pricing tiers",
            ],
        ),
        AdvertisingLevel(
            current_level=3,
            level_description="Unlimited Scale - maximum advertising freedom",
            requirements="Maintained with operational scaling",
            next_level_actions=[
                "Scale advertising spend exponentially",
                "Expand to new channels and markets",
                "Focus on operational constraints",
            ],
        ),
    ]


class FinancialTables(BaseModel):
    version: str = "1"
    default_gross_margin: float = 50
    monthly_revenue_by_stage: Dict[str, float] = Field(default_factory=lambda: {
        BusinessStage.STARTUP.value: 100,
        BusinessStage.GROWTH.value: 500,
        BusinessStage.SCALE.value: 2000,
        BusinessStage.MATURE.value: 5000,
    })
    default_monthly_revenue: float = 500
    levels: List[AdvertisingLevel] = Field(default_factory=_default_levels)
    growth_by_level: Dict[int, GrowthProfile] = Field(default_factory=lambda: {
        0: GrowthProfile(monthly_growth_potential=5, scaling_bottlenecks=["Negative unit economics"]),
        1: GrowthProfile(monthly_growth_potential=15, scaling_bottlenecks=["Cash flow constraints"]),
        2: GrowthProfile(monthly_growth_potential=30, scaling_bottlenecks=["Operational capacity"]),
        3: GrowthProfile(monthly_growth_potential=50, scaling_bottlenecks=["Market size", "Team scaling"]),
    })
    confidence_cap: int = 90


# ============================================
# Ratio helpers
# ============================================

def calculate_cfa_ratio(thirty_day_gross_profit: float, cac: float) -> float:
    """30-day gross profit over CAC, 0 when CAC is not positive."""
    return ratio(thirty_day_gross_profit, cac)


def calculate_ltv_cac_ratio(ltv: float, cac: float) -> float:
    return ratio(ltv, cac)


def calculate_payback_period(cac: float, monthly_gross_profit: float) -> float:
    """Months until a customer pays back CAC; inf when there is no gross profit."""
    return cac / monthly_gross_profit if monthly_gross_profit > 0 else INFINITY


def classify_advertising_level(ltv_cac_ratio: float, cfa_ratio: float) -> int:
    """Advertising level 0-3. Conditions are evaluated in order, first match wins."""
    if ltv_cac_ratio <= 1:
        return 0
    if not cfa_ratio > 1:
        return 1
    if cfa_ratio < 2:
        return 2
    return 3


class FinancialCalculatorAgent(ComputeAgent):
    """Computes CFA, the advertising level, unit economics and growth runway.

    Missing inputs never raise: CAC and LTV default to 0, gross margin to 50%
    and monthly revenue per customer to a stage-keyed estimate. Each missing
    input lowers the confidence instead.
    """

    diagnostic_questions = [
        "What's your current customer acquisition cost (CAC)?",
        "How much gross profit do you make per customer in the first 30 days?",
        "What's your lifetime value per customer?",
        "What's your gross profit margin?",
        "How long does it take to break even on a new customer?",
        "What percentage of customers pay upfront vs. monthly?",
        "What's your current monthly recurring revenue?",
        "How much could you spend per day on advertising if money wasn't a constraint?",
    ]

    def __init__(self, tables: Optional[FinancialTables] = None):
        self.tables = tables or FinancialTables()

    @property
    def name(self) -> str:
        return "financial_calculator"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.FINANCIAL

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        findings: List[str] = []

        if context.cac is not None and context.cac < 0:
            findings.append(f"Invalid CAC ({format(context.cac, 'g')}) - treated as 0")

        cfa = self.calculate_cfa(context)
        findings.append(f"CFA Status: {'ACHIEVED' if cfa.achieves_cfa else 'NOT ACHIEVED'}")
        findings.append(f"30-day GP/CAC ratio: {to_fixed(cfa.cfa_ratio)}x")

        level = self.determine_advertising_level(context, cfa)
        findings.append(f"Current Advertising Level: {level.current_level}")
        findings.append(f"Status: {level.level_description}")

        business = self.calculate_business_metrics(context, cfa)
        findings.append(f"LTV/CAC ratio: {to_fixed(business.ltvcac_ratio)}x")
        findings.append(f"Primary constraint: {business.growth_constraint}")

        growth = self.calculate_growth_projections(context, cfa, level)
        findings.append(f"Monthly growth potential: {growth.monthly_growth_potential}%")

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=self._recommendations(cfa, level, business, context),
            metrics=FinancialMetrics(
                cfa_analysis=cfa,
                advertising_level=level,
                business_metrics=business,
                growth_projections=growth,
            ),
            confidence=self._confidence(context),
        )

    def _cac(self, context: BusinessContext) -> float:
        return max(context.cac or 0, 0)

    def estimate_monthly_revenue_per_customer(self, context: BusinessContext) -> float:
        if context.current_revenue and context.customer_count:
            return context.current_revenue / 12 / context.customer_count
        return self.tables.monthly_revenue_by_stage.get(
            context.business_stage, self.tables.default_monthly_revenue
        )

    def calculate_cfa(self, context: BusinessContext) -> CFAAnalysis:
        cac = self._cac(context)
        gross_margin = (context.gross_margin or self.tables.default_gross_margin) / 100

        thirty_day_gross_profit = self.estimate_monthly_revenue_per_customer(context) * gross_margin
        cfa_ratio = calculate_cfa_ratio(thirty_day_gross_profit, cac)
        achieves_cfa = cfa_ratio > 1

        daily_gross_profit = thirty_day_gross_profit / 30
        breakeven = cac / daily_gross_profit if daily_gross_profit > 0 else INFINITY

        if not achieves_cfa:
            recommendations = [
                f"Need to increase 30-day gross profit by ${to_fixed(cac - thirty_day_gross_profit)} to achieve CFA",
                "Consider immediate upsells, higher pricing, or front-loaded payment terms",
                "Focus on reducing customer acquisition cost through better targeting",
            ]
        else:
            recommendations = [
                f"CFA achieved with ${to_fixed(thirty_day_gross_profit - cac)} excess - reinvest in advertising",
                "Scale advertising spend aggressively while maintaining CFA ratio",
            ]

        return CFAAnalysis(
            thirty_day_gross_profit=thirty_day_gross_profit,
            cac=cac,
            cfa_ratio=cfa_ratio,
            achieves_cfa=achieves_cfa,
            time_to_breakeven_days=round_half_up(breakeven),
            recommendations=recommendations,
        )

    def determine_advertising_level(self, context: BusinessContext, cfa: CFAAnalysis) -> AdvertisingLevel:
        ltv_cac_ratio = calculate_ltv_cac_ratio(context.ltv or 0, self._cac(context))
        level = classify_advertising_level(ltv_cac_ratio, cfa.cfa_ratio)
        return self.tables.levels[level]

    def calculate_business_metrics(self, context: BusinessContext, cfa: CFAAnalysis) -> BusinessMetrics:
        cac = self._cac(context) or 1
        monthly_gross_profit = cfa.thirty_day_gross_profit

        growth_constraint = "capital"
        if cfa.achieves_cfa and cfa.cfa_ratio > 2:
            growth_constraint = "operational"
        elif cfa.achieves_cfa:
            growth_constraint = "none"
        elif context.business_stage == BusinessStage.MATURE:
            growth_constraint = "market"

        return BusinessMetrics(
            ltvcac_ratio=(context.ltv or 0) / cac,
            gross_margin=context.gross_margin or self.tables.default_gross_margin,
            payback_period_months=calculate_payback_period(cac, monthly_gross_profit),
            growth_constraint=growth_constraint,
            monthly_gross_profit=monthly_gross_profit,
            break_even_days=cfa.time_to_breakeven_days,
            excess_cash=max(0, monthly_gross_profit - cac),
        )

    def calculate_growth_projections(
        self,
        context: BusinessContext,
        cfa: CFAAnalysis,
        level: AdvertisingLevel,
    ) -> GrowthProjections:
        profile = self.tables.growth_by_level[level.current_level]

        investment_needs = 0.0
        if level.current_level == 0:
            # Rough cost of fixing the unit economics
            investment_needs = abs(cfa.thirty_day_gross_profit - cfa.cac) * 100
        elif level.current_level == 1:
            # Working capital
            investment_needs = cfa.cac * 50

        growth_rate = 1 + profile.monthly_growth_potential / 100
        return GrowthProjections(
            monthly_growth_potential=profile.monthly_growth_potential,
            year_one_projection=(context.current_revenue or 0) * growth_rate ** 12,
            scaling_bottlenecks=list(profile.scaling_bottlenecks),
            investment_needs=investment_needs,
        )

    def _recommendations(
        self,
        cfa: CFAAnalysis,
        level: AdvertisingLevel,
        business: BusinessMetrics,
        context: BusinessContext,
    ) -> List[str]:
        recommendations = list(cfa.recommendations)
        recommendations.extend(level.next_level_actions)

        if business.ltvcac_ratio < 3:
            recommendations.append("Focus on increasing LTV through better retention and upsells")
        if business.payback_period_months > 6:
            recommendations.append("Reduce payback period through front-loaded offers and immediate upsells")

        if context.business_stage == BusinessStage.STARTUP:
            recommendations.append("Prioritize achieving CFA before scaling marketing spend")
            recommendations.append("Test multiple pricing models to optimize unit economics")
        elif context.business_stage == BusinessStage.GROWTH and cfa.achieves_cfa:
            recommendations.append("Reinvest all excess CFA cash into advertising for exponential growth")
            recommendations.append("Monitor for operational constraints as growth accelerates")

        constraint_actions = {
            "capital": "Focus on CFA achievement to eliminate capital constraints",
            "operational": "Invest in systems and team to handle increased volume",
            "market": "Explore adjacent markets or improve market penetration",
        }
        if business.growth_constraint in constraint_actions:
            recommendations.append(constraint_actions[business.growth_constraint])

        return recommendations

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 30
        if context.cac:
            confidence += 25
        if context.ltv:
            confidence += 25
        if context.gross_margin:
            confidence += 20
        if context.current_revenue and context.customer_count:
            confidence += 20
        return min(confidence, self.tables.confidence_cap)
