"""Per-analyzer metrics payloads.

Each analyzer attaches exactly one of these models to its AgentAnalysis.
They form a tagged union discriminated by `kind`, so consumers can branch
on the analyzer type instead of poking at untyped dicts.
"""

from typing import Annotated, Any, Dict, List, Literal, Union
from pydantic import Field

from .context import CamelModel


# ============================================
# Financial Calculator
# ============================================

class CFAAnalysis(CamelModel):
    """Client-Financed Acquisition check for a single customer."""
    thirty_day_gross_profit: float
    cac: float
    cfa_ratio: float
    achieves_cfa: bool
    time_to_breakeven_days: float  # float("inf") when there is no gross profit
    recommendations: List[str] = Field(default_factory=list)


class AdvertisingLevel(CamelModel):
    """One of the four advertising levels (0-3)."""
    current_level: int
    level_description: str
    requirements: str
    next_level_actions: List[str] = Field(default_factory=list)


class BusinessMetrics(CamelModel):
    ltvcac_ratio: float
    gross_margin: float
    payback_period_months: float  # float("inf") when there is no gross profit
    growth_constraint: str  # capital | operational | market | none
    monthly_gross_profit: float
    break_even_days: float
    excess_cash: float


class GrowthProjections(CamelModel):
    monthly_growth_potential: int
    year_one_projection: float
    scaling_bottlenecks: List[str] = Field(default_factory=list)
    investment_needs: float = 0


class FinancialMetrics(CamelModel):
    kind: Literal["financial"] = "financial"
    cfa_analysis: CFAAnalysis
    advertising_level: AdvertisingLevel
    business_metrics: BusinessMetrics
    growth_projections: GrowthProjections


# ============================================
# Offer Analyzer
# ============================================

class ValueEquationScore(CamelModel):
    """Value Equation sub-scores (1-10). Time delay and effort: lower is better."""
    dream_outcome: int
    perceived_likelihood: int
    time_delay: int
    effort_sacrifice: int
    overall_score: float
    improvements: List[str] = Field(default_factory=list)


class CompetitivePosition(CamelModel):
    unique_advantages: List[str] = Field(default_factory=list)
    competitive_gaps: List[str] = Field(default_factory=list)
    market_position: str  # premium | value | economy
    differentiators: List[str] = Field(default_factory=list)


class PricingStrategy(CamelModel):
    current_pricing: str  # underpriced | optimal | overpriced
    recommended_pricing: str
    pricing_power: int
    recommendations: List[str] = Field(default_factory=list)


class OfferMetrics(CamelModel):
    kind: Literal["offer"] = "offer"
    value_equation: ValueEquationScore
    primary_weakness: str
    competitive: CompetitivePosition
    pricing: PricingStrategy


# ============================================
# Money-Model Architect
# ============================================

class ProngAnalysis(CamelModel):
    exists: bool
    effectiveness: int
    purpose: str
    current_implementation: str
    recommendations: List[str] = Field(default_factory=list)


class FourProngAssessment(CamelModel):
    attraction: ProngAnalysis
    upsell: ProngAnalysis
    downsell: ProngAnalysis
    continuity: ProngAnalysis
    overall_maturity: int
    strongest_prong: str
    weakest_prong: str


class JourneyStage(CamelModel):
    stage: str
    offers: List[str] = Field(default_factory=list)
    conversion: float
    revenue: float
    gaps: List[str] = Field(default_factory=list)


class TouchpointOptimization(CamelModel):
    touchpoint: str
    current_value: float
    potential_value: float
    optimization_actions: List[str] = Field(default_factory=list)


class RevenueSequence(CamelModel):
    total_touchpoints: int
    revenue_per_customer: float
    optimization: List[str] = Field(default_factory=list)


class SequentialOffers(CamelModel):
    customer_journey: List[JourneyStage]
    touchpoint_optimization: List[TouchpointOptimization]
    revenue_sequence: RevenueSequence


class MonetizationGaps(CamelModel):
    missed_opportunities: List[str] = Field(default_factory=list)
    underperforming_areas: List[str] = Field(default_factory=list)
    quick_wins: List[str] = Field(default_factory=list)
    strategic_improvements: List[str] = Field(default_factory=list)


class RevenueOptimization(CamelModel):
    current_revenue: float
    optimized_revenue: float
    improvement_potential: int  # percent
    priority_actions: List[str] = Field(default_factory=list)


class MoneyModelMetrics(CamelModel):
    kind: Literal["money-model"] = "money-model"
    four_prong_assessment: FourProngAssessment
    sequential_offers: SequentialOffers
    monetization_gaps: MonetizationGaps
    revenue_optimization: RevenueOptimization


# ============================================
# Psychology Optimizer
# ============================================

class OptimalMoment(CamelModel):
    moment: str
    description: str
    conversion_potential: int
    currently_used: bool
    implementation: str


class UpsellTimingAnalysis(CamelModel):
    current_timing: str
    optimal_moments: List[OptimalMoment]
    timing_score: int
    improvements: List[str] = Field(default_factory=list)


class DecisionFactor(CamelModel):
    factor: str
    importance: int
    current_address: int
    optimization_actions: List[str] = Field(default_factory=list)


class BuyingPsychology(CamelModel):
    customer_type: str  # hyper-buyer | deliberate | price-sensitive
    buying_cycle: str  # active | dormant | research
    decision_factors: List[DecisionFactor]
    psychological_state: str


class ConversionOptimization(CamelModel):
    current_conversion: float
    potential_conversion: float
    conversion_barriers: List[str] = Field(default_factory=list)
    quick_wins: List[str] = Field(default_factory=list)
    psychology_fixes: List[str] = Field(default_factory=list)


class TriggerAnalysis(CamelModel):
    trigger: str
    present: bool
    effectiveness: int
    recommendations: List[str] = Field(default_factory=list)


class PsychologyMetrics(CamelModel):
    kind: Literal["psychology"] = "psychology"
    upsell_timing: UpsellTimingAnalysis
    buying_psychology: BuyingPsychology
    conversion_optimization: ConversionOptimization
    behavioral_triggers: List[TriggerAnalysis]
    trigger_score: int


# ============================================
# Implementation Planner
# ============================================

class ImplementationPhase(CamelModel):
    phase: str
    duration: int  # weeks
    objectives: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)


class ImplementationPlan(CamelModel):
    focus_areas: List[str]
    phases: List[ImplementationPhase]
    total_duration: int
    success_metrics: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)


class PriorityItem(CamelModel):
    action: str
    impact: int
    effort: int
    urgency: int
    frameworks: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)


class PriorityMatrix(CamelModel):
    critical: List[PriorityItem] = Field(default_factory=list)
    high: List[PriorityItem] = Field(default_factory=list)
    medium: List[PriorityItem] = Field(default_factory=list)
    low: List[PriorityItem] = Field(default_factory=list)


class TeamRequirement(CamelModel):
    role: str
    time_commitment: str
    skills: List[str] = Field(default_factory=list)
    optional: bool = False


class TechnologyRequirement(CamelModel):
    tool: str
    purpose: str
    cost: str
    alternatives: List[str] = Field(default_factory=list)


class BudgetRequirement(CamelModel):
    category: str
    estimated_cost: int
    priority: str  # essential | recommended | nice-to-have
    roi_timeline: str


class ResourceRequirements(CamelModel):
    team: List[TeamRequirement]
    technology: List[TechnologyRequirement]
    budget: List[BudgetRequirement]
    timeline_weeks: float

    @property
    def total_budget(self) -> int:
        return sum(item.estimated_cost for item in self.budget)


class TimelineWeek(CamelModel):
    week: int
    focus: str
    tasks: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)


class Milestone(CamelModel):
    name: str
    week: int
    criteria: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)


class Timeline(CamelModel):
    weeks: List[TimelineWeek]
    milestones: List[Milestone]
    critical_path: List[str]


class Risk(CamelModel):
    risk: str
    probability: int
    impact: int
    mitigation: List[str] = Field(default_factory=list)

    @property
    def score(self) -> int:
        return self.probability * self.impact


class RiskAssessment(CamelModel):
    risks: List[Risk]
    mitigation_strategies: List[str] = Field(default_factory=list)
    contingency_plans: List[str] = Field(default_factory=list)


class ImplementationMetrics(CamelModel):
    kind: Literal["implementation"] = "implementation"
    implementation_plan: ImplementationPlan
    priority_matrix: PriorityMatrix
    resource_requirements: ResourceRequirements
    timeline: Timeline
    risk_assessment: RiskAssessment
    upstream_agents: List[str] = Field(default_factory=list)


# ============================================
# Constraint Analyzer / Coaching Methodology
# ============================================

class ConstraintMetrics(CamelModel):
    kind: Literal["constraint-analyzer"] = "constraint-analyzer"
    primary_constraint: str  # LEADS | SALES | DELIVERY | PROFIT
    label: str
    evidence: str
    signal: str  # query | context | default
    root_cause: str
    next_constraint: str
    action_plan: List[str] = Field(default_factory=list)
    applicable_frameworks: List[str] = Field(default_factory=list)


class CoachingMetrics(CamelModel):
    kind: Literal["coaching-methodology"] = "coaching-methodology"
    primary_constraint: str
    applicable_frameworks: List[str] = Field(default_factory=list)
    alex_quote: str
    coaching_response: str
    action_plan: List[str] = Field(default_factory=list)
    expected_outcomes: str


# ============================================
# Remote workflow payload
# ============================================

class WorkflowMetrics(CamelModel):
    """Opaque metrics returned by a remote analyzer workflow."""
    kind: Literal["workflow"] = "workflow"
    workflow: str
    payload: Dict[str, Any] = Field(default_factory=dict)


AnalyzerMetrics = Annotated[
    Union[
        FinancialMetrics,
        OfferMetrics,
        MoneyModelMetrics,
        PsychologyMetrics,
        ImplementationMetrics,
        ConstraintMetrics,
        CoachingMetrics,
        WorkflowMetrics,
    ],
    Field(discriminator="kind"),
]
