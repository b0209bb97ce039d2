"""Implementation planner: phased roadmap, priority matrix, resources, timeline and risks."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import (
    BudgetRequirement,
    ImplementationMetrics,
    ImplementationPhase,
    ImplementationPlan,
    Milestone,
    PriorityItem,
    PriorityMatrix,
    ResourceRequirements,
    Risk,
    RiskAssessment,
    TeamRequirement,
    TechnologyRequirement,
    Timeline,
    TimelineWeek,
)
from ..base import ComputeAgent
from ..keywords import contains_any


class FocusRule(BaseModel):
    keywords: List[str]
    areas: List[str]


class ConditionalPhase(BaseModel):
    """A core phase included when any of `areas` is a focus area."""
    areas: List[str]
    phase: ImplementationPhase


def _phase(name, duration, objectives, deliverables, prerequisites, risks) -> ImplementationPhase:
    return ImplementationPhase(
        phase=name,
        duration=duration,
        objectives=objectives,
        deliverables=deliverables,
        prerequisites=prerequisites,
        risks=risks,
    )


def _leading_phases() -> List[ImplementationPhase]:
    return [
        _phase(
            "Foundation Setup", 2,
            ["Establish baseline metrics and tracking", "Set up measurement systems", "Define success criteria"],
            ["Current CAC, LTV, and gross margin calculations", "Tracking dashboard setup",
             "Success metrics documentation"],
            [],
            ["Inaccurate baseline data", "Lack of historical data"],
        ),
        _phase(
            "Quick Wins Implementation", 3,
            ["Implement highest-impact, lowest-effort improvements", "Generate early momentum and results",
             "Build team confidence"],
            ["Immediate upsell offers launched", "Pricing optimizations implemented", "Basic automation setup"],
            ["Foundation Setup completed"],
            ["Over-optimization too quickly", "Team overwhelm"],
        ),
    ]


def _core_phases() -> List[ConditionalPhase]:
    return [
        ConditionalPhase(areas=["cfa", "financial"], phase=_phase(
            "CFA Achievement", 4,
            ["Achieve Client Financed Acquisition", "Optimize 30-day gross profit", "Implement systematic upsells"],
            ["CFA ratio > 1.0 achieved", "Upsell sequences implemented", "Payment term optimizations"],
            ["Quick Wins Implementation completed"],
            ["Customer resistance to changes", "Cash flow disruption"],
        )),
        ConditionalPhase(areas=["offer", "value"], phase=_phase(
            "Grand Slam Offer Development", 3,
            ["Optimize value equation", "Implement Grand Slam Offer framework", "Test and refine offers"],
            ["Value equation optimized", "New offer structure launched", "A/B test results documented"],
            ["Foundation Setup completed"],
            ["Market rejection of new offers", "Conversion rate drops"],
        )),
        ConditionalPhase(areas=["money-model", "revenue"], phase=_phase(
            "4-Prong Money Model", 6,
            ["Implement complete 4-prong system", "Optimize each revenue stream", "Integrate all touchpoints"],
            ["All four prongs operational", "Revenue per customer increased", "Systematic monetization documented"],
            ["Quick Wins Implementation completed"],
            ["Complexity overwhelming customers", "System integration challenges"],
        )),
    ]


def _closing_phase() -> ImplementationPhase:
    return _phase(
        "Optimization & Scale", 4,
        ["Optimize all implemented systems", "Scale successful strategies", "Prepare for growth constraints"],
        ["Performance optimization completed", "Scaling processes documented", "Team training materials created"],
        ["All previous phases completed"],
        ["Operational constraints", "Quality degradation"],
    )


def _action(action, impact, effort, urgency, frameworks, dependencies) -> PriorityItem:
    return PriorityItem(
        action=action,
        impact=impact,
        effort=effort,
        urgency=urgency,
        frameworks=frameworks,
        dependencies=dependencies,
    )


def _action_catalog() -> List[PriorityItem]:
    return [
        _action("Calculate accurate CAC and LTV metrics", 9, 2, 10,
                ["Client Financed Acquisition", "Financial Calculator"], ["Access to customer data"]),
        _action("Implement immediate post-purchase upsell", 8, 4, 8,
                ["5 Upsell Moments", "4-Prong Money Model"], ["Upsell offer design"]),
        _action("Optimize pricing for value equation", 9, 3, 7,
                ["Grand Slam Offer", "Value Equation"], ["Competitive analysis"]),
        _action("Create downsell offers for rejected prospects", 6, 5, 5,
                ["4-Prong Money Model", "Psychology Optimization"], ["Main offer optimization"]),
        _action("Set up recurring revenue stream", 9, 7, 6,
                ["4-Prong Money Model", "Continuity Offers"], ["Service delivery capability"]),
        _action("Implement behavioral triggers (scarcity, urgency)", 7, 3, 7,
                ["Psychology Optimization"], ["Offer structure finalization"]),
        _action("Test and optimize upsell timing", 8, 4, 6,
                ["5 Upsell Moments", "Psychology Optimization"], ["Customer journey mapping"]),
        _action("Create comprehensive measurement dashboard", 7, 6, 8,
                ["Business Metrics", "Financial Calculator"], ["Data integration setup"]),
    ]


def _team() -> List[TeamRequirement]:
    return [
        TeamRequirement(role="Implementation Lead", time_commitment="20-30 hours/week",
                        skills=["Project management", "Business analysis", "Hormozi frameworks"]),
        TeamRequirement(role="Data Analyst", time_commitment="10-15 hours/week",
                        skills=["Excel/Sheets", "Dashboard creation", "Metrics tracking"]),
        TeamRequirement(role="Marketing/Sales Support", time_commitment="15-20 hours/week",
                        skills=["Customer communication", "Offer creation", "A/B testing"]),
        TeamRequirement(role="Technical Support", time_commitment="5-10 hours/week",
                        skills=["Automation tools", "Integration setup", "Testing"], optional=True),
    ]


def _technology() -> List[TechnologyRequirement]:
    return [
        TechnologyRequirement(tool="Analytics Dashboard", purpose="Track CAC, LTV, and key metrics",
                              cost="$50-200/month",
                              alternatives=["Google Analytics", "Mixpanel", "Custom spreadsheet"]),
        TechnologyRequirement(tool="Email Marketing Platform", purpose="Automated upsell sequences",
                              cost="$100-500/month", alternatives=["ConvertKit", "Klaviyo", "ActiveCampaign"]),
        TechnologyRequirement(tool="A/B Testing Tool", purpose="Test offers and timing", cost="$100-300/month",
                              alternatives=["Google Optimize (free)", "Optimizely", "VWO"]),
        TechnologyRequirement(tool="Customer Survey Platform", purpose="Gather feedback and insights",
                              cost="$50-150/month", alternatives=["Typeform", "SurveyMonkey", "Google Forms"]),
    ]


def _budget() -> List[BudgetRequirement]:
    return [
        BudgetRequirement(category="Tools and Software", estimated_cost=5000, priority="essential",
                          roi_timeline="3-6 months"),
        BudgetRequirement(category="Testing and Optimization", estimated_cost=3000, priority="recommended",
                          roi_timeline="2-4 months"),
        BudgetRequirement(category="Team Training", estimated_cost=2000, priority="recommended",
                          roi_timeline="6-12 months"),
        BudgetRequirement(category="Consulting/Support", estimated_cost=8000, priority="nice-to-have",
                          roi_timeline="3-6 months"),
    ]


def _risks() -> List[Risk]:
    return [
        Risk(risk="Team capacity constraints", probability=7, impact=8,
             mitigation=["Secure team commitment upfront", "Plan for part-time resources", "Prioritize ruthlessly"]),
        Risk(risk="Customer resistance to changes", probability=6, impact=7,
             mitigation=["Communicate changes clearly", "Test changes with small groups",
                         "Provide grandfathering options"]),
        Risk(risk="Technical integration challenges", probability=5, impact=6,
             mitigation=["Start with simple solutions", "Plan for technical support", "Have backup options"]),
        Risk(risk="Cash flow disruption during changes", probability=4, impact=9,
             mitigation=["Test changes carefully", "Maintain current revenue streams", "Plan for temporary dips"]),
        Risk(risk="Lack of accurate baseline data", probability=8, impact=6,
             mitigation=["Start data collection immediately", "Use estimates initially", "Refine over time"]),
    ]


class ImplementationTables(BaseModel):
    version: str = "1"
    focus_rules: List[FocusRule] = Field(default_factory=lambda: [
        FocusRule(keywords=["cfa", "cash flow", "financial"], areas=["cfa", "financial"]),
        FocusRule(keywords=["offer", "value", "pricing"], areas=["offer", "value"]),
        FocusRule(keywords=["revenue", "money model", "upsell"], areas=["money-model", "revenue"]),
        FocusRule(keywords=["psychology", "conversion", "timing"], areas=["psychology", "conversion"]),
    ])
    leading_phases: List[ImplementationPhase] = Field(default_factory=_leading_phases)
    core_phases: List[ConditionalPhase] = Field(default_factory=_core_phases)
    closing_phase: ImplementationPhase = Field(default_factory=_closing_phase)
    success_metrics: List[str] = Field(default_factory=lambda: [
        "CAC reduction of 20%+",
        "LTV increase of 30%+",
        "CFA ratio > 1.5",
        "Revenue per customer increase of 50%+",
        "Implementation timeline adherence > 90%",
    ])
    dependencies: List[str] = Field(default_factory=lambda: [
        "Team availability and commitment",
        "Access to customer data and metrics",
        "Budget approval for tools and testing",
        "Customer communication capabilities",
    ])
    action_catalog: List[PriorityItem] = Field(default_factory=_action_catalog)
    team: List[TeamRequirement] = Field(default_factory=_team)
    technology: List[TechnologyRequirement] = Field(default_factory=_technology)
    budget: List[BudgetRequirement] = Field(default_factory=_budget)
    minimum_timeline_weeks: float = 12
    critical_path: List[str] = Field(default_factory=lambda: [
        "Foundation Setup",
        "Quick Wins Implementation",
        "Core Framework Implementation",
        "Optimization & Scale",
    ])
    risks: List[Risk] = Field(default_factory=_risks)
    high_risk_score: int = 30
    mitigation_strategies: List[str] = Field(default_factory=lambda: [
        "Start with highest-impact, lowest-risk changes",
        "Maintain detailed progress tracking and communication",
        "Build in buffer time for unexpected challenges",
        "Create fallback plans for critical changes",
    ])
    contingency_plans: List[str] = Field(default_factory=lambda: [
        "If team capacity becomes constrained: reduce scope and focus on critical items",
        "If customer resistance is high: slow rollout and increase communication",
        "If technical challenges arise: revert to manual processes temporarily",
        "If cash flow is impacted: pause non-critical changes and stabilize",
    ])
    max_recommendations: int = 12
    confidence_cap: int = 85


def bucket_priority(item: PriorityItem) -> str:
    """Priority bucket of an action. Buckets are tried in order, first match wins."""
    if item.urgency >= 8 and item.impact >= 8:
        return "critical"
    if item.urgency >= 6 and item.impact >= 7:
        return "high"
    if item.urgency >= 4 and item.impact >= 5:
        return "medium"
    return "low"


class ImplementationPlannerAgent(ComputeAgent):
    """Turns the coaching frameworks into a week-by-week rollout plan.

    Runs after the other selected analyzers; their analyses arrive as
    `prior` and are recorded as upstream agents in the metrics.
    """

    diagnostic_questions = [
        "What is your current team size and available time for implementation?",
        "What tools and systems do you currently have in place?",
        "What's your budget for implementing new strategies?",
        "How quickly do you need to see results?",
        "What has prevented you from implementing similar strategies before?",
        "Who will be responsible for executing these changes?",
        "What are your biggest constraints (time, money, team, knowledge)?",
        "How do you currently measure success and track progress?",
    ]

    def __init__(self, tables: Optional[ImplementationTables] = None):
        self.tables = tables or ImplementationTables()

    @property
    def name(self) -> str:
        return "implementation_planner"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.IMPLEMENTATION

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        plan = self.create_implementation_plan(context, query)
        matrix = self.build_priority_matrix()
        resources = self.assess_resource_requirements(matrix)
        timeline = self.create_detailed_timeline(plan)
        risks = self.conduct_risk_assessment()

        high_risks = [r for r in risks.risks if r.score > self.tables.high_risk_score]
        quick_wins = [item for item in matrix.high if item.effort <= 3]

        findings = [
            f"Implementation Timeline: {plan.total_duration} weeks",
            f"Implementation Phases: {len(plan.phases)}",
            f"Success Metrics Defined: {len(plan.success_metrics)}",
            f"Critical Actions: {len(matrix.critical)}",
            f"High Priority Actions: {len(matrix.high)}",
            f"Quick Wins Available: {len(quick_wins)}",
            f"Team Requirements: {len(resources.team)} roles",
            f"Technology Stack: {len(resources.technology)} tools",
            f"Estimated Budget: ${resources.total_budget}",
            f"Key Milestones: {len(timeline.milestones)}",
            f"Critical Path Items: {len(timeline.critical_path)}",
            f"Identified Risks: {len(risks.risks)}",
            f"High-Risk Items: {len(high_risks)}",
        ]

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=self._recommendations(plan, matrix, resources, high_risks, context),
            metrics=ImplementationMetrics(
                implementation_plan=plan,
                priority_matrix=matrix,
                resource_requirements=resources,
                timeline=timeline,
                risk_assessment=risks,
                upstream_agents=[analysis.agent_type for analysis in prior or []],
            ),
            confidence=self._confidence(context),
        )

    def identify_focus_areas(self, query_lower: str, context: BusinessContext) -> List[str]:
        areas: List[str] = []
        for rule in self.tables.focus_rules:
            if contains_any(query_lower, rule.keywords):
                areas.extend(rule.areas)

        if not areas:
            if context.business_stage == BusinessStage.STARTUP:
                areas = ["offer", "cfa"]
            elif context.business_stage == BusinessStage.GROWTH:
                areas = ["money-model", "financial"]
            else:
                areas = ["optimization", "scale"]
        return areas

    def create_implementation_plan(self, context: BusinessContext, query: str) -> ImplementationPlan:
        tables = self.tables
        focus_areas = self.identify_focus_areas(query.lower(), context)

        phases = list(tables.leading_phases)
        for core in tables.core_phases:
            if any(area in focus_areas for area in core.areas):
                phases.append(core.phase)
        phases.append(tables.closing_phase)

        return ImplementationPlan(
            focus_areas=focus_areas,
            phases=phases,
            total_duration=sum(phase.duration for phase in phases),
            success_metrics=list(tables.success_metrics),
            dependencies=list(tables.dependencies),
        )

    def build_priority_matrix(self) -> PriorityMatrix:
        matrix = PriorityMatrix()
        for item in self.tables.action_catalog:
            getattr(matrix, bucket_priority(item)).append(item)
        return matrix

    def assess_resource_requirements(self, matrix: PriorityMatrix) -> ResourceRequirements:
        planned = len(matrix.critical) + len(matrix.high) + len(matrix.medium)
        return ResourceRequirements(
            team=list(self.tables.team),
            technology=list(self.tables.technology),
            budget=list(self.tables.budget),
            timeline_weeks=max(self.tables.minimum_timeline_weeks, planned * 0.5),
        )

    def create_detailed_timeline(self, plan: ImplementationPlan) -> Timeline:
        weeks: List[TimelineWeek] = []
        milestones: List[Milestone] = []
        current_week = 1

        for phase_index, phase in enumerate(plan.phases):
            for offset in range(phase.duration):
                first_week = offset == 0
                last_week = offset == phase.duration - 1

                if first_week:
                    tasks = phase.objectives[:2]
                elif last_week:
                    tasks = [f"Complete {phase.phase}", "Prepare for next phase"]
                else:
                    tasks = phase.objectives[2:]

                weeks.append(TimelineWeek(
                    week=current_week + offset,
                    focus=phase.phase,
                    tasks=tasks,
                    deliverables=phase.deliverables if last_week else [f"Progress on {phase.phase}"],
                    metrics=[f"Track phase {phase_index + 1} KPIs", "Weekly progress review"],
                ))

            milestones.append(Milestone(
                name=f"{phase.phase} Complete",
                week=current_week + phase.duration - 1,
                criteria=phase.deliverables,
                dependencies=phase.prerequisites,
            ))
            current_week += phase.duration

        return Timeline(weeks=weeks, milestones=milestones, critical_path=list(self.tables.critical_path))

    def conduct_risk_assessment(self) -> RiskAssessment:
        return RiskAssessment(
            risks=list(self.tables.risks),
            mitigation_strategies=list(self.tables.mitigation_strategies),
            contingency_plans=list(self.tables.contingency_plans),
        )

    def _recommendations(
        self,
        plan: ImplementationPlan,
        matrix: PriorityMatrix,
        resources: ResourceRequirements,
        high_risks: List[Risk],
        context: BusinessContext,
    ) -> List[str]:
        recommendations = [
            "Start with the highest-leverage activities that require the least change",
            "Focus on one framework at a time to avoid overwhelming the team",
            f"Begin with {len(matrix.critical)} critical actions in first 2 weeks",
            "Quick wins first: implement easy changes to build momentum",
        ]

        if len(resources.team) > 3:
            recommendations.append("Assign clear ownership for each implementation area")
        recommendations.append("Set up weekly progress reviews and metric tracking")

        if high_risks:
            recommendations.append(f"Address {len(high_risks)} high-risk areas proactively")

        if context.business_stage == BusinessStage.STARTUP:
            recommendations.append("Focus on CFA achievement before scaling complexity")
            recommendations.append("Test all changes with small customer segments first")
        elif context.business_stage == BusinessStage.GROWTH:
            recommendations.append("Implement systematic processes for all new strategies")
            recommendations.append("Plan for operational scaling alongside revenue optimization")
        elif context.business_stage == BusinessStage.SCALE:
            recommendations.append("Focus on automation and delegation of implementation")
            recommendations.append("Create documented processes for team replication")

        recommendations.extend([
            f"Plan for {plan.total_duration}-week implementation timeline",
            "Build in 20% buffer time for unexpected challenges",
            "Track leading indicators (activities) not just lagging indicators (results)",
            "Celebrate milestone achievements to maintain team momentum",
        ])
        return recommendations[:self.tables.max_recommendations]

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 70
        if context.business_stage in (BusinessStage.GROWTH, BusinessStage.SCALE):
            confidence += 10
        if context.current_revenue and context.current_revenue > 500000:
            confidence += 10
        if context.customer_count and context.customer_count > 100:
            confidence += 5
        return min(confidence, self.tables.confidence_cap)
