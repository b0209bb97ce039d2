"""Money-model architect: the 4-Prong Money Model and the customer revenue journey."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ....schemas.agents.analysis import AgentAnalysis
from ....schemas.agents.context import AnalyzerId, BusinessContext, BusinessStage
from ....schemas.agents.metrics import (
    FourProngAssessment,
    JourneyStage,
    MonetizationGaps,
    MoneyModelMetrics,
    ProngAnalysis,
    RevenueOptimization,
    RevenueSequence,
    SequentialOffers,
    TouchpointOptimization,
)
from ..base import ComputeAgent
from ..keywords import contains_any
from .numbers import round_half_up, to_fixed


class MoneyModelTables(BaseModel):
    version: str = "1"
    main_offer_revenue_by_stage: Dict[str, float] = Field(default_factory=lambda: {
        BusinessStage.STARTUP.value: 500,
        BusinessStage.GROWTH.value: 2000,
        BusinessStage.SCALE.value: 5000,
        BusinessStage.MATURE.value: 10000,
    })
    default_main_offer_revenue: float = 1000
    upsell_keywords: List[str] = Field(default_factory=lambda: ["upsell"])
    downsell_keywords: List[str] = Field(default_factory=lambda: ["downsell", "payment plan"])
    continuity_keywords: List[str] = Field(default_factory=lambda: ["recurring", "subscription"])
    missed_prong_uplift: float = 0.3
    quick_win_uplift: float = 0.15
    default_customer_count: int = 100
    max_recommendations: int = 12
    confidence_cap: int = 85


class MoneyModelArchitectAgent(ComputeAgent):
    """Assesses attraction, upsell, downsell and continuity offers.

    Builds a four-stage customer journey from the prong assessment and
    estimates the revenue uplift of closing the gaps it finds.
    """

    diagnostic_questions = [
        "What happens immediately after someone makes their first purchase?",
        "Do you have different pricing options for different customer segments?",
        "What ongoing products or services do you offer existing customers?",
        "How do you handle customers who don't buy your main offer?",
        "What additional problems do you solve for customers over time?",
        "How many times does the average customer buy from you?",
        "What's your current average revenue per customer?",
        "Do you have any recurring revenue streams?",
    ]

    def __init__(self, tables: Optional[MoneyModelTables] = None):
        self.tables = tables or MoneyModelTables()

    @property
    def name(self) -> str:
        return "money_model_architect"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return AnalyzerId.MONEY_MODEL

    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        assessment = self.assess_four_prong_model(context, query)
        offers = self.map_sequential_offers(context, assessment)
        gaps = self.identify_monetization_gaps(assessment, offers)
        optimization = self.calculate_revenue_optimization(context, gaps, offers)

        findings = [
            f"4-Prong Model Maturity: {assessment.overall_maturity}/10",
            f"Strongest Prong: {assessment.strongest_prong}",
            f"Weakest Prong: {assessment.weakest_prong}",
            f"Customer Journey Touchpoints: {offers.revenue_sequence.total_touchpoints}",
            f"Revenue Per Customer: ${to_fixed(offers.revenue_sequence.revenue_per_customer)}",
            f"Missed Opportunities: {len(gaps.missed_opportunities)}",
            f"Quick Wins Available: {len(gaps.quick_wins)}",
            f"Revenue Optimization Potential: {optimization.improvement_potential}%",
        ]

        return AgentAnalysis(
            agent_type=self.analyzer_id.value,
            findings=findings,
            recommendations=self._recommendations(assessment, offers, gaps, context),
            metrics=MoneyModelMetrics(
                four_prong_assessment=assessment,
                sequential_offers=offers,
                monetization_gaps=gaps,
                revenue_optimization=optimization,
            ),
            confidence=self._confidence(context),
        )

    # ============================================
    # 4-Prong assessment
    # ============================================

    def assess_four_prong_model(self, context: BusinessContext, query: str) -> FourProngAssessment:
        query_lower = query.lower()
        prongs = {
            "Attraction": self._attraction(context),
            "Upsell": self._upsell(context, query_lower),
            "Downsell": self._downsell(query_lower),
            "Continuity": self._continuity(context, query_lower),
        }
        scores = [(name, prong.effectiveness) for name, prong in prongs.items()]

        strongest = weakest = scores[0]
        for candidate in scores[1:]:
            if candidate[1] > strongest[1]:
                strongest = candidate
            if candidate[1] < weakest[1]:
                weakest = candidate

        return FourProngAssessment(
            attraction=prongs["Attraction"],
            upsell=prongs["Upsell"],
            downsell=prongs["Downsell"],
            continuity=prongs["Continuity"],
            overall_maturity=round_half_up(sum(score for _, score in scores) / 4),
            strongest_prong=strongest[0],
            weakest_prong=weakest[0],
        )

    def _attraction(self, context: BusinessContext) -> ProngAnalysis:
        exists = bool(context.cac)
        effectiveness = 1
        implementation = "Not implemented"

        if context.cac and context.gross_margin:
            monthly_gross_profit = (
                (context.current_revenue or 0) / 12 * (context.gross_margin / 100) / (context.customer_count or 1)
            )
            liquidates = monthly_gross_profit > context.cac
            effectiveness = 8 if liquidates else 3
            implementation = "Achieving CAC liquidation" if liquidates else "Not liquidating CAC"

        recommendations = []
        if not exists or effectiveness < 5:
            recommendations = [
                "Create attraction offer that covers customer acquisition cost",
                "Test free-plus-shipping or low-ticket front-end offers",
            ]
        return ProngAnalysis(
            exists=exists,
            effectiveness=effectiveness,
            purpose="Liquidate customer acquisition cost with initial offer",
            current_implementation=implementation,
            recommendations=recommendations,
        )

    def _upsell(self, context: BusinessContext, query_lower: str) -> ProngAnalysis:
        exists = contains_any(query_lower, self.tables.upsell_keywords) or context.business_stage != BusinessStage.STARTUP
        effectiveness = 6 if exists else 2
        recommendations = []
        if not exists or effectiveness < 7:
            recommendations = [
                "Develop immediate post-purchase upsell sequence",
                "Create premium service tiers or add-ons",
            ]
        return ProngAnalysis(
            exists=exists,
            effectiveness=effectiveness,
            purpose="Maximize profit per customer with premium options",
            current_implementation="Basic upsell implementation" if exists else "No upsells identified",
            recommendations=recommendations,
        )

    def _downsell(self, query_lower: str) -> ProngAnalysis:
        exists = contains_any(query_lower, self.tables.downsell_keywords)
        effectiveness = 5 if exists else 1
        recommendations = []
        if not exists or effectiveness < 6:
            recommendations = [
                "Create downsell offers for rejected customers",
                "Implement payment plans or lite versions",
            ]
        return ProngAnalysis(
            exists=exists,
            effectiveness=effectiveness,
            purpose="Maximize conversion for price-sensitive customers",
            current_implementation="Some downsell options available" if exists else "No downsell strategy",
            recommendations=recommendations,
        )

    def _continuity(self, context: BusinessContext, query_lower: str) -> ProngAnalysis:
        exists = contains_any(query_lower, self.tables.continuity_keywords) or context.business_stage == BusinessStage.SCALE
        effectiveness = 7 if exists else 2
        recommendations = []
        if not exists or effectiveness < 7:
            recommendations = [
                "Develop ongoing service or product subscriptions",
                "Create membership or community components",
            ]
        return ProngAnalysis(
            exists=exists,
            effectiveness=effectiveness,
            purpose="Stabilize cash flow with recurring revenue",
            current_implementation="Some recurring elements" if exists else "No recurring revenue model",
            recommendations=recommendations,
        )

    # ============================================
    # Customer journey
    # ============================================

    def estimate_main_offer_revenue(self, context: BusinessContext) -> float:
        if context.current_revenue and context.customer_count:
            return context.current_revenue / 12 / context.customer_count
        return self.tables.main_offer_revenue_by_stage.get(
            context.business_stage, self.tables.default_main_offer_revenue
        )

    def map_sequential_offers(self, context: BusinessContext, assessment: FourProngAssessment) -> SequentialOffers:
        main_revenue = self.estimate_main_offer_revenue(context)
        upsell = assessment.upsell
        continuity = assessment.continuity

        journey = [
            JourneyStage(
                stage="Initial Contact",
                offers=["Lead Magnet", "Free Consultation"],
                conversion=0.3,
                revenue=0,
                gaps=[] if assessment.attraction.exists else ["No attraction offer"],
            ),
            JourneyStage(stage="First Purchase", offers=["Main Offer"], conversion=0.1, revenue=main_revenue),
            JourneyStage(
                stage="Immediate Upsell",
                offers=["Premium Add-on"] if upsell.exists else [],
                conversion=0.3 if upsell.exists else 0,
                revenue=main_revenue * 0.5 if upsell.exists else 0,
                gaps=list(upsell.recommendations),
            ),
            JourneyStage(
                stage="Ongoing Relationship",
                offers=["Recurring Service"] if continuity.exists else [],
                conversion=0.6 if continuity.exists else 0,
                revenue=main_revenue * 0.3 if continuity.exists else 0,
                gaps=list(continuity.recommendations),
            ),
        ]

        touchpoints = [
            TouchpointOptimization(
                touchpoint=stage.stage,
                current_value=stage.revenue * stage.conversion,
                potential_value=stage.revenue * min(stage.conversion * 1.5, 0.8),
                optimization_actions=list(stage.gaps),
            )
            for stage in journey
        ]

        optimization = []
        for index, stage in enumerate(journey):
            if stage.gaps:
                optimization.append(f"{stage.stage}: {stage.gaps[0]}")
            if stage.conversion < 0.2 and index > 0:
                optimization.append(f"{stage.stage}: Improve conversion through better timing and offer")

        return SequentialOffers(
            customer_journey=journey,
            touchpoint_optimization=touchpoints,
            revenue_sequence=RevenueSequence(
                total_touchpoints=len(journey),
                revenue_per_customer=sum(stage.revenue * stage.conversion for stage in journey),
                optimization=optimization,
            ),
        )

    # ============================================
    # Gaps and optimisation
    # ============================================

    def identify_monetization_gaps(self, assessment: FourProngAssessment, offers: SequentialOffers) -> MonetizationGaps:
        gaps = MonetizationGaps()

        if not assessment.attraction.exists or assessment.attraction.effectiveness < 5:
            gaps.missed_opportunities.append("No effective attraction offer to liquidate CAC")
            gaps.quick_wins.append("Create free-plus-shipping or low-cost front-end offer")
        if not assessment.upsell.exists or assessment.upsell.effectiveness < 6:
            gaps.missed_opportunities.append("Missing immediate post-purchase upsells")
            gaps.quick_wins.append("Add simple upsell after main purchase")
        if not assessment.downsell.exists or assessment.downsell.effectiveness < 5:
            gaps.missed_opportunities.append("No downsell strategy for rejected customers")
            gaps.strategic_improvements.append("Develop payment plans and lite versions")
        if not assessment.continuity.exists or assessment.continuity.effectiveness < 6:
            gaps.missed_opportunities.append("No recurring revenue streams")
            gaps.strategic_improvements.append("Build subscription or membership model")

        for touchpoint in offers.touchpoint_optimization:
            # Touchpoints with no revenue have nothing to improve on
            if touchpoint.current_value == 0:
                continue
            potential = (touchpoint.potential_value - touchpoint.current_value) / touchpoint.current_value
            if potential > 0.5:
                gaps.underperforming_areas.append(
                    f"{touchpoint.touchpoint}: {round_half_up(potential * 100)}% improvement potential"
                )

        return gaps

    def calculate_revenue_optimization(
        self,
        context: BusinessContext,
        gaps: MonetizationGaps,
        offers: SequentialOffers,
    ) -> RevenueOptimization:
        customers = context.customer_count or self.tables.default_customer_count
        current_revenue = offers.revenue_sequence.revenue_per_customer * customers

        multiplier = 1 + len(gaps.missed_opportunities) * self.tables.missed_prong_uplift
        multiplier += len(gaps.quick_wins) * self.tables.quick_win_uplift
        optimized_revenue = current_revenue * multiplier

        improvement = 0
        if current_revenue:
            improvement = round_half_up((optimized_revenue - current_revenue) / current_revenue * 100)

        return RevenueOptimization(
            current_revenue=current_revenue,
            optimized_revenue=optimized_revenue,
            improvement_potential=improvement,
            priority_actions=gaps.quick_wins[:2] + gaps.strategic_improvements[:2],
        )

    def _recommendations(
        self,
        assessment: FourProngAssessment,
        offers: SequentialOffers,
        gaps: MonetizationGaps,
        context: BusinessContext,
    ) -> List[str]:
        recommendations = ["Implement the complete 4-Prong Money Model for maximum customer value"]
        for prong in (assessment.attraction, assessment.upsell, assessment.downsell, assessment.continuity):
            recommendations.extend(prong.recommendations)
        recommendations.extend(gaps.quick_wins)
        recommendations.extend(gaps.strategic_improvements[:2])

        if context.business_stage == BusinessStage.STARTUP:
            recommendations.append("Focus on attraction and upsell prongs first to achieve CFA")
        elif context.business_stage == BusinessStage.GROWTH:
            recommendations.append("Implement all four prongs systematically to maximize revenue per customer")
        elif context.business_stage == BusinessStage.SCALE:
            recommendations.append("Optimize existing prongs and create advanced monetization sequences")

        recommendations.extend(offers.revenue_sequence.optimization)
        recommendations.extend([
            "Map complete customer journey from first contact to maximum monetization",
            "Test and optimize each touchpoint for maximum conversion and value",
            "Create systematic upsell sequences based on customer success milestones",
        ])
        return recommendations[:self.tables.max_recommendations]

    def _confidence(self, context: BusinessContext) -> int:
        confidence = 40
        if context.current_revenue:
            confidence += 20
        if context.customer_count:
            confidence += 20
        if context.ltv:
            confidence += 15
        if context.business_stage in (BusinessStage.GROWTH, BusinessStage.SCALE):
            confidence += 15
        return min(confidence, self.tables.confidence_cap)
