"""Keyword and score tables used by the classifier, synthesizer, router and memory.

Every table is a versioned pydantic model with defaults. Consumers take an
instance in their constructor, so tests can swap a table without touching
module state. Dict order is significant wherever a lookup is first-match.
"""

from typing import Dict, List
from pydantic import BaseModel, Field

from ...schemas.agents.context import AnalyzerId, EXECUTION_ORDER
from ...schemas.agents.routing import AgentCapability


class KeywordRule(BaseModel):
    """Maps any of `keywords` (substring match) to `value`."""
    keywords: List[str]
    value: str

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


def contains_any(text: str, keywords: List[str]) -> bool:
    """True if any keyword occurs in text (plain substring match)."""
    return any(keyword in text for keyword in keywords)


# ============================================
# Query classifier
# ============================================

class ClassifierTables(BaseModel):
    version: str = "1"
    keyword_sets: Dict[str, List[str]] = Field(default_factory=lambda: {
        AnalyzerId.OFFER.value: ["offer", "value", "pricing", "positioning", "competitor", "market"],
        AnalyzerId.MONEY_MODEL.value: ["revenue", "upsell", "downsell", "continuity", "money model", "monetize"],
        AnalyzerId.FINANCIAL.value: ["cac", "ltv", "profit", "margin", "metrics", "payback", "financial"],
        AnalyzerId.PSYCHOLOGY.value: ["conversion", "psychology", "timing", "behavior", "customer", "buying"],
        AnalyzerId.IMPLEMENTATION.value: ["implement", "execute", "plan", "next steps", "action", "roadmap"],
        AnalyzerId.CONSTRAINT.value: ["constraint", "bottleneck"],
        AnalyzerId.COACHING.value: ["coaching", "methodology", "framework", "growth", "analyze", "diagnostic"],
    })
    opt_out_phrases: List[str] = Field(default_factory=lambda: ["just tell me", "only need"])
    always_include: str = AnalyzerId.CONSTRAINT.value
    strategic_analyzers: List[str] = Field(default_factory=lambda: [a.value for a in EXECUTION_ORDER])
    default_analyzer: str = AnalyzerId.CONSTRAINT.value


# ============================================
# Synthesizer
# ============================================

class SynthesisTables(BaseModel):
    version: str = "1"
    critical_keywords: List[str] = Field(default_factory=lambda: ["cfa", "cash flow", "acquisition cost", "gross profit"])
    high_keywords: List[str] = Field(default_factory=lambda: ["offer", "pricing", "value", "upsell"])
    timeline_rules: List[KeywordRule] = Field(default_factory=lambda: [
        KeywordRule(keywords=["test", "experiment"], value="1-2 weeks"),
        KeywordRule(keywords=["implement", "build"], value="2-4 weeks"),
    ])
    default_timeline: str = "1-2 weeks"
    recommendation_frameworks: List[KeywordRule] = Field(default_factory=lambda: [
        KeywordRule(keywords=["cfa", "client financed"], value="Client Financed Acquisition"),
        KeywordRule(keywords=["offer", "value equation"], value="Grand Slam Offer"),
        KeywordRule(keywords=["upsell", "4 prong"], value="4-Prong Money Model"),
        KeywordRule(keywords=["timing", "moment"], value="5 Upsell Moments"),
    ])
    agent_frameworks: Dict[str, List[str]] = Field(default_factory=lambda: {
        AnalyzerId.OFFER.value: ["Grand Slam Offer", "Value Equation"],
        AnalyzerId.MONEY_MODEL.value: ["4-Prong Money Model", "Sequential Offers"],
        AnalyzerId.FINANCIAL.value: ["Client Financed Acquisition", "3 Levels of Advertising"],
        AnalyzerId.PSYCHOLOGY.value: ["5 Upsell Moments", "Point of Greatest Deprivation"],
        AnalyzerId.IMPLEMENTATION.value: ["Priority Matrix", "Phased Implementation Roadmap"],
        AnalyzerId.CONSTRAINT.value: ["4 Universal Constraints", "Sequential Constraint Solving"],
        AnalyzerId.COACHING.value: ["Alex Hormozi Coaching System", "Systematic Constraint Resolution"],
    })
    priority_weights: Dict[str, int] = Field(default_factory=lambda: {
        "critical": 1, "high": 2, "medium": 3, "low": 4,
    })
    max_action_items: int = 8
    title_length: int = 60


# ============================================
# Memory topics
# ============================================

class TopicTables(BaseModel):
    version: str = "1"
    topic_patterns: Dict[str, List[str]] = Field(default_factory=lambda: {
        "offer optimization": ["offer", "pricing", "value proposition"],
        "revenue model": ["revenue", "money model", "monetization"],
        "customer acquisition": ["leads", "customers", "acquisition", "marketing"],
        "conversion optimization": ["conversion", "sales", "closing"],
        "scaling operations": ["scale", "growth", "operations", "team"],
        "financial analysis": ["financial", "profit", "cac", "ltv", "metrics"],
    })


# ============================================
# IntelligentAgentRouter
# ============================================

def _default_capabilities() -> List[AgentCapability]:
    return [
        AgentCapability(
            name="constraint-analyzer",
            description="Identifies and analyzes business constraints using Hormozi's 4 Universal Constraints",
            expertise=["bottlenecks", "constraints", "growth", "scaling", "operations", "diagnostics"],
            priority=10, average_confidence=0.92, success_rate=0.89, avg_response_time=2.3,
        ),
        AgentCapability(
            name="offer-analyzer",
            description="Analyzes and optimizes offers using Grand Slam Offer framework",
            expertise=["value proposition", "pricing", "offer structure", "market positioning", "competitive analysis"],
            priority=9, average_confidence=0.88, success_rate=0.85, avg_response_time=3.1,
        ),
        AgentCapability(
            name="money-model-architect",
            description="Designs and optimizes 4-prong money models for revenue multiplication",
            expertise=["revenue streams", "upsells", "downsells", "continuity", "monetization"],
            priority=9, average_confidence=0.86, success_rate=0.83, avg_response_time=4.2,
        ),
        AgentCapability(
            name="financial-calculator",
            description="Analyzes financial metrics and CFA optimization",
            expertise=["cac", "ltv", "cfa", "metrics", "profitability", "unit economics"],
            priority=8, average_confidence=0.91, success_rate=0.87, avg_response_time=1.8,
        ),
        AgentCapability(
            name="psychology-optimizer",
            description="Optimizes customer psychology and conversion timing",
            expertise=["conversion psychology", "timing", "customer behavior", "persuasion", "sales psychology"],
            priority=7, average_confidence=0.84, success_rate=0.81, avg_response_time=2.9,
        ),
        AgentCapability(
            name="implementation-planner",
            description="Creates actionable implementation plans and roadmaps",
            expertise=["execution", "planning", "roadmaps", "project management", "implementation"],
            priority=6, average_confidence=0.87, success_rate=0.82, avg_response_time=3.5,
        ),
        AgentCapability(
            name="coaching-methodology",
            description="Provides comprehensive coaching using Alex Hormozi's methodologies",
            expertise=["coaching", "mentorship", "strategy", "frameworks", "business development"],
            priority=8, average_confidence=0.90, success_rate=0.88, avg_response_time=2.7,
        ),
    ]


class RoutingTables(BaseModel):
    version: str = "1"
    capabilities: List[AgentCapability] = Field(default_factory=_default_capabilities)
    intent_patterns: Dict[str, List[str]] = Field(default_factory=lambda: {
        "analyze": ["analyze", "review", "examine", "assess", "evaluate", "look at"],
        "optimize": ["optimize", "improve", "enhance", "better", "increase", "boost"],
        "diagnose": ["diagnose", "problem", "issue", "wrong", "broken", "stuck", "constraint"],
        "plan": ["plan", "strategy", "roadmap", "implement", "execute", "steps"],
        "compare": ["compare", "versus", "vs", "difference", "better than"],
        "learn": ["how", "what", "why", "when", "explain", "understand", "teach"],
        "create": ["create", "build", "make", "design", "develop", "generate"],
        "fix": ["fix", "solve", "resolve", "address", "handle", "deal with"],
    })
    concepts: List[str] = Field(default_factory=lambda: [
        "offer", "money model", "financial", "marketing", "sales", "operations",
    ])
    strategic_keywords: List[str] = Field(default_factory=lambda: [
        "strategy", "comprehensive", "overall", "entire business", "complete analysis",
    ])
    urgency_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        "critical": ["urgent", "asap", "immediately", "crisis", "emergency", "critical", "failing"],
        "high": ["soon", "quickly", "fast", "deadline", "important", "priority"],
        "medium": ["when possible", "eventually", "planning", "future"],
        "low": ["curious", "wondering", "general", "learn", "understand"],
    })
    context_patterns: Dict[str, List[str]] = Field(default_factory=lambda: {
        "coaching": ["coaching", "coach", "consultant", "service"],
        "ecommerce": ["ecommerce", "store", "product", "inventory", "shipping"],
        "saas": ["saas", "software", "subscription", "recurring", "mrr"],
        "agency": ["agency", "client", "marketing", "advertising"],
        "local": ["local", "brick and mortar", "physical location"],
        "online": ["online", "digital", "internet", "virtual"],
        "startup": ["startup", "new business", "launching"],
        "scaling": ["scaling", "growth", "expanding", "scale"],
    })
    framework_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        "Grand Slam Offer": ["offer", "value", "pricing", "grand slam"],
        "4-Prong Money Model": ["money model", "upsell", "downsell", "continuity", "4 prong"],
        "Client Financed Acquisition": ["cfa", "client financed", "customer acquisition"],
        "4 Universal Constraints": ["constraint", "bottleneck", "leads", "sales", "delivery", "profit"],
        "5 Upsell Moments": ["upsell timing", "when to upsell", "upsell moments"],
        "Value Equation": ["value equation", "dream outcome", "likelihood", "time delay"],
    })
    performance_window: int = 50
    history_limit: int = 1000
