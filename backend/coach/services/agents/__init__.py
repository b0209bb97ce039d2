"""Multi-agent business coaching system.

Deterministic analyzers grounded in Alex Hormozi's frameworks, coordinated
by an orchestrator that can also delegate to hosted workflows.

Main entry point:
    process_coaching_request(query, business_context, session_type, user_id, session_id) -> Dict

Architecture:
    Orchestrator
    ├── master-conductor workflow (optional, falls back on any failure)
    ├── QueryClassifier → TaskDAG
    ├── Analyzer agents (local compute or remote workflows)
    │   ├── OfferAnalyzerAgent
    │   ├── MoneyModelArchitectAgent
    │   ├── FinancialCalculatorAgent
    │   ├── PsychologyOptimizerAgent
    │   ├── ImplementationPlannerAgent (after all others)
    │   ├── ConstraintAnalyzerAgent
    │   └── CoachingMethodologyAgent
    ├── Synthesizer → CoachingResponse
    ├── IntelligentAgentRouter → RoutingDecision (advisory)
    └── AgentMemorySystem / SessionManager
"""

from .orchestrator import InvalidRequestError, get_orchestrator, process_coaching_request
from .agent_router import get_agent_router
from .memory import get_memory_system, get_session_manager

__all__ = [
    "InvalidRequestError",
    "process_coaching_request",
    "get_orchestrator",
    "get_agent_router",
    "get_memory_system",
    "get_session_manager",
]
