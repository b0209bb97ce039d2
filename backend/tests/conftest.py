"""Shared test fixtures for the coach backend tests."""
import pytest

from coach.schemas.agents.context import BusinessContext, BusinessStage
from coach.services.agents.agent_router import IntelligentAgentRouter
from coach.services.agents.base import AgentRegistry
from coach.services.agents.memory import AgentMemorySystem, SessionManager
from coach.services.agents.orchestrator import Orchestrator


# =============================================================================
# Business contexts
# =============================================================================

@pytest.fixture
def empty_context():
    """Startup with nothing known."""
    return BusinessContext()


@pytest.fixture
def cfa_context():
    """30-day gross profit of 150 against a CAC of 100 (ratio 1.5)."""
    return BusinessContext(
        current_revenue=36000,
        customer_count=10,
        cac=100,
        gross_margin=50,
        business_stage=BusinessStage.GROWTH,
    )


@pytest.fixture
def no_cfa_context():
    """30-day gross profit of 180 against a CAC of 200 (ratio 0.9)."""
    return BusinessContext(
        current_revenue=43200,
        customer_count=10,
        cac=200,
        gross_margin=50,
        business_stage=BusinessStage.GROWTH,
    )


@pytest.fixture
def full_context():
    """Everything known, healthy unit economics."""
    return BusinessContext(
        industry="coaching",
        current_revenue=1_200_000,
        customer_count=250,
        cac=300,
        ltv=4000,
        gross_margin=85,
        business_stage=BusinessStage.MATURE,
    )


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def registry():
    return AgentRegistry()


@pytest.fixture
def router():
    return IntelligentAgentRouter()


@pytest.fixture
def memory():
    return AgentMemorySystem()


@pytest.fixture
def session_manager():
    return SessionManager()


@pytest.fixture
def orchestrator(registry, router, memory, session_manager):
    """Local-mode orchestrator with isolated state."""
    return Orchestrator(
        mode="local",
        registry=registry,
        use_master_conductor=False,
        analyzer_timeout=5,
        router=router,
        memory=memory,
        session_manager=session_manager,
    )
