from fastapi import APIRouter, HTTPException
from typing import Any, Dict

from ..schemas.agents.memory import MemoryAnalytics
from ..schemas.agents.routing import RoutingAnalytics, RoutingDecision
from ..schemas.coaching import (
    CoachingApiResponse,
    CoachingRequest,
    DiagnosticQuestions,
    FeedbackRequest,
    RouteRequest,
)
from ..services.agents import (
    InvalidRequestError,
    get_agent_router,
    get_memory_system,
    get_orchestrator,
    process_coaching_request,
)

router = APIRouter(prefix="/coach", tags=["Coach"])


@router.post("/ask", response_model=CoachingApiResponse)
async def ask_coach(coaching: CoachingRequest):
    """
    Ask the business coach a question.

    The query is classified, the matching analyzers run (in parallel where
    possible) and their findings are synthesized into one response with
    prioritized action items.

    **Session Support:**
    - Include `sessionId` to continue a conversation
    - The response includes the `sessionId` and a `turnId` for feedback

    **Session types:**
    - "diagnostic": analyzers chosen from the query
    - "strategic": every analyzer runs
    - "implementation": analyzers chosen from the query

    Analyzer failures never fail the request: a failed analyzer shows up
    with zero confidence and a configuration hint.
    """
    try:
        result = await process_coaching_request(
            coaching.query,
            business_context=coaching.business_context,
            session_type=coaching.session_type,
            user_id=coaching.user_id,
            session_id=coaching.session_id,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CoachingApiResponse(**result)


@router.post("/route", response_model=RoutingDecision)
async def route_query(route: RouteRequest):
    """
    Preview which agent would lead a query, without running any analyzer.
    """
    if not route.query.strip():
        raise HTTPException(status_code=400, detail="query is required")
    context = route.business_context.model_dump() if route.business_context else None
    return get_agent_router().route_query(route.query, context, route.session_type)


@router.get("/health")
async def health() -> Dict[str, Any]:
    orchestrator = get_orchestrator()
    return {
        "status": "healthy",
        "availableAgents": orchestrator.available_agents(),
        "mode": orchestrator.mode,
        "masterConductor": orchestrator.use_master_conductor,
    }


@router.get("/analyzers/{analyzer_id}/questions", response_model=DiagnosticQuestions)
async def get_diagnostic_questions(analyzer_id: str):
    """Diagnostic questions an analyzer asks to fill gaps in the business context."""
    questions = get_orchestrator().diagnostic_questions(analyzer_id)
    if questions is None:
        raise HTTPException(status_code=404, detail=f"Unknown analyzer: {analyzer_id}")
    return DiagnosticQuestions(analyzer=analyzer_id, questions=questions)


@router.get("/memory/{user_id}", response_model=MemoryAnalytics)
async def get_memory(user_id: str):
    return get_memory_system().get_memory_analytics(user_id, user_id=user_id)


@router.delete("/memory/{user_id}")
async def clear_memory(user_id: str) -> Dict[str, Any]:
    """Forget everything remembered about a user."""
    cleared = get_memory_system().clear_memory(user_id, user_id=user_id)
    return {"cleared": cleared}


@router.post("/feedback")
async def submit_feedback(feedback: FeedbackRequest) -> Dict[str, Any]:
    updated = get_memory_system().update_user_feedback(
        feedback.session_id or feedback.user_id,
        feedback.turn_id,
        feedback.feedback,
        user_id=feedback.user_id,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Turn not found")
    return {"updated": True}


@router.get("/routing/analytics", response_model=RoutingAnalytics)
async def routing_analytics():
    return get_agent_router().get_routing_analytics()
