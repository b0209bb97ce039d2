"""Orchestrator for multi-agent coaching sessions.

The orchestrator coordinates the flow:
1. Optionally hand the whole session to the remote master-conductor workflow
2. Otherwise the QueryClassifier picks analyzers and a TaskDAG is built
3. Analyzer agents execute level by level (parallel within a level)
4. The Synthesizer merges the analyses into one CoachingResponse
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ...config import Config
from ...schemas.agents.analysis import AgentAnalysis, CoachingResponse
from ...schemas.agents.context import AnalyzerId, BusinessContext, SessionType
from ...schemas.agents.memory import ConversationTurn
from ...schemas.agents.routing import QueryAnalysis, RoutingDecision
from ...schemas.agents.task import AnalysisRequest, Task, TaskDAG, TaskResult, TaskStatus
from ...schemas.agents.trace import ExecutionTrace, TraceEventType
from .agent_router import IntelligentAgentRouter, get_agent_router
from .base import AgentRegistry
from .classifier import QueryClassifier
from .compute import (
    CoachingMethodologyAgent,
    ConstraintAnalyzerAgent,
    FinancialCalculatorAgent,
    ImplementationPlannerAgent,
    MoneyModelArchitectAgent,
    OfferAnalyzerAgent,
    PsychologyOptimizerAgent,
)
from .memory import (
    AgentMemorySystem,
    ConversationSession,
    SessionManager,
    get_memory_system,
    get_session_manager,
)
from .synthesizer import Synthesizer
from .tracing import format_trace_summary, trace_fallback
from .workflows import (
    MASTER_CONDUCTOR,
    WORKFLOW_NAMES,
    WorkflowAgent,
    WorkflowClient,
    WorkflowError,
    call_master_conductor,
    connection_error_analysis,
)

logger = logging.getLogger(__name__)

ANALYZER_MODES = ("local", "remote")


class InvalidRequestError(ValueError):
    """A required request field is blank or unknown."""


def local_agents() -> list:
    """One in-process agent per analyzer."""
    constraint = ConstraintAnalyzerAgent()
    return [
        OfferAnalyzerAgent(),
        MoneyModelArchitectAgent(),
        FinancialCalculatorAgent(),
        PsychologyOptimizerAgent(),
        ImplementationPlannerAgent(),
        constraint,
        CoachingMethodologyAgent(constraint_analyzer=constraint),
    ]


class Orchestrator:
    """Coordinates analyzer execution for coaching queries.

    Flow:
    1. Get/create session for conversation continuity
    2. Route the query for the UI (advisory, never changes what runs)
    3. Master conductor, or classifier -> TaskDAG -> analyzers -> synthesis
    4. Record the turn in session, router performance and agent memory
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        registry: Optional[AgentRegistry] = None,
        client: Optional[WorkflowClient] = None,
        use_master_conductor: Optional[bool] = None,
        analyzer_timeout: Optional[float] = None,
        router: Optional[IntelligentAgentRouter] = None,
        memory: Optional[AgentMemorySystem] = None,
        session_manager: Optional[SessionManager] = None,
    ):
        mode = (mode or Config.ANALYZER_MODE).lower()
        if mode not in ANALYZER_MODES:
            logger.warning(f"[Orchestrator] Unknown analyzer mode '{mode}', using local")
            mode = "local"
        self.mode = mode
        self.use_master_conductor = (
            Config.USE_MASTER_CONDUCTOR if use_master_conductor is None else use_master_conductor
        )
        self.analyzer_timeout = analyzer_timeout if analyzer_timeout is not None else Config.ANALYZER_TIMEOUT

        self.client = client or WorkflowClient()
        self.registry = registry or AgentRegistry()
        self.classifier = QueryClassifier()
        self.synthesizer = Synthesizer()
        self.router = router or get_agent_router()
        self.memory = memory or get_memory_system()
        self.session_manager = session_manager or get_session_manager()

        self._register_agents()

    def _register_agents(self) -> None:
        """Register one agent per analyzer for the configured mode."""
        for agent in local_agents():
            if self.mode == "remote":
                agent = WorkflowAgent(
                    agent.analyzer_id,
                    client=self.client,
                    diagnostic_questions=agent.diagnostic_questions,
                )
            self.registry.register(agent)

    def available_agents(self) -> List[str]:
        return [MASTER_CONDUCTOR] + list(WORKFLOW_NAMES.values())

    def diagnostic_questions(self, analyzer: str) -> Optional[List[str]]:
        agent = self.registry.get_agent_for_analyzer(analyzer)
        if agent is None:
            return None
        return list(agent.diagnostic_questions)

    # ============================================
    # Conducting a session
    # ============================================

    async def conduct(
        self,
        request: AnalysisRequest,
        trace: Optional[ExecutionTrace] = None,
    ) -> CoachingResponse:
        """Answer a coaching request.

        Never raises for analyzer or workflow failures: the master conductor
        falls back to the analyzers, and failed analyzers become
        zero-confidence placeholders.
        """
        if trace is None:
            trace = ExecutionTrace(session_id=request.user_id or "anonymous", user_query=request.query)

        if self.use_master_conductor:
            try:
                response = await call_master_conductor(self.client, request, trace)
                trace.mode = MASTER_CONDUCTOR
                return response
            except (WorkflowError, ValidationError) as e:
                logger.warning(f"[Orchestrator] Master conductor failed, falling back to analyzers: {e}")
                trace_fallback(trace, "master_conductor_failed", error=str(e))

        trace.mode = self.mode
        analyses = await self.run_analyzers(request, trace)
        return self.synthesizer.synthesize(analyses, request.business_context, trace)

    async def run_analyzers(self, request: AnalysisRequest, trace: ExecutionTrace) -> List[AgentAnalysis]:
        """Select, schedule and run analyzers.

        Returns:
            One analysis per selected analyzer, in execution order
        """
        selected = self.classifier.select_analyzers(request.query, request.session_type)
        trace.add_event(
            TraceEventType.ANALYZERS_SELECTED,
            data={"analyzers": selected, "tables_version": self.classifier.tables.version},
        )

        dag = self.build_dag(request, selected)
        trace.dag = dag
        trace.add_event(
            TraceEventType.DAG_CREATED,
            data={"tasks": [t.analyzer for t in dag.tasks]},
        )

        shared = await self._execute_dag(dag, request, trace)
        return [shared[task.id] for task in dag.tasks]

    @staticmethod
    def build_dag(request: AnalysisRequest, analyzers: List[str]) -> TaskDAG:
        """One task per analyzer; the implementation planner waits for all others."""
        tasks = [Task(analyzer=analyzer) for analyzer in analyzers]
        upstream = [t.id for t in tasks if t.analyzer != AnalyzerId.IMPLEMENTATION]
        for task in tasks:
            if task.analyzer == AnalyzerId.IMPLEMENTATION:
                task.depends_on = list(upstream)

        return TaskDAG(
            query_summary=request.query[:100],
            session_type=request.session_type,
            tasks=tasks,
        )

    async def _execute_dag(
        self,
        dag: TaskDAG,
        request: AnalysisRequest,
        trace: ExecutionTrace,
    ) -> Dict[str, AgentAnalysis]:
        """Execute all tasks in the DAG.

        Tasks at the same level run in parallel. A failed task still yields
        its placeholder analysis, so downstream tasks and the final response
        always see one analysis per task.

        Returns:
            Analyses keyed by task id
        """
        shared: Dict[str, AgentAnalysis] = {}
        levels = self._topological_sort(dag.tasks)

        for level_tasks in levels:
            if not level_tasks:
                continue

            coroutines = [
                self._execute_task(task, request, shared, trace)
                for task in level_tasks
            ]
            results = await asyncio.gather(*coroutines, return_exceptions=True)

            for task, result in zip(level_tasks, results):
                if isinstance(result, BaseException):
                    logger.error(f"[Orchestrator] Task {task.id} ({task.analyzer}) raised: {result!r}")
                    task.status = TaskStatus.FAILED
                    task.error = str(result) or type(result).__name__
                elif result.success:
                    task.status = TaskStatus.COMPLETED
                    task.result = result.analysis
                else:
                    task.status = TaskStatus.FAILED
                    task.error = result.error

                if task.status == TaskStatus.FAILED:
                    task.result = connection_error_analysis(task.analyzer)
                shared[task.id] = task.result

        return shared

    async def _execute_task(
        self,
        task: Task,
        request: AnalysisRequest,
        shared: Dict[str, AgentAnalysis],
        trace: ExecutionTrace,
    ) -> TaskResult:
        """Execute a single task with the registered agent, bounded by the analyzer timeout."""
        task.status = TaskStatus.RUNNING

        agent = self.registry.get_agent_for_analyzer(task.analyzer)
        if not agent:
            return TaskResult.err(task.id, task.analyzer, f"No agent registered for analyzer: {task.analyzer}")

        task.assigned_agent = agent.name
        start_time = time.time()
        try:
            return await asyncio.wait_for(
                agent.execute(task, request, shared, trace),
                timeout=self.analyzer_timeout,
            )
        except asyncio.TimeoutError:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(f"[Orchestrator] {agent.name} timed out after {self.analyzer_timeout}s")
            trace.add_event(
                TraceEventType.TASK_FAILED,
                agent=agent.name,
                task_id=task.id,
                data={"error": "timeout", "timeout_s": self.analyzer_timeout},
                duration_ms=duration_ms,
            )
            return TaskResult.err(task.id, task.analyzer, "timeout", duration_ms=duration_ms)

    def _topological_sort(self, tasks: List[Task]) -> List[List[Task]]:
        """Sort tasks into execution levels based on dependencies.

        Within a level, tasks keep their DAG order.

        Args:
            tasks: List of tasks to sort

        Returns:
            List of task lists, one per execution level
        """
        if not tasks:
            return []

        in_degree = {t.id: len(t.depends_on) for t in tasks}
        dependents: Dict[str, List[str]] = {t.id: [] for t in tasks}
        for task in tasks:
            for dep_id in task.depends_on:
                if dep_id in dependents:
                    dependents[dep_id].append(task.id)
                else:
                    # Unknown dependency can never finish, ignore it
                    in_degree[task.id] -= 1

        levels = []
        remaining = list(tasks)

        while remaining:
            ready = [t for t in remaining if in_degree[t.id] == 0]

            if not ready:
                # Cycle detected, run whatever is left as a single level
                levels.append(remaining)
                break

            levels.append(ready)
            ready_ids = {t.id for t in ready}
            remaining = [t for t in remaining if t.id not in ready_ids]
            for tid in ready_ids:
                for dependent_id in dependents[tid]:
                    in_degree[dependent_id] -= 1

        return levels

    # ============================================
    # API entry
    # ============================================

    async def process_coaching_request(
        self,
        query: str,
        business_context: Optional[BusinessContext] = None,
        session_type: str = SessionType.DIAGNOSTIC.value,
        user_id: str = "",
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Process a coaching query end to end.

        Args:
            query: User's question
            business_context: Business facts; defaults to a startup with nothing known
            session_type: diagnostic | strategic | implementation
            user_id: Caller identity used as the memory key
            session_id: Optional session ID for conversation continuity

        Returns:
            Response dict matching the CoachingApiResponse schema

        Raises:
            InvalidRequestError: if query, session type or user id is blank or unknown
        """
        request = self._validate_request(query, business_context, session_type, user_id)

        session = self.session_manager.get_or_create_session(session_id)
        trace = ExecutionTrace(session_id=session.session_id, user_query=query)
        session.add_message("user", query)
        trace.add_event(
            TraceEventType.SESSION_LOADED,
            data={"session_id": session.session_id, "messages": len(session.messages)},
        )

        query_analysis = self.router.analyze_query(query, request.business_context.model_dump())
        routing = self.router.decide(query, query_analysis)

        start_time = time.time()
        response = await self.conduct(request, trace)
        execution_ms = (time.time() - start_time) * 1000

        session.add_message(
            "assistant",
            response.synthesis,
            analyzers=[a.agent_type for a in response.analysis],
        )
        turn = self._record_turn(request, session, response, routing, query_analysis, execution_ms)

        trace.finalize(response=response.synthesis[:200], success=True)
        logger.debug(format_trace_summary(trace))

        return self._make_response(response, session, turn, trace, routing)

    @staticmethod
    def _validate_request(
        query: str,
        business_context: Optional[BusinessContext],
        session_type: str,
        user_id: str,
    ) -> AnalysisRequest:
        if not query or not query.strip():
            raise InvalidRequestError("query is required")
        if not session_type or not session_type.strip():
            raise InvalidRequestError("sessionType is required")
        if not user_id or not user_id.strip():
            raise InvalidRequestError("userId is required")
        try:
            session_type = SessionType(session_type.strip().lower()).value
        except ValueError:
            raise InvalidRequestError(f"Unknown sessionType: {session_type}")

        return AnalysisRequest(
            query=query,
            business_context=business_context or BusinessContext(),
            session_type=session_type,
            user_id=user_id,
        )

    def _record_turn(
        self,
        request: AnalysisRequest,
        session: ConversationSession,
        response: CoachingResponse,
        routing: RoutingDecision,
        query_analysis: QueryAnalysis,
        execution_ms: float,
    ) -> ConversationTurn:
        """Feed the outcome back into router performance and agent memory."""
        for analysis in response.analysis:
            agent_name = WORKFLOW_NAMES.get(analysis.agent_type)
            if agent_name:
                self.router.update_agent_performance(
                    agent_name,
                    analysis.confidence / 100,
                    analysis.confidence > 0,
                )

        turn = ConversationTurn(
            user_query=request.query,
            agent_response=response.synthesis,
            selected_agent=routing.primary.agent,
            query_analysis=query_analysis,
            success=any(a.confidence > 0 for a in response.analysis),
            execution_time=execution_ms,
            insights=[item.description for item in response.action_items],
            follow_up_suggestions=list(response.next_steps),
        )
        self.memory.add_conversation_turn(session.session_id, turn, user_id=request.user_id)
        return turn

    def _make_response(
        self,
        response: CoachingResponse,
        session: ConversationSession,
        turn: ConversationTurn,
        trace: ExecutionTrace,
        routing: RoutingDecision,
    ) -> Dict[str, Any]:
        """Create a standard response dict."""
        return {
            **response.model_dump(),
            "session_id": session.session_id,
            "turn_id": turn.id,
            "trace_id": trace.trace_id,
            "mode": trace.mode or self.mode,
            "routing": routing,
        }


# Global orchestrator instance
_orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Get or create the global orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = Orchestrator()
    return _orchestrator


async def process_coaching_request(
    query: str,
    business_context: Optional[BusinessContext] = None,
    session_type: str = SessionType.DIAGNOSTIC.value,
    user_id: str = "",
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Main entry point for coaching queries.

    This is the function that should be called from the router.
    """
    orchestrator = get_orchestrator()
    return await orchestrator.process_coaching_request(
        query,
        business_context=business_context,
        session_type=session_type,
        user_id=user_id,
        session_id=session_id,
    )
