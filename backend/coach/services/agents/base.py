"""Base agent protocol and registry."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Protocol, runtime_checkable

from ...schemas.agents.analysis import AgentAnalysis
from ...schemas.agents.context import AnalyzerId, BusinessContext
from ...schemas.agents.task import AnalysisRequest, Task, TaskResult
from ...schemas.agents.trace import ExecutionTrace
from .tracing import trace_task

logger = logging.getLogger(__name__)


@runtime_checkable
class Agent(Protocol):
    """Protocol defining the interface for all analyzer agents."""

    diagnostic_questions: List[str]

    @property
    def name(self) -> str:
        """Agent's unique name."""
        ...

    @property
    def analyzer_id(self) -> AnalyzerId:
        """Analyzer this agent implements."""
        ...

    async def execute(
        self,
        task: Task,
        request: AnalysisRequest,
        shared: Dict[str, AgentAnalysis],
        trace: ExecutionTrace,
    ) -> TaskResult:
        """Execute a task and return the result.

        Args:
            task: The task to execute
            request: Query, business context and session type of the request
            shared: Analyses of finished tasks, keyed by task_id
            trace: Execution trace for logging

        Returns:
            TaskResult carrying the analysis or the error
        """
        ...


class BaseAgent(ABC):
    """Base class for analyzer agents.

    Subclasses produce an analysis in `_run`; `execute` wraps it with timing,
    trace events and the exception boundary so one failing analyzer never
    aborts the request.
    """

    diagnostic_questions: List[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent's unique name."""
        pass

    @property
    @abstractmethod
    def analyzer_id(self) -> AnalyzerId:
        """Analyzer this agent implements."""
        pass

    @abstractmethod
    async def _run(
        self,
        task: Task,
        request: AnalysisRequest,
        prior: List[AgentAnalysis],
        trace: ExecutionTrace,
    ) -> AgentAnalysis:
        """Produce the analysis for one task. `prior` holds the upstream analyses."""
        pass

    async def execute(
        self,
        task: Task,
        request: AnalysisRequest,
        shared: Dict[str, AgentAnalysis],
        trace: ExecutionTrace,
    ) -> TaskResult:
        """Execute an analyzer task."""
        start_time = time.time()
        prior = [shared[dep] for dep in task.depends_on if dep in shared]

        try:
            with trace_task(trace, task.id, self.name) as result_data:
                analysis = await self._run(task, request, prior, trace)
                result_data.update({
                    "confidence": analysis.confidence,
                    "findings": len(analysis.findings),
                    "recommendations": len(analysis.recommendations),
                })
        except Exception as e:
            logger.exception(f"[{self.name}] Analysis failed: {e}")
            return TaskResult.err(
                task.id,
                self.analyzer_id,
                str(e) or type(e).__name__,
                duration_ms=(time.time() - start_time) * 1000,
            )

        return TaskResult.ok(
            task.id,
            self.analyzer_id,
            analysis,
            duration_ms=(time.time() - start_time) * 1000,
        )


class ComputeAgent(BaseAgent):
    """An analyzer computed in-process from the query and business context."""

    @abstractmethod
    def analyze(
        self,
        query: str,
        context: BusinessContext,
        prior: Optional[List[AgentAnalysis]] = None,
    ) -> AgentAnalysis:
        """Run the analyzer. Deterministic for identical inputs."""
        pass

    async def _run(
        self,
        task: Task,
        request: AnalysisRequest,
        prior: List[AgentAnalysis],
        trace: ExecutionTrace,
    ) -> AgentAnalysis:
        return self.analyze(request.query, request.business_context, prior)


class AgentRegistry:
    """Registry mapping analyzer ids to agents."""

    def __init__(self):
        self._agents: Dict[str, Agent] = {}
        self._analyzer_map: Dict[str, str] = {}

    def register(self, agent: Agent) -> None:
        """Register an agent, replacing any agent registered for the same analyzer.

        Args:
            agent: Agent instance to register
        """
        analyzer = AnalyzerId(agent.analyzer_id).value
        previous = self._analyzer_map.get(analyzer)
        if previous and previous != agent.name:
            self._agents.pop(previous, None)
        self._agents[agent.name] = agent
        self._analyzer_map[analyzer] = agent.name

    def get_agent_for_analyzer(self, analyzer: str) -> Optional[Agent]:
        """Get the agent that implements an analyzer.

        Args:
            analyzer: Analyzer id (e.g. "financial")

        Returns:
            Agent instance or None if no agent is registered for it
        """
        agent_name = self._analyzer_map.get(analyzer)
        if agent_name:
            return self._agents.get(agent_name)
        return None

    def get_agent(self, name: str) -> Optional[Agent]:
        """Get an agent by name."""
        return self._agents.get(name)

    def list_agents(self) -> List[str]:
        """List all registered agent names."""
        return list(self._agents.keys())
