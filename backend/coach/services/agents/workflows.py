"""Remote analyzer workflows.

Each analyzer can also run as a hosted workflow reached over HTTP
(`POST <base>/<workflow-name>`). The workflow replies with its own JSON
shape; the converters below turn that into an AgentAnalysis so the rest of
the conductor cannot tell a remote analyzer from a local one.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from ...config import Config, workflow_url
from ...schemas.agents.analysis import ActionItem, AgentAnalysis, CoachingResponse
from ...schemas.agents.context import AnalyzerId
from ...schemas.agents.metrics import WorkflowMetrics
from ...schemas.agents.task import AnalysisRequest, Task
from ...schemas.agents.trace import ExecutionTrace
from .base import BaseAgent
from .tracing import trace_workflow_call
from .compute.numbers import format_number

logger = logging.getLogger(__name__)

MASTER_CONDUCTOR = "master-conductor"

WORKFLOW_NAMES: Dict[str, str] = {
    AnalyzerId.OFFER.value: "offer-analyzer",
    AnalyzerId.FINANCIAL.value: "financial-calculator",
    AnalyzerId.MONEY_MODEL.value: "money-model-architect",
    AnalyzerId.PSYCHOLOGY.value: "psychology-optimizer",
    AnalyzerId.IMPLEMENTATION.value: "implementation-planner",
    AnalyzerId.CONSTRAINT.value: "constraint-analyzer",
    AnalyzerId.COACHING.value: "coaching-methodology",
}

DISPLAY_NAMES: Dict[str, str] = {
    AnalyzerId.OFFER.value: "Offer Analyzer",
    AnalyzerId.FINANCIAL.value: "Financial Calculator",
    AnalyzerId.MONEY_MODEL.value: "Money Model Architect",
    AnalyzerId.PSYCHOLOGY.value: "Psychology Optimizer",
    AnalyzerId.IMPLEMENTATION.value: "Implementation Planner",
    AnalyzerId.CONSTRAINT.value: "Constraint Analyzer",
    AnalyzerId.COACHING.value: "Coaching Methodology",
}


class WorkflowError(Exception):
    """A remote workflow could not be reached or returned an error status."""

    def __init__(self, workflow: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{workflow}: {message}")
        self.workflow = workflow
        self.status_code = status_code


def connection_error_analysis(analyzer: str) -> AgentAnalysis:
    """Zero-confidence placeholder for an analyzer that failed or timed out."""
    return AgentAnalysis(
        agent_type=analyzer,
        findings=[f"Error connecting to {DISPLAY_NAMES.get(analyzer, analyzer)} workflow"],
        recommendations=["Please check workflow configuration"],
        confidence=0,
    )


def invalid_response_analysis(analyzer: str) -> AgentAnalysis:
    return AgentAnalysis(
        agent_type=analyzer,
        findings=[f"Invalid response from {DISPLAY_NAMES.get(analyzer, analyzer)}"],
        recommendations=["Check workflow configuration"],
        confidence=0,
    )


class WorkflowClient:
    """Thin httpx wrapper around the workflow webhooks."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else Config.WORKFLOW_TIMEOUT

    async def call(self, workflow: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a payload to a workflow and return its JSON body.

        Raises:
            WorkflowError: on transport errors, error statuses or a non-JSON body
        """
        url = workflow_url(workflow)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            preview = e.response.text[:200] if e.response.text else ""
            logger.error(f"[Workflow] {workflow} HTTP error: {e.response.status_code} - {preview}")
            raise WorkflowError(workflow, f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"[Workflow] {workflow} transport error: {e!r}")
            raise WorkflowError(workflow, f"transport error: {e!r}") from e
        except ValueError as e:
            logger.error(f"[Workflow] {workflow} returned a non-JSON body")
            raise WorkflowError(workflow, "response is not JSON") from e

        if not isinstance(data, dict):
            raise WorkflowError(workflow, f"expected a JSON object, got {type(data).__name__}")
        return data


def request_payload(request: AnalysisRequest) -> Dict[str, Any]:
    """Wire body shared by every workflow call."""
    return {
        "query": request.query,
        "businessContext": request.business_context.model_dump(by_alias=True, exclude_none=True),
        "sessionType": request.session_type,
    }


# ============================================
# Response conversion
# ============================================

def _get(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any, default: Any) -> str:
    """Render a workflow value, substituting `default` for anything falsy."""
    if not value:
        value = default
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _status(flag: Any) -> str:
    return "Implemented" if flag else "Missing"


def _confidence(value: Any, default: float = 0) -> float:
    if not value or isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return min(max(float(value), 0), 100)


def _action_steps(plan: Any) -> List[str]:
    steps = []
    for action in plan:
        if isinstance(action, dict) and action.get("step"):
            steps.append(str(action["step"]))
        else:
            steps.append(str(action))
    return steps


def _analysis(analyzer: str, findings, recommendations, payload, confidence) -> AgentAnalysis:
    return AgentAnalysis(
        agent_type=analyzer,
        findings=findings,
        recommendations=recommendations,
        metrics=WorkflowMetrics(workflow=WORKFLOW_NAMES[analyzer], payload=payload),
        confidence=confidence,
    )


def convert_offer(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.OFFER.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    scores = analysis.get("valueEquationScores") or {}
    findings = [
        f"Value Equation Score: {_text(_get(data, 'businessInsights', 'valueEquationTotal'), 'N/A')}",
        f"Dream Outcome: {_text(scores.get('dreamOutcome'), 0)}/100",
        f"Perceived Likelihood: {_text(scores.get('perceivedLikelihood'), 0)}/100",
        f"Time Delay: {_text(scores.get('timeDelay'), 0)}/100",
        f"Effort & Sacrifice: {_text(scores.get('effortSacrifice'), 0)}/100",
    ] + _strings(analysis.get("offerStrengths"))
    recommendations = (
        _strings(_get(analysis, "implementationPriority", "immediate"))
        + _strings(analysis.get("actionableRecommendations"))
    )
    payload = {
        "valueEquationScores": analysis.get("valueEquationScores"),
        "competitiveAdvantages": analysis.get("competitiveAdvantages"),
        "expectedImpact": analysis.get("expectedImpact"),
        "implementationPriority": analysis.get("implementationPriority"),
    }
    return _analysis(analyzer, findings, recommendations[:8], payload,
                     _confidence(analysis.get("confidenceScore")))


def convert_financial(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.FINANCIAL.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    findings = [
        f"Current CFA Status: {_text(_get(analysis, 'cfaAnalysis', 'gapAnalysis'), 'Unknown')}",
        f"Advertising Level: {_text(_get(analysis, 'advertisingLevel', 'current'), 0)}",
        f"CAC: ${_text(_get(analysis, 'metricsAnalysis', 'cac'), 0)}",
        f"LTV: ${_text(_get(analysis, 'metricsAnalysis', 'ltv'), 0)}",
        f"Payback Period: {_text(_get(analysis, 'metricsAnalysis', 'paybackPeriod'), 0)} days",
    ]
    payload = {
        "cfaAnalysis": analysis.get("cfaAnalysis"),
        "advertisingLevel": analysis.get("advertisingLevel"),
        "metricsAnalysis": analysis.get("metricsAnalysis"),
    }
    return _analysis(analyzer, findings, _strings(analysis.get("optimizationRecommendations")),
                     payload, _confidence(analysis.get("confidenceScore")))


def convert_money_model(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.MONEY_MODEL.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    prongs = analysis.get("prongAnalysis") or {}
    findings = [
        f"Current Model Structure: {_text(_get(analysis, 'currentModel', 'structure'), 'Unknown')}",
        f"Attraction Offer: {_status(_get(prongs, 'attraction', 'exists'))}",
        f"Upsell Sequence: {_status(_get(prongs, 'upsell', 'exists'))}",
        f"Downsell Options: {_status(_get(prongs, 'downsell', 'exists'))}",
        f"Continuity Revenue: {_status(_get(prongs, 'continuity', 'exists'))}",
    ]
    payload = {
        "prongAnalysis": analysis.get("prongAnalysis"),
        "projectedImpact": analysis.get("projectedImpact"),
    }
    return _analysis(analyzer, findings, _strings(analysis.get("revenueOptimization")),
                     payload, _confidence(analysis.get("confidenceScore")))


def convert_psychology(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.PSYCHOLOGY.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    moments = analysis.get("upsellMoments") or {}
    findings = [
        f"Immediate Upsell: {_status(_get(moments, 'immediately', 'implemented'))}",
        f"Next Step (24-72h): {_status(_get(moments, 'nextStep', 'implemented'))}",
        f"After Big Win: {_status(_get(moments, 'afterBigWin', 'implemented'))}",
        f"Halfway Point: {_status(_get(moments, 'halfwayPoint', 'implemented'))}",
        f"Last Chance: {_status(_get(moments, 'lastChance', 'implemented'))}",
    ]
    payload = {
        "upsellMoments": analysis.get("upsellMoments"),
        "persuasionStrategy": analysis.get("persuasionStrategy"),
    }
    return _analysis(analyzer, findings, _strings(analysis.get("conversionOptimization")),
                     payload, _confidence(analysis.get("confidenceScore")))


def convert_implementation(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.IMPLEMENTATION.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    actions = analysis.get("prioritizedActions") or {}

    def bucket(name: str) -> list:
        items = actions.get(name)
        return items if isinstance(items, list) else []

    findings = [
        f"Critical Actions: {len(bucket('critical'))}",
        f"High Priority Actions: {len(bucket('high'))}",
        f"Medium Priority Actions: {len(bucket('medium'))}",
        f"Estimated Duration: {_text(_get(analysis, 'implementationRoadmap', 'phase1', 'duration'), 'Unknown')}",
    ]
    recommendations = [
        str(item.get("action"))
        for item in bucket("critical") + bucket("high")
        if isinstance(item, dict)
    ]
    payload = {
        "implementationRoadmap": analysis.get("implementationRoadmap"),
        "resourceRequirements": analysis.get("resourceRequirements"),
    }
    return _analysis(analyzer, findings, recommendations[:5], payload,
                     _confidence(analysis.get("confidenceScore")))


def convert_constraint(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.CONSTRAINT.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    findings = [
        f"Primary Constraint: {_text(analysis.get('primaryConstraint'), 'Unknown')}",
        f"Constraint Evidence: {_text(analysis.get('constraintEvidence'), 'Not provided')}",
        f"Root Cause: {_text(analysis.get('rootCause'), 'Not analyzed')}",
        f"Next Constraint: {_text(analysis.get('nextConstraint'), 'Unknown')}",
    ]
    plan = analysis.get("actionPlan")
    if isinstance(plan, list):
        recommendations = _action_steps(plan)
    else:
        recommendations = [_text(plan, "No action plan provided")]
    payload = {
        "primaryConstraint": analysis.get("primaryConstraint"),
        "applicableFrameworks": analysis.get("applicableFrameworks"),
        "expectedOutcomes": analysis.get("expectedOutcomes"),
    }
    # Workflow scores on a 0-1 scale when it omits confidenceScore
    return _analysis(analyzer, findings, recommendations[:8], payload,
                     _confidence(analysis.get("confidenceScore"), 0.8))


def convert_coaching(data: Dict[str, Any]) -> AgentAnalysis:
    analyzer = AnalyzerId.COACHING.value
    analysis = _get(data, "analysis")
    if not analysis:
        return invalid_response_analysis(analyzer)

    frameworks = _strings(analysis.get("applicableFrameworks"))
    findings = [
        f"Primary Constraint: {_text(analysis.get('primaryConstraint'), 'Unknown')}",
        f"Applied Frameworks: {', '.join(frameworks) or 'None'}",
        f'Alex Quote: "{_text(analysis.get("alexQuote"), "Focus on what moves the needle")}"',
        f"Expected Outcomes: {_text(analysis.get('expectedOutcomes'), 'Not specified')}",
    ]
    plan = analysis.get("actionPlan")
    recommendations = [_text(analysis.get("coachingResponse"), "No coaching response provided")]
    if isinstance(plan, list):
        recommendations += _action_steps(plan)
    payload = {
        "primaryConstraint": analysis.get("primaryConstraint"),
        "applicableFrameworks": analysis.get("applicableFrameworks"),
        "alexQuote": analysis.get("alexQuote"),
        "coachingResponse": analysis.get("coachingResponse"),
    }
    return _analysis(analyzer, findings, recommendations[:8], payload,
                     _confidence(analysis.get("confidenceScore"), 0.9))


CONVERTERS: Dict[str, Callable[[Dict[str, Any]], AgentAnalysis]] = {
    AnalyzerId.OFFER.value: convert_offer,
    AnalyzerId.FINANCIAL.value: convert_financial,
    AnalyzerId.MONEY_MODEL.value: convert_money_model,
    AnalyzerId.PSYCHOLOGY.value: convert_psychology,
    AnalyzerId.IMPLEMENTATION.value: convert_implementation,
    AnalyzerId.CONSTRAINT.value: convert_constraint,
    AnalyzerId.COACHING.value: convert_coaching,
}


# ============================================
# Agents
# ============================================

class WorkflowAgent(BaseAgent):
    """Runs one analyzer as a remote workflow.

    Transport failures raise WorkflowError, which the BaseAgent boundary
    turns into an Err result. A reachable workflow that answers without an
    `analysis` object yields the invalid-response placeholder instead.
    """

    def __init__(self, analyzer: AnalyzerId, client: Optional[WorkflowClient] = None,
                 diagnostic_questions: Optional[List[str]] = None):
        self._analyzer = AnalyzerId(analyzer)
        self.client = client or WorkflowClient()
        self.workflow = WORKFLOW_NAMES[self._analyzer.value]
        self.diagnostic_questions = list(diagnostic_questions or [])

    @property
    def name(self) -> str:
        return f"workflow:{self.workflow}"

    @property
    def analyzer_id(self) -> AnalyzerId:
        return self._analyzer

    def convert(self, data: Dict[str, Any]) -> AgentAnalysis:
        return CONVERTERS[self._analyzer.value](data)

    async def _run(
        self,
        task: Task,
        request: AnalysisRequest,
        prior: List[AgentAnalysis],
        trace: ExecutionTrace,
    ) -> AgentAnalysis:
        payload = request_payload(request)
        if self._analyzer == AnalyzerId.IMPLEMENTATION:
            payload["agentInputs"] = [a.model_dump(by_alias=True, mode="json") for a in prior]

        started = time.perf_counter()
        data = await self.client.call(self.workflow, payload)
        trace_workflow_call(
            trace, self.workflow, started, task_id=task.id, has_analysis=bool(data.get("analysis"))
        )
        return self.convert(data)


def parse_master_response(data: Dict[str, Any]) -> CoachingResponse:
    """Validate a master-conductor reply.

    Raises:
        WorkflowError: when the reply carries no synthesis
        pydantic.ValidationError: when analyses or action items are malformed
    """
    synthesis = data.get("synthesis")
    if not synthesis or not isinstance(synthesis, str):
        raise WorkflowError(MASTER_CONDUCTOR, "response has no synthesis")

    analyses = []
    for item in data.get("analysis") or []:
        if isinstance(item, dict) and item.get("metrics") is not None:
            item = dict(item)
            item["metrics"] = WorkflowMetrics(workflow=MASTER_CONDUCTOR, payload={"metrics": item["metrics"]})
        analyses.append(AgentAnalysis.model_validate(item))

    return CoachingResponse(
        analysis=analyses,
        synthesis=synthesis,
        action_items=[ActionItem.model_validate(item) for item in data.get("actionItems") or []],
        next_steps=_strings(data.get("nextSteps")),
        frameworks=_strings(data.get("frameworks")),
    )


async def call_master_conductor(
    client: WorkflowClient,
    request: AnalysisRequest,
    trace: Optional[ExecutionTrace] = None,
) -> CoachingResponse:
    """Run the whole coaching session remotely."""
    payload = request_payload(request)
    payload["userId"] = request.user_id

    started = time.perf_counter()
    data = await client.call(MASTER_CONDUCTOR, payload)
    if trace is not None:
        trace_workflow_call(trace, MASTER_CONDUCTOR, started)
    return parse_master_response(data)
