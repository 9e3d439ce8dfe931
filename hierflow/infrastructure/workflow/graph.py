"""LangGraph workflow - planning → enhance (→ corrective planning)* → builder(s)."""

import uuid
from collections.abc import Sequence
from typing import Literal, NamedTuple, TypedDict

import structlog
from langgraph.graph import END, START, StateGraph

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.entities.workflow_state import Phase, WorkflowState
from hierflow.domain.errors import WorkflowError
from hierflow.domain.ports.config import WorkflowConfig, WorkflowVariant
from hierflow.domain.ports.llm import LLMMessage
from hierflow.domain.ports.workflow import GenerationClient, StatusSink, StreamChunkProcessor
from hierflow.domain.services.correction_policy import CorrectionPolicy, Decision
from hierflow.domain.services.status_markers import (
    BACKEND_BUILDER,
    BUILDING_AGENT,
    ENHANCE_AGENT,
    FRONTEND_BUILDER,
    PLANNING_AGENT,
    correction_attempt_message,
)
from hierflow.infrastructure.workflow.prompts import (
    BACKEND_BUILD_REQUEST,
    BUILD_REQUEST,
    ENHANCE_AGENT_PROMPT,
    FRONTEND_BUILD_REQUEST,
    PLANNING_AGENT_PROMPT,
    REVIEW_REQUEST,
    build_context,
    correction_request,
)
from hierflow.infrastructure.workflow.status import StatusEmitter
from hierflow.infrastructure.workflow.step_executor import StepContext, run_step

log = structlog.get_logger()


class EngineState(TypedDict, total=False):
    """State passed between graph nodes."""

    workflow: WorkflowState
    plan: str  # Latest Planner output
    review: str  # Latest Enhancer output
    builds: list[str]  # Outputs of finished Builder sub-phases, in order
    phase: Phase


class BuilderPhase(NamedTuple):
    """One Builder sub-phase: status label and the user turn that starts it."""

    agent: str
    request: str


BUILDER_PHASES: dict[WorkflowVariant, tuple[BuilderPhase, ...]] = {
    WorkflowVariant.THREE_PHASE: (BuilderPhase(BUILDING_AGENT, BUILD_REQUEST),),
    WorkflowVariant.FOUR_PHASE: (
        BuilderPhase(BACKEND_BUILDER, BACKEND_BUILD_REQUEST),
        BuilderPhase(FRONTEND_BUILDER, FRONTEND_BUILD_REQUEST),
    ),
}


def _builder_node(index: int) -> str:
    return f"{Phase.BUILDING.value}_{index}"


def _recursion_limit(config: WorkflowConfig) -> int:
    """Upper bound on node executions: plan + enhance per cycle, then the builders."""
    return 2 * (config.max_retries + 1) + len(BUILDER_PHASES[config.variant]) + 5


def build_workflow_graph(
    history: Sequence[LLMMessage],
    builder_instruction: str,
    ctx: StepContext,
    policy: CorrectionPolicy,
) -> StateGraph:
    """Build workflow graph with injected dependencies.

    Every conditional edge checks the cancellation signal first, so no phase
    starts once the run is cancelled.
    """
    history = tuple(history)
    builders = BUILDER_PHASES[ctx.config.variant]

    def _cancelled(state: EngineState, before: Phase) -> bool:
        if ctx.cancellation.is_cancelled:
            after = state.get("phase")
            log.info(
                "workflow_cancelled",
                after=after.value if after else None,
                before=before.value,
                reason=ctx.cancellation.reason,
                request_id=ctx.request_id,
            )
            return True
        return False

    async def planning_node(state: EngineState) -> EngineState:
        plan, workflow = await run_step(
            PLANNING_AGENT,
            PLANNING_AGENT_PROMPT,
            history,
            state["workflow"],
            ctx,
        )
        return {**state, "workflow": workflow, "plan": plan, "phase": Phase.PLANNING}

    async def enhancing_node(state: EngineState) -> EngineState:
        messages = [
            *history,
            LLMMessage(role="assistant", content=state["plan"]),
            LLMMessage(role="user", content=REVIEW_REQUEST),
        ]
        review, workflow = await run_step(
            ENHANCE_AGENT,
            ENHANCE_AGENT_PROMPT,
            messages,
            state["workflow"],
            ctx,
        )
        return {**state, "workflow": workflow, "review": review, "phase": Phase.ENHANCING}

    async def correcting_plan_node(state: EngineState) -> EngineState:
        workflow = state["workflow"].next_retry()
        messages = [
            *history,
            LLMMessage(role="assistant", content=state["plan"]),
            LLMMessage(role="user", content=correction_request(state["review"])),
        ]
        plan, workflow = await run_step(
            PLANNING_AGENT,
            PLANNING_AGENT_PROMPT,
            messages,
            workflow,
            ctx,
            status_message=correction_attempt_message(workflow.retry_count),
        )
        return {**state, "workflow": workflow, "plan": plan, "phase": Phase.CORRECTING_PLAN}

    def make_building_node(index: int):
        async def building_node(state: EngineState) -> EngineState:
            builds = state.get("builds", [])
            messages = [
                *history,
                LLMMessage(role="assistant", content=build_context(state["plan"], state["review"])),
            ]
            # Later Builders see the earlier sub-phases as a continued conversation
            for done, output in zip(builders, builds):
                messages.append(LLMMessage(role="user", content=done.request))
                messages.append(LLMMessage(role="assistant", content=output))
            messages.append(LLMMessage(role="user", content=builders[index].request))
            output, workflow = await run_step(
                builders[index].agent,
                builder_instruction,
                messages,
                state["workflow"],
                ctx,
                status_message="Writing code...",
            )
            return {
                **state,
                "workflow": workflow,
                "builds": [*builds, output],
                "phase": Phase.BUILDING,
            }

        return building_node

    def route_start(state: EngineState) -> Literal["end", "plan"]:
        return "end" if _cancelled(state, Phase.PLANNING) else "plan"

    def route_after_plan(state: EngineState) -> Literal["end", "enhance"]:
        return "end" if _cancelled(state, Phase.ENHANCING) else "enhance"

    def route_after_review(state: EngineState) -> Literal["end", "correct", "build"]:
        workflow = state["workflow"]
        review = state.get("review", "")
        decision = policy.decide(review, workflow.retry_count, ctx.config.max_retries)
        if decision is Decision.RETRY:
            log.info(
                "plan_rejected",
                retry_count=workflow.retry_count,
                max_retries=ctx.config.max_retries,
                request_id=ctx.request_id,
            )
            return "end" if _cancelled(state, Phase.CORRECTING_PLAN) else "correct"
        if policy.has_critical_issues(review):
            log.warning(
                "correction_budget_exhausted",
                retry_count=workflow.retry_count,
                request_id=ctx.request_id,
            )
        return "end" if _cancelled(state, Phase.BUILDING) else "build"

    def make_route_after_build(index: int):
        def route_after_build(state: EngineState) -> Literal["end", "next"]:
            if index + 1 >= len(builders) or _cancelled(state, Phase.BUILDING):
                return "end"
            return "next"

        return route_after_build

    builder = StateGraph(EngineState)
    builder.add_node(Phase.PLANNING.value, planning_node)
    builder.add_node(Phase.ENHANCING.value, enhancing_node)
    builder.add_node(Phase.CORRECTING_PLAN.value, correcting_plan_node)
    for index in range(len(builders)):
        builder.add_node(_builder_node(index), make_building_node(index))

    builder.add_conditional_edges(
        START,
        route_start,
        path_map={"end": END, "plan": Phase.PLANNING.value},
    )
    for planner in (Phase.PLANNING.value, Phase.CORRECTING_PLAN.value):
        builder.add_conditional_edges(
            planner,
            route_after_plan,
            path_map={"end": END, "enhance": Phase.ENHANCING.value},
        )
    builder.add_conditional_edges(
        Phase.ENHANCING.value,
        route_after_review,
        path_map={
            "end": END,
            "correct": Phase.CORRECTING_PLAN.value,
            "build": _builder_node(0),
        },
    )
    for index in range(len(builders)):
        path_map = {"end": END}
        if index + 1 < len(builders):
            path_map["next"] = _builder_node(index + 1)
        builder.add_conditional_edges(
            _builder_node(index),
            make_route_after_build(index),
            path_map=path_map,
        )

    return builder


class WorkflowEngine:
    """Runs the Planner / Enhancer / Builder workflow for one request at a time.

    The engine holds no per-run state; each run() builds a fresh graph and
    WorkflowState, so one engine may serve concurrent runs as long as the
    collaborators allow it.
    """

    def __init__(
        self,
        client: GenerationClient,
        processor: StreamChunkProcessor,
        sink: StatusSink,
        policy: CorrectionPolicy | None = None,
    ) -> None:
        self._client = client
        self._processor = processor
        self._sink = sink
        self._policy = policy or CorrectionPolicy()

    async def run(
        self,
        history: Sequence[LLMMessage],
        builder_instruction: str,
        config: WorkflowConfig,
        cancellation: CancellationSignal,
    ) -> str:
        """Run all phases and return the accumulated response.

        Cancellation returns the partial response without error. A
        GenerationError propagates unchanged; the sink already holds the last
        snapshot.
        """
        if not history:
            raise ValueError("history must contain at least one message")

        ctx = StepContext(
            client=self._client,
            processor=self._processor,
            emitter=StatusEmitter(self._sink),
            cancellation=cancellation,
            config=config,
            request_id=str(uuid.uuid4()),
        )
        graph = build_workflow_graph(history, builder_instruction, ctx, self._policy).compile()
        initial: EngineState = {"workflow": WorkflowState(), "builds": []}

        log.info(
            "workflow_start",
            request_id=ctx.request_id,
            variant=config.variant.value,
            max_retries=config.max_retries,
            model=config.model,
        )
        try:
            final = await graph.ainvoke(initial, config={"recursion_limit": _recursion_limit(config)})
        except WorkflowError as e:
            log.error("workflow_failed", request_id=ctx.request_id, error=str(e))
            raise

        workflow: WorkflowState = final["workflow"]
        last_phase = final.get("phase")
        log.info(
            "workflow_done",
            request_id=ctx.request_id,
            last_phase=last_phase.value if last_phase else None,
            cancelled=cancellation.is_cancelled,
            retries=workflow.retry_count,
            total_chars=len(workflow.full_response),
        )
        return workflow.full_response
