"""
Orchestration engine for Conductor.

This module executes a TaskPlan one sub-task at a time in dependency order,
retries a failed sub-task once, persists progress after every transition so
an interrupted run can be found and restarted, and synthesizes completed
outputs into a single summary.
"""

import asyncio
import time
from pathlib import Path

from loguru import logger

from conductor.core.exceptions import NoSavedStateError
from conductor.core.state import StateStore
from conductor.decomposition.dependency_resolver import log_graph_warnings, topological_order
from conductor.decomposition.models import (
    AgentType,
    CompleteEvent,
    ExecutionResult,
    OrchestratorState,
    ProgressCallback,
    ProgressEvent,
    SubTask,
    SubTaskCompleteEvent,
    SubTaskFailedEvent,
    SubTaskResult,
    SubTaskStartEvent,
    SubTaskStatus,
    SynthesisStartEvent,
    TaskPlan,
    utc_now,
)
from conductor.prompts.templates import (
    DEPENDENCY_CONTEXT_BLOCK,
    NO_TASKS_COMPLETED,
    SUB_TASK_REQUEST,
    SYNTHESIS_PROMPT,
    SYNTHESIS_REQUEST,
    get_agent_prompt,
)
from conductor.sessions.base import CompletionFn

# Initial attempt plus one retry.
MAX_ATTEMPTS = 2


class OrchestratorEngine:
    """
    Execute a TaskPlan sequentially through role-specific agents.

    A sub-task runs only once every dependency has completed earlier in the
    same run; otherwise it is skipped. Sub-task failures never escape
    ``execute``: after one retry the sub-task is marked failed and the run
    moves on. Only a synthesis failure propagates.

    Attributes:
        state_store: Where the run snapshot is persisted.
        retry_delay: Seconds to wait before the retry attempt.

    Example:
        >>> engine = OrchestratorEngine(complete, state_dir=".orchestrator")
        >>> result = await engine.execute(plan, on_progress=print)
        >>> print(f"Completed: {len(result.completed_sub_tasks)}")
    """

    def __init__(
        self,
        complete: CompletionFn,
        state_dir: str | Path = ".orchestrator",
        retry_delay: float = 0.0,
    ):
        """
        Initialize the engine.

        Args:
            complete: Completion capability used for sub-tasks and synthesis.
            state_dir: Directory for the resumable snapshot.
            retry_delay: Seconds to wait before retrying a failed sub-task.
        """
        self._complete = complete
        self.state_store = StateStore(state_dir)
        self.retry_delay = retry_delay

    async def execute(
        self,
        plan: TaskPlan,
        on_progress: ProgressCallback | None = None,
    ) -> ExecutionResult:
        """
        Run every sub-task of a plan, then synthesize the outputs.

        Args:
            plan: Plan to execute. Its sub-tasks are updated in place.
            on_progress: Optional synchronous progress observer.

        Returns:
            ExecutionResult with completed and failed/skipped sub-tasks.
        """
        start_time = time.monotonic()
        logger.info(f"Executing plan {plan.task_id} with {len(plan.sub_tasks)} sub-tasks")

        for sub_task in plan.sub_tasks:
            sub_task.reset()

        log_graph_warnings(plan.sub_tasks)
        ordered = topological_order(plan.sub_tasks)

        results: dict[str, SubTaskResult] = {}
        completed: list[SubTask] = []
        failed: list[SubTask] = []

        state = OrchestratorState(plan=plan, started_at=utc_now())
        self.state_store.save(state)

        for sub_task in ordered:
            if not sub_task.is_ready(results):
                unmet = [dep for dep in sub_task.depends_on if dep not in results]
                logger.warning(
                    f"Skipping sub-task {sub_task.id}: unmet dependencies {', '.join(unmet)}"
                )
                sub_task.status = SubTaskStatus.SKIPPED
                failed.append(sub_task)
                state.failed_sub_task_ids.append(sub_task.id)
                self.state_store.save(state)
                continue

            sub_task.status = SubTaskStatus.RUNNING
            state.current_sub_task_id = sub_task.id
            self.state_store.save(state)
            self._emit(on_progress, SubTaskStartEvent(sub_task=sub_task))

            dependency_context = self._build_dependency_context(sub_task, plan, results)
            result = await self._run_with_retry(sub_task, dependency_context)

            sub_task.result = result
            if result.error is None:
                sub_task.status = SubTaskStatus.COMPLETED
                results[sub_task.id] = result
                completed.append(sub_task)
                state.completed_sub_task_ids.append(sub_task.id)
                logger.info(f"Sub-task {sub_task.id} completed in {result.duration:.1f}s")
                self._emit(on_progress, SubTaskCompleteEvent(sub_task=sub_task, result=result))
            else:
                sub_task.status = SubTaskStatus.FAILED
                failed.append(sub_task)
                state.failed_sub_task_ids.append(sub_task.id)
                logger.error(f"Sub-task {sub_task.id} failed: {result.error}")
                self._emit(on_progress, SubTaskFailedEvent(sub_task=sub_task, error=result.error))

            state.current_sub_task_id = None
            self.state_store.save(state)

        self._emit(on_progress, SynthesisStartEvent())
        synthesized = await self.synthesize(completed)

        execution_result = ExecutionResult(
            task_id=plan.task_id,
            plan=plan,
            completed_sub_tasks=completed,
            failed_sub_tasks=failed,
            synthesized_result=synthesized,
            total_duration=time.monotonic() - start_time,
        )

        logger.info(
            f"Plan {plan.task_id} finished: "
            f"{len(completed)} completed, {len(failed)} failed or skipped"
        )
        self._emit(on_progress, CompleteEvent(result=execution_result))
        self.state_store.clear()

        return execution_result

    async def resume(self, on_progress: ProgressCallback | None = None) -> ExecutionResult:
        """
        Re-run the plan of an interrupted run from the beginning.

        Sub-tasks recorded as completed in the snapshot are executed again.

        Raises:
            NoSavedStateError: If no snapshot is present.
        """
        state = self.load_state()
        if state is None:
            raise NoSavedStateError("No saved orchestration state found")

        logger.info(f"Resuming plan {state.plan.task_id}: {state.plan.description[:80]}")
        return await self.execute(state.plan, on_progress)

    def load_state(self) -> OrchestratorState | None:
        """Load the snapshot of an interrupted run, if any."""
        return self.state_store.load()

    async def synthesize(self, completed_tasks: list[SubTask]) -> str:
        """
        Condense completed sub-task outputs into one summary.

        Args:
            completed_tasks: Completed sub-tasks in completion order.

        Returns:
            Summary text, or a fixed message when nothing completed.
        """
        if not completed_tasks:
            return NO_TASKS_COMPLETED

        task_outputs = "\n\n---\n\n".join(
            f"### {t.title} ({t.agent_type.value})\n"
            f"{t.result.output if t.result else 'No output'}"
            for t in completed_tasks
        )

        logger.info(f"Synthesizing {len(completed_tasks)} sub-task results")
        return await self._complete(
            AgentType.REVIEW,
            SYNTHESIS_PROMPT.format(),
            SYNTHESIS_REQUEST.format(task_outputs=task_outputs),
        )

    async def _run_with_retry(self, sub_task: SubTask, dependency_context: str) -> SubTaskResult:
        """Run a sub-task, retrying once; the returned result carries any final error."""
        start_time = time.monotonic()
        error = ""

        for attempt in range(1, MAX_ATTEMPTS + 1):
            if attempt > 1:
                logger.warning(f"Retrying sub-task {sub_task.id} (attempt {attempt}): {error}")
                if self.retry_delay:
                    await asyncio.sleep(self.retry_delay)
            try:
                return await self._execute_sub_task(sub_task, dependency_context)
            except Exception as e:
                error = str(e) or type(e).__name__

        return SubTaskResult(
            output="",
            duration=time.monotonic() - start_time,
            error=error,
        )

    async def _execute_sub_task(self, sub_task: SubTask, dependency_context: str) -> SubTaskResult:
        """Issue one completion request for a sub-task."""
        start_time = time.monotonic()

        user_message = SUB_TASK_REQUEST.format(
            title=sub_task.title,
            description=sub_task.description,
        )
        if dependency_context:
            user_message += DEPENDENCY_CONTEXT_BLOCK.format(context=dependency_context)

        logger.debug(f"Executing sub-task {sub_task.id} as {sub_task.agent_type.value}")
        output = await self._complete(
            sub_task.agent_type,
            get_agent_prompt(sub_task.agent_type).format(),
            user_message,
        )

        return SubTaskResult(output=output, duration=time.monotonic() - start_time)

    @staticmethod
    def _build_dependency_context(
        sub_task: SubTask,
        plan: TaskPlan,
        results: dict[str, SubTaskResult],
    ) -> str:
        """Render outputs of completed dependencies, in ``depends_on`` order."""
        sections = []
        for dep_id in sub_task.depends_on:
            result = results.get(dep_id)
            if result is None:
                continue
            dep_task = plan.get_sub_task(dep_id)
            title = dep_task.title if dep_task else dep_id
            sections.append(f"### {title}\n{result.output}")
        return "\n\n".join(sections)

    @staticmethod
    def _emit(on_progress: ProgressCallback | None, event: ProgressEvent) -> None:
        """Deliver a progress event; observer errors are logged, not raised."""
        if on_progress is None:
            return
        try:
            on_progress(event)
        except Exception as e:
            logger.warning(f"Progress callback error on {event.type}: {e}")

    def __repr__(self) -> str:
        return f"OrchestratorEngine(state_path={str(self.state_store.path)!r})"
