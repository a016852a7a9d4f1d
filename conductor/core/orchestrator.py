"""Main Conductor orchestrator - wires decomposition and execution together.

This module provides the primary interface for running Conductor: it loads
settings, configures logging, builds the completion backend, and exposes
plan / run / resume on top of the decomposer and execution engine.
"""

import sys
from pathlib import Path

from loguru import logger

from conductor.core.config import Settings, get_settings
from conductor.core.exceptions import (
    CompletionError,
    ConductorError,
    DecompositionError,
    NoSavedStateError,
)
from conductor.decomposition.decomposer import TicketDecomposer
from conductor.decomposition.executor import OrchestratorEngine
from conductor.decomposition.models import (
    ExecutionResult,
    OrchestratorState,
    ProgressCallback,
    TaskPlan,
)
from conductor.sessions.anthropic_backend import AnthropicCompletion
from conductor.sessions.base import CompletionFn

__all__ = [
    "CompletionError",
    "Conductor",
    "ConductorError",
    "DecompositionError",
    "NoSavedStateError",
    "configure_logging",
]

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", log_dir: str | Path | None = "logs") -> None:
    """Configure loguru sinks.

    Args:
        level: Minimum level for both sinks.
        log_dir: Directory for the daily rotating log file; None disables it.
    """
    logger.remove()  # Remove default handler

    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)

    if log_dir is not None:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(logs_path / "conductor_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="7 days",
            level=level,
            format=LOG_FORMAT,
        )


# =============================================================================
# MAIN ORCHESTRATOR
# =============================================================================


class Conductor:
    """
    Main Conductor orchestrator class.

    Coordinates the pipeline from task description to synthesized result:
    1. Decompose the task into typed sub-tasks
    2. Order sub-tasks by dependency
    3. Execute each sub-task through its agent role, retrying once
    4. Persist progress so an interrupted run can be restarted
    5. Synthesize completed outputs

    Example:
        >>> conductor = Conductor()
        >>> result = await conductor.run("Add rate limiting to the public API")
        >>> print(result.synthesized_result)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        complete: CompletionFn | None = None,
        state_dir: str | Path | None = None,
        configure_logs: bool = True,
    ) -> None:
        """Initialize Conductor.

        Args:
            settings: Optional settings override. Uses default if not provided.
            complete: Optional completion backend. Uses Anthropic if not provided.
            state_dir: Optional state directory. Uses CONDUCTOR_STATE_DIR if not provided.
            configure_logs: Whether to (re)configure loguru sinks from settings.

        Raises:
            CompletionError: If no backend is given and no API key is configured.
        """
        self.settings = settings or get_settings()

        if configure_logs:
            configure_logging(
                level=self.settings.conductor_log_level,
                log_dir=self.settings.conductor_log_dir,
            )

        self.complete = complete or AnthropicCompletion.from_settings(self.settings)
        self.state_dir = Path(state_dir or self.settings.conductor_state_dir)

        self.decomposer = TicketDecomposer(self.complete)
        self.engine = OrchestratorEngine(
            self.complete,
            state_dir=self.state_dir,
            retry_delay=self.settings.conductor_retry_delay,
        )

    async def plan(self, task: str, project_context: str | None = None) -> TaskPlan:
        """
        Decompose a task without executing it.

        Raises:
            DecompositionError: If the decomposition response is unusable.
        """
        return await self.decomposer.decompose(task, project_context)

    async def run(
        self,
        task: str,
        project_context: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ExecutionResult:
        """
        Decompose and execute a task.

        Args:
            task: Natural language task description.
            project_context: Optional project context for decomposition.
            on_progress: Optional progress observer.

        Returns:
            ExecutionResult of the run.
        """
        plan = await self.plan(task, project_context)
        logger.info(f"{len(plan.sub_tasks)} sub-tasks planned. Executing...")
        return await self.engine.execute(plan, on_progress)

    async def execute(
        self,
        plan: TaskPlan,
        on_progress: ProgressCallback | None = None,
    ) -> ExecutionResult:
        """Execute an existing plan."""
        return await self.engine.execute(plan, on_progress)

    async def resume(self, on_progress: ProgressCallback | None = None) -> ExecutionResult:
        """
        Restart the plan of an interrupted run.

        Raises:
            NoSavedStateError: If no interrupted run is recorded.
        """
        return await self.engine.resume(on_progress)

    def load_state(self) -> OrchestratorState | None:
        """Get the snapshot of an interrupted run, if any."""
        return self.engine.load_state()

    def __repr__(self) -> str:
        return f"Conductor(state_dir={str(self.state_dir)!r}, complete={self.complete!r})"
