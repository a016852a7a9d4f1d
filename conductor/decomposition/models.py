"""Pydantic models for task decomposition and orchestration.

This module defines the data structures shared by the decomposer and the
execution engine: agent roles, sub-tasks, task plans, the persisted
orchestrator state, execution results, and progress events.

All models serialize with camelCase aliases so the on-disk state document
keeps the same shape as the JSON the decomposer reads from the model.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def short_id(length: int = 8) -> str:
    """Generate a short random identifier."""
    return uuid4().hex[:length]


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENUMS
# =============================================================================


class AgentType(str, Enum):
    """Behavioral role applied to a sub-task's completion request."""

    RESEARCH = "research"
    IMPLEMENT = "implement"
    TEST = "test"
    REVIEW = "review"

    @classmethod
    def coerce(cls, value: Any) -> "AgentType":
        """Map any raw value to a known role, defaulting to IMPLEMENT.

        Args:
            value: Raw role value, typically decoded from model output.

        Returns:
            The matching AgentType, or IMPLEMENT if unrecognized.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.IMPLEMENT


class SubTaskStatus(str, Enum):
    """Execution status of a sub-task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


# =============================================================================
# SUB-TASKS AND PLANS
# =============================================================================


class SubTaskResult(CamelModel):
    """Output of a finished sub-task."""

    output: str = Field(default="", description="Text produced by the agent")
    duration: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock duration in seconds",
    )
    error: str | None = Field(default=None, description="Error message, if failed")
    artifacts: list[str] = Field(
        default_factory=list,
        description="Paths or references produced by the agent",
    )


class SubTask(CamelModel):
    """Atomic unit of agent work within a plan.

    Example:
        >>> task = SubTask(
        ...     id="impl",
        ...     title="Add login endpoint",
        ...     description="POST /login returning a session token",
        ...     agent_type=AgentType.IMPLEMENT,
        ...     depends_on=["research"],
        ... )
        >>> task.is_ready({})
        False
    """

    id: str = Field(default_factory=short_id, min_length=1)
    title: str = Field(default="Untitled")
    description: str = Field(default="")
    agent_type: AgentType = Field(default=AgentType.IMPLEMENT)
    depends_on: list[str] = Field(default_factory=list)
    status: SubTaskStatus = Field(default=SubTaskStatus.PENDING)
    result: SubTaskResult | None = None

    def is_ready(self, results: dict[str, SubTaskResult]) -> bool:
        """Check whether every dependency has a recorded result.

        Args:
            results: Sub-task ID -> result for sub-tasks completed in this run.

        Returns:
            True if all dependencies are present in results.
        """
        return all(dep in results for dep in self.depends_on)

    def reset(self) -> None:
        """Return the sub-task to its initial pending state."""
        self.status = SubTaskStatus.PENDING
        self.result = None


class TaskPlan(CamelModel):
    """Decomposition output: an ordered set of sub-tasks.

    The order of ``sub_tasks`` is the decomposer's suggestion and is not
    necessarily a valid execution order.
    """

    task_id: str = Field(default_factory=lambda: short_id(12))
    description: str = Field(default="", description="Original task text")
    sub_tasks: list[SubTask] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("sub_tasks")
    @classmethod
    def validate_unique_ids(cls, v: list[SubTask]) -> list[SubTask]:
        """Ensure sub-task IDs are unique within the plan."""
        seen: set[str] = set()
        for sub_task in v:
            if sub_task.id in seen:
                raise ValueError(f"Duplicate sub-task id: {sub_task.id}")
            seen.add(sub_task.id)
        return v

    def get_sub_task(self, sub_task_id: str) -> SubTask | None:
        """Get a sub-task by ID."""
        for sub_task in self.sub_tasks:
            if sub_task.id == sub_task_id:
                return sub_task
        return None


# =============================================================================
# EXECUTION STATE AND RESULTS
# =============================================================================


class OrchestratorState(CamelModel):
    """Durable snapshot of an in-flight run."""

    plan: TaskPlan
    current_sub_task_id: str | None = None
    completed_sub_task_ids: list[str] = Field(default_factory=list)
    failed_sub_task_ids: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)


class ExecutionResult(CamelModel):
    """Final report of one execute call."""

    task_id: str
    plan: TaskPlan
    completed_sub_tasks: list[SubTask] = Field(default_factory=list)
    failed_sub_tasks: list[SubTask] = Field(
        default_factory=list,
        description="Failed and skipped sub-tasks, in visit order",
    )
    synthesized_result: str = ""
    total_duration: float = Field(default=0.0, description="Seconds")

    @property
    def skipped_sub_tasks(self) -> list[SubTask]:
        """Sub-tasks that never ran because a dependency was unmet."""
        return [t for t in self.failed_sub_tasks if t.status == SubTaskStatus.SKIPPED]

    @property
    def success(self) -> bool:
        """True when no sub-task failed or was skipped."""
        return not self.failed_sub_tasks


# =============================================================================
# PROGRESS EVENTS
# =============================================================================


class SubTaskStartEvent(CamelModel):
    type: Literal["subtask_start"] = "subtask_start"
    sub_task: SubTask


class SubTaskCompleteEvent(CamelModel):
    type: Literal["subtask_complete"] = "subtask_complete"
    sub_task: SubTask
    result: SubTaskResult


class SubTaskFailedEvent(CamelModel):
    type: Literal["subtask_failed"] = "subtask_failed"
    sub_task: SubTask
    error: str


class SynthesisStartEvent(CamelModel):
    type: Literal["synthesis_start"] = "synthesis_start"


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    result: ExecutionResult


ProgressEvent = Annotated[
    SubTaskStartEvent
    | SubTaskCompleteEvent
    | SubTaskFailedEvent
    | SynthesisStartEvent
    | CompleteEvent,
    Field(discriminator="type"),
]

ProgressCallback = Callable[[ProgressEvent], None]
