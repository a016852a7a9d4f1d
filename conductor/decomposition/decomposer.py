"""Ticket decomposer - breaks high-level tasks into agent-sized sub-tasks."""

from typing import Any

from loguru import logger
from pydantic import ValidationError

from conductor.core.exceptions import DecompositionError
from conductor.decomposition.models import (
    AgentType,
    SubTask,
    SubTaskStatus,
    TaskPlan,
    short_id,
    utc_now,
)
from conductor.decomposition.parser import extract_json_object
from conductor.prompts.templates import (
    DECOMPOSE_PROMPT,
    DECOMPOSE_REQUEST,
    PROJECT_CONTEXT_BLOCK,
)
from conductor.sessions.base import CompletionFn


class TicketDecomposer:
    """
    Turn a natural-language task into a TaskPlan.

    Sends a single completion request and normalizes whatever sub-task list
    comes back. There is no retry here: callers decide whether to decompose
    again after a DecompositionError.

    Example:
        >>> decomposer = TicketDecomposer(complete)
        >>> plan = await decomposer.decompose("Add rate limiting to the API")
        >>> [t.agent_type.value for t in plan.sub_tasks]
        ['research', 'implement', 'test', 'review']
    """

    def __init__(self, complete: CompletionFn) -> None:
        """
        Initialize the decomposer.

        Args:
            complete: Completion capability used for the decomposition request.
        """
        self._complete = complete

    async def decompose(
        self,
        task_description: str,
        project_context: str | None = None,
    ) -> TaskPlan:
        """
        Decompose a task description into sub-tasks.

        Args:
            task_description: Natural language task.
            project_context: Optional context appended to the instruction.

        Returns:
            TaskPlan with every sub-task pending.

        Raises:
            DecompositionError: If the response holds no usable sub-task list.
        """
        system_instruction = DECOMPOSE_PROMPT.format()
        if project_context:
            system_instruction += PROJECT_CONTEXT_BLOCK.format(project_context=project_context)

        logger.info("Decomposing task into sub-tasks")
        logger.debug(f"Task: {task_description[:200]}")

        text = await self._complete(
            AgentType.RESEARCH,
            system_instruction,
            DECOMPOSE_REQUEST.format(task=task_description),
        )

        plan = self.parse_response(text, task_description)
        logger.info(f"Decomposed into {len(plan.sub_tasks)} sub-tasks")
        return plan

    def parse_response(self, text: str, original_task: str) -> TaskPlan:
        """
        Build a TaskPlan from raw model output.

        Args:
            text: Model response, possibly with prose around the JSON.
            original_task: Task text kept on the plan.

        Returns:
            Normalized TaskPlan.

        Raises:
            DecompositionError: If no JSON object is found, it cannot be
                decoded, or it lacks a ``subTasks`` array.
        """
        try:
            parsed = extract_json_object(text)
        except ValueError as e:
            logger.debug(f"Unparsable decomposition response: {text[:500]}")
            raise DecompositionError(str(e)) from e

        raw_sub_tasks = parsed.get("subTasks")
        if not isinstance(raw_sub_tasks, list):
            raise DecompositionError("No subTasks array")

        sub_tasks = []
        for entry in raw_sub_tasks:
            if not isinstance(entry, dict):
                logger.warning(f"Ignoring non-object sub-task entry: {entry!r}")
                continue
            sub_tasks.append(self._to_sub_task(entry))

        try:
            return TaskPlan(
                task_id=short_id(12),
                description=original_task,
                sub_tasks=sub_tasks,
                created_at=utc_now(),
            )
        except ValidationError as e:
            raise DecompositionError(str(e.errors()[0]["msg"])) from e

    @staticmethod
    def _to_sub_task(entry: dict[str, Any]) -> SubTask:
        """Normalize one decoded sub-task entry, filling defaults."""
        depends_on = entry.get("dependsOn")

        return SubTask(
            id=str(entry.get("id") or short_id()),
            title=str(entry.get("title") or "Untitled"),
            description=str(entry.get("description") or ""),
            agent_type=AgentType.coerce(entry.get("agentType")),
            depends_on=[str(dep) for dep in depends_on] if isinstance(depends_on, list) else [],
            status=SubTaskStatus.PENDING,
        )
