"""
Offline completion backend for dry runs.

Produces deterministic text without any network access, which is useful
for exercising decomposition parsing, ordering and state handling locally.
"""

import asyncio
import json

from loguru import logger

from conductor.decomposition.models import AgentType
from conductor.prompts.templates import DECOMPOSE_PROMPT, SYNTHESIS_PROMPT

DRY_RUN_PLAN = {
    "subTasks": [
        {
            "id": "research",
            "title": "Investigate requirements",
            "description": "Collect constraints and prior art for: {task}",
            "agentType": "research",
            "dependsOn": [],
        },
        {
            "id": "implement",
            "title": "Implement the change",
            "description": "Make the change described by: {task}",
            "agentType": "implement",
            "dependsOn": ["research"],
        },
        {
            "id": "test",
            "title": "Cover the change with tests",
            "description": "Write tests for the implementation",
            "agentType": "test",
            "dependsOn": ["implement"],
        },
        {
            "id": "review",
            "title": "Review the result",
            "description": "Review implementation and tests",
            "agentType": "review",
            "dependsOn": ["implement", "test"],
        },
    ]
}


class DryRunCompletion:
    """
    Completion backend that simulates model output.

    Decomposition requests get a fixed four-step plan, synthesis requests a
    short digest, and sub-task requests an echo of their title.

    Attributes:
        delay: Simulated latency per call in seconds.
        calls: Recorded (role, user_content) pairs.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[tuple[AgentType, str]] = []

    async def __call__(
        self,
        role: AgentType,
        system_instruction: str,
        user_content: str,
    ) -> str:
        self.calls.append((role, user_content))
        if self.delay:
            await asyncio.sleep(self.delay)

        if system_instruction.startswith(DECOMPOSE_PROMPT.template):
            task = user_content.split("\n\n", 1)[-1]
            plan = json.loads(json.dumps(DRY_RUN_PLAN))
            for entry in plan["subTasks"]:
                entry["description"] = entry["description"].replace("{task}", task)
            return json.dumps(plan, indent=2)

        if system_instruction == SYNTHESIS_PROMPT.template:
            titles = [line[4:] for line in user_content.splitlines() if line.startswith("### ")]
            return "Dry run summary:\n" + "\n".join(f"- {title}" for title in titles)

        title = user_content.splitlines()[0].removeprefix("## Task: ") if user_content else ""
        logger.debug(f"Simulating {role.value} output for: {title}")
        return f"Dry run output for {title}"
