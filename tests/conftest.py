"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Set test environment
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-REDACTED")
os.environ.setdefault("CONDUCTOR_LOG_LEVEL", "DEBUG")

from conductor.decomposition.models import AgentType, SubTask, TaskPlan  # noqa: E402
from conductor.prompts.templates import SYNTHESIS_PROMPT  # noqa: E402


class FakeCompletion:
    """
    Scriptable completion backend.

    Sub-task requests answer ``output for {title}``; synthesis requests
    answer ``synthesized summary``. Failures are configured per title.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[AgentType, str, str]] = []
        self.always_fail: set[str] = set()
        self.transient_failures: dict[str, int] = {}
        self.synthesis_error: Exception | None = None
        self.decomposition_response = ""

    async def __call__(self, role: AgentType, system_instruction: str, user_content: str) -> str:
        self.calls.append((role, system_instruction, user_content))

        if system_instruction == SYNTHESIS_PROMPT.template:
            if self.synthesis_error is not None:
                raise self.synthesis_error
            return "synthesized summary"

        if user_content.startswith("Decompose this task:"):
            return self.decomposition_response

        title = user_content.splitlines()[0].removeprefix("## Task: ")
        if title in self.always_fail:
            raise RuntimeError(f"backend down for {title}")
        if self.transient_failures.get(title, 0) > 0:
            self.transient_failures[title] -= 1
            raise RuntimeError("transient error")
        return f"output for {title}"

    def calls_for(self, title: str) -> list[tuple[AgentType, str, str]]:
        """Sub-task requests made for a title."""
        return [c for c in self.calls if c[2].startswith(f"## Task: {title}\n")]

    @property
    def synthesis_calls(self) -> list[tuple[AgentType, str, str]]:
        """Synthesis requests made."""
        return [c for c in self.calls if c[1] == SYNTHESIS_PROMPT.template]

    @property
    def executed_titles(self) -> list[str]:
        """Titles of sub-task requests, in call order."""
        return [
            c[2].splitlines()[0].removeprefix("## Task: ")
            for c in self.calls
            if c[2].startswith("## Task: ")
        ]


@pytest.fixture
def fake_completion() -> FakeCompletion:
    """Provide a fake completion backend that always succeeds by default."""
    return FakeCompletion()


@pytest.fixture
def make_sub_task() -> Callable[..., SubTask]:
    """Provide a factory for sub-tasks titled ``Task {id}``."""

    def factory(
        task_id: str,
        depends_on: list[str] | None = None,
        agent_type: AgentType = AgentType.IMPLEMENT,
    ) -> SubTask:
        return SubTask(
            id=task_id,
            title=f"Task {task_id}",
            description=f"Description for {task_id}",
            agent_type=agent_type,
            depends_on=depends_on or [],
        )

    return factory


@pytest.fixture
def make_plan(make_sub_task: Callable[..., SubTask]) -> Callable[..., TaskPlan]:
    """Provide a factory building plans from (id, depends_on) pairs."""

    def factory(*edges: tuple[str, list[str]]) -> TaskPlan:
        return TaskPlan(
            task_id="plan-1",
            description="Ship the feature",
            sub_tasks=[make_sub_task(task_id, deps) for task_id, deps in edges],
        )

    return factory


@pytest.fixture
def diamond_plan(make_plan: Callable[..., TaskPlan]) -> TaskPlan:
    """Provide a -> (b, c) -> d, listed in reverse dependency order."""
    return make_plan(("d", ["b", "c"]), ("b", ["a"]), ("c", ["a"]), ("a", []))


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Provide a state directory inside the test's temp dir."""
    return tmp_path / ".orchestrator"


@pytest.fixture
def mock_settings() -> Generator:
    """Clear cached settings around a test."""
    from conductor.core.config import clear_settings_cache

    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def sample_decomposition() -> str:
    """Provide a model response wrapping a plan in prose."""
    return """Sure, here is the breakdown:

```json
{
  "subTasks": [
    {
      "id": "investigate",
      "title": "Investigate rate limiting options",
      "description": "Compare token bucket {burst} and sliding window approaches",
      "agentType": "research",
      "dependsOn": []
    },
    {
      "id": "build",
      "title": "Implement middleware",
      "description": "Add a middleware enforcing the chosen limits",
      "agentType": "implement",
      "dependsOn": ["investigate"]
    },
    {
      "id": "verify",
      "title": "Test middleware",
      "description": "Cover limits, bursts and reset windows",
      "agentType": "test",
      "dependsOn": ["build"]
    },
    {
      "id": "audit",
      "title": "Review the change",
      "description": "Check conventions and edge cases",
      "agentType": "review",
      "dependsOn": ["build", "verify"]
    }
  ]
}
```

Let me know if you want a different split."""


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
