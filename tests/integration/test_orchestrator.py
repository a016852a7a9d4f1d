"""Integration tests for the orchestrator."""

from unittest.mock import patch

import pytest

from conductor.core.config import Settings
from conductor.core.exceptions import CompletionError, DecompositionError, NoSavedStateError
from conductor.core.orchestrator import Conductor
from conductor.core.state import StateStore
from conductor.decomposition.models import AgentType, SubTaskStatus
from conductor.sessions.anthropic_backend import AnthropicCompletion
from conductor.sessions.dry_run import DryRunCompletion


class TestConductorOrchestrator:
    """Integration tests for the Conductor orchestrator."""

    @pytest.fixture
    def conductor(self, fake_completion, sample_decomposition, state_dir) -> Conductor:
        """Create Conductor on the fake backend."""
        fake_completion.decomposition_response = sample_decomposition
        return Conductor(complete=fake_completion, state_dir=state_dir, configure_logs=False)

    @pytest.mark.asyncio
    async def test_plan(self, conductor: Conductor) -> None:
        """Test decomposition without execution."""
        plan = await conductor.plan("Add rate limiting", project_context="FastAPI service")

        assert [t.id for t in plan.sub_tasks] == ["investigate", "build", "verify", "audit"]
        assert not conductor.engine.state_store.exists()

    @pytest.mark.asyncio
    async def test_run_end_to_end(self, conductor: Conductor, fake_completion) -> None:
        """Test decompose, execute and synthesize in one call."""
        events = []

        result = await conductor.run("Add rate limiting", on_progress=events.append)

        assert [t.id for t in result.completed_sub_tasks] == [
            "investigate",
            "build",
            "verify",
            "audit",
        ]
        assert result.synthesized_result == "synthesized summary"
        assert result.plan.description == "Add rate limiting"
        assert events[-1].type == "complete"

        roles = [call[0] for call in fake_completion.calls]
        assert roles == [
            AgentType.RESEARCH,  # decomposition
            AgentType.RESEARCH,
            AgentType.IMPLEMENT,
            AgentType.TEST,
            AgentType.REVIEW,
            AgentType.REVIEW,  # synthesis
        ]
        assert conductor.load_state() is None

    @pytest.mark.asyncio
    async def test_run_with_failure_skips_dependents(
        self, conductor: Conductor, fake_completion
    ) -> None:
        """Test a failed implementation skips everything downstream."""
        fake_completion.always_fail.add("Implement middleware")

        result = await conductor.run("Add rate limiting")

        assert [t.id for t in result.completed_sub_tasks] == ["investigate"]
        assert [t.id for t in result.failed_sub_tasks] == ["build", "verify", "audit"]
        assert [t.id for t in result.skipped_sub_tasks] == ["verify", "audit"]
        assert result.synthesized_result == "synthesized summary"

    @pytest.mark.asyncio
    async def test_bad_decomposition(self, conductor: Conductor, fake_completion) -> None:
        """Test decomposition errors reach the caller before any execution."""
        fake_completion.decomposition_response = "Sorry, no plan today."

        with pytest.raises(DecompositionError):
            await conductor.run("Add rate limiting")

        assert len(fake_completion.calls) == 1

    @pytest.mark.asyncio
    async def test_resume_after_interruption(
        self, conductor: Conductor, fake_completion, state_dir
    ) -> None:
        """Test a run interrupted by a crash is found and restarted."""
        plan = await conductor.plan("Add rate limiting")
        crash_at = "Test middleware"

        async def crashing(role, system_instruction, user_content):
            if user_content.startswith(f"## Task: {crash_at}\n"):
                raise KeyboardInterrupt
            return await fake_completion(role, system_instruction, user_content)

        crashing_conductor = Conductor(complete=crashing, state_dir=state_dir, configure_logs=False)
        with pytest.raises(KeyboardInterrupt):
            await crashing_conductor.execute(plan)

        state = StateStore(state_dir).load()
        assert state is not None
        assert state.current_sub_task_id == "verify"
        assert state.completed_sub_task_ids == ["investigate", "build"]
        assert state.plan.get_sub_task("verify").status == SubTaskStatus.RUNNING

        fake_completion.calls.clear()
        result = await conductor.resume()

        assert fake_completion.executed_titles == [
            "Investigate rate limiting options",
            "Implement middleware",
            "Test middleware",
            "Review the change",
        ]
        assert len(result.completed_sub_tasks) == 4
        assert conductor.load_state() is None

    @pytest.mark.asyncio
    async def test_resume_without_state(self, conductor: Conductor) -> None:
        """Test resume with nothing to restart."""
        with pytest.raises(NoSavedStateError):
            await conductor.resume()

    @pytest.mark.asyncio
    async def test_dry_run_backend(self, state_dir) -> None:
        """Test the offline backend drives a complete run."""
        conductor = Conductor(
            complete=DryRunCompletion(),
            state_dir=state_dir,
            configure_logs=False,
        )

        result = await conductor.run("Add rate limiting")

        assert result.success
        assert result.synthesized_result.startswith("Dry run summary:")
        assert "- Review the result (review)" in result.synthesized_result

    def test_default_backend_from_settings(self, state_dir) -> None:
        """Test the Anthropic backend is built when none is injected."""
        settings = Settings(_env_file=None, conductor_retry_delay=0.5)

        conductor = Conductor(settings=settings, state_dir=state_dir, configure_logs=False)

        assert isinstance(conductor.complete, AnthropicCompletion)
        assert conductor.engine.retry_delay == 0.5

    def test_missing_api_key(self, state_dir) -> None:
        """Test construction fails without a key or backend."""
        settings = Settings(_env_file=None, anthropic_api_key=None)

        with pytest.raises(CompletionError):
            Conductor(settings=settings, state_dir=state_dir, configure_logs=False)

    def test_configures_logging_from_settings(self, state_dir, tmp_path) -> None:
        """Test logging is configured with the settings level and directory."""
        settings = Settings(
            _env_file=None,
            conductor_log_level="WARNING",
            conductor_log_dir=str(tmp_path / "logs"),
        )

        with patch("conductor.core.orchestrator.configure_logging") as mock_configure:
            Conductor(settings=settings, complete=DryRunCompletion(), state_dir=state_dir)

        mock_configure.assert_called_once_with(level="WARNING", log_dir=str(tmp_path / "logs"))
