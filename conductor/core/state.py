"""Durable storage for the orchestrator run snapshot.

One JSON document per state directory. Its presence at startup means a run
was interrupted; a finished run removes it.
"""

import json
import os
import tempfile
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from conductor.decomposition.models import OrchestratorState

STATE_FILENAME = "state.json"


class StateStore:
    """
    Read and write the OrchestratorState snapshot.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a crash mid-write never leaves a truncated
    snapshot behind.

    Example:
        >>> store = StateStore(".orchestrator")
        >>> store.save(state)
        >>> store.load().plan.task_id == state.plan.task_id
        True
    """

    def __init__(self, state_dir: str | Path = ".orchestrator") -> None:
        self.state_dir = Path(state_dir)

    @property
    def path(self) -> Path:
        """Location of the snapshot file."""
        return self.state_dir / STATE_FILENAME

    def exists(self) -> bool:
        """Check whether a snapshot is present."""
        return self.path.exists()

    def save(self, state: OrchestratorState) -> None:
        """Persist the snapshot, replacing any previous one."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(state.to_dict(), indent=2, ensure_ascii=False)

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=str(self.state_dir),
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_name = f.name
                f.write(content)
            os.replace(tmp_name, self.path)
            tmp_name = None
        finally:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)

    def load(self) -> OrchestratorState | None:
        """Load the snapshot.

        Returns:
            The saved state, or None if absent or unparsable.
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return OrchestratorState.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return None

    def clear(self) -> None:
        """Delete the snapshot if present."""
        self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"StateStore(path={str(self.path)!r})"
