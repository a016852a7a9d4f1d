"""Exceptions raised by Conductor."""


class ConductorError(Exception):
    """Base exception for Conductor errors."""

    pass


class DecompositionError(ConductorError):
    """Failed to turn a decomposition response into a task plan."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to parse decomposition: {reason}")


class CompletionError(ConductorError):
    """A completion backend failed to produce text."""

    pass


class NoSavedStateError(ConductorError):
    """No interrupted run was found to resume."""

    pass
