"""Core module - Orchestrator, state persistence, configuration, and errors."""

from conductor.core.config import Settings, get_settings
from conductor.core.exceptions import (
    CompletionError,
    ConductorError,
    DecompositionError,
    NoSavedStateError,
)
from conductor.core.orchestrator import Conductor, configure_logging
from conductor.core.state import StateStore

__all__ = [
    "CompletionError",
    "Conductor",
    "ConductorError",
    "DecompositionError",
    "NoSavedStateError",
    "Settings",
    "StateStore",
    "configure_logging",
    "get_settings",
]
