"""Completion backends - the text-generation capability agents run on."""

from conductor.sessions.anthropic_backend import AnthropicCompletion
from conductor.sessions.base import CompletionFn
from conductor.sessions.dry_run import DryRunCompletion

__all__ = [
    "AnthropicCompletion",
    "CompletionFn",
    "DryRunCompletion",
]
