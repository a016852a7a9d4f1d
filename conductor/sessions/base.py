"""
Completion capability interface for Conductor.

The decomposer and the execution engine only ever need "given a role, an
instruction and a user message, return generated text or fail". Backends
implement that as an async callable and are injected explicitly.
"""

from collections.abc import Awaitable, Callable

from conductor.decomposition.models import AgentType

# (role, system_instruction, user_content) -> generated text.
# Any transport or provider failure is raised as an exception.
CompletionFn = Callable[[AgentType, str, str], Awaitable[str]]
