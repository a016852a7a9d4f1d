"""Prompt management - instruction templates for decomposition, agents and synthesis."""

from conductor.prompts.templates import (
    AGENT_PROMPTS,
    DECOMPOSE_PROMPT,
    SYNTHESIS_PROMPT,
    PromptTemplate,
    get_agent_prompt,
)

__all__ = [
    "AGENT_PROMPTS",
    "DECOMPOSE_PROMPT",
    "PromptTemplate",
    "SYNTHESIS_PROMPT",
    "get_agent_prompt",
]
