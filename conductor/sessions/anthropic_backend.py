"""Anthropic-backed completion capability."""

from typing import Any

from anthropic import APIError, AsyncAnthropic
from loguru import logger

from conductor.core.config import Settings, get_settings
from conductor.core.exceptions import CompletionError
from conductor.decomposition.models import AgentType


class AnthropicCompletion:
    """
    Completion backend calling the Anthropic Messages API.

    The model is picked per agent role from a role -> model mapping, so a
    deployment can send research to one model and implementation to another
    without the engine knowing.

    Example:
        >>> complete = AnthropicCompletion.from_settings()
        >>> text = await complete(AgentType.RESEARCH, "You are...", "Find...")
    """

    def __init__(
        self,
        api_key: str,
        models: dict[AgentType, str] | None = None,
        default_model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 8192,
        client: Any | None = None,
    ) -> None:
        """
        Initialize the backend.

        Args:
            api_key: Anthropic API key.
            models: Optional role -> model overrides.
            default_model: Model for roles without an override.
            max_tokens: Maximum tokens per completion.
            client: Optional pre-built AsyncAnthropic client.
        """
        self.models = models or {}
        self.default_model = default_model
        self.max_tokens = max_tokens
        self._client = client or AsyncAnthropic(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AnthropicCompletion":
        """Build a backend from application settings.

        Raises:
            CompletionError: If no API key is configured.
        """
        settings = settings or get_settings()
        if settings.anthropic_api_key is None:
            raise CompletionError("ANTHROPIC_API_KEY required for orchestration")

        return cls(
            api_key=settings.anthropic_api_key.get_secret_value(),
            models={role: settings.model_for(role.value) for role in AgentType},
            default_model=settings.conductor_default_model,
            max_tokens=settings.conductor_max_tokens,
        )

    def model_for(self, role: AgentType) -> str:
        """Get the model used for a role."""
        return self.models.get(role, self.default_model)

    async def __call__(
        self,
        role: AgentType,
        system_instruction: str,
        user_content: str,
    ) -> str:
        model = self.model_for(role)
        logger.debug(f"Calling {model} for {role.value} ({len(user_content)} chars)")

        try:
            message = await self._client.messages.create(
                model=model,
                max_tokens=self.max_tokens,
                system=system_instruction,
                messages=[{"role": "user", "content": user_content}],
            )
        except APIError as e:
            raise CompletionError(f"{model} request failed: {e}") from e

        return "".join(block.text for block in message.content if block.type == "text")

    def __repr__(self) -> str:
        return f"AnthropicCompletion(default_model={self.default_model!r})"
