"""Interface definition for Large Language Model (LLM) services.
"""

from typing import Protocol, Any, runtime_checkable


@runtime_checkable
class LLMInterface(Protocol):
    """A protocol defining the standard interface for LLM interactions.

    This ensures that different LLM backends (Ollama, OpenAI, etc.)
    can be used interchangeably by the intent service.
    """

    def complete(self, system_prompt: str, user_text: str, model: str | None = None, **kwargs: Any) -> str:
        """Generates a completion for one user message under a system prompt.

        Args:
            system_prompt: Instructions and grounding context for the model.
            user_text: The user's raw command.
            model: The specific model to use (optional, uses default if None).
            **kwargs: Additional keyword arguments for the LLM backend.

        Returns:
            The raw text of the model's reply.

        Raises:
            ExternalServiceQuotaExceeded: The provider reported exhausted quota or billing.
            ExternalServiceUnavailable: Any other provider failure.
        """
        ...
