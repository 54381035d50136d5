"""Implementation of the LLMInterface using the Ollama API.
"""

import logging
import httpx
import ollama
from typing import Any

from schedule_engine.interfaces.llm_interface import LLMInterface
from schedule_engine.core.config import Settings
from schedule_engine.core.errors import ExternalServiceQuotaExceeded, ExternalServiceUnavailable

logger = logging.getLogger(__name__)

class OllamaClient(LLMInterface):
    """Connects to a local Ollama instance to classify commands.

    Implements the LLMInterface protocol.
    """

    def __init__(self, settings: Settings):
        """Initializes the Ollama client.

        Args:
            settings: The application settings containing Ollama configuration.
        """
        self.host = settings.ollama_base_url
        self.client = ollama.Client(host=self.host)
        self.default_model = settings.default_model
        self.temperature = settings.llm_temperature
        self.max_tokens = settings.llm_max_tokens
        logger.info(f"Ollama client initialized for host: {settings.ollama_base_url}")

    def complete(self, system_prompt: str, user_text: str, model: str | None = None, **kwargs: Any) -> str:
        """Generates a JSON reply using the Ollama /api/chat endpoint.

        Args:
            system_prompt: Instructions for the model.
            user_text: The user's command.
            model: The model to use (defaults to settings.default_model).
            **kwargs: Extra entries merged into the ollama options (e.g., temperature).

        Returns:
            The assistant message content.

        Raises:
            ExternalServiceQuotaExceeded: Ollama answered with HTTP 429.
            ExternalServiceUnavailable: Any other Ollama or connection error.
        """
        target_model = model or self.default_model
        options = {"temperature": self.temperature, "num_predict": self.max_tokens}
        options.update(kwargs.get("options", {}))
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_text},
        ]

        try:
            logger.debug(f"Classifying with model '{target_model}'. Text: '{user_text[:50]}...'")
            response = self.client.chat(
                model=target_model,
                messages=messages,
                format="json",
                options=options,
                stream=False # Ensure we get the full response
            )
        except ollama.ResponseError as e:
            logger.error(f"Ollama API error during classification: {e.status_code} - {e.error}")
            if e.status_code == 429:
                raise ExternalServiceQuotaExceeded("Ollama rate limit exceeded", details=str(e.error)) from e
            raise ExternalServiceUnavailable("Ollama request failed", details=str(e.error)) from e
        except (ConnectionError, httpx.HTTPError) as e:
            logger.error(f"Could not reach Ollama at {self.host}: {e}")
            raise ExternalServiceUnavailable("Ollama is not reachable", details=str(e)) from e

        assistant_message = response.get('message', {})
        content = (assistant_message.get('content') or '').strip()
        logger.debug(f"Ollama response (first 80 chars): '{content[:80]}...'")
        return content
