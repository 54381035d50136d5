"""Implementation of the LLMInterface using the OpenAI chat completions API.
"""

import logging
from typing import Any

from openai import OpenAI, APIError, APIConnectionError, APIStatusError, RateLimitError

from schedule_engine.interfaces.llm_interface import LLMInterface
from schedule_engine.core.config import Settings
from schedule_engine.core.errors import (
    ConfigurationError,
    ExternalServiceQuotaExceeded,
    ExternalServiceUnavailable,
    is_quota_error,
)

logger = logging.getLogger(__name__)

class OpenAIClient(LLMInterface):
    """Classifies commands with an OpenAI chat model in JSON response mode.

    Implements the LLMInterface protocol.
    """

    def __init__(self, settings: Settings):
        if not settings.OPENAI_API_KEY:
            raise ConfigurationError("OpenAI API key is not configured", details="Set OPENAI_API_KEY or use llm_provider=ollama.")
        self.client = OpenAI(api_key=settings.OPENAI_API_KEY)
        self.default_model = settings.OPENAI_CHAT_MODEL_NAME
        self.temperature = settings.llm_temperature
        self.max_tokens = settings.llm_max_tokens
        logger.info(f"OpenAI client initialized with model: {self.default_model}")

    def complete(self, system_prompt: str, user_text: str, model: str | None = None, **kwargs: Any) -> str:
        """Sends one system + user message pair and returns the reply text.

        Raises:
            ExternalServiceQuotaExceeded: Rate limit, insufficient quota or billing problems.
            ExternalServiceUnavailable: Any other API or connection failure.
        """
        target_model = model or self.default_model
        logger.debug(f"Sending classification request to OpenAI. Model: {target_model}")
        try:
            completion = self.client.chat.completions.create(
                model=target_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_text},
                ],
                response_format={"type": "json_object"},
                temperature=kwargs.get("temperature", self.temperature),
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
            )
        except RateLimitError as e:
            logger.error(f"OpenAI quota or rate limit hit: {e}")
            raise ExternalServiceQuotaExceeded("AI quota limit reached", details=str(e)) from e
        except APIStatusError as e:
            logger.error(f"OpenAI API returned status {e.status_code}: {e}")
            if is_quota_error(e):
                raise ExternalServiceQuotaExceeded("AI quota limit reached", details=str(e)) from e
            raise ExternalServiceUnavailable("OpenAI request failed", details=str(e)) from e
        except (APIConnectionError, APIError) as e:
            logger.error(f"Error calling OpenAI API: {e}", exc_info=True)
            raise ExternalServiceUnavailable("OpenAI request failed", details=str(e)) from e

        content = completion.choices[0].message.content or ""
        logger.debug(f"OpenAI response (first 80 chars): '{content[:80]}...'")
        return content.strip()
