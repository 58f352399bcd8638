"""
LLM Provider Abstraction Layer

Unified interface for LLM calls using LiteLLM. The model is a LiteLLM model
string (default const.QA_MODEL, e.g. "gemini/gemini-2.5-flash"), so switching
to another vendor is a configuration change.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

# Standard library imports
import logging
import os
from typing import Any

# Third-party imports
import litellm
from litellm import acompletion

# Local application imports
import constants as const


# Get a logger instance
logger = logging.getLogger(__name__)

# Configure LiteLLM
litellm.set_verbose = False  # Set to True for debugging


class LLMProvider:
    """
    Unified LLM provider using LiteLLM.

    Handles:
    - Model selection (explicit or const.QA_MODEL)
    - API key management for the model's vendor
    - System prompt placement
    """

    def __init__(self, model: str | None = None):
        """
        Initialize LLM provider.

        Args:
            model: LiteLLM model string (if None, uses const.QA_MODEL)
        """
        self.litellm_model = model or const.QA_MODEL
        self.provider = self.litellm_model.split("/", 1)[0] if "/" in self.litellm_model else "openai"

        self._configure_provider()

        logger.info(f"LLM Provider initialized: litellm_model={self.litellm_model}, provider={self.provider}")

    def _configure_provider(self) -> None:
        """Configure provider-specific settings (API keys)."""
        if self.provider == "gemini":
            if not const.GEMINI_API_KEY:
                raise ValueError("GEMINI_API_KEY not set in environment")
            os.environ["GEMINI_API_KEY"] = const.GEMINI_API_KEY

    async def acompletion(
        self,
        messages: list[dict[str, Any]],
        system: str | None = None,
        max_tokens: int = const.QA_MAX_TOKENS,
        temperature: float = const.QA_TEMPERATURE
    ) -> Any:
        """
        Async completion call using LiteLLM.

        Args:
            messages: Conversation messages in OpenAI format
            system: System prompt (prepended as a system message)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature (0.0-1.0)

        Returns:
            LiteLLM completion response
        """
        try:
            if system:
                messages = [{"role": "system", "content": system}] + messages

            params = {
                "model": self.litellm_model,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": temperature
            }

            # Log request (abbreviated)
            logger.info(f"LLM request: model={self.litellm_model}, messages={len(messages)}")

            response = await acompletion(**params)

            logger.info(f"LLM response received: finish_reason={response.choices[0].finish_reason}")
            return response

        except Exception as e:
            logger.error(f"Error in LLM completion: {e}", exc_info=True)
            raise


def response_text(response: Any) -> str:
    """Text of the first choice, or '' when the model returned nothing."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError):
        return ""
    return str(content or "").strip()


def create_llm_provider(model: str | None = None) -> LLMProvider:
    """
    Factory function to create LLMProvider instance.

    Args:
        model: Override LiteLLM model string

    Returns:
        LLMProvider instance
    """
    return LLMProvider(model=model)
