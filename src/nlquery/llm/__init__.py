"""Language model gateways.

Example:
    >>> from nlquery.llm import get_gateway
    >>>
    >>> # Local Ollama server (default settings)
    >>> gateway = get_gateway(Settings.from_env())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nlquery.core.retry import RetryPolicy
from nlquery.llm.gateway import LLMGateway, to_chat_messages

if TYPE_CHECKING:
    from nlquery.config import Settings

__all__ = [
    "LLMGateway",
    "get_gateway",
    "to_chat_messages",
]


def get_gateway(settings: Settings, retry_policy: RetryPolicy | None = None) -> LLMGateway:
    """Build the OpenAI-compatible gateway described by ``settings``."""
    from nlquery.llm.openai import OpenAIGateway

    return OpenAIGateway(
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout,
        temperature=settings.llm_temperature,
        retry_policy=retry_policy or RetryPolicy(max_attempts=settings.retry_attempts),
    )
