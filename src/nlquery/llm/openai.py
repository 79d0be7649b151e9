"""OpenAI-compatible chat completion gateway."""

from __future__ import annotations

import openai
from openai import OpenAI

from nlquery.core.retry import RetryPolicy
from nlquery.exceptions import TransportError
from nlquery.llm.gateway import LLMGateway


class OpenAIGateway(LLMGateway):
    """Gateway for any OpenAI-compatible endpoint.

    Works with the hosted OpenAI API as well as local servers exposing the
    same protocol (Ollama, vLLM, LM Studio). Local servers accept any key.

    Example:
        >>> gateway = OpenAIGateway(model="llama3.1", base_url="http://localhost:11434/v1")
        >>> gateway.complete("You are helpful.", [Turn(role=Role.USER, content="Hi")])
    """

    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        api_key: str = "not-needed",
        timeout: float = 30.0,
        temperature: float = 0.0,
        retry_policy: RetryPolicy | None = None,
        client: OpenAI | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            model: Model identifier
            base_url: Endpoint URL (None = api.openai.com)
            api_key: Credential; a placeholder is fine for local services
            timeout: Default per-call timeout in seconds
            temperature: Sampling temperature
            retry_policy: Policy for transient failures
            client: Pre-built client (tests)
        """
        super().__init__(retry_policy=retry_policy, timeout=timeout)
        # Retries are owned by the retry policy, not the SDK.
        self._client = client or OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )
        self._model = model
        self._temperature = temperature

    @property
    def model_name(self) -> str:
        return self._model

    def _complete_once(self, messages: list[dict[str, str]], timeout: float) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self._temperature,
                timeout=timeout,
            )
        except openai.APIConnectionError as e:
            # Includes APITimeoutError.
            raise TransportError(f"Model service unreachable: {e}", retryable=True) from e
        except (openai.RateLimitError, openai.InternalServerError) as e:
            raise TransportError(
                f"Model service temporarily unavailable: {e}",
                retryable=True,
                context={"status_code": e.status_code},
            ) from e
        except openai.APIStatusError as e:
            raise TransportError(
                f"Model service rejected the request: {e}",
                retryable=e.status_code >= 500,
                context={"status_code": e.status_code},
            ) from e
        except openai.OpenAIError as e:
            raise TransportError(f"Model request failed: {e}", retryable=False) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
