"""Language model gateway interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from nlquery.core.retry import Deadline, RetryPolicy
from nlquery.core.types import Role, Turn

logger = logging.getLogger(__name__)

TOOL_RESULT_PREFIX = "Tool result:\n"


def to_chat_messages(system: str, turns: Sequence[Turn]) -> list[dict[str, str]]:
    """Map a system context and turns onto chat-completion messages.

    Tool results are sent as user messages with a prefix, since plain chat
    endpoints have no tool role without native tool calling.
    """
    messages = [{"role": "system", "content": system}]
    for turn in turns:
        if turn.role is Role.TOOL_RESULT:
            messages.append({"role": "user", "content": TOOL_RESULT_PREFIX + turn.content})
        else:
            messages.append({"role": turn.role.value, "content": turn.content})
    return messages


class LLMGateway(ABC):
    """Stateless transport to a language model service.

    The gateway never interprets completions and never touches conversation
    memory. Transient failures are retried according to the retry policy;
    permanent ones surface on the first attempt.
    """

    def __init__(self, retry_policy: RetryPolicy | None = None, timeout: float = 30.0) -> None:
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    def complete(self, system: str, turns: Sequence[Turn], timeout: float | None = None) -> str:
        """Return the completion text for ``turns`` under ``system``.

        Args:
            system: System context string
            turns: Ordered conversation turns
            timeout: Seconds the call and its retries may take; each attempt is
                also capped by the gateway default

        Raises:
            TransportError: When the service fails permanently or retries run out
            TurnTimeoutError: When ``timeout`` runs out before a retry
        """
        deadline = Deadline(timeout) if timeout is not None else None
        messages = to_chat_messages(system, turns)

        def attempt() -> str:
            if deadline is None:
                return self._complete_once(messages, self._timeout)
            return self._complete_once(messages, min(deadline.remaining(), self._timeout))

        return self._retry.call(attempt, operation="model call", deadline=deadline)

    @abstractmethod
    def _complete_once(self, messages: list[dict[str, str]], timeout: float) -> str:
        """Perform a single request.

        Implementations raise :class:`TransportError` with ``retryable`` set
        according to the failure.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""
        ...
