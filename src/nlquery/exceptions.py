"""Custom exceptions for nlquery.

Every error carries a taxonomy ``label`` and a ``user_message()`` that is safe
to show to the end user. The raw ``message`` and ``context`` are meant for logs
and for agent consumption via ``to_dict()``; they never reach the chat output.
"""

from __future__ import annotations

from typing import Any


class NLQueryError(Exception):
    """Base exception for all nlquery errors."""

    label = "Error"
    retryable = False
    user_text = "Something went wrong while answering your question."

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict for agent consumption."""
        return {
            "error": self.label,
            "message": self.message,
            "context": self.context,
        }

    def user_message(self) -> str:
        """Human-readable message, free of internals."""
        return f"[{self.label}] {self.user_text}"


class ConfigurationError(NLQueryError):
    """Invalid or missing configuration value."""

    label = "ConfigurationError"
    user_text = "The assistant is not configured correctly."

    def user_message(self) -> str:
        """Names the offending variable, setting or file, never its value."""
        for key in ("variable", "setting", "file"):
            if key in self.context:
                return f"{super().user_message()} Check {key} '{self.context[key]}'."
        return super().user_message()


class TransportError(NLQueryError):
    """The language model service is unreachable, timed out, or refused the request."""

    label = "TransportError"
    user_text = "The language model service could not be reached. Please try again."

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.retryable = retryable


class MalformedModelOutput(NLQueryError):
    """Model output could not be decoded as a tool call.

    Never escapes the parser: it is recorded on the direct answer instead.
    """

    label = "MalformedModelOutput"


class UnknownToolError(NLQueryError):
    """The model asked for a tool that is not registered."""

    label = "UnknownTool"
    user_text = "The assistant tried to use a capability that does not exist."

    def __init__(self, tool_name: str, available_tools: list[str] | None = None) -> None:
        available = available_tools or []
        message = f"Tool '{tool_name}' is not registered. Available tools: {', '.join(available)}"
        super().__init__(message, {"tool": tool_name, "available_tools": available})
        self.tool_name = tool_name
        self.available_tools = available


class ValidationError(NLQueryError):
    """A tool parameter or query request failed validation."""

    label = "ValidationError"

    def __init__(self, field: str, reason: str) -> None:
        message = f"Invalid value for '{field}': {reason}"
        super().__init__(message, {"field": field, "reason": reason})
        self.field = field
        self.reason = reason

    def user_message(self) -> str:
        return f"[{self.label}] The request could not be answered: invalid '{self.field}'."


class ConnectionError(NLQueryError):
    """Failed to connect to the database."""

    label = "ConnectionError"
    retryable = True
    user_text = "The database is currently unreachable. Please try again later."


class QueryError(NLQueryError):
    """The database rejected a well-formed query."""

    label = "QueryError"
    user_text = "The database could not run the query for this question."


class TurnTimeoutError(NLQueryError):
    """The whole turn exceeded its time budget."""

    label = "TurnTimeout"
    user_text = "Answering took too long and was cancelled. Please try again."
