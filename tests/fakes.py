"""Test doubles shared across the unit tests."""

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Connection

from nlquery.core.connection import DatabaseConnection
from nlquery.core.retry import RetryPolicy
from nlquery.core.types import Turn
from nlquery.exceptions import ConnectionError
from nlquery.llm.gateway import LLMGateway

PRODUCTS_SCHEMA = {
    "tables": {
        "products": {
            "description": "Items in the shop",
            "columns": {
                "id": "integer",
                "name": "string",
                "brand": "string",
                "category": "string",
                "price": "numeric",
                "stock": "integer",
            },
        }
    }
}


def no_sleep_policy(max_attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, sleep=lambda _: None)


class CountingConnection(DatabaseConnection):
    """Counts store round trips."""

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.round_trips = 0

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        self.round_trips += 1
        with super().connect() as conn:
            yield conn


class RefusingConnection(DatabaseConnection):
    """A store that refuses every connection."""

    def __init__(self) -> None:
        super().__init__("sqlite:///:memory:")
        self.attempts = 0

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        self.attempts += 1
        raise ConnectionError("connection refused")
        yield  # pragma: no cover


class ScriptedGateway(LLMGateway):
    """Returns queued completions in order and records every call.

    A queued exception is raised instead of returned; a queued callable is
    called and its return value used.
    """

    def __init__(self, *responses: str | Exception | Callable[[], str]) -> None:
        super().__init__(retry_policy=no_sleep_policy(), timeout=30.0)
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.attempts = 0

    @property
    def model_name(self) -> str:
        return "scripted"

    def complete(self, system: str, turns: Sequence[Turn], timeout: float | None = None) -> str:
        self.calls.append({"system": system, "turns": list(turns), "timeout": timeout})
        return super().complete(system, turns, timeout)

    def _complete_once(self, messages: list[dict[str, str]], timeout: float) -> str:
        self.attempts += 1
        if not self.responses:
            raise AssertionError("ScriptedGateway ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response
