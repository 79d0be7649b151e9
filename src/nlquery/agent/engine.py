"""QueryAgent: the shared, read-only service behind every session."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from nlquery.agent.composer import ResponseComposer, render_summary
from nlquery.agent.parser import DirectAnswer, ToolCallParser
from nlquery.config import Settings
from nlquery.core.connection import DatabaseConnection
from nlquery.core.retry import Deadline, RetryPolicy
from nlquery.core.types import AggregateResult, FetchResult, QueryResult, Role, Turn
from nlquery.exceptions import NLQueryError, TurnTimeoutError
from nlquery.llm import get_gateway
from nlquery.llm.gateway import LLMGateway
from nlquery.query.context import SchemaContextBuilder
from nlquery.query.translator import QueryTranslator
from nlquery.schema.catalog import SchemaCatalog
from nlquery.tools.base import ToolCall
from nlquery.tools.dispatcher import ToolDispatcher
from nlquery.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnOutcome:
    """What one call to :meth:`Session.ask` produced."""

    ok: bool
    message: str
    """The answer on success, or a user-safe error message on failure."""
    tool_call: ToolCall | None = None
    result: QueryResult | None = None
    error: NLQueryError | None = None
    turns: tuple[Turn, ...] = field(default_factory=tuple)
    """Turns to append to memory; empty on failure."""

    @property
    def error_label(self) -> str | None:
        return self.error.label if self.error is not None else None

    @classmethod
    def failure(cls, error: NLQueryError) -> TurnOutcome:
        return cls(ok=False, message=error.user_message(), error=error)


class QueryAgent:
    """Holds everything sessions share: catalog, tools, gateway and workers.

    Nothing here changes after construction, so any number of sessions may
    use one agent concurrently.
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        translator: QueryTranslator,
        gateway: LLMGateway,
        settings: Settings | None = None,
        registry: ToolRegistry | None = None,
        connection: DatabaseConnection | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._catalog = catalog
        self._translator = translator
        self._gateway = gateway
        self._connection = connection
        self._registry = registry or ToolRegistry.default(translator)
        self._dispatcher = ToolDispatcher(self._registry)
        self._parser = ToolCallParser()
        self._composer = ResponseComposer(gateway, sample_rows=self._settings.sample_rows)
        self._context = SchemaContextBuilder(
            catalog,
            self._registry,
            default_limit=self._settings.default_limit,
            max_limit=self._settings.max_limit,
        ).build()
        self._executor = ThreadPoolExecutor(
            max_workers=self._settings.max_workers, thread_name_prefix="nlquery-turn"
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        gateway: LLMGateway | None = None,
        catalog: SchemaCatalog | None = None,
    ) -> QueryAgent:
        """Wire an agent from configuration.

        The catalog comes from ``settings.schema_file`` when set, otherwise
        from reflecting ``settings.tables`` (or every table) in the database.
        """
        connection = DatabaseConnection(settings.database_url, echo=settings.echo_sql)
        if catalog is None:
            if settings.schema_file:
                catalog = SchemaCatalog.from_file(settings.schema_file)
            else:
                catalog = SchemaCatalog.reflect(connection, settings.tables or None)
        translator = QueryTranslator(
            connection,
            catalog,
            default_limit=settings.default_limit,
            max_limit=settings.max_limit,
            retry_policy=RetryPolicy(max_attempts=settings.retry_attempts),
        )
        return cls(
            catalog,
            translator,
            gateway or get_gateway(settings),
            settings=settings,
            connection=connection,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def catalog(self) -> SchemaCatalog:
        return self._catalog

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    @property
    def system_context(self) -> str:
        return self._context

    def run_turn(
        self,
        question: str,
        history: Sequence[Turn],
        system_context: str | None = None,
        timeout: float | None = None,
    ) -> TurnOutcome:
        """Answer one question within the turn time budget.

        Runs the pipeline on a worker thread; if it does not finish in time the
        caller gets a ``TurnTimeout`` outcome and the late result is dropped.
        Errors never propagate: they come back as a failed outcome.
        """
        budget = timeout if timeout is not None else self._settings.turn_timeout
        context = system_context if system_context is not None else self._context
        future = self._executor.submit(self._pipeline, question, tuple(history), context, budget)
        try:
            return future.result(timeout=budget)
        except TimeoutError:
            future.cancel()
            error = TurnTimeoutError(f"Turn exceeded its {budget:.1f}s budget")
            logger.warning("Turn failed: %s", error.message)
            return TurnOutcome.failure(error)

    def _pipeline(
        self, question: str, history: tuple[Turn, ...], context: str, budget: float
    ) -> TurnOutcome:
        try:
            return self._answer(question, history, context, Deadline(budget))
        except NLQueryError as e:
            logger.warning("Turn failed with %s: %s", e.label, e.message)
            return TurnOutcome.failure(e)
        except Exception as e:
            logger.exception("Unexpected error while answering")
            return TurnOutcome.failure(NLQueryError(f"Unexpected error: {e}"))

    def _answer(
        self, question: str, history: tuple[Turn, ...], context: str, deadline: Deadline
    ) -> TurnOutcome:
        user_turn = Turn(role=Role.USER, content=question)
        completion = self._gateway.complete(
            context, [*history, user_turn], timeout=deadline.remaining()
        )
        parsed = self._parser.parse(completion)

        if isinstance(parsed, DirectAnswer):
            answer = self._composer.compose(question, None, parsed.text)
            return TurnOutcome(
                ok=True,
                message=answer,
                turns=(user_turn, Turn(role=Role.ASSISTANT, content=answer)),
            )

        call = parsed.call
        deadline.remaining()
        result = self._dispatcher.dispatch(call, deadline)
        answer = self._composer.compose(question, call, result, timeout=deadline.remaining())
        return TurnOutcome(
            ok=True,
            message=answer,
            tool_call=call,
            result=result,
            turns=(
                user_turn,
                Turn(role=Role.ASSISTANT, content=json.dumps(call.to_dict(), default=str)),
                Turn(role=Role.TOOL_RESULT, content=self._describe(result)),
                Turn(role=Role.ASSISTANT, content=answer),
            ),
        )

    def _describe(self, result: Any) -> str:
        if isinstance(result, (FetchResult, AggregateResult)):
            return render_summary(result, self._composer.sample_rows)
        return json.dumps(result, default=str)

    def close(self) -> None:
        """Stop worker threads and release pooled connections."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._connection is not None:
            self._connection.close()

    def __enter__(self) -> QueryAgent:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
