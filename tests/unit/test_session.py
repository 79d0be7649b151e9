"""End-to-end tests of a conversation turn."""

import json
import time

import pytest
from fakes import RefusingConnection, ScriptedGateway, no_sleep_policy

from nlquery.agent.session import Session, SessionClosedError, SessionManager
from nlquery.config import Settings
from nlquery.core.retry import RetryPolicy
from nlquery.core.types import AggregateResult, FetchResult, Role
from nlquery.exceptions import TransportError
from nlquery.query.translator import QueryTranslator
from nlquery.schema.catalog import SchemaCatalog


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDirectAnswers:
    """Turns that need no data."""

    def test_greeting_uses_one_model_call(self, make_agent):
        gateway = ScriptedGateway("Hello! Ask me about the products.")
        session = Session(make_agent(gateway))

        outcome = session.ask("Hello")

        assert outcome.ok
        assert outcome.message == "Hello! Ask me about the products."
        assert outcome.tool_call is None
        assert len(gateway.calls) == 1
        assert [t.role for t in session.memory] == [Role.USER, Role.ASSISTANT]

    def test_malformed_tool_call_is_shown_as_answer(self, make_agent):
        gateway = ScriptedGateway('{"tool": "fetch", "parameters": ')
        session = Session(make_agent(gateway))

        outcome = session.ask("Show me everything")

        assert outcome.ok
        assert outcome.message == '{"tool": "fetch", "parameters": '
        assert len(gateway.calls) == 1

    def test_direct_answer_is_shown_verbatim(self, make_agent):
        completion = "  Hello!\n\n- ask about prices\n- ask about stock\n"
        session = Session(make_agent(ScriptedGateway(completion)))

        outcome = session.ask("Hello")

        assert outcome.message == completion
        assert session.memory.turns[-1].content == completion

    def test_history_is_sent_on_the_next_turn(self, make_agent):
        gateway = ScriptedGateway("Hi!", "You said hello.")
        session = Session(make_agent(gateway))

        session.ask("Hello")
        session.ask("What did I say?")

        sent = [t.content for t in gateway.calls[1]["turns"]]
        assert sent == ["Hello", "Hi!", "What did I say?"]
        assert gateway.calls[1]["system"] == session.system_context

    def test_truncated_history_starts_with_a_question(self, make_agent):
        gateway = ScriptedGateway(
            '{"tool": "aggregate", "parameters": {"operation": "count"}}',
            "There are 7 products.",
            "You're welcome.",
        )
        settings = Settings(turn_timeout=10.0, memory_window=3)
        session = Session(make_agent(gateway, settings_override=settings))

        session.ask("How many products are there?")
        session.ask("Thanks")

        sent = gateway.calls[-1]["turns"]
        assert [t.role for t in sent] == [Role.USER]
        assert sent[0].content == "Thanks"


class TestToolTurns:
    """Turns that query the database."""

    def test_fetch_by_brand(self, make_agent):
        gateway = ScriptedGateway(
            '{"tool": "fetch", "parameters": {"filters": {"brand": "Apple"}}}',
            "Apple makes the MacBook Pro 14, iPhone 15 and AirPods Pro.",
        )
        session = Session(make_agent(gateway))

        outcome = session.ask("Which products are from Apple?")

        assert outcome.ok
        assert isinstance(outcome.result, FetchResult)
        assert sorted(r["id"] for r in outcome.result.rows) == [1, 2, 4]
        assert outcome.message.startswith("Apple makes")

        roles = [t.role for t in session.memory]
        assert roles == [Role.USER, Role.ASSISTANT, Role.TOOL_RESULT, Role.ASSISTANT]
        assert json.loads(session.memory.turns[1].content)["tool"] == "fetch"
        assert json.loads(session.memory.turns[2].content)["total_rows"] == 3

    def test_average_price(self, make_agent):
        gateway = ScriptedGateway(
            '```json\n{"tool": "aggregate", "parameters": '
            '{"operation": "avg", "column": "price", "filters": {"category": "Electronics"}}}\n```',
            "The average price of electronics is about $1016.66.",
        )
        session = Session(make_agent(gateway))

        outcome = session.ask("What is the average price of electronics?")

        assert outcome.ok
        assert isinstance(outcome.result, AggregateResult)
        assert outcome.result.value == pytest.approx(1016.6566, abs=1e-4)
        assert "1016.66" in outcome.message
        assert len(gateway.calls) == 2

    def test_empty_result_is_a_success(self, make_agent):
        gateway = ScriptedGateway(
            '{"tool": "fetch", "parameters": {"filters": {"brand": "Nokia"}}}',
            "No Nokia products were found.",
        )
        session = Session(make_agent(gateway))

        outcome = session.ask("Any Nokia phones?")

        assert outcome.ok
        assert outcome.result.is_empty
        assert len(session.memory) == 4


class TestFailedTurns:
    """A failed turn reports a labeled error and leaves memory untouched."""

    def test_database_unreachable(self, make_agent, catalog: SchemaCatalog):
        refusing = RefusingConnection()
        translator = QueryTranslator(refusing, catalog, retry_policy=no_sleep_policy(3))
        gateway = ScriptedGateway('{"tool": "aggregate", "parameters": {"operation": "count"}}')
        session = Session(make_agent(gateway, translator_override=translator))

        outcome = session.ask("How many products are there?")

        assert not outcome.ok
        assert outcome.error_label == "ConnectionError"
        assert outcome.message.startswith("[ConnectionError]")
        assert refusing.attempts == 3
        assert len(session.memory) == 0
        # The composer never ran.
        assert len(gateway.calls) == 1

    def test_unknown_tool(self, make_agent, connection):
        gateway = ScriptedGateway('{"tool": "drop_table", "parameters": {"table": "products"}}')
        session = Session(make_agent(gateway))

        outcome = session.ask("Delete everything")

        assert outcome.error_label == "UnknownTool"
        assert connection.round_trips == 0
        assert len(session.memory) == 0

    def test_invalid_parameters(self, make_agent, connection):
        gateway = ScriptedGateway(
            '{"tool": "fetch", "parameters": '
            '{"filters": [{"column": "brand", "operator": "; DROP", "value": "x"}]}}'
        )
        session = Session(make_agent(gateway))

        outcome = session.ask("Show products")

        assert outcome.error_label == "ValidationError"
        assert "filters[0].operator" in outcome.message
        assert connection.round_trips == 0

    def test_model_unreachable(self, make_agent):
        gateway = ScriptedGateway(TransportError("refused", retryable=False))
        session = Session(make_agent(gateway))

        outcome = session.ask("Hello")

        assert outcome.error_label == "TransportError"
        assert "refused" not in outcome.message
        assert len(session.memory) == 0

    def test_transient_model_failure_is_retried(self, make_agent):
        gateway = ScriptedGateway(TransportError("timed out"), "Hi!")
        session = Session(make_agent(gateway))

        outcome = session.ask("Hello")

        assert outcome.ok
        assert gateway.attempts == 2

    def test_unexpected_error_is_generic(self, make_agent):
        def explode() -> str:
            raise KeyError("internal detail")

        session = Session(make_agent(ScriptedGateway(explode)))

        outcome = session.ask("Hello")

        assert not outcome.ok
        assert outcome.error_label == "Error"
        assert "internal detail" not in outcome.message
        assert len(session.memory) == 0

    def test_turn_timeout(self, make_agent):
        def slow() -> str:
            time.sleep(1.0)
            return "too late"

        settings = Settings(turn_timeout=0.2)
        session = Session(make_agent(ScriptedGateway(slow), settings_override=settings))

        outcome = session.ask("Hello")

        assert outcome.error_label == "TurnTimeout"
        assert len(session.memory) == 0

    def test_store_is_not_retried_past_the_turn_budget(self, make_agent, catalog: SchemaCatalog):
        """A backoff longer than the remaining budget ends the turn instead of retrying."""
        sleeps: list[float] = []
        refusing = RefusingConnection()
        policy = RetryPolicy(max_attempts=3, initial_wait=5.0, sleep=sleeps.append)
        translator = QueryTranslator(refusing, catalog, retry_policy=policy)
        gateway = ScriptedGateway('{"tool": "aggregate", "parameters": {"operation": "count"}}')
        settings = Settings(turn_timeout=1.0)
        session = Session(
            make_agent(gateway, translator_override=translator, settings_override=settings)
        )

        outcome = session.ask("How many products are there?")

        assert outcome.error_label == "TurnTimeout"
        assert refusing.attempts == 1
        assert sleeps == []
        assert len(session.memory) == 0

    def test_memory_survives_a_failed_turn(self, make_agent):
        gateway = ScriptedGateway("Hi!", TransportError("down", retryable=False), "Still here.")
        session = Session(make_agent(gateway))

        session.ask("Hello")
        failed = session.ask("Are you there?")
        session.ask("Hello again")

        assert not failed.ok
        assert [t.content for t in session.memory] == ["Hello", "Hi!", "Hello again", "Still here."]


class TestSessionManager:
    """Tests for SessionManager."""

    def test_sessions_are_isolated(self, make_agent):
        gateway = ScriptedGateway("Hi A", "Hi B")
        manager = SessionManager(make_agent(gateway))
        first, second = manager.create(), manager.create()

        first.ask("I am A")
        second.ask("I am B")

        assert first.id != second.id
        assert [t.content for t in first.memory] == ["I am A", "Hi A"]
        assert [t.content for t in second.memory] == ["I am B", "Hi B"]
        assert gateway.calls[1]["turns"][0].content == "I am B"
        assert len(manager) == 2

    def test_idle_sessions_expire(self, make_agent):
        clock = FakeClock()
        manager = SessionManager(make_agent(ScriptedGateway()), idle_timeout=60, clock=clock)
        session = manager.create()

        clock.now = 30
        assert manager.get(session.id) is session

        clock.now = 61
        assert manager.prune() == [session.id]
        assert session.closed
        with pytest.raises(KeyError):
            manager.get(session.id)

    def test_closed_session_refuses_questions(self, make_agent):
        manager = SessionManager(make_agent(ScriptedGateway()))
        session = manager.create()

        manager.close(session.id)

        with pytest.raises(SessionClosedError):
            session.ask("Hello")
        assert len(manager) == 0

    def test_session_pins_schema_snapshot(self, make_agent, catalog: SchemaCatalog):
        agent = make_agent(ScriptedGateway())
        session = Session(agent)

        assert session.schema_version == catalog.version
        assert session.system_context == agent.system_context
