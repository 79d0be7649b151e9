"""Shared test fixtures for nlquery."""

from collections.abc import Callable, Generator

import pytest
from fakes import PRODUCTS_SCHEMA, CountingConnection, no_sleep_policy

from nlquery.agent.engine import QueryAgent
from nlquery.config import Settings
from nlquery.llm.gateway import LLMGateway
from nlquery.query.translator import QueryTranslator
from nlquery.schema.catalog import SchemaCatalog
from nlquery.schema.sample import seed_sample_products


@pytest.fixture
def connection() -> Generator[CountingConnection, None, None]:
    """SQLite in-memory database seeded with the sample products."""
    conn = CountingConnection("sqlite:///:memory:")
    seed_sample_products(conn)
    conn.round_trips = 0
    yield conn
    conn.close()


@pytest.fixture
def catalog() -> SchemaCatalog:
    return SchemaCatalog.from_dict(PRODUCTS_SCHEMA)


@pytest.fixture
def translator(connection: CountingConnection, catalog: SchemaCatalog) -> QueryTranslator:
    return QueryTranslator(connection, catalog, retry_policy=no_sleep_policy())


@pytest.fixture
def settings() -> Settings:
    return Settings(turn_timeout=10.0, retry_attempts=3)


@pytest.fixture
def make_agent(
    catalog: SchemaCatalog, translator: QueryTranslator, settings: Settings
) -> Generator[Callable[..., QueryAgent], None, None]:
    """Factory building an agent around a scripted gateway."""
    agents: list[QueryAgent] = []

    def _make(
        gateway: LLMGateway,
        translator_override: QueryTranslator | None = None,
        settings_override: Settings | None = None,
    ) -> QueryAgent:
        agent = QueryAgent(
            catalog,
            translator_override or translator,
            gateway,
            settings=settings_override or settings,
        )
        agents.append(agent)
        return agent

    yield _make
    for agent in agents:
        agent.close()
