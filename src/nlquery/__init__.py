"""nlquery - Ask questions about a relational database in plain language.

A language model reads the question together with a description of the
schema and either answers directly or asks for one of two tools, ``fetch``
and ``aggregate``. Tool arguments are validated against the declared schema
and executed as parameterized queries; a second model pass turns the result
into the final answer.

Example:
    from nlquery import QueryAgent, Settings, SessionManager

    agent = QueryAgent.from_settings(Settings.from_env())
    sessions = SessionManager(agent)

    session = sessions.create()
    outcome = session.ask("What is the average price of electronics?")
    print(outcome.message)
"""

from nlquery.agent import (
    ConversationMemory,
    DirectAnswer,
    QueryAgent,
    ResponseComposer,
    Session,
    SessionManager,
    ToolCallParser,
    ToolRequest,
    TurnOutcome,
)
from nlquery.config import Settings
from nlquery.core.connection import DatabaseConnection
from nlquery.core.retry import Deadline, RetryPolicy
from nlquery.core.types import (
    AggregateOperation,
    AggregateResult,
    ColumnInfo,
    ColumnType,
    FetchResult,
    FilterExpression,
    FilterOperator,
    QueryRequest,
    Role,
    TableInfo,
    Turn,
)
from nlquery.exceptions import (
    ConfigurationError,
    ConnectionError,
    MalformedModelOutput,
    NLQueryError,
    QueryError,
    TransportError,
    TurnTimeoutError,
    UnknownToolError,
    ValidationError,
)
from nlquery.llm import LLMGateway, get_gateway
from nlquery.query import QueryTranslator, SchemaContextBuilder, get_schema_context
from nlquery.schema import SchemaCatalog
from nlquery.tools import (
    AggregateArguments,
    FetchArguments,
    ToolArguments,
    ToolCall,
    ToolDispatcher,
    ToolRegistry,
    ToolSpec,
)

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "QueryAgent",
    "Session",
    "SessionManager",
    "Settings",
    # Components
    "ConversationMemory",
    "DatabaseConnection",
    "LLMGateway",
    "QueryTranslator",
    "ResponseComposer",
    "Deadline",
    "RetryPolicy",
    "SchemaCatalog",
    "SchemaContextBuilder",
    "ToolCallParser",
    "ToolDispatcher",
    "ToolRegistry",
    "get_gateway",
    "get_schema_context",
    # Types
    "AggregateOperation",
    "AggregateResult",
    "ColumnInfo",
    "ColumnType",
    "DirectAnswer",
    "FetchResult",
    "FilterExpression",
    "FilterOperator",
    "AggregateArguments",
    "FetchArguments",
    "ToolArguments",
    "QueryRequest",
    "Role",
    "TableInfo",
    "ToolCall",
    "ToolRequest",
    "ToolSpec",
    "Turn",
    "TurnOutcome",
    # Exceptions
    "NLQueryError",
    "ConfigurationError",
    "ConnectionError",
    "MalformedModelOutput",
    "QueryError",
    "TransportError",
    "TurnTimeoutError",
    "UnknownToolError",
    "ValidationError",
]
