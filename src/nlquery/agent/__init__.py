"""Conversational layer: sessions, memory, parsing and answer composition."""

from nlquery.agent.composer import ResponseComposer, summarize_result
from nlquery.agent.engine import QueryAgent, TurnOutcome
from nlquery.agent.memory import ConversationMemory
from nlquery.agent.parser import DirectAnswer, ParsedOutput, ToolCallParser, ToolRequest
from nlquery.agent.session import Session, SessionClosedError, SessionManager

__all__ = [
    "ConversationMemory",
    "DirectAnswer",
    "ParsedOutput",
    "QueryAgent",
    "ResponseComposer",
    "Session",
    "SessionClosedError",
    "SessionManager",
    "ToolCallParser",
    "ToolRequest",
    "TurnOutcome",
    "summarize_result",
]
