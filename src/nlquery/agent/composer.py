"""Response Composer: turn a tool result into the user-facing answer."""

from __future__ import annotations

import json
import logging
from typing import Any

from nlquery.core.types import AggregateResult, FetchResult, QueryResult, Role, Turn
from nlquery.llm.gateway import LLMGateway
from nlquery.tools.base import ToolCall

logger = logging.getLogger(__name__)

COMPOSER_SYSTEM_PROMPT = """\
You turn database query results into a short, accurate answer to the user's
question. Use only the data provided. If the result is empty, say that nothing
matched. If only a sample of rows is shown, mention the total count. Do not
show JSON, SQL or tool names."""


def summarize_result(result: QueryResult, sample_rows: int = 10) -> dict[str, Any]:
    """Bounded, JSON-ready view of a result.

    Fetch results keep the total row count and the first ``sample_rows`` rows.
    """
    if isinstance(result, AggregateResult):
        return {
            "table": result.table,
            "operation": result.operation.value,
            "column": result.column,
            "value": result.value,
        }
    sample = result.rows[: max(0, sample_rows)]
    return {
        "table": result.table,
        "columns": result.columns,
        "total_rows": result.row_count,
        "sample": sample,
        "truncated": result.row_count > len(sample),
        "empty": result.is_empty,
    }


def render_summary(result: QueryResult, sample_rows: int = 10) -> str:
    return json.dumps(summarize_result(result, sample_rows), default=str, sort_keys=True)


class ResponseComposer:
    """Second model pass that phrases the final answer."""

    def __init__(self, gateway: LLMGateway, sample_rows: int = 10) -> None:
        self._gateway = gateway
        self._sample_rows = sample_rows

    @property
    def sample_rows(self) -> int:
        return self._sample_rows

    def compose(
        self,
        question: str,
        call: ToolCall | None,
        result: QueryResult | str,
        timeout: float | None = None,
    ) -> str:
        """Produce the final answer.

        Args:
            question: The user's question
            call: The tool call that was issued, or None for a direct answer
            result: Tool result, or the direct-answer text
            timeout: Budget for the model call

        Returns:
            Answer text. Direct answers are returned unchanged without a model call.
        """
        if call is None or isinstance(result, str):
            return str(result)

        prompt = self.build_prompt(question, call, result)
        answer = self._gateway.complete(
            COMPOSER_SYSTEM_PROMPT, [Turn(role=Role.USER, content=prompt)], timeout=timeout
        ).strip()
        if not answer:
            logger.warning("Composer returned an empty completion; falling back to a plain summary")
            return self._fallback(result)
        return answer

    def build_prompt(self, question: str, call: ToolCall, result: QueryResult) -> str:
        return (
            f"Question: {question}\n\n"
            f"Tool call: {json.dumps(call.to_dict(), default=str, sort_keys=True)}\n\n"
            f"Result: {render_summary(result, self._sample_rows)}"
        )

    @staticmethod
    def _fallback(result: QueryResult) -> str:
        if isinstance(result, AggregateResult):
            target = f" of {result.column}" if result.column else ""
            return f"The {result.operation.value}{target} is {result.value}."
        if isinstance(result, FetchResult) and result.is_empty:
            return "No matching rows were found."
        return f"Found {result.row_count} matching row(s)."
