"""Tool-Call Parser: decide whether a completion is a tool request or an answer.

Decoding is strict. The completion, optionally wrapped in a single markdown
code fence, must be exactly one JSON object with a string ``tool`` key and an
optional ``parameters`` object. Anything else is the model answering directly.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from nlquery.exceptions import MalformedModelOutput
from nlquery.tools.base import ToolCall

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass(frozen=True)
class ToolRequest:
    """The model asked for a tool."""

    call: ToolCall
    raw: str


@dataclass(frozen=True)
class DirectAnswer:
    """The model answered in prose; ``text`` is the final answer."""

    text: str
    reason: MalformedModelOutput | None = None
    """Why the completion was not read as a tool call, when it looked like one."""


ParsedOutput = ToolRequest | DirectAnswer


class ToolCallParser:
    """Turns raw completion text into a :data:`ParsedOutput`. Never raises."""

    def parse(self, text: str) -> ParsedOutput:
        stripped = text.strip()
        candidate = stripped
        fence = _FENCE.match(stripped)
        if fence:
            candidate = fence.group(1).strip()

        if not candidate.startswith("{"):
            return DirectAnswer(text=text)

        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as e:
            return self._direct(text, f"not valid JSON: {e.msg}")

        if not isinstance(payload, dict):
            return self._direct(text, "JSON is not an object")
        tool = payload.get("tool")
        if not isinstance(tool, str) or not tool:
            return self._direct(text, "missing 'tool' key")
        parameters = payload.get("parameters", {})
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            return self._direct(text, "'parameters' is not an object")

        return ToolRequest(call=ToolCall(tool=tool, parameters=parameters), raw=candidate)

    @staticmethod
    def _direct(text: str, reason: str) -> DirectAnswer:
        logger.debug("Treating completion as direct answer: %s", reason)
        return DirectAnswer(text=text, reason=MalformedModelOutput(reason))
