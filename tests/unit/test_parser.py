"""Tests for the tool-call parser."""

import pytest

from nlquery.agent.parser import DirectAnswer, ToolCallParser, ToolRequest
from nlquery.exceptions import MalformedModelOutput


@pytest.fixture
def parser() -> ToolCallParser:
    return ToolCallParser()


class TestToolRequests:
    """Completions that are tool calls."""

    def test_plain_json(self, parser: ToolCallParser):
        parsed = parser.parse('{"tool": "fetch", "parameters": {"filters": {"brand": "Apple"}}}')

        assert isinstance(parsed, ToolRequest)
        assert parsed.call.tool == "fetch"
        assert parsed.call.parameters == {"filters": {"brand": "Apple"}}

    def test_fenced_json(self, parser: ToolCallParser):
        text = '```json\n{"tool": "aggregate", "parameters": {"operation": "count"}}\n```'

        parsed = parser.parse(text)

        assert isinstance(parsed, ToolRequest)
        assert parsed.call.parameters == {"operation": "count"}

    @pytest.mark.parametrize(
        "text", ['{"tool": "fetch"}', '  {"tool": "fetch", "parameters": null}\n']
    )
    def test_missing_parameters_means_empty(self, parser: ToolCallParser, text):
        parsed = parser.parse(text)

        assert isinstance(parsed, ToolRequest)
        assert parsed.call.parameters == {}

    def test_unknown_tool_name_still_parses(self, parser: ToolCallParser):
        """Whether the tool exists is decided by the dispatcher."""
        parsed = parser.parse('{"tool": "drop_table", "parameters": {}}')

        assert isinstance(parsed, ToolRequest)
        assert parsed.call.tool == "drop_table"


class TestDirectAnswers:
    """Completions that are read as direct answers."""

    def test_prose_is_returned_verbatim(self, parser: ToolCallParser):
        """Surrounding whitespace and newlines belong to the answer."""
        parsed = parser.parse("  Hello! How can I help?  ")

        assert parsed == DirectAnswer(text="  Hello! How can I help?  ")
        assert parsed.reason is None

    def test_malformed_call_keeps_original_text(self, parser: ToolCallParser):
        text = '\n{"tool": "fetch", "parameters": \n'
        parsed = parser.parse(text)

        assert isinstance(parsed, DirectAnswer)
        assert parsed.text == text
        assert parsed.reason is not None

    def test_prose_mentioning_json_is_not_a_call(self, parser: ToolCallParser):
        parsed = parser.parse('I would call {"tool": "fetch"} but no data is needed.')

        assert isinstance(parsed, DirectAnswer)
        assert parsed.reason is None

    @pytest.mark.parametrize(
        ("text", "reason"),
        [
            ('{"tool": "fetch", "parameters": ', "not valid JSON"),
            ('{"parameters": {}}', "missing 'tool' key"),
            ('{"tool": 42}', "missing 'tool' key"),
            ('{"tool": "fetch", "parameters": [1, 2]}', "'parameters' is not an object"),
        ],
    )
    def test_malformed_tool_calls(self, parser: ToolCallParser, text, reason):
        parsed = parser.parse(text)

        assert isinstance(parsed, DirectAnswer)
        assert parsed.text == text
        assert isinstance(parsed.reason, MalformedModelOutput)
        assert reason in parsed.reason.message

    def test_json_array_is_not_an_object(self, parser: ToolCallParser):
        parsed = parser.parse('```\n[{"tool": "fetch"}]\n```')

        assert isinstance(parsed, DirectAnswer)
        assert parsed.reason is None

    def test_never_raises_on_empty(self, parser: ToolCallParser):
        assert parser.parse("") == DirectAnswer(text="")
