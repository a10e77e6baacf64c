"""AnthropicTextAnalyzer with a stubbed Anthropic client."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from storage_import.analysis.prompts import build_analysis_prompt
from storage_import.analysis.text_analyzer import (
    AnthropicTextAnalyzer,
    parse_analysis,
    strip_code_fences,
)

METADATA = {"analysis_type": "proposal", "file_name": "Q3 Proposal.docx"}


def anthropic_reply(text: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)]
    ))
    return client


async def test_analyze_parses_json_reply():
    reply = json.dumps({
        "summary": "Buyer wants revised pricing.",
        "action_items": [{"description": "Send revised quote", "owner": "seller"}],
        "sentiment": "positive",
    })
    client = anthropic_reply(reply)
    analyzer = AnthropicTextAnalyzer(client, model="claude-test", max_tokens=512, temperature=0)

    result = await analyzer.analyze("Pricing discussion", METADATA)

    assert result["summary"] == "Buyer wants revised pricing."
    assert result["analysis_type"] == "proposal"
    assert result["input_truncated"] is False
    kwargs = client.messages.create.await_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 512
    assert kwargs["temperature"] == 0
    assert "Pricing discussion" in kwargs["messages"][0]["content"]


async def test_long_input_is_truncated():
    client = anthropic_reply('{"summary": "S"}')
    analyzer = AnthropicTextAnalyzer(client, max_input_chars=10)

    result = await analyzer.analyze("x" * 50, METADATA)

    assert result["input_truncated"] is True
    prompt = client.messages.create.await_args.kwargs["messages"][0]["content"]
    assert "x" * 11 not in prompt


async def test_malformed_reply_yields_default():
    analyzer = AnthropicTextAnalyzer(anthropic_reply("Sure! Here is the analysis:"))

    result = await analyzer.analyze("text", METADATA)

    assert result["summary"] is None
    assert result["action_items"] == []
    assert result["sentiment"] == "neutral"
    assert result["error"].startswith("Malformed model output")


async def test_api_error_propagates():
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))

    with pytest.raises(RuntimeError):
        await AnthropicTextAnalyzer(client).analyze("text", METADATA)


def test_code_fences_are_stripped():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_non_object_json_yields_default():
    assert parse_analysis("[1, 2]", METADATA)["error"] == "Model output was not a JSON object"


def test_bad_action_items_are_normalised():
    assert parse_analysis('{"summary": "S", "action_items": "none"}', METADATA)["action_items"] == []


def test_prompt_mentions_focus_and_file():
    prompt = build_analysis_prompt("body text", METADATA)

    assert "sales proposal" in prompt
    assert "Q3 Proposal.docx" in prompt
    assert "body text" in prompt


def test_model_analysis_type_is_ignored():
    parsed = parse_analysis('{"summary": "S", "analysis_type": "email_thread"}', METADATA)

    assert parsed["analysis_type"] == "proposal"
