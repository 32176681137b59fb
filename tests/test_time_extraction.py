"""Tests for the Gemini-backed time-range extractor.

WHY: The extractor must turn model output into validated ranges and must
never let an API failure escape to the clip strategy.

HOW: A fake client with an AsyncMock generate_json stands in for Gemini;
async calls are driven with asyncio.run().

RULES:
- No real Gemini calls
- Scenario texts mirror real user requests
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from sales_clone_bot.config import ConfigurationError
from sales_clone_bot.core.time_extraction import (
    TIME_RANGE_SCHEMA,
    TimeRangeExtractor,
    build_extraction_prompt,
)
from sales_clone_bot.core.time_ranges import TimeRange


def _client(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.generate_json = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class TestConstruction:
    def test_missing_api_key_is_configuration_error(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            TimeRangeExtractor()

    def test_injected_client_needs_no_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        TimeRangeExtractor(client=_client("[]"))


class TestExtract:
    def test_paired_range_scenario(self):
        client = _client(json.dumps([{"start": "00:10:00", "end": "00:12:00"}]))
        extractor = TimeRangeExtractor(client=client)

        result = asyncio.run(extractor.extract("10分から12分まで切り抜いてください。"))

        assert result == [TimeRange("00:10:00", "00:12:00")]

    def test_single_timestamp_scenario(self):
        extractor = TimeRangeExtractor(client=_client("[]"))
        assert asyncio.run(extractor.extract("5分時点で")) == []

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text_skips_collaborator(self, text):
        client = _client("[]")
        extractor = TimeRangeExtractor(client=client)

        assert asyncio.run(extractor.extract(text)) == []
        client.generate_json.assert_not_called()

    def test_request_uses_schema_and_model(self):
        client = _client("[]")
        extractor = TimeRangeExtractor(client=client, model="test-model")

        asyncio.run(extractor.extract("1分から2分"))

        args, kwargs = client.generate_json.call_args
        assert "1分から2分" in args[0]
        assert args[1] is TIME_RANGE_SCHEMA
        assert kwargs["model"] == "test-model"

    def test_api_error_returns_empty(self):
        extractor = TimeRangeExtractor(client=_client(side_effect=RuntimeError("503")))
        assert asyncio.run(extractor.extract("1分から2分")) == []

    @pytest.mark.parametrize("response", ["", None, "not json", '{"start": "00:01:00"}'])
    def test_unusable_response_returns_empty(self, response):
        extractor = TimeRangeExtractor(client=_client(response))
        assert asyncio.run(extractor.extract("1分から2分")) == []

    def test_malformed_entries_dropped(self):
        response = json.dumps([
            {"start": "1:00", "end": "2:00"},
            {"start": "00:05:15", "end": "00:20:30"},
        ])
        extractor = TimeRangeExtractor(client=_client(response))

        assert asyncio.run(extractor.extract("5分15秒から20分30秒")) == [
            TimeRange("00:05:15", "00:20:30")
        ]


class TestPrompt:
    def test_prompt_contains_rules_and_text(self):
        prompt = build_extraction_prompt("10分から12分")
        assert "HH:MM:SS" in prompt
        assert "[]" in prompt
        assert "01:15:30" in prompt
        assert '"10分から12分"' in prompt
