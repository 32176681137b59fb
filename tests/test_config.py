"""Tests for credential loading and list-valued settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from sales_clone_bot.config import (
    ConfigurationError,
    feedback_reference_files,
    load_deepgram_api_key,
    load_gemini_api_key,
    load_slack_credentials,
)


class TestCredentials:
    def test_gemini_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", " key ")
        assert load_gemini_api_key() == "key"

    @pytest.mark.parametrize("loader, name", [
        (load_gemini_api_key, "GEMINI_API_KEY"),
        (load_deepgram_api_key, "DEEPGRAM_API_KEY"),
    ])
    def test_missing_key(self, monkeypatch, loader, name):
        monkeypatch.setenv(name, "  ")
        with pytest.raises(ConfigurationError, match=name):
            loader()

    def test_slack_credentials(self, monkeypatch):
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        monkeypatch.setenv("SLACK_SIGNING_SECRET", "s3cret")
        assert load_slack_credentials() == ("xoxb-1", "s3cret")

    def test_missing_signing_secret(self, monkeypatch):
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        monkeypatch.delenv("SLACK_SIGNING_SECRET", raising=False)
        with pytest.raises(ConfigurationError, match="SLACK_SIGNING_SECRET"):
            load_slack_credentials()

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestFeedbackReferenceFiles:
    def test_unset(self, monkeypatch):
        monkeypatch.delenv("FEEDBACK_REFERENCE_FILES", raising=False)
        assert feedback_reference_files() == []

    def test_comma_separated(self, monkeypatch):
        monkeypatch.setenv("FEEDBACK_REFERENCE_FILES", "docs/a.pdf, docs/b.txt ,,")
        assert feedback_reference_files() == [Path("docs/a.pdf"), Path("docs/b.txt")]
