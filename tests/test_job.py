"""Tests for the background job entry point and job settings.

WHY: The job's exit code is the only signal a job runner sees, and its
settings arrive through the environment, where a typo means a silent
no-op.

HOW: JobSettings.from_env() gets explicit dicts; main() runs with a
patched environment and a patched run_job(); run_job() runs end to end
against the fake services from conftest.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from conftest import CHANNEL, THREAD_TS, posted_texts
from sales_clone_bot.config import ConfigurationError, JobSettings
from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.job import main, run_job
from sales_clone_bot.slack import messages
from sales_clone_bot.strategies import JobContext


def _env(**overrides):
    env = {
        "SLACK_CHANNEL_ID": CHANNEL,
        "SLACK_THREAD_TS": THREAD_TS,
        "SLACK_COMMAND_ACTION": "feedback",
        "SLACK_COMMAND_CONTEXT": "",
        "SLACK_EVENT_JSON": json.dumps({"type": "app_mention"}),
        "SLACK_BOT_TOKEN": "xoxb-test",
    }
    env.update(overrides)
    return env


class TestJobSettings:
    def test_from_env(self):
        settings = JobSettings.from_env(_env(SLACK_COMMAND_CONTEXT="価格の話"))
        assert settings.channel_id == CHANNEL
        assert settings.command_context == "価格の話"

    def test_empty_context_is_none(self):
        assert JobSettings.from_env(_env()).command_context is None

    def test_missing_context_variable(self):
        env = _env()
        del env["SLACK_COMMAND_CONTEXT"]
        with pytest.raises(ConfigurationError, match="SLACK_COMMAND_CONTEXT"):
            JobSettings.from_env(env)

    def test_empty_required_variables_listed(self):
        with pytest.raises(ConfigurationError) as excinfo:
            JobSettings.from_env(_env(SLACK_CHANNEL_ID="", SLACK_BOT_TOKEN=" "))
        assert "SLACK_CHANNEL_ID" in str(excinfo.value)
        assert "SLACK_BOT_TOKEN" in str(excinfo.value)
        assert "SLACK_THREAD_TS" not in str(excinfo.value)

    def test_to_env_round_trip(self):
        settings = JobSettings.from_env(_env(SLACK_COMMAND_CONTEXT="clip"))
        assert JobSettings.from_env(settings.to_env()) == settings


class TestJobContext:
    def test_from_settings(self):
        ctx = JobContext.from_settings(JobSettings.from_env(_env(SLACK_COMMAND_ACTION="clip")))
        assert ctx.action == CommandAction.clip
        assert ctx.event == {"type": "app_mention"}

    def test_unknown_action_defaults(self):
        ctx = JobContext.from_settings(JobSettings.from_env(_env(SLACK_COMMAND_ACTION="dance")))
        assert ctx.action == CommandAction.feedback

    def test_bad_event_json(self):
        ctx = JobContext.from_settings(JobSettings.from_env(_env(SLACK_EVENT_JSON="{not json")))
        assert ctx.event == {}


class TestRunJob:
    def test_runs_selected_strategy(self, services):
        settings = JobSettings.from_env(_env(SLACK_COMMAND_ACTION="waltz_feedback"))

        asyncio.run(run_job(settings, services))

        services.transcribe.assert_not_called()
        assert posted_texts(services) == [
            messages.build_feedback_result(CommandAction.waltz_feedback, "良い商談でした。")
        ]

    def test_strategy_error_propagates(self, services):
        services.transcribe = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            asyncio.run(run_job(JobSettings.from_env(_env()), services))


class TestMain:
    def test_missing_settings_exit_1(self, monkeypatch):
        for name in _env():
            monkeypatch.delenv(name, raising=False)
        assert main() == 1

    def test_success_exit_0(self, monkeypatch):
        for name, value in _env().items():
            monkeypatch.setenv(name, value)
        with patch("sales_clone_bot.job.run_job", new=AsyncMock()) as run:
            assert main() == 0
        assert run.await_args.args[0].channel_id == CHANNEL

    def test_failure_exit_1(self, monkeypatch):
        for name, value in _env().items():
            monkeypatch.setenv(name, value)
        with patch("sales_clone_bot.job.run_job", new=AsyncMock(side_effect=RuntimeError("boom"))):
            assert main() == 1

    def test_missing_api_key_exit_1(self, monkeypatch):
        for name, value in _env().items():
            monkeypatch.setenv(name, value)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert main() == 1
