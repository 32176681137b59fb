"""Tests for the background-job launcher."""

from __future__ import annotations

import json
import subprocess
from unittest.mock import MagicMock

import pytest

from conftest import CHANNEL, THREAD_TS
from sales_clone_bot.config import JOB_ENV_VARS, JobSettings
from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.server.launcher import JobLauncher
from sales_clone_bot.server.models import JobRequest


def _request(action=CommandAction.clip, context="10分から12分まで切り抜き"):
    return JobRequest(
        channel_id=CHANNEL,
        thread_ts=THREAD_TS,
        command_action=action,
        command_context=context,
        event={"type": "app_mention", "text": "<@UBOT> " + (context or "")},
    )


def _popen(pid=321):
    popen = MagicMock()
    popen.return_value.pid = pid
    return popen


class TestJobLauncher:
    def test_returns_pid(self):
        launcher = JobLauncher("xoxb-test", command="python -m sales_clone_bot.job", popen=_popen())
        assert launcher.launch(_request()) == 321

    def test_command_and_detachment(self):
        popen = _popen()
        JobLauncher("xoxb-test", command="/usr/bin/env python -m sales_clone_bot.job", popen=popen).launch(_request())

        args, kwargs = popen.call_args
        assert args[0] == ["/usr/bin/env", "python", "-m", "sales_clone_bot.job"]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdin"] is subprocess.DEVNULL

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "inherited")
        popen = _popen()

        JobLauncher("xoxb-test", command="job", popen=popen).launch(_request())

        env = popen.call_args.kwargs["env"]
        assert env["GEMINI_API_KEY"] == "inherited"
        assert all(name in env for name in JOB_ENV_VARS)
        assert env["SLACK_CHANNEL_ID"] == CHANNEL
        assert env["SLACK_THREAD_TS"] == THREAD_TS
        assert env["SLACK_COMMAND_ACTION"] == "clip"
        assert env["SLACK_COMMAND_CONTEXT"] == "10分から12分まで切り抜き"
        assert env["SLACK_BOT_TOKEN"] == "xoxb-test"
        assert json.loads(env["SLACK_EVENT_JSON"])["type"] == "app_mention"

    def test_environment_round_trips_to_job_settings(self):
        popen = _popen()
        JobLauncher("xoxb-test", command="job", popen=popen).launch(_request(CommandAction.feedback, None))

        settings = JobSettings.from_env(popen.call_args.kwargs["env"])
        assert settings.command_action == "feedback"
        assert settings.command_context is None

    def test_popen_failure_propagates(self):
        popen = MagicMock(side_effect=FileNotFoundError("python"))
        with pytest.raises(FileNotFoundError):
            JobLauncher("xoxb-test", command="job", popen=popen).launch(_request())
