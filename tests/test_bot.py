"""Tests for the app_mention handler.

WHY: The handler is the only code that runs while Slack waits for a
response. It must always acknowledge, never launch a job for an invalid
command, and report launch failures in the thread.

HOW: handle_app_mention() is called directly with a MagicMock Slack
client and a MagicMock launcher. No Bolt dispatch, no network.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from slack_bolt import App

from conftest import CHANNEL, THREAD_TS
from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.slack import messages
from sales_clone_bot.slack.bot import create_app, handle_app_mention


def _event(text="<@UBOT> フィードバック", thread_ts=THREAD_TS, ts="1712345999.000200"):
    event = {"type": "app_mention", "channel": CHANNEL, "user": "U1", "text": text, "ts": ts}
    if thread_ts:
        event["thread_ts"] = thread_ts
    return event


def _launcher(pid=4242):
    launcher = MagicMock()
    launcher.launch.return_value = pid
    return launcher


def _texts(client):
    return [c.kwargs["text"] for c in client.chat_postMessage.call_args_list]


class TestHandleAppMention:
    def test_launches_job_for_thread(self):
        client, launcher = MagicMock(), _launcher()

        pid = handle_app_mention(_event("<@UBOT> 松浦さんAIでフィードバック"), client, launcher)

        assert pid == 4242
        request = launcher.launch.call_args.args[0]
        assert request.channel_id == CHANNEL
        assert request.thread_ts == THREAD_TS
        assert request.command_action == CommandAction.matsuura_feedback
        assert request.command_context == "松浦さんAIでフィードバック"
        assert request.event["user"] == "U1"

    def test_acknowledges_first(self):
        client = MagicMock()

        handle_app_mention(_event(), client, _launcher())

        assert _texts(client) == [messages.ACCEPTED]
        assert client.chat_postMessage.call_args.kwargs["thread_ts"] == THREAD_TS

    def test_top_level_mention_uses_ts(self):
        client, launcher = MagicMock(), _launcher()

        handle_app_mention(_event(thread_ts=None, ts="1712345999.000200"), client, launcher)

        assert launcher.launch.call_args.args[0].thread_ts == "1712345999.000200"
        assert client.chat_postMessage.call_args.kwargs["thread_ts"] == "1712345999.000200"

    def test_mention_only_runs_default_feedback(self):
        launcher = _launcher()

        handle_app_mention(_event("<@UBOT>"), MagicMock(), launcher)

        request = launcher.launch.call_args.args[0]
        assert request.command_action == CommandAction.feedback
        assert request.command_context is None

    def test_invalid_command(self):
        client, launcher = MagicMock(), _launcher()
        event = _event()
        event["text"] = None

        assert handle_app_mention(event, client, launcher) is None
        launcher.launch.assert_not_called()
        assert _texts(client) == [messages.ACCEPTED, messages.INVALID_COMMAND]

    def test_launch_failure_reported(self):
        client, launcher = MagicMock(), _launcher()
        launcher.launch.side_effect = OSError("fork failed")

        assert handle_app_mention(_event(), client, launcher) is None
        assert _texts(client) == [messages.ACCEPTED, messages.LAUNCH_FAILED]

    def test_missing_channel_reported_as_launch_failure(self):
        client, launcher = MagicMock(), _launcher()
        event = _event()
        del event["channel"]

        assert handle_app_mention(event, client, launcher) is None
        launcher.launch.assert_not_called()
        assert _texts(client)[-1] == messages.LAUNCH_FAILED

    def test_post_failure_does_not_block_launch(self):
        client, launcher = MagicMock(), _launcher()
        client.chat_postMessage.side_effect = RuntimeError("rate limited")

        assert handle_app_mention(_event(), client, launcher) == 4242


class TestCreateApp:
    def test_builds_bolt_app_without_network(self):
        app = create_app("xoxb-test", "secret", launcher=_launcher(), token_verification_enabled=False)
        assert isinstance(app, App)
