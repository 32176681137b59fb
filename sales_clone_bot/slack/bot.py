"""Slack bot: app_mention handling and job hand-off.

WHY: A mention is the only way users talk to the bot. The handler has to
acknowledge it quickly, decide what was asked, and leave the slow work to
a background job.

HOW: Uses slack-bolt over HTTP (the FastAPI receiver forwards
/slack/events to Bolt, which verifies the request signature and acks the
event). handle_app_mention() resolves the thread, parses the command,
posts the acceptance message, and launches a job through the injected
launcher.

RULES:
- Events are acked by Bolt before the listener runs
- The reply thread is the event's thread_ts, or its ts for top-level mentions
- Invalid commands get INVALID_COMMAND and no job
- Launch failures are logged and reported in the thread
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from slack_bolt import App

from sales_clone_bot.core.command_parser import parse_command
from sales_clone_bot.server.launcher import JobLauncher
from sales_clone_bot.server.models import JobRequest
from sales_clone_bot.slack import messages

logger = logging.getLogger(__name__)


def create_app(
    bot_token: str,
    signing_secret: str,
    launcher: Optional[JobLauncher] = None,
    token_verification_enabled: bool = True,
) -> App:
    """Create the Bolt app with the app_mention handler registered.

    WHY: Factory function lets tests inject a fake launcher and skip the
    auth.test call Bolt makes on startup.

    RULES:
    - launcher defaults to JobLauncher(bot_token)
    """
    app = App(
        token=bot_token,
        signing_secret=signing_secret,
        token_verification_enabled=token_verification_enabled,
    )
    job_launcher = launcher or JobLauncher(bot_token)

    def on_app_mention(event: Dict[str, Any], client: Any) -> None:
        handle_app_mention(event, client, job_launcher)

    app.event("app_mention")(on_app_mention)
    return app


def _post(client: Any, channel: str, thread_ts: str, text: str) -> None:
    try:
        client.chat_postMessage(channel=channel, thread_ts=thread_ts, text=text)
    except Exception:
        logger.exception("Failed to post message to %s/%s", channel, thread_ts)


def handle_app_mention(event: Dict[str, Any], client: Any, launcher: JobLauncher) -> Optional[int]:
    """Parse a mention and launch the matching background job.

    Args:
        event: The app_mention event payload.
        client: Slack WebClient (Bolt injects the app's client).
        launcher: Starts the background job.

    Returns:
        The job PID, or None when no job was launched.
    """
    channel = event.get("channel", "")
    thread_ts = event.get("thread_ts") or event.get("ts") or ""
    text = event.get("text", "")
    logger.info("Mention received in %s/%s: %r", channel, thread_ts, text)

    _post(client, channel, thread_ts, messages.ACCEPTED)

    command = parse_command(text)
    if not command.is_valid or command.action is None:
        _post(client, channel, thread_ts, messages.INVALID_COMMAND)
        return None

    try:
        request = JobRequest(
            channel_id=channel,
            thread_ts=thread_ts,
            command_action=command.action,
            command_context=command.context,
            event=event,
        )
        return launcher.launch(request)
    except Exception:
        logger.exception("Failed to launch job for %s/%s", channel, thread_ts)
        _post(client, channel, thread_ts, messages.LAUNCH_FAILED)
        return None
