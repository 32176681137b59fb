"""Background-job launcher.

WHY: Slack expects the webhook to answer within 3 seconds, but
transcription and generation take minutes. Each mention therefore runs
in its own process, parameterized entirely through environment
variables so the same job entry point works locally and on a hosted job
runner.

HOW: JobLauncher turns a JobRequest into the JOB_ENV_VARS mapping and
starts JOB_COMMAND with subprocess.Popen in a new session, without
waiting for it.

RULES:
- The child inherits the server environment plus the job variables
- launch() returns the child PID and never blocks on the job
- Launch failures propagate to the caller (the mention handler reports them)
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
from collections.abc import Callable
from typing import Any

from sales_clone_bot.config import JOB_COMMAND, JobSettings
from sales_clone_bot.server.models import JobRequest

logger = logging.getLogger(__name__)


class JobLauncher:
    """Starts one detached job process per request."""

    def __init__(
        self,
        bot_token: str,
        command: str | None = None,
        popen: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self._bot_token = bot_token
        self.command = shlex.split(command or JOB_COMMAND)
        self._popen = popen

    def build_settings(self, request: JobRequest) -> JobSettings:
        return JobSettings(
            channel_id=request.channel_id,
            thread_ts=request.thread_ts,
            command_action=request.command_action.value,
            command_context=request.command_context,
            event_json=json.dumps(request.event, ensure_ascii=False),
            bot_token=self._bot_token,
        )

    def launch(self, request: JobRequest) -> int:
        env = dict(os.environ)
        env.update(self.build_settings(request).to_env())
        process = self._popen(
            self.command,
            env=env,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.info(
            "Launched job pid=%s action=%s channel=%s thread=%s",
            process.pid, request.command_action.value, request.channel_id, request.thread_ts,
        )
        return process.pid
