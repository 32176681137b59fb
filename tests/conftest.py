"""Shared test fixtures for the sales_clone_bot test suite.

WHY: Strategy, job, and bot tests all need the same fake collaborators:
a Slack service that "downloads" a file into the workspace, a Gemini
client, a time-range extractor, and a transcriber. Centralizing them
keeps each test focused on the behaviour it checks.

HOW: Collaborators are MagicMock objects whose coroutine methods are
AsyncMocks. The fake download writes a small file into the job
workspace so cleanup behaviour can be observed on disk.

RULES:
- No network access, no real ffmpeg, no real API keys
- Workspaces live under pytest's tmp_path
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from sales_clone_bot.api.models import SlackFile
from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.strategies.base import JobContext

CHANNEL = "C0123456"
THREAD_TS = "1712345678.000100"

# Keep tests independent of a developer's .env
for _name in ("GEMINI_API_KEY", "DEEPGRAM_API_KEY", "TARGET_FILE_ORDER", "FEEDBACK_REFERENCE_FILES"):
    os.environ.pop(_name, None)


def make_slack_file(name: str = "call.mp4", created: int = 1700000000, file_id: str = "F1") -> SlackFile:
    return SlackFile(
        id=file_id,
        name=name,
        created=created,
        url_private_download="https://files.slack.com/{}/{}".format(file_id, name),
    )


@pytest.fixture
def job_context():
    """Factory for JobContext values pointing at the test thread."""

    def _make(action: CommandAction = CommandAction.feedback, context: str | None = None) -> JobContext:
        return JobContext(channel_id=CHANNEL, thread_ts=THREAD_TS, action=action, context=context)

    return _make


@pytest.fixture
def services(tmp_path: Path):
    """Fake JobServices with one media file in the thread."""
    svc = MagicMock()
    svc.workspace_root = tmp_path / "workspaces"

    svc.slack.get_files_in_thread = AsyncMock(return_value=[make_slack_file()])

    async def _download(file: SlackFile, dest_dir: Path) -> Path:
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        path = dest_dir / "downloaded-{}".format(file.name)
        path.write_bytes(b"fake media")
        return path

    svc.slack.download_file = AsyncMock(side_effect=_download)
    svc.slack.post_message = AsyncMock()
    svc.slack.upload_file = AsyncMock()

    svc.transcribe = AsyncMock(return_value="[00:01.00] [SPEAKER 0] こんにちは")
    svc.gemini.generate_text = AsyncMock(return_value="良い商談でした。")
    svc.extractor.extract = AsyncMock(return_value=[])
    return svc


def posted_texts(svc: MagicMock) -> list[str]:
    """Texts passed to slack.post_message, in call order."""
    return [c.args[1] for c in svc.slack.post_message.call_args_list]
