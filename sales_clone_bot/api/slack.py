"""Slack Web API service used by background jobs.

WHY: Jobs post progress and results into the originating thread, find
the recording attached to the thread, download it, and upload output
files. Strategies should not care about Slack pagination, private-file
auth headers, or the upload API version.

HOW: Wraps slack_sdk's WebClient. Its calls are blocking, so each one
runs in a worker thread via asyncio.to_thread to keep the job's event
loop free for concurrent Gemini work. Private file downloads use httpx
with the bot token as a Bearer header.

RULES:
- Uses files_upload_v2 (v1 is deprecated)
- conversations_replies is paginated with response_metadata.next_cursor
- SlackApiError is logged and re-raised
- Downloaded files get a uuid prefix to avoid name collisions
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any

import httpx
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from sales_clone_bot.api.models import SlackFile

logger = logging.getLogger(__name__)


class SlackService:
    """Thread-scoped Slack operations for one job.

    RULES:
    - Pass client= to inject a fake; otherwise a WebClient is built from bot_token
    - http_client= may be an httpx.AsyncClient; otherwise one is created per download
    """

    def __init__(
        self,
        bot_token: str,
        client: WebClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._client = client or WebClient(token=bot_token)
        self._http = http_client

    async def _call(self, method: str, **kwargs: Any) -> Any:
        func = getattr(self._client, method)
        try:
            return await asyncio.to_thread(func, **kwargs)
        except SlackApiError as exc:
            logger.error("Slack API %s failed: %s", method, exc.response.get("error") if exc.response else exc)
            raise

    async def post_message(self, channel: str, text: str, thread_ts: str | None = None) -> Any:
        """Post text to a channel, as a thread reply when thread_ts is given."""
        return await self._call("chat_postMessage", channel=channel, text=text, thread_ts=thread_ts)

    async def get_files_in_thread(self, channel: str, thread_ts: str) -> list[SlackFile]:
        """Return every file attached to any message in the thread, in thread order."""
        files: list[SlackFile] = []
        cursor: str | None = None
        while True:
            kwargs: dict[str, Any] = {"channel": channel, "ts": thread_ts}
            if cursor:
                kwargs["cursor"] = cursor
            resp = await self._call("conversations_replies", **kwargs)
            for message in resp.get("messages", []):
                for raw in message.get("files", []) or []:
                    if raw.get("id"):
                        files.append(SlackFile.from_dict(raw))
            cursor = (resp.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
        logger.info("Found %d file(s) in thread %s", len(files), thread_ts)
        return files

    async def get_file_download_url(self, file_id: str) -> str:
        """Look up the private download URL for a file.

        RULES:
        - Raises ValueError if files.info returns no url_private_download
        """
        resp = await self._call("files_info", file=file_id)
        url = (resp.get("file") or {}).get("url_private_download")
        if not url:
            raise ValueError(f"No download URL for Slack file {file_id}")
        return url

    async def download_file(self, file: SlackFile, dest_dir: Path) -> Path:
        """Download a private Slack file into dest_dir and return the local path."""
        url = file.url_private_download or await self.get_file_download_url(file.id)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        local_path = dest_dir / f"{uuid.uuid4()}-{Path(file.name).name}"
        headers = {"Authorization": f"Bearer {self._bot_token}"}

        logger.info("Downloading %s to %s", file.name, local_path)
        http = self._http or httpx.AsyncClient(timeout=httpx.Timeout(300.0, connect=30.0))
        try:
            async with http.stream("GET", url, headers=headers, follow_redirects=True) as resp:
                resp.raise_for_status()
                with open(local_path, "wb") as fh:
                    async for chunk in resp.aiter_bytes():
                        fh.write(chunk)
        except Exception:
            logger.exception("Failed to download %s", file.name)
            local_path.unlink(missing_ok=True)
            raise
        finally:
            if self._http is None:
                await http.aclose()
        logger.info("Downloaded %s (%d bytes)", file.name, local_path.stat().st_size)
        return local_path

    async def upload_file(
        self,
        channel: str,
        thread_ts: str,
        path: Path,
        filename: str | None = None,
        initial_comment: str | None = None,
    ) -> Any:
        """Upload a local file into the thread."""
        path = Path(path)
        kwargs: dict[str, Any] = {
            "channel": channel,
            "thread_ts": thread_ts,
            "file": str(path),
            "filename": filename or path.name,
            "title": filename or path.name,
        }
        if initial_comment:
            kwargs["initial_comment"] = initial_comment
        resp = await self._call("files_upload_v2", **kwargs)
        logger.info("Uploaded %s to thread %s", kwargs["filename"], thread_ts)
        return resp
