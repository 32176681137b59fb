"""Shared mention workflow for every action strategy.

WHY: Every action follows the same outer flow: find the thread's
recording, download it, do the action-specific work, report errors in
the thread, and always clean up. Writing that once keeps the strategies
down to their actual business logic.

HOW: MediaStrategy.execute() is the template: list thread files → pick
the target media → download into a JobWorkspace → run() → on error post
an in-thread message and re-raise. The workspace context manager removes
every downloaded and generated file when the block exits. JobServices
bundles the explicitly constructed collaborators a job needs.

RULES:
- No files in thread / no supported media → message posted, no error
- Any exception from run() → logged, posted to the thread, re-raised
- A failure to post the error message never hides the original error
- Workspace cleanup runs on success, soft stop, and failure alike
- upload_each() reports a failed upload in the thread and moves on to the next
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sales_clone_bot.api.deepgram import DeepgramClient
from sales_clone_bot.api.gemini import GeminiClient
from sales_clone_bot.api.slack import SlackService
from sales_clone_bot.config import FFMPEG_PATH, WORKSPACE_ROOT, JobSettings
from sales_clone_bot.core.command_parser import DEFAULT_ACTION, CommandAction
from sales_clone_bot.core.media_files import JobWorkspace, find_target_media_file
from sales_clone_bot.core.media_segmenter import MediaSegmenter
from sales_clone_bot.core.time_extraction import TimeRangeExtractor
from sales_clone_bot.slack import messages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobContext:
    """What the mention asked for and where to answer."""

    channel_id: str
    thread_ts: str
    action: CommandAction
    context: str | None = None
    event: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: JobSettings) -> JobContext:
        """Build from job environment settings.

        RULES:
        - An unknown action string maps to the default action
        - Unparseable event JSON is logged and replaced by {}
        """
        try:
            action = CommandAction(settings.command_action)
        except ValueError:
            logger.warning("Unknown action %r, using %s", settings.command_action, DEFAULT_ACTION.value)
            action = DEFAULT_ACTION
        try:
            event = json.loads(settings.event_json) if settings.event_json else {}
        except json.JSONDecodeError:
            logger.warning("SLACK_EVENT_JSON is not valid JSON; ignoring it")
            event = {}
        return cls(
            channel_id=settings.channel_id,
            thread_ts=settings.thread_ts,
            action=action,
            context=settings.command_context,
            event=event if isinstance(event, dict) else {},
        )


@dataclass
class JobServices:
    """Collaborators for one job, constructed once and passed to the strategy."""

    slack: SlackService
    gemini: GeminiClient
    extractor: TimeRangeExtractor
    deepgram_factory: Callable[[], DeepgramClient] = DeepgramClient
    ffmpeg_path: str = FFMPEG_PATH
    workspace_root: Path = WORKSPACE_ROOT

    @classmethod
    def from_settings(cls, settings: JobSettings) -> JobServices:
        gemini = GeminiClient()
        return cls(
            slack=SlackService(settings.bot_token),
            gemini=gemini,
            extractor=TimeRangeExtractor(client=gemini),
        )

    async def transcribe(self, path: Path) -> str:
        async with self.deepgram_factory() as client:
            return await client.transcribe(path)

    def make_segmenter(self, output_dir: Path) -> MediaSegmenter:
        return MediaSegmenter(output_dir, ffmpeg_path=self.ffmpeg_path)


class MediaStrategy:
    """Base class for strategies that operate on the thread's media file.

    Subclasses set ``action`` and implement run().
    """

    action: CommandAction = DEFAULT_ACTION

    async def run(self, ctx: JobContext, services: JobServices, media_path: Path, workdir: Path) -> None:
        raise NotImplementedError

    async def execute(self, ctx: JobContext, services: JobServices) -> None:
        logger.info(
            "Running %s for channel=%s thread=%s", self.action.value, ctx.channel_id, ctx.thread_ts
        )
        try:
            with JobWorkspace(ctx.channel_id, ctx.thread_ts, services.workspace_root) as workdir:
                files = await services.slack.get_files_in_thread(ctx.channel_id, ctx.thread_ts)
                if not files:
                    await self.reply(ctx, services, messages.NO_FILES_IN_THREAD)
                    return

                target = find_target_media_file(files)
                if target is None:
                    await self.reply(ctx, services, messages.NO_MEDIA_FILE)
                    return

                media_path = await services.slack.download_file(target, workdir)
                await self.run(ctx, services, media_path, workdir)
        except Exception as exc:
            logger.exception("%s failed for thread %s", self.action.value, ctx.thread_ts)
            await self.reply_quietly(ctx, services, messages.build_error(self.action, exc))
            raise
        logger.info("%s finished for thread %s", self.action.value, ctx.thread_ts)

    async def reply(self, ctx: JobContext, services: JobServices, text: str) -> None:
        await services.slack.post_message(ctx.channel_id, text, thread_ts=ctx.thread_ts)

    async def reply_quietly(self, ctx: JobContext, services: JobServices, text: str) -> None:
        """reply() that logs a posting failure instead of raising it."""
        try:
            await self.reply(ctx, services, text)
        except Exception:
            logger.exception("Failed to post message to thread %s", ctx.thread_ts)

    async def upload_each(
        self,
        ctx: JobContext,
        services: JobServices,
        uploads: Sequence[tuple[Path, str]],
    ) -> int:
        """Upload (path, initial_comment) pairs into the thread one by one.

        Returns:
            The number of uploads that failed.
        """
        failed = 0
        for path, comment in uploads:
            try:
                await services.slack.upload_file(
                    ctx.channel_id,
                    ctx.thread_ts,
                    path,
                    filename=path.name,
                    initial_comment=comment,
                )
            except Exception as exc:
                failed += 1
                logger.error("Failed to upload %s: %s", path.name, exc)
                await self.reply_quietly(ctx, services, messages.build_upload_failed(path.name))
        logger.info("Uploaded %d of %d file(s) to thread %s", len(uploads) - failed, len(uploads), ctx.thread_ts)
        return failed
