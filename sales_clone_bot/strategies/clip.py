"""Clip strategy: cut the requested time ranges and upload each segment.

WHY: Reviewers want to share a specific exchange from a long call
without re-uploading the whole recording.

HOW: TimeRangeExtractor reads the ranges from the mention text,
MediaSegmenter cuts them into the job workspace, and each segment is
uploaded into the thread on its own.

RULES:
- No ranges extracted → NO_TIME_RANGES notice, not an error
- Ranges extracted but nothing cut → CUT_FAILED notice, not an error
- One failed upload posts a per-file warning; the rest still upload
- A warning that cannot be posted is logged and does not stop the uploads
- Segments live in the workspace and are removed with it
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.slack import messages
from sales_clone_bot.strategies.base import JobContext, JobServices, MediaStrategy

logger = logging.getLogger(__name__)

SEGMENT_PREFIX = "cut_segment"


class ClipStrategy(MediaStrategy):
    action = CommandAction.clip

    async def run(self, ctx: JobContext, services: JobServices, media_path: Path, workdir: Path) -> None:
        ranges = await services.extractor.extract(ctx.context or "")
        if not ranges:
            logger.warning("No time ranges in %r; skipping clip", ctx.context)
            await self.reply(ctx, services, messages.NO_TIME_RANGES)
            return

        segmenter = services.make_segmenter(workdir / "segments")
        segments = await segmenter.cut_media(media_path, ranges, prefix=SEGMENT_PREFIX)
        if not segments:
            await self.reply(ctx, services, messages.CUT_FAILED)
            return

        await self.reply(ctx, services, messages.build_clip_started(len(segments)))
        await self.upload_each(
            ctx,
            services,
            [(segment, messages.build_clip_comment(segment.name)) for segment in segments],
        )
