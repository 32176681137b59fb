"""Transcribe-and-summarize strategy.

WHY: Some threads only need the call written down plus a short summary,
delivered as files that can be forwarded or archived.

HOW: Deepgram produces the diarized transcript, Gemini summarizes it
(using the mention text as the summary viewpoint when given), and both
texts are written to the workspace and uploaded to the thread.

RULES:
- Empty transcript → EMPTY_TRANSCRIPT message, nothing uploaded
- Upload order: transcript.txt, then summary.txt
- A failed upload posts a per-file warning; the other file still uploads
"""

from __future__ import annotations

from pathlib import Path

from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.slack import messages
from sales_clone_bot.strategies.base import JobContext, JobServices, MediaStrategy

TRANSCRIPT_FILENAME = "transcript.txt"
SUMMARY_FILENAME = "summary.txt"


def build_summary_prompt(transcript: str, context: str | None) -> str:
    if context and context.strip():
        return "要約の観点: {}\n\n文字起こし:\n{}".format(context.strip(), transcript)
    return "以下の文字起こしを要約してください。\n\n{}".format(transcript)


class TranscribeAndSummarizeStrategy(MediaStrategy):
    action = CommandAction.transcribe_and_summarize

    async def run(self, ctx: JobContext, services: JobServices, media_path: Path, workdir: Path) -> None:
        transcript = await services.transcribe(media_path)
        if not transcript.strip():
            await self.reply(ctx, services, messages.EMPTY_TRANSCRIPT)
            return

        summary = await services.gemini.generate_text([build_summary_prompt(transcript, ctx.context)])

        transcript_path = workdir / TRANSCRIPT_FILENAME
        summary_path = workdir / SUMMARY_FILENAME
        transcript_path.write_text(transcript, encoding="utf-8")
        summary_path.write_text(summary, encoding="utf-8")

        await self.upload_each(
            ctx,
            services,
            [
                (transcript_path, messages.TRANSCRIPT_COMMENT),
                (summary_path, messages.SUMMARY_COMMENT),
            ],
        )
