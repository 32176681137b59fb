"""Sales-coaching feedback strategies.

WHY: Three flavours of feedback share one shape: build a prompt from a
prompt document, add the recording (as a transcript or as the media
itself), ask Gemini, and post the answer with the beta footer.

HOW: FeedbackStrategy transcribes with Deepgram and sends the prompt
document, optional context, and transcript as text parts, attaching any
configured reference documents. MatsuuraFeedbackStrategy is the same
with its own prompt and no references. WaltzFeedbackStrategy uploads the
recording itself to Gemini and skips transcription.

RULES:
- Prompt documents live in strategies/prompts/ and ship as package data
- Empty transcript → EMPTY_TRANSCRIPT message, no Gemini call
- Missing reference documents are skipped with a warning
- Results are posted with build_feedback_result()
"""

from __future__ import annotations

import logging
from pathlib import Path

from sales_clone_bot.config import feedback_reference_files
from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.slack import messages
from sales_clone_bot.strategies.base import JobContext, JobServices, MediaStrategy

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str) -> str:
    """Read a prompt document from the prompts directory."""
    return (PROMPTS_DIR / name).read_text(encoding="utf-8")


def context_section(context: str | None) -> str | None:
    if context and context.strip():
        return "追加コンテキスト:\n{}".format(context.strip())
    return None


class FeedbackStrategy(MediaStrategy):
    """Default feedback from the diarized transcript."""

    action = CommandAction.feedback
    prompt_file = "feedback.txt"

    def reference_files(self) -> list[Path]:
        existing = []
        for path in feedback_reference_files():
            if path.is_file():
                existing.append(path)
            else:
                logger.warning("Feedback reference document not found: %s", path)
        return existing

    def build_parts(self, ctx: JobContext, transcript: str) -> list[str]:
        parts = [load_prompt(self.prompt_file)]
        section = context_section(ctx.context)
        if section:
            parts.append(section)
        parts.append("文字起こし:\n{}".format(transcript))
        return parts

    async def run(self, ctx: JobContext, services: JobServices, media_path: Path, workdir: Path) -> None:
        transcript = await services.transcribe(media_path)
        if not transcript.strip():
            await self.reply(ctx, services, messages.EMPTY_TRANSCRIPT)
            return

        result = await services.gemini.generate_text(
            self.build_parts(ctx, transcript),
            attachments=self.reference_files(),
        )
        await self.reply(ctx, services, messages.build_feedback_result(self.action, result))


class MatsuuraFeedbackStrategy(FeedbackStrategy):
    """Feedback in the style learned from Matsuura-san's past reviews."""

    action = CommandAction.matsuura_feedback
    prompt_file = "matsuura.txt"

    def reference_files(self) -> list[Path]:
        return []


class WaltzFeedbackStrategy(MediaStrategy):
    """Appointment-call ("Waltz") feedback from the recording itself."""

    action = CommandAction.waltz_feedback
    prompt_file = "waltz.txt"

    async def run(self, ctx: JobContext, services: JobServices, media_path: Path, workdir: Path) -> None:
        prompt = load_prompt(self.prompt_file)
        section = context_section(ctx.context)
        if section:
            prompt = "{}\n\n{}".format(prompt, section)

        result = await services.gemini.generate_text([prompt], attachments=[media_path])
        await self.reply(ctx, services, messages.build_feedback_result(self.action, result))
