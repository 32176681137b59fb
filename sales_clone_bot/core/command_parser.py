"""Mention-text command parser.

WHY: Users talk to the bot in free-form Japanese or English ("@bot
10分から12分まで切り抜いて", "@bot 松浦さんAIでフィードバック"). The
webhook handler needs a single structured decision (which action to run
and what text to hand it) before launching a background job.

HOW: Strip the first user-mention token, trim, then scan the remaining
text for keyword sets in a fixed priority order. The first action whose
keywords appear (substring match, case-insensitive for ASCII) wins.

RULES:
- Empty text after stripping → feedback with context None
- Priority: clip > transcribe_and_summarize > matsuura_feedback >
  waltz_feedback > feedback
- No keyword match → feedback
- Context is always the full cleaned text; keywords are not removed
- Never raises: any internal failure yields an invalid ParsedCommand
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"<@[A-Z0-9]+>")


class CommandAction(str, Enum):
    """Actions the bot can run for a mention."""

    feedback = "feedback"
    matsuura_feedback = "matsuura_feedback"
    waltz_feedback = "waltz_feedback"
    clip = "clip"
    transcribe_and_summarize = "transcribe_and_summarize"


DEFAULT_ACTION = CommandAction.feedback

# Checked in order; the first action with a matching keyword wins.
COMMAND_KEYWORDS: list[tuple[CommandAction, tuple[str, ...]]] = [
    (CommandAction.clip, ("切り抜き", "カット", "cut", "clip")),
    (CommandAction.transcribe_and_summarize, ("文字起こし", "transcribe", "transcription")),
    (CommandAction.matsuura_feedback, ("松浦さんAIでフィードバック", "松浦さんAI", "松浦さん")),
    (CommandAction.waltz_feedback, ("ワルツ", "アポアポ")),
    (CommandAction.feedback, ("フィードバック", "FB")),
]


@dataclass(frozen=True)
class ParsedCommand:
    """Result of parsing one mention.

    RULES:
    - is_valid=False always comes with action=None and context=None
    - context is None only when the mention carried no text
    """

    is_valid: bool
    action: CommandAction | None
    context: str | None


INVALID_COMMAND = ParsedCommand(is_valid=False, action=None, context=None)


def _matches(text: str, keyword: str) -> bool:
    if keyword.isascii():
        return keyword.lower() in text.lower()
    return keyword in text


def detect_action(text: str) -> CommandAction:
    """Return the highest-priority action whose keyword appears in text."""
    for action, keywords in COMMAND_KEYWORDS:
        if any(_matches(text, keyword) for keyword in keywords):
            return action
    return DEFAULT_ACTION


def parse_command(text: str) -> ParsedCommand:
    """Parse a raw app_mention text into a ParsedCommand.

    WHY: Keeps the keyword policy in one place so the webhook handler and
    the job runner agree on what a mention means.

    HOW: Removes the first ``<@UXXXX>`` token, trims whitespace, and
    applies detect_action() to the remainder.

    RULES:
    - "<@U123>" alone → ParsedCommand(True, feedback, None)
    - Both a clip and a feedback keyword → clip
    - Non-string input or any unexpected error → INVALID_COMMAND

    Args:
        text: The event's ``text`` field, including the mention token.

    Returns:
        The parsed command.
    """
    try:
        cleaned = _MENTION_RE.sub("", text, count=1).strip()
        if not cleaned:
            logger.info("Parsed mention with no instruction: action=%s", DEFAULT_ACTION.value)
            return ParsedCommand(is_valid=True, action=DEFAULT_ACTION, context=None)

        action = detect_action(cleaned)
        logger.info("Parsed command: action=%s context=%r", action.value, cleaned)
        return ParsedCommand(is_valid=True, action=action, context=cleaned)
    except Exception:
        logger.exception("Failed to parse command text")
        return INVALID_COMMAND
