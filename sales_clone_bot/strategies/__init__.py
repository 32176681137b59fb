"""Action strategy registry.

WHY: The job runner needs exactly one strategy per parsed action, with a
predictable fallback for anything it does not recognise.

HOW: STRATEGIES maps each CommandAction to a strategy instance;
select_strategy() looks the action up and falls back to default feedback.

RULES:
- Adding an action = one strategy module + one entry here
- Unknown, unmapped, or None actions → FeedbackStrategy
"""

from __future__ import annotations

import logging

from sales_clone_bot.core.command_parser import CommandAction
from sales_clone_bot.strategies.base import JobContext, JobServices, MediaStrategy
from sales_clone_bot.strategies.clip import ClipStrategy
from sales_clone_bot.strategies.feedback import (
    FeedbackStrategy,
    MatsuuraFeedbackStrategy,
    WaltzFeedbackStrategy,
)
from sales_clone_bot.strategies.transcribe import TranscribeAndSummarizeStrategy

logger = logging.getLogger(__name__)

STRATEGIES: dict[CommandAction, MediaStrategy] = {
    CommandAction.feedback: FeedbackStrategy(),
    CommandAction.matsuura_feedback: MatsuuraFeedbackStrategy(),
    CommandAction.waltz_feedback: WaltzFeedbackStrategy(),
    CommandAction.clip: ClipStrategy(),
    CommandAction.transcribe_and_summarize: TranscribeAndSummarizeStrategy(),
}


def select_strategy(action: CommandAction | str | None) -> MediaStrategy:
    """Return the strategy for action, defaulting to feedback."""
    try:
        return STRATEGIES[CommandAction(action)]
    except (KeyError, ValueError):
        logger.warning("No strategy for action %r; using feedback", action)
        return STRATEGIES[CommandAction.feedback]


__all__ = [
    "STRATEGIES",
    "JobContext",
    "JobServices",
    "MediaStrategy",
    "select_strategy",
]
