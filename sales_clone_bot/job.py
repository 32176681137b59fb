"""Background job entry point: ``python -m sales_clone_bot.job``.

WHY: Each mention runs as its own process so the webhook can answer
Slack immediately. The job reads what to do from environment variables,
runs the matching strategy, and reports failure through its exit code.

HOW: main() configures logging, reads JobSettings.from_env(), builds the
collaborators (JobServices), selects the strategy for the action, and
runs it under asyncio.run().

RULES:
- Missing job variables or credentials → logged, exit code 1
- A strategy error (already posted to the thread) → exit code 1
- Success → exit code 0
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sales_clone_bot.config import ConfigurationError, JobSettings
from sales_clone_bot.strategies import JobContext, JobServices, select_strategy

logger = logging.getLogger(__name__)


async def run_job(settings: JobSettings, services: JobServices | None = None) -> None:
    """Run the strategy for one mention."""
    ctx = JobContext.from_settings(settings)
    services = services or JobServices.from_settings(settings)
    strategy = select_strategy(ctx.action)
    await strategy.execute(ctx, services)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        settings = JobSettings.from_env()
    except ConfigurationError as exc:
        logger.error("Job cannot start: %s", exc)
        return 1

    logger.info(
        "Job started: action=%s channel=%s thread=%s",
        settings.command_action, settings.channel_id, settings.thread_ts,
    )
    try:
        asyncio.run(run_job(settings))
    except Exception:
        logger.exception("Job failed: action=%s thread=%s", settings.command_action, settings.thread_ts)
        return 1

    logger.info("Job finished: action=%s thread=%s", settings.command_action, settings.thread_ts)
    return 0


if __name__ == "__main__":
    sys.exit(main())
