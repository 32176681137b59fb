"""Target-file selection and per-job workspace handling.

WHY: A thread can hold several attachments (decks, screenshots, more
than one recording). Every action needs the same answer to "which file
do we process", and every job needs a scratch directory it owns.

HOW: find_target_media_file() filters attachments by extension and
orders them by their Slack creation timestamp. JobWorkspace is a context
manager around {WORKSPACE_ROOT}/{channel}-{thread_ts with "." → "_"}/{job uuid}
that removes its own job directory on exit.

RULES:
- Only MEDIA_EXTENSIONS count as media (case-insensitive)
- Default order is oldest first; TARGET_FILE_ORDER=newest flips it
- Workspace removal is best-effort: failures are logged, never raised
- Jobs in the same thread never share a directory; the thread directory
  is only removed once it is empty
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterable
from pathlib import Path

from sales_clone_bot.api.models import SlackFile
from sales_clone_bot.config import MEDIA_EXTENSIONS, TARGET_FILE_ORDER, WORKSPACE_ROOT

logger = logging.getLogger(__name__)


def is_media_file(filename: str) -> bool:
    """Return True if filename has a supported audio/video extension."""
    return Path(filename).suffix.lower() in MEDIA_EXTENSIONS


def find_target_media_file(files: Iterable[SlackFile], order: str | None = None) -> SlackFile | None:
    """Pick the media file to process from a thread's attachments.

    RULES:
    - Non-media files are ignored
    - order "oldest" (default) returns the earliest upload, "newest" the latest
    - Ties keep thread order
    - No media → None
    """
    media = [f for f in files if is_media_file(f.name)]
    if not media:
        return None
    newest_first = (order or TARGET_FILE_ORDER) == "newest"
    media.sort(key=lambda f: f.created, reverse=newest_first)
    return media[0]


def workspace_dir(channel_id: str, thread_ts: str, root: Path | None = None) -> Path:
    return Path(root or WORKSPACE_ROOT) / "{}-{}".format(channel_id, thread_ts.replace(".", "_"))


class JobWorkspace:
    """Scratch directory owned by one job.

    Use as: ``with JobWorkspace(channel, thread_ts) as workdir: ...``

    RULES:
    - path is unique per instance, under the thread directory
    - cleanup() removes only path, then the thread directory if it is empty
    """

    def __init__(self, channel_id: str, thread_ts: str, root: Path | None = None) -> None:
        self.thread_dir = workspace_dir(channel_id, thread_ts, root)
        self.path = self.thread_dir / uuid.uuid4().hex

    def __enter__(self) -> Path:
        self.path.mkdir(parents=True, exist_ok=True)
        logger.info("Created job workspace %s", self.path)
        return self.path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.cleanup()

    def cleanup(self) -> None:
        if self.path.exists():
            try:
                shutil.rmtree(self.path)
                logger.info("Removed job workspace %s", self.path)
            except OSError as exc:
                logger.warning("Failed to remove job workspace %s: %s", self.path, exc)
                return
        try:
            self.thread_dir.rmdir()
        except OSError:
            # Missing, or still in use by another job in the thread
            pass
