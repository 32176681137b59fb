"""Cut a local media file into one segment per time range with ffmpeg.

WHY: The clip action delivers each requested range as its own file.
ffmpeg with stream copy is fast and lossless, but it can exit 0 and still
write an empty file for some codec/container combinations, so the output
file itself is the success signal.

HOW: For each range: validate both timestamps, compute the duration,
skip near-zero or negative durations, then run
``ffmpeg -ss START -i INPUT -t DURATION -c copy -avoid_negative_ts make_zero OUT``
through an injectable async runner and check the output exists and is
non-empty.

RULES:
- Empty range list → NoValidTimeRangesError
- Malformed timestamps and durations <= 0.001 s are skipped with a warning
- Output name: {prefix}_{run uuid}_segment_{range index}{input extension}
- Non-zero exit or missing/empty output → SegmentCutError (partial file removed)
- On any error every segment created in this call is deleted before re-raising
- Ranges given but none cut → [] (the caller reports it)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from sales_clone_bot.config import FFMPEG_PATH
from sales_clone_bot.core.time_ranges import TimeRange, time_to_seconds

logger = logging.getLogger(__name__)

MIN_SEGMENT_DURATION_S = 0.001

CommandRunner = Callable[[Sequence[str]], Awaitable[tuple[int, str]]]
"""Runs a command and returns (exit code, stderr text)."""


class NoValidTimeRangesError(ValueError):
    """Raised when cut_media() is called without any time ranges."""


class SegmentCutError(Exception):
    """Raised when ffmpeg fails or produces no usable output for a range.

    RULES:
    - index is the position of the range in the request
    - stderr holds ffmpeg's diagnostic output (may be empty)
    """

    def __init__(self, index: int, time_range: TimeRange, reason: str, stderr: str = "") -> None:
        self.index = index
        self.time_range = time_range
        self.stderr = stderr
        super().__init__(
            "Failed to cut segment {} [{}-{}]: {}".format(
                index, time_range.start, time_range.end, reason
            )
        )


class MediaToolNotFoundError(FileNotFoundError):
    """Raised when the ffmpeg binary cannot be executed."""


async def run_command(args: Sequence[str]) -> tuple[int, str]:
    """Default CommandRunner backed by asyncio.create_subprocess_exec."""
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise MediaToolNotFoundError("Media tool not found: {}".format(args[0])) from exc
    _, stderr = await process.communicate()
    return process.returncode or 0, stderr.decode("utf-8", errors="replace")


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to remove segment file %s: %s", path, exc)


class MediaSegmenter:
    """Cuts segments into output_dir.

    RULES:
    - output_dir is created on first use
    - runner defaults to run_command (real ffmpeg); tests inject a fake
    """

    def __init__(
        self,
        output_dir: Path,
        ffmpeg_path: str = FFMPEG_PATH,
        runner: CommandRunner | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.ffmpeg_path = ffmpeg_path
        self._runner = runner or run_command

    def build_command(self, input_path: Path, start: str, duration: float, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-y",
            "-ss", start,
            "-i", str(input_path),
            "-t", "{:.3f}".format(duration),
            "-c", "copy",
            "-avoid_negative_ts", "make_zero",
            str(output_path),
        ]

    async def cut_media(
        self,
        input_path: Path,
        time_ranges: Sequence[TimeRange],
        prefix: str = "cut",
    ) -> list[Path]:
        """Cut input_path once per valid range.

        Args:
            input_path: Local media file to cut.
            time_ranges: Ranges in request order.
            prefix: Output filename prefix.

        Returns:
            Paths of the segments that were written, in range order.
        """
        if not time_ranges:
            raise NoValidTimeRangesError("No time ranges provided.")

        input_path = Path(input_path)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        run_id = uuid.uuid4().hex
        created: list[Path] = []
        logger.info("Cutting %d range(s) from %s", len(time_ranges), input_path.name)

        try:
            for index, time_range in enumerate(time_ranges):
                start_s = time_to_seconds(time_range.start)
                end_s = time_to_seconds(time_range.end)
                if start_s is None or end_s is None:
                    logger.warning(
                        "Skipping range %d with invalid time format: %s-%s",
                        index, time_range.start, time_range.end,
                    )
                    continue
                duration = end_s - start_s
                if duration <= MIN_SEGMENT_DURATION_S:
                    logger.warning(
                        "Skipping range %d with non-positive duration: %s-%s (%.3fs)",
                        index, time_range.start, time_range.end, duration,
                    )
                    continue

                output_path = self.output_dir / "{}_{}_segment_{}{}".format(
                    prefix, run_id, index, input_path.suffix
                )
                await self._cut_one(index, time_range, input_path, duration, output_path)
                created.append(output_path)
        except Exception:
            logger.error("Segment cutting failed; removing %d segment(s) created so far", len(created))
            for path in created:
                _remove_quietly(path)
            raise

        if not created:
            logger.error("No segments were cut from %s", input_path.name)
        else:
            logger.info("Cut %d segment(s) from %s", len(created), input_path.name)
        return created

    async def _cut_one(
        self,
        index: int,
        time_range: TimeRange,
        input_path: Path,
        duration: float,
        output_path: Path,
    ) -> None:
        command = self.build_command(input_path, time_range.start, duration, output_path)
        logger.info("Running ffmpeg for segment %d: %s", index, " ".join(command))
        returncode, stderr = await self._runner(command)

        if returncode != 0:
            _remove_quietly(output_path)
            logger.error("ffmpeg exited with %d for segment %d: %s", returncode, index, stderr)
            raise SegmentCutError(index, time_range, "ffmpeg exited with {}".format(returncode), stderr)

        if not output_path.is_file() or output_path.stat().st_size == 0:
            _remove_quietly(output_path)
            logger.error("ffmpeg produced no output for segment %d: %s", index, stderr)
            raise SegmentCutError(index, time_range, "output file is missing or empty", stderr)

        if stderr.strip():
            logger.debug("ffmpeg stderr for segment %d: %s", index, stderr)
        logger.info("Cut segment %d to %s (%d bytes)", index, output_path.name, output_path.stat().st_size)
