"""TimeRange model, timestamp arithmetic, and model-output validation.

WHY: Time ranges arrive as untrusted JSON from a generative model and
leave as ffmpeg seek/duration arguments. Both ends need the same strict
notion of what a timestamp is.

HOW: Two regexes define the accepted formats: STRICT ("HH:MM:SS") for
what the extractor returns and CUT ("HH:MM:SS" with optional fractional
seconds) for what the segmenter accepts. Each entry of the model answer
is checked with jsonschema against TIME_RANGE_ENTRY_SCHEMA. Helpers
convert to seconds and carry overflowing minutes/seconds into the next
unit.

RULES:
- Every TimeRange returned by parse_time_ranges() matches STRICT on both ends
- Malformed entries are dropped, never raised
- "00:75:30" is carried to "01:15:30"; entries whose hours no longer fit
  two digits are dropped
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import jsonschema

logger = logging.getLogger(__name__)

STRICT_TIME_RE = re.compile(r"^\d{2}:\d{2}:\d{2}$")
CUT_TIME_RE = re.compile(r"^(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?$")

TIME_RANGE_ENTRY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "start": {"type": "string", "pattern": STRICT_TIME_RE.pattern},
        "end": {"type": "string", "pattern": STRICT_TIME_RE.pattern},
    },
    "required": ["start", "end"],
}
"""JSON Schema every entry of the model's answer must satisfy."""

_ENTRY_VALIDATOR = jsonschema.Draft7Validator(TIME_RANGE_ENTRY_SCHEMA)


@dataclass(frozen=True)
class TimeRange:
    """A start/end pair in "HH:MM:SS" notation."""

    start: str
    end: str

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start, "end": self.end}


def time_to_seconds(value: str) -> float | None:
    """Convert "HH:MM:SS(.fff)" to absolute seconds.

    RULES:
    - Fractional digits are milliseconds, padded or truncated to three
      digits ("05.5" → 5.5 s, "05.1234" → 5.123 s)
    - Returns None when value does not match CUT_TIME_RE
    """
    match = CUT_TIME_RE.match(value) if isinstance(value, str) else None
    if not match:
        return None
    hours, minutes, seconds, fraction = match.groups()
    total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
    millis = int(fraction.ljust(3, "0")[:3]) if fraction else 0
    return total + millis / 1000


def normalize_time(value: str) -> str | None:
    """Carry minutes/seconds above 59 into the next unit.

    HOW: Re-derives HH:MM:SS from the total number of seconds.

    RULES:
    - Input must match STRICT_TIME_RE, else None
    - Result must still fit two hour digits, else None
    """
    if not STRICT_TIME_RE.match(value):
        return None
    hours, minutes, seconds = (int(part) for part in value.split(":"))
    total = hours * 3600 + minutes * 60 + seconds
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 99:
        return None
    return "{:02d}:{:02d}:{:02d}".format(hours, minutes, seconds)


def _coerce_entry(entry: Any) -> TimeRange | None:
    if not _ENTRY_VALIDATOR.is_valid(entry):
        return None
    start, end = entry["start"], entry["end"]
    start_norm, end_norm = normalize_time(start), normalize_time(end)
    if start_norm is None or end_norm is None:
        return None
    if (start_norm, end_norm) != (start, end):
        logger.info("Normalized time range %s-%s to %s-%s", start, end, start_norm, end_norm)
    return TimeRange(start=start_norm, end=end_norm)


def parse_time_ranges(raw_json: str | None) -> list[TimeRange]:
    """Parse and validate the model's JSON answer.

    WHY: Structured output constrains the shape, not the content. Entries
    can still carry malformed or overflowing timestamps.

    RULES:
    - Empty text, invalid JSON, or a non-array payload → []
    - Entries failing validation are dropped and logged
    """
    if not raw_json or not raw_json.strip():
        return []
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError:
        logger.warning("Time-range response is not valid JSON: %r", raw_json)
        return []
    if not isinstance(payload, list):
        logger.warning("Time-range response is not an array: %r", payload)
        return []

    ranges: list[TimeRange] = []
    for entry in payload:
        time_range = _coerce_entry(entry)
        if time_range is None:
            logger.warning("Dropping malformed time range: %r", entry)
            continue
        ranges.append(time_range)
    return ranges
