"""Typed records for Slack, Gemini, and Deepgram payloads.

WHY: The three services return loosely-typed dicts and SDK objects.
Typed dataclasses make the fields the bot depends on explicit and keep
the strategies independent of SDK object shapes.

HOW: Each dataclass maps to one API object and has a factory method
(from_dict / from_sdk) that pulls out only the fields we use.

RULES:
- SlackFile.created is the Unix timestamp Slack reports (int seconds)
- UploadedAIFile.state is the SDK state name ("PROCESSING", "ACTIVE", "FAILED")
- Utterance timings are float seconds as returned by Deepgram
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class SlackFile:
    """A file attached to a message in the thread."""

    id: str
    name: str
    created: int = 0
    filetype: str = ""
    mimetype: str = ""
    url_private_download: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SlackFile:
        return cls(
            id=data["id"],
            name=data.get("name") or data.get("title") or data["id"],
            created=int(data.get("created") or 0),
            filetype=data.get("filetype", ""),
            mimetype=data.get("mimetype", ""),
            url_private_download=data.get("url_private_download"),
        )


class ActivationState(str, Enum):
    """States of the bounded-retry activation poller.

    RULES:
    - PENDING is the only non-terminal state
    - TIMED_OUT is produced locally; the API never reports it
    """

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


@dataclass
class UploadedAIFile:
    """Handle for a file uploaded to the Gemini Files API.

    WHY: Generation requests reference uploaded files by URI and MIME
    type; cleanup deletes them by name.
    """

    name: str
    uri: str
    mime_type: str
    state: str = "PROCESSING"

    @classmethod
    def from_sdk(cls, file: Any, mime_type: str | None = None) -> UploadedAIFile:
        """Build from a google.genai ``types.File``.

        RULES:
        - state is read from ``file.state.name`` (enum) or ``file.state`` (str)
        - mime_type falls back to the value used for the upload
        """
        state = getattr(file, "state", None)
        state_name = getattr(state, "name", None) or (str(state) if state else "PROCESSING")
        return cls(
            name=file.name,
            uri=file.uri,
            mime_type=getattr(file, "mime_type", None) or mime_type or "",
            state=state_name,
        )


@dataclass
class Utterance:
    """One diarized utterance from Deepgram."""

    speaker: int
    start: float
    end: float
    transcript: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Utterance:
        return cls(
            speaker=int(data.get("speaker", 0)),
            start=float(data.get("start", 0.0)),
            end=float(data.get("end", 0.0)),
            transcript=data.get("transcript", ""),
        )


@dataclass
class DeepgramResponse:
    """The parts of a Deepgram /listen response the bot uses."""

    request_id: str | None
    duration: float | None
    utterances: list[Utterance] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeepgramResponse:
        metadata = data.get("metadata") or {}
        results = data.get("results") or {}
        return cls(
            request_id=metadata.get("request_id"),
            duration=metadata.get("duration"),
            utterances=[Utterance.from_dict(u) for u in results.get("utterances") or []],
        )
