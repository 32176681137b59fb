"""Configuration constants, media mappings, and .env loading.

WHY: The webhook receiver, the background job, and every API client read
credentials and tunables from the environment. Keeping them in one module
makes the moving parts easy to find and override without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level dicts, sets, and strings with os.getenv defaults. Secrets are
read lazily through loader functions that raise ConfigurationError with a
clear message when a value is missing. JobSettings bundles the variables
the webhook handler passes to the background job.

RULES:
- Secrets are never hardcoded and never defaulted to placeholders
- All tunables can be overridden via environment variables
- MEDIA_EXTENSIONS decides which thread attachments count as media
- Missing job variables are a fatal startup error (ConfigurationError)
"""

from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(ValueError):
    """Raised when a required credential or job variable is missing.

    WHY: Configuration problems are fatal and must not be retried or
    confused with API failures further down the pipeline.

    RULES:
    - Message names the missing variable
    """


# ---------------------------------------------------------------------------
# Media files
# ---------------------------------------------------------------------------

MEDIA_EXTENSIONS: set[str] = {
    ".mp3", ".m4a", ".wav", ".ogg", ".flac",
    ".mp4", ".mov", ".avi", ".webm", ".mkv",
}
"""Extensions (lowercase, with dot) accepted as the thread's target media."""

MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
}
"""MIME types used when uploading files to Gemini."""

DEEPGRAM_CONTENT_TYPES: dict[str, str] = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".mp4": "audio/mp4",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
    ".flac": "audio/flac",
}
"""Content-Type header sent to Deepgram, keyed by file extension."""

TARGET_FILE_ORDER = os.getenv("TARGET_FILE_ORDER", "oldest").lower()
WORKSPACE_ROOT = Path(
    os.getenv("WORKSPACE_ROOT", str(Path(tempfile.gettempdir()) / "slack-processing"))
)
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")

# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")
GEMINI_EXTRACTION_MODEL = os.getenv("GEMINI_EXTRACTION_MODEL", "gemini-2.0-flash")
GEMINI_POLL_INTERVAL_S = float(os.getenv("GEMINI_POLL_INTERVAL_S", "10"))
GEMINI_POLL_MAX_ATTEMPTS = int(os.getenv("GEMINI_POLL_MAX_ATTEMPTS", "180"))

# ---------------------------------------------------------------------------
# Deepgram
# ---------------------------------------------------------------------------

DEEPGRAM_BASE_URL = os.getenv("DEEPGRAM_BASE_URL", "https://api.deepgram.com/v1")
DEEPGRAM_MODEL = os.getenv("DEEPGRAM_MODEL", "nova-3")
DEEPGRAM_LANGUAGE = os.getenv("DEEPGRAM_LANGUAGE", "multi")

# ---------------------------------------------------------------------------
# Server and job launch
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
JOB_COMMAND = os.getenv("JOB_COMMAND", "{} -m sales_clone_bot.job".format(sys.executable))


def feedback_reference_files() -> list[Path]:
    """Return the reference documents attached to default feedback requests.

    RULES:
    - FEEDBACK_REFERENCE_FILES is a comma-separated list of paths
    - Empty entries are ignored; an unset variable yields []
    """
    raw = os.getenv("FEEDBACK_REFERENCE_FILES", "")
    return [Path(p.strip()) for p in raw.split(",") if p.strip()]


def _require(name: str, hint: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError("{} is not configured. {}".format(name, hint))
    return value


def load_gemini_api_key() -> str:
    """Load the Gemini API key from the environment.

    WHY: Time extraction, feedback, and summaries all call Gemini; a
    missing key must fail at construction time, not mid-request.

    RULES:
    - Raises ConfigurationError if GEMINI_API_KEY is missing or empty
    """
    return _require("GEMINI_API_KEY", "Add GEMINI_API_KEY to the .env file.")


def load_deepgram_api_key() -> str:
    """Load the Deepgram API key from the environment."""
    return _require("DEEPGRAM_API_KEY", "Add DEEPGRAM_API_KEY to the .env file.")


def load_slack_credentials() -> tuple[str, str]:
    """Return (bot_token, signing_secret) for the webhook receiver."""
    return (
        _require("SLACK_BOT_TOKEN", "The bot token starts with xoxb-."),
        _require("SLACK_SIGNING_SECRET", "Copy it from the Slack app's Basic Information page."),
    )


# ---------------------------------------------------------------------------
# Background job parameters
# ---------------------------------------------------------------------------

JOB_ENV_VARS = (
    "SLACK_CHANNEL_ID",
    "SLACK_THREAD_TS",
    "SLACK_COMMAND_ACTION",
    "SLACK_COMMAND_CONTEXT",
    "SLACK_EVENT_JSON",
    "SLACK_BOT_TOKEN",
)


@dataclass(frozen=True)
class JobSettings:
    """Parameters handed from the webhook receiver to a background job.

    WHY: The job runs in its own process, so everything it needs about
    the triggering mention travels through environment variables.

    HOW: from_env() reads JOB_ENV_VARS and fails fast if any is absent.

    RULES:
    - Every variable must be present
    - SLACK_COMMAND_CONTEXT may be empty (no instruction given); it maps
      to command_context=None
    - All other variables must be non-empty
    """

    channel_id: str
    thread_ts: str
    command_action: str
    command_context: str | None
    event_json: str
    bot_token: str

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> JobSettings:
        env = os.environ if environ is None else environ
        missing = [
            name for name in JOB_ENV_VARS
            if name not in env
            or (name != "SLACK_COMMAND_CONTEXT" and not env[name].strip())
        ]
        if missing:
            raise ConfigurationError(
                "Missing required job environment variables: {}".format(", ".join(missing))
            )
        context = env["SLACK_COMMAND_CONTEXT"].strip()
        return cls(
            channel_id=env["SLACK_CHANNEL_ID"],
            thread_ts=env["SLACK_THREAD_TS"],
            command_action=env["SLACK_COMMAND_ACTION"],
            command_context=context or None,
            event_json=env["SLACK_EVENT_JSON"],
            bot_token=env["SLACK_BOT_TOKEN"],
        )

    def to_env(self) -> dict[str, str]:
        """Serialize back to the environment variable mapping."""
        return {
            "SLACK_CHANNEL_ID": self.channel_id,
            "SLACK_THREAD_TS": self.thread_ts,
            "SLACK_COMMAND_ACTION": self.command_action,
            "SLACK_COMMAND_CONTEXT": self.command_context or "",
            "SLACK_EVENT_JSON": self.event_json,
            "SLACK_BOT_TOKEN": self.bot_token,
        }
