"""Async HTTP client for the Deepgram pre-recorded transcription API.

WHY: Feedback and summaries work from a speaker-attributed transcript of
the sales call. Deepgram returns diarized utterances in a single request,
so no job polling is needed.

HOW: DeepgramClient is an async context manager around httpx.AsyncClient
with ``Authorization: Token ...``. transcribe() POSTs the raw file bytes
to /listen with the Content-Type derived from the extension, parses the
utterances, and formats them one per line.

RULES:
- Always use as: async with DeepgramClient() as client: ...
- Unsupported extension → UnsupportedMediaTypeError before any request
- Non-2xx → DeepgramAPIError(status_code, body)
- No utterances → "" (logged as a warning)
- Line format: "[MM:SS.cc] [SPEAKER n] text"; spaces removed for Japanese
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from sales_clone_bot.api.models import DeepgramResponse, Utterance
from sales_clone_bot.config import (
    DEEPGRAM_BASE_URL,
    DEEPGRAM_CONTENT_TYPES,
    DEEPGRAM_LANGUAGE,
    DEEPGRAM_MODEL,
    load_deepgram_api_key,
)

logger = logging.getLogger(__name__)


class DeepgramAPIError(Exception):
    """Raised when Deepgram returns an error response.

    RULES:
    - Always include status_code and message
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Deepgram API error {status_code}: {message}")


class UnsupportedMediaTypeError(ValueError):
    """Raised when a file extension has no Deepgram Content-Type mapping."""


def content_type_for(path: Path) -> str:
    ext = Path(path).suffix.lower()
    try:
        return DEEPGRAM_CONTENT_TYPES[ext]
    except KeyError:
        raise UnsupportedMediaTypeError(
            f"Unsupported or unknown file extension for transcription: '{ext}'"
        ) from None


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS.cc (minutes keep counting past 59)."""
    centis = int(round(seconds * 100))
    minutes, centis = divmod(centis, 6000)
    return f"{minutes:02d}:{centis / 100:05.2f}"


def _is_japanese(text: str) -> bool:
    return any("぀" <= ch <= "ヿ" or "一" <= ch <= "鿿" for ch in text)


def format_utterances(utterances: list[Utterance]) -> str:
    """Render utterances as one "[MM:SS.cc] [SPEAKER n] text" line each."""
    lines = []
    for u in utterances:
        text = u.transcript.strip()
        if _is_japanese(text):
            text = text.replace(" ", "")
        lines.append(f"[{format_timestamp(u.start)}] [SPEAKER {u.speaker}] {text}")
    return "\n".join(lines)


class DeepgramClient:
    """Async client for Deepgram's /listen endpoint.

    RULES:
    - api_key defaults to load_deepgram_api_key() from .env
    - base_url, model, and language default to config values
    - transport is passed to httpx (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        language: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_deepgram_api_key()
        self._base_url = (base_url or DEEPGRAM_BASE_URL).rstrip("/")
        self._model = model or DEEPGRAM_MODEL
        self._language = language or DEEPGRAM_LANGUAGE
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DeepgramClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Token {self._api_key}"},
            timeout=httpx.Timeout(600.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "DeepgramClient must be used as an async context manager: "
                "async with DeepgramClient() as client: ..."
            )
        return self._client

    def _query_params(self) -> dict[str, str]:
        return {
            "model": self._model,
            "language": self._language,
            "punctuate": "true",
            "diarize": "true",
            "utterances": "true",
        }

    async def listen(self, path: Path) -> DeepgramResponse:
        """POST the file and return the parsed response."""
        client = self._ensure_client()
        path = Path(path)
        content_type = content_type_for(path)
        logger.info("Sending %s to Deepgram (%s)", path.name, content_type)

        resp = await client.post(
            "/listen",
            params=self._query_params(),
            headers={"Content-Type": content_type},
            content=path.read_bytes(),
        )
        if resp.status_code not in (200, 201):
            logger.error("Deepgram API error %d: %s", resp.status_code, resp.text)
            raise DeepgramAPIError(resp.status_code, resp.text)
        return DeepgramResponse.from_dict(resp.json())

    async def transcribe(self, path: Path) -> str:
        """Transcribe a file and return the formatted diarized transcript."""
        result = await self.listen(path)
        if not result.utterances:
            logger.warning("Deepgram returned no utterances for %s", Path(path).name)
            return ""
        logger.info(
            "Deepgram transcription complete: %d utterances (request %s)",
            len(result.utterances), result.request_id,
        )
        return format_utterances(result.utterances)
