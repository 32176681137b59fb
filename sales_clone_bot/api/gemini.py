"""Async wrapper around the Gemini API (google-genai) with file lifecycle.

WHY: Feedback, summaries, and time-range extraction all go through
Gemini. Media and reference documents must be uploaded, polled until the
Files API marks them ACTIVE, referenced in the generation request, and
deleted afterwards. This module owns that lifecycle so strategies only
say "generate from these parts and these files".

HOW: GeminiClient wraps ``genai.Client(...).aio``. Uploads run
concurrently with asyncio.gather; activation is an explicit bounded-retry
state machine (next_activation_state + ActivationPoller) with a fixed
interval and a maximum attempt count; generate_text() uploads, waits,
generates, and deletes in a finally block.

RULES:
- Activation: PENDING → ACTIVE | FAILED | TIMED_OUT; terminal states stop polling
- FAILED or TIMED_OUT raises FileActivationError
- Uploaded files are always deleted, even when generation fails
- Deletion is best-effort: failures are logged, never raised
- Default generation config: temperature 1, top_p 0.95, top_k 64,
  max_output_tokens 8192
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types

from sales_clone_bot.api.models import ActivationState, UploadedAIFile
from sales_clone_bot.config import (
    GEMINI_MODEL,
    GEMINI_POLL_INTERVAL_S,
    GEMINI_POLL_MAX_ATTEMPTS,
    MIME_TYPES,
    load_gemini_api_key,
)

logger = logging.getLogger(__name__)

_PENDING_REMOTE_STATES = frozenset({"PROCESSING", "STATE_UNSPECIFIED"})


class FileActivationError(Exception):
    """Raised when an uploaded file fails processing or never becomes ACTIVE.

    RULES:
    - state is ActivationState.FAILED or ActivationState.TIMED_OUT
    """

    def __init__(self, file_name: str, state: ActivationState, detail: str = "") -> None:
        self.file_name = file_name
        self.state = state
        message = f"Gemini file {file_name} ended in state {state.value}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class GeminiGenerationError(Exception):
    """Raised when a generation request returns no usable text."""


def default_generation_config(**overrides: Any) -> types.GenerateContentConfig:
    """Return the feedback/summary generation config with optional overrides."""
    params: dict[str, Any] = {
        "temperature": 1.0,
        "top_p": 0.95,
        "top_k": 64,
        "max_output_tokens": 8192,
        "response_mime_type": "text/plain",
    }
    params.update(overrides)
    return types.GenerateContentConfig(**params)


# ---------------------------------------------------------------------------
# Activation state machine
# ---------------------------------------------------------------------------


def next_activation_state(remote_state: str, attempt: int, max_attempts: int) -> ActivationState:
    """Decide the poller state after observing remote_state on attempt N.

    WHY: Keeps the timeout rule independent from sleeping and I/O so it
    can be tested directly.

    RULES:
    - "ACTIVE" → ACTIVE, "FAILED" → FAILED
    - PROCESSING (or unspecified) with attempts left → PENDING
    - PROCESSING after max_attempts polls → TIMED_OUT
    - Any other remote state → FAILED

    Args:
        remote_state: State name reported by the Files API.
        attempt: Number of status polls made so far (0 for the upload response).
        max_attempts: Maximum number of status polls allowed.
    """
    if remote_state == "ACTIVE":
        return ActivationState.ACTIVE
    if remote_state in _PENDING_REMOTE_STATES:
        if attempt >= max_attempts:
            return ActivationState.TIMED_OUT
        return ActivationState.PENDING
    return ActivationState.FAILED


class ActivationPoller:
    """Bounded-retry poller that waits for one uploaded file to become ACTIVE.

    HOW: Evaluates the state machine on the upload response, then sleeps
    interval_s and re-fetches until a terminal state is reached.

    RULES:
    - At most max_attempts status fetches per file
    - A fetch error is treated as FAILED for that file
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[UploadedAIFile]],
        interval_s: float = GEMINI_POLL_INTERVAL_S,
        max_attempts: int = GEMINI_POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._fetch = fetch
        self._interval_s = interval_s
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def wait(self, file: UploadedAIFile) -> UploadedAIFile:
        attempt = 0
        state = next_activation_state(file.state, attempt, self._max_attempts)
        while state is ActivationState.PENDING:
            await self._sleep(self._interval_s)
            attempt += 1
            try:
                file = await self._fetch(file.name)
            except Exception as exc:
                logger.error("Failed to fetch status for Gemini file %s: %s", file.name, exc)
                raise FileActivationError(file.name, ActivationState.FAILED, str(exc)) from exc
            state = next_activation_state(file.state, attempt, self._max_attempts)
            logger.debug("Gemini file %s state=%s (attempt %d)", file.name, file.state, attempt)

        if state is not ActivationState.ACTIVE:
            logger.error(
                "Gemini file %s did not become active after %d polls: %s",
                file.name, attempt, file.state,
            )
            raise FileActivationError(file.name, state, f"last remote state {file.state}")
        logger.info("Gemini file %s is ACTIVE", file.name)
        return file


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GeminiClient:
    """Explicitly constructed Gemini client for one job.

    RULES:
    - Pass client= to inject a fake; otherwise api_key (or GEMINI_API_KEY) is required
    - model defaults to GEMINI_MODEL from config
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: Any = None,
        model: str | None = None,
        poll_interval_s: float = GEMINI_POLL_INTERVAL_S,
        poll_max_attempts: int = GEMINI_POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if client is None:
            client = genai.Client(api_key=api_key or load_gemini_api_key())
        self._client = client
        self.model = model or GEMINI_MODEL
        self._poller = ActivationPoller(
            self.get_file,
            interval_s=poll_interval_s,
            max_attempts=poll_max_attempts,
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # Files API
    # ------------------------------------------------------------------

    async def upload_file(self, path: Path, mime_type: str | None = None) -> UploadedAIFile:
        """Upload one local file and return its handle (not yet ACTIVE)."""
        path = Path(path)
        mime_type = mime_type or MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
        try:
            remote = await self._client.aio.files.upload(
                file=path,
                config=types.UploadFileConfig(mime_type=mime_type, display_name=path.name),
            )
        except Exception:
            logger.exception("Failed to upload %s to Gemini", path)
            raise
        uploaded = UploadedAIFile.from_sdk(remote, mime_type=mime_type)
        logger.info("Uploaded %s to Gemini as %s (%s)", path.name, uploaded.name, uploaded.uri)
        return uploaded

    async def upload_files(self, paths: Sequence[Path]) -> list[UploadedAIFile]:
        """Upload several files concurrently.

        RULES:
        - If any upload fails, the ones that succeeded are deleted before re-raising
        """
        results = await asyncio.gather(
            *(self.upload_file(p) for p in paths), return_exceptions=True
        )
        uploaded = [r for r in results if isinstance(r, UploadedAIFile)]
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            await self.delete_files(uploaded)
            raise errors[0]
        return uploaded

    async def get_file(self, name: str) -> UploadedAIFile:
        remote = await self._client.aio.files.get(name=name)
        return UploadedAIFile.from_sdk(remote)

    async def wait_until_active(self, files: Sequence[UploadedAIFile]) -> list[UploadedAIFile]:
        """Poll all files concurrently until each is ACTIVE.

        RULES:
        - The first failure cancels the remaining pollers before re-raising
        """
        if not files:
            return []
        logger.info("Waiting for %d Gemini file(s) to become active", len(files))
        tasks = [asyncio.ensure_future(self._poller.wait(f)) for f in files]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def delete_files(self, files: Sequence[UploadedAIFile]) -> None:
        """Delete uploaded files, logging and swallowing individual failures."""

        async def _delete(file: UploadedAIFile) -> None:
            try:
                await self._client.aio.files.delete(name=file.name)
                logger.info("Deleted Gemini file %s", file.name)
            except Exception as exc:
                logger.warning("Failed to delete Gemini file %s: %s", file.name, exc)

        await asyncio.gather(*(_delete(f) for f in files if f and f.name))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_text(
        self,
        parts: Sequence[str],
        attachments: Sequence[Path] = (),
        config: types.GenerateContentConfig | None = None,
        model: str | None = None,
    ) -> str:
        """Generate text from prompt parts plus optional local attachments.

        WHY: One call covers both the transcript-based prompts (text only)
        and the media/reference-document prompts (text + files).

        HOW: Uploads attachments concurrently, waits for activation, sends
        file parts followed by text parts, and deletes the uploads in a
        finally block.

        RULES:
        - Raises GeminiGenerationError on an empty response
        - Upload, activation, and API errors propagate after cleanup

        Args:
            parts: Text parts, sent in order after any file parts.
            attachments: Local files to upload and reference.
            config: Generation config; defaults to default_generation_config().
            model: Model override; defaults to self.model.

        Returns:
            The response text.
        """
        uploaded: list[UploadedAIFile] = []
        try:
            if attachments:
                uploaded = await self.upload_files(list(attachments))
                uploaded = await self.wait_until_active(uploaded)
            contents: list[Any] = [
                types.Part.from_uri(file_uri=f.uri, mime_type=f.mime_type) for f in uploaded
            ]
            contents.extend(parts)
            response = await self._client.aio.models.generate_content(
                model=model or self.model,
                contents=contents,
                config=config or default_generation_config(),
            )
            text = (getattr(response, "text", None) or "").strip()
            if not text:
                raise GeminiGenerationError("Gemini returned an empty response")
            return text
        finally:
            if uploaded:
                await self.delete_files(uploaded)

    async def generate_json(
        self,
        prompt: str,
        schema: types.Schema,
        model: str | None = None,
        temperature: float = 0.1,
        max_output_tokens: int = 1024,
    ) -> str:
        """Request schema-constrained JSON and return the raw response text.

        RULES:
        - response_mime_type is application/json with the given response_schema
        - An empty response yields "" (callers decide what that means)
        """
        response = await self._client.aio.models.generate_content(
            model=model or self.model,
            contents=[prompt],
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return getattr(response, "text", None) or ""
