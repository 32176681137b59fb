"""Extract clip time ranges from free-form text with Gemini structured output.

WHY: Users ask for clips in natural language ("10分から12分まで",
"5:15〜20:30"). Parsing every phrasing by hand is brittle, so the model
turns the text into an array of start/end pairs and this module validates
whatever comes back.

HOW: Builds an extraction prompt, requests JSON constrained by an
array-of-{start, end} schema, and feeds the answer through
parse_time_ranges() which drops malformed entries and carries overflowing
minutes/seconds.

RULES:
- No client and no GEMINI_API_KEY → ConfigurationError at construction
- Empty or whitespace text → [] without calling Gemini
- Any collaborator error, empty answer, or invalid JSON → []
- Every returned TimeRange matches "HH:MM:SS" on both ends
"""

from __future__ import annotations

import logging

from google.genai import types

from sales_clone_bot.api.gemini import GeminiClient
from sales_clone_bot.config import GEMINI_EXTRACTION_MODEL
from sales_clone_bot.core.time_ranges import TimeRange, parse_time_ranges

logger = logging.getLogger(__name__)

TIME_RANGE_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "start": types.Schema(type=types.Type.STRING, description="開始時間 (HH:MM:SS形式)"),
            "end": types.Schema(type=types.Type.STRING, description="終了時間 (HH:MM:SS形式)"),
        },
        required=["start", "end"],
    ),
)

_PROMPT_TEMPLATE = """以下のテキストから、動画または音声を切り抜くための時間範囲を抽出し、JSON形式の配列のみを返してください。
時間は必ず "HH:MM:SS" 形式で表現してください。秒の小数点以下は無視してください。
抽出する時間は、テキスト内で明確に「開始」と「終了」がペアになっている区間のみを対象とします。
例えば「10分から12分まで」「10:00〜12:00」は開始 "00:10:00"、終了 "00:12:00" となります。
「5分15秒から20分30秒」は開始 "00:05:15"、終了 "00:20:30" となります。
「1時間5分10秒から1時間10分5秒」は開始 "01:05:10"、終了 "01:10:05" となります。
分や秒が59を超える場合は上の単位に繰り上げてください（例: 75分30秒 → "01:15:30"）。
「5分時点」「5分から」のような単一の時間や、開始/終了が不明確な区間は無視してください。
時間範囲が見つからない場合は、必ず空の配列 [] のみを返してください。
応答には説明や他のテキストを一切含めず、JSON配列だけを出力してください。

テキスト:
"{text}"
"""


def build_extraction_prompt(text: str) -> str:
    return _PROMPT_TEMPLATE.format(text=text)


class TimeRangeExtractor:
    """Turns free text into validated TimeRange values.

    RULES:
    - client may be any object with an async generate_json(prompt, schema, model=...)
    - model defaults to GEMINI_EXTRACTION_MODEL
    """

    def __init__(
        self,
        client: GeminiClient | None = None,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        self._client = client or GeminiClient(api_key=api_key)
        self._model = model or GEMINI_EXTRACTION_MODEL

    async def extract(self, text: str | None) -> list[TimeRange]:
        """Return the paired time ranges mentioned in text.

        Args:
            text: The command context, e.g. "10分から12分まで切り抜いてください。"

        Returns:
            Validated ranges in the order the model returned them; [] when
            nothing usable was found.
        """
        if not text or not text.strip():
            logger.warning("Time-range extraction skipped: empty text")
            return []

        logger.info("Extracting time ranges from %r with %s", text, self._model)
        try:
            raw = await self._client.generate_json(
                build_extraction_prompt(text),
                TIME_RANGE_SCHEMA,
                model=self._model,
            )
        except Exception as exc:
            logger.error("Time-range extraction request failed: %s", exc)
            return []

        if not isinstance(raw, str) or not raw.strip():
            logger.warning("Time-range extraction returned an empty response")
            return []

        logger.info("Time-range extraction raw response: %s", raw)
        ranges = parse_time_ranges(raw)
        logger.info("Extracted %d time range(s): %s", len(ranges), [r.to_dict() for r in ranges])
        return ranges
