"""User-facing Slack message texts.

WHY: The bot answers in Japanese inside the originating thread. Keeping
every text here makes wording changes a one-file edit and lets tests
assert on the same constants the code posts.

RULES:
- Plain mrkdwn text only (no Block Kit)
- Every failure message starts with ❌, every soft warning with ⚠️
"""

from __future__ import annotations

from sales_clone_bot.core.command_parser import CommandAction

ACCEPTED = "✅ リクエストを受け付けました。処理中です..."
INVALID_COMMAND = "❌ 有効なコマンドではありません。`@営業クローンBOT フィードバック` のように指定してください。"
LAUNCH_FAILED = "❌ バックグラウンド処理の起動に失敗しました。しばらく経ってからもう一度お試しください。"

NO_FILES_IN_THREAD = (
    "❌ このスレッドに処理対象のファイルが見つかりません。"
    "音声または動画ファイルをアップロードしてください。"
)
NO_MEDIA_FILE = "❌ 対応する音声または動画ファイルが見つかりません。"
EMPTY_TRANSCRIPT = "❌ 音声から文字起こしを取得できませんでした。"

NO_TIME_RANGES = "⚠️ テキストから切り抜き時間範囲を抽出できませんでした。HH:MM:SS形式で指定してください。"
CUT_FAILED = "❌ メディアの切り抜きに失敗しました。時間指定やファイル形式を確認してください。"

TRANSCRIPT_COMMENT = "📝 文字起こし結果です"
SUMMARY_COMMENT = "📝 要約結果です"

FEEDBACK_FOOTER = (
    "\n\n---\n*これはβ版のAIフィードバックです。*\n"
    "コマンドを指定しない場合、デフォルトのフィードバックが実行されます。\n"
    "特定のフィードバック（例：過去のフィードバックを学習したAI）が必要な場合は、"
    "「@営業クローンBOT 松浦さんAIでフィードバック」のようにコマンドを指定してください。"
)

_ACTION_LABELS = {
    CommandAction.feedback: "フィードバック",
    CommandAction.matsuura_feedback: "松浦さんAIフィードバック",
    CommandAction.waltz_feedback: "ワルツフィードバック",
    CommandAction.clip: "メディア切り抜き",
    CommandAction.transcribe_and_summarize: "文字起こし・要約",
}


def action_label(action: CommandAction) -> str:
    return _ACTION_LABELS.get(action, "フィードバック")


def build_feedback_result(action: CommandAction, result: str) -> str:
    """Feedback result text with the beta footer appended."""
    return "✨ {}の結果:\n\n{}{}".format(action_label(action), result, FEEDBACK_FOOTER)


def build_clip_started(count: int) -> str:
    return "✂️ 切り抜き処理が完了しました。{}個のファイルをアップロードします...".format(count)


def build_clip_comment(filename: str) -> str:
    return "切り抜きファイル: {}".format(filename)


def build_upload_failed(filename: str) -> str:
    return "⚠️ ファイル {} のアップロードに失敗しました。".format(filename)


def build_error(action: CommandAction, error: BaseException) -> str:
    """Error text posted when an action fails."""
    return "❌ {}中にエラーが発生しました。\n```{}```".format(action_label(action), error)
