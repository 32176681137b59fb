"""External service clients for Slack, Gemini, and Deepgram.

WHY: Every strategy talks to the same three services. Wrapping each one
in a small client class keeps HTTP and SDK details out of the strategies
and lets tests substitute fakes without touching the environment.

HOW: SlackService wraps slack_sdk's WebClient (plus httpx for private
file downloads), GeminiClient wraps google-genai's async surface, and
DeepgramClient is an httpx.AsyncClient context manager. Payloads are
parsed into the dataclasses in models.py.

RULES:
- Clients are constructed explicitly and injected, never module globals
- Collaborator errors are logged and re-raised as typed exceptions
"""

from sales_clone_bot.api.deepgram import DeepgramClient
from sales_clone_bot.api.gemini import GeminiClient
from sales_clone_bot.api.slack import SlackService

__all__ = ["DeepgramClient", "GeminiClient", "SlackService"]
