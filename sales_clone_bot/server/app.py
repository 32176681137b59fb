"""FastAPI webhook receiver for Slack events.

WHY: Slack delivers app_mention events as signed HTTPS POSTs and retries
if it gets no answer within 3 seconds. The receiver has to verify the
signature, answer immediately, and leave the work to a background job.

HOW: A FastAPI app forwards POST /slack/events to slack-bolt's
SlackRequestHandler, which verifies the signing secret, answers the
url_verification challenge, acks events, and dispatches app_mention to
the handler in slack/bot.py. The Bolt app is built in the lifespan from
SLACK_BOT_TOKEN and SLACK_SIGNING_SECRET unless one is already attached
to app.state (tests do that).

RULES:
- Signature verification is Bolt's; requests with a bad signature get 401
- GET /health reports liveness and the package version
- run_server() configures logging and starts uvicorn on HOST:PORT
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from slack_bolt import App
from slack_bolt.adapter.fastapi import SlackRequestHandler

from sales_clone_bot import __version__
from sales_clone_bot.config import HOST, PORT, load_slack_credentials
from sales_clone_bot.server.models import HealthResponse
from sales_clone_bot.slack.bot import create_app

logger = logging.getLogger(__name__)


def attach_bolt_app(api: FastAPI, bolt_app: App) -> None:
    """Route /slack/events on api to bolt_app."""
    api.state.slack_handler = SlackRequestHandler(bolt_app)


@asynccontextmanager
async def lifespan(api: FastAPI):
    """Build the Bolt app on startup if none was attached."""
    if getattr(api.state, "slack_handler", None) is None:
        bot_token, signing_secret = load_slack_credentials()
        attach_bolt_app(api, create_app(bot_token, signing_secret))
        logger.info("Slack event receiver ready")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Sales Clone Bot",
    description=(
        "Slack Events API receiver. Mentions in a thread with a recording "
        "launch a background job for feedback, clipping, or transcription."
    ),
    version=__version__,
)


@app.post("/slack/events", tags=["slack"], summary="Slack Events API endpoint")
async def slack_events(request: Request):
    """Verify and dispatch a Slack event to the Bolt app."""
    return await request.app.state.slack_handler.handle(request)


@app.get("/health", response_model=HealthResponse, tags=["meta"], summary="Liveness check")
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_server() -> None:
    """Start the receiver with uvicorn.

    RULES:
    - Requires SLACK_BOT_TOKEN and SLACK_SIGNING_SECRET
    - Blocks until the server stops
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting Slack event receiver on %s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run_server()
