"""Pydantic models for the HTTP receiver and job launch requests.

WHY: The mention handler hands a job request to the launcher, and the
health endpoint reports a small status payload. Pydantic validates the
request fields (the action must be a known CommandAction) and documents
the response schema in /docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- command_context is None when the mention carried no instruction
- Field annotations use Optional from typing, as pydantic evaluates them at runtime
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from sales_clone_bot.core.command_parser import CommandAction


class JobRequest(BaseModel):
    """Everything a background job needs about the triggering mention."""

    channel_id: str = Field(..., min_length=1, description="Slack channel ID of the mention.")
    thread_ts: str = Field(..., min_length=1, description="Timestamp of the thread's parent message.")
    command_action: CommandAction = Field(..., description="Parsed action to run.")
    command_context: Optional[str] = Field(
        None, description="Mention text without the bot mention, or null if empty."
    )
    event: Dict[str, Any] = Field(
        default_factory=dict, description="Raw app_mention event as delivered by Slack."
    )


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = Field("ok", description="Always 'ok' when the server is up.")
    version: str = Field(..., description="Package version.")
