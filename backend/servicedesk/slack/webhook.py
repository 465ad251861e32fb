"""Slack webhook handlers: verify, decode, dispatch, acknowledge."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, Response, status
from pydantic import ValidationError

from servicedesk.core.app_context import get_app_context
from servicedesk.flows.actions import ActionData
from servicedesk.slack.events import SlashCommandEvent, parse_interaction
from servicedesk.slack.security import verify_slack_request

if TYPE_CHECKING:
    from servicedesk.flows.base import DispatchResult

logger = logging.getLogger(__name__)


def _ack(result: DispatchResult) -> Response:
    if not result.handled:
        # Unclassified events are inert; Slack still gets its 200
        return Response(status_code=status.HTTP_200_OK)
    if not result.acknowledged:
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    # An empty 200 also closes the modal on view_submission
    return Response(status_code=status.HTTP_200_OK)


async def _verified_form(request: Request) -> dict[str, str]:
    ctx = get_app_context(request.app)  # type: ignore[arg-type]
    body = await request.body()
    verify_slack_request(ctx.settings.slack_signing_secret, body, request.headers)
    form = await request.form()
    return {k: str(v) for k, v in form.items()}


async def handle_slack_command(request: Request) -> Response:
    """Handle a slash command POST."""
    form = await _verified_form(request)
    ctx = get_app_context(request.app)  # type: ignore[arg-type]

    try:
        event = SlashCommandEvent.from_form(form)
    except ValidationError as e:
        logger.warning("Rejected malformed slash command: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed command")

    logger.info("Slash command %s from user=%s", event.command, form.get("user_id", "unknown"))
    try:
        result = ctx.dispatcher.dispatch(event, ActionData(default_text=event.text or None))  # type: ignore[union-attr]
    except Exception:
        logger.exception("Failed to dispatch slash command %s", event.command)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return _ack(result)


async def handle_slack_interaction(request: Request) -> Response:
    """Handle an interactivity POST (shortcuts, modal submissions, ...)."""
    form = await _verified_form(request)
    ctx = get_app_context(request.app)  # type: ignore[arg-type]

    try:
        payload = json.loads(form.get("payload", ""))
        event = parse_interaction(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Rejected malformed Slack interaction: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed payload")

    logger.info("Slack interaction type=%s", event.type)
    try:
        result = ctx.dispatcher.dispatch(event)  # type: ignore[union-attr]
    except Exception:
        logger.exception("Failed to dispatch Slack interaction type=%s", event.type)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return _ack(result)
