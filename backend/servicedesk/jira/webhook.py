from __future__ import annotations

import logging
import secrets

from fastapi import HTTPException, Request, Response, status
from pydantic import ValidationError

from servicedesk.core.app_context import get_app_context
from servicedesk.flows.actions import ActionData
from servicedesk.jira.events import parse_jira_event

logger = logging.getLogger(__name__)


async def handle_jira_webhook(request: Request, secret: str | None) -> Response:
    """Accept a Jira issue webhook and hand it to the dispatcher.

    Jira retries on non-2xx responses, so anything past authentication is
    acknowledged with 204 even when it is ignored.
    """
    ctx = get_app_context(request.app)  # type: ignore[arg-type]
    expected = ctx.settings.jira_webhook_secret
    if expected and not secrets.compare_digest(secret or "", expected):
        logger.warning("Jira webhook with invalid secret")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid secret")

    try:
        payload = await request.json()
        event = parse_jira_event(payload)
    except (ValueError, ValidationError) as e:
        # pydantic.ValidationError is a ValueError; json errors are too
        logger.warning("Ignoring malformed Jira webhook: %s", e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    issue_key = event.issue.key if event.issue else "-"
    logger.info("Jira webhook %s for %s", event.webhook_event, issue_key)
    try:
        result = ctx.dispatcher.dispatch(event, ActionData(raw=payload))  # type: ignore[union-attr]
    except Exception:
        logger.exception("Failed to dispatch Jira webhook %s for %s", event.webhook_event, issue_key)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if not result.handled:
        logger.debug("Jira webhook %s not handled", event.webhook_event)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
