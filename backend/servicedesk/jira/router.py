from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from .webhook import handle_jira_webhook

router = APIRouter(prefix="/jira", tags=["jira"])


@router.post("/webhook")
async def jira_webhook_post(
    request: Request,
    secret: str | None = Query(default=None),
) -> Response:
    """Jira issue webhook (issue updated)."""
    return await handle_jira_webhook(request, secret)
