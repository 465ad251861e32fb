from __future__ import annotations

from fastapi import APIRouter, Request, Response

from .webhook import handle_slack_command, handle_slack_interaction

router = APIRouter(prefix="/slack", tags=["slack"])


@router.post("/commands")
async def slack_command_post(request: Request) -> Response:
    """Slash command endpoint (form encoded)."""
    return await handle_slack_command(request)


@router.post("/interactions")
async def slack_interaction_post(request: Request) -> Response:
    """Interactivity endpoint: shortcuts and modal submissions."""
    return await handle_slack_interaction(request)
