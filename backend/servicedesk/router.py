from __future__ import annotations

from fastapi import APIRouter

from servicedesk.jira.router import router as jira_router
from servicedesk.slack.router import router as slack_router

api_router = APIRouter(prefix="/api")

api_router.include_router(slack_router)
api_router.include_router(jira_router)
