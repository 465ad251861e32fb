from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from servicedesk.core.app_context import AppContext, get_app_context, set_app_context
from servicedesk.core.logging import RequestIdMiddleware, setup_logging
from servicedesk.flows import ActionClassifier, FlowDispatcher, IntakeFlow
from servicedesk.jira.client import JiraClient
from servicedesk.router import api_router
from servicedesk.settings import Settings, get_settings
from servicedesk.slack.client import SlackClient

setup_logging()
logger = logging.getLogger(__name__)


def build_app_context(settings: Settings) -> AppContext:
    """Wire clients, flows and the dispatcher around one settings object."""
    ctx = AppContext(
        settings=settings,
        slack=SlackClient(settings),
        jira=JiraClient(settings),
    )
    ctx.dispatcher = FlowDispatcher([IntakeFlow(ctx)], ActionClassifier())
    return ctx


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    ctx = get_app_context(app)
    settings = ctx.settings

    if not settings.slack_primary_channel:
        logger.warning("SLACK_PRIMARY_CHANNEL is not set; request modals will not open")
    if not settings.slack_signing_secret:
        logger.warning("SLACK_SIGNING_SECRET is not set; Slack requests are not verified")
    if not settings.jira_configured:
        logger.warning("Jira is not configured; ticket creation will fail")
    logger.info(
        "Service desk started: primary_channel=%s restriction=%s project=%s",
        settings.slack_primary_channel,
        settings.slack_conversation_restriction.value,
        settings.jira_project_key,
    )

    yield

    # Let accepted work finish; slow phases are never cancelled
    if ctx.dispatcher is not None and ctx.dispatcher.in_flight:
        logger.info("Waiting for %d in-flight requests", ctx.dispatcher.in_flight)
        await ctx.dispatcher.drain()
    logger.info("Application shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Service Desk Intake",
        version="0.1.0",
        description="Slack request intake backed by Jira tickets",
        lifespan=lifespan,
    )
    app.add_middleware(RequestIdMiddleware)
    set_app_context(app, build_app_context(settings or get_settings()))

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "ok"

    app.include_router(api_router)
    return app


app = create_app()
