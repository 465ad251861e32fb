from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from fastapi import FastAPI

    from servicedesk.flows.base import FlowDispatcher
    from servicedesk.jira.client import JiraClient
    from servicedesk.settings import Settings
    from servicedesk.slack.client import SlackClient


@dataclass(slots=True)
class AppContext:
    """Everything a flow needs, built once at process start."""

    settings: Settings
    slack: SlackClient
    jira: JiraClient
    dispatcher: FlowDispatcher | None = None


def set_app_context(app: FastAPI, ctx: AppContext) -> None:
    # Store one typed context object under app.state
    app.state.ctx = ctx


def get_app_context(app: FastAPI) -> AppContext:
    return cast("AppContext", app.state.ctx)
