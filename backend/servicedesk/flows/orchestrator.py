from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from servicedesk.core.exceptions import MissingContextError
from servicedesk.jira.events import JiraWebhookEvent, parse_jira_event
from servicedesk.services.service_request import THREAD_PROPERTY, ServiceRequest
from servicedesk.slack.thread import SlackMessageId

if TYPE_CHECKING:
    from servicedesk.core.app_context import AppContext

    from .actions import ActionData, InboundEvent

logger = logging.getLogger(__name__)


class FlowOrchestrator:
    """Rebuild service requests from ticket-side events."""

    def __init__(self, ctx: AppContext) -> None:
        self._ctx = ctx

    async def build_request_from_jira_event(
        self, additional_data: ActionData | None, event: InboundEvent
    ) -> ServiceRequest:
        """Find the Slack thread a ticket is bound to and return its request.

        Raises MissingContextError when the event has no issue or the issue
        was never bound to a thread.
        """
        if isinstance(event, JiraWebhookEvent):
            jira_event = event
        elif additional_data is not None and additional_data.raw:
            jira_event = parse_jira_event(additional_data.raw)
        else:
            msg = "No Jira event to build a request from"
            raise MissingContextError(msg)

        issue = jira_event.issue
        if issue is None:
            msg = f"Jira event {jira_event.webhook_event} carries no issue"
            raise MissingContextError(msg)

        binding = await self._ctx.jira.get_issue_property(issue.key, THREAD_PROPERTY)
        if not binding or not binding.get("channel") or not binding.get("ts"):
            msg = f"{issue.key} is not bound to a Slack thread"
            raise MissingContextError(msg)

        channel = str(binding["channel"])
        logger.debug("Issue %s is bound to %s:%s", issue.key, channel, binding["ts"])
        return ServiceRequest(
            SlackMessageId(channel, str(binding["ts"])),
            str(binding.get("notification_channel") or channel),
            binding.get("slack_user_id"),
            self._ctx,
            ticket=issue,
            status_change=jira_event.status_change,
        )
