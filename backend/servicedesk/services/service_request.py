"""Service request: one Jira ticket bound to one Slack thread.

The binding itself is stored on the ticket as an issue property, so the thread
can be found again from any later Jira webhook without a separate store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from servicedesk.core.exceptions import ExternalCallFailure, ServiceDeskError, describe_error
from servicedesk.slack.thread import render_thread_root

if TYPE_CHECKING:
    from servicedesk.core.app_context import AppContext
    from servicedesk.jira.events import JiraChangeItem, JiraIssue
    from servicedesk.slack.thread import SlackMessageId

logger = logging.getLogger(__name__)

THREAD_PROPERTY = "servicedesk-thread"


@dataclass(frozen=True, slots=True)
class RequestParams:
    """User intent captured by the modal, consumed once to create a ticket."""

    slack_user_id: str | None
    title: str | None
    description: str | None = None
    priority: str | None = None
    components: list[str] = field(default_factory=list)


class ServiceRequest:
    def __init__(
        self,
        thread_id: SlackMessageId,
        notification_channel_id: str,
        slack_user_id: str | None,
        ctx: AppContext,
        *,
        ticket: JiraIssue | None = None,
        status_change: JiraChangeItem | None = None,
    ) -> None:
        self.thread_id = thread_id
        self.notification_channel_id = notification_channel_id
        self.slack_user_id = slack_user_id
        self.ticket = ticket
        self.status_change = status_change
        self._ctx = ctx

    @property
    def conversation_channel_id(self) -> str:
        return self.thread_id.channel

    def thread_binding(self) -> dict[str, Any]:
        return {
            "channel": self.thread_id.channel,
            "ts": self.thread_id.ts,
            "notification_channel": self.notification_channel_id,
            "slack_user_id": self.slack_user_id,
        }

    def _issue_fields(self, params: RequestParams) -> dict[str, Any]:
        settings = self._ctx.settings
        fields: dict[str, Any] = {
            "project": {"key": settings.jira_project_key},
            "issuetype": {"name": settings.jira_issue_type},
            "summary": (params.title or "").strip() or "Untitled request",
            "description": params.description or "",
            "components": [{"name": c} for c in params.components if c],
        }
        if params.priority:
            fields["priority"] = {"name": params.priority}
        if params.slack_user_id:
            fields["labels"] = [f"slack-{params.slack_user_id}"]
        return fields

    async def create(self, params: RequestParams) -> bool:
        """Create the backing ticket and bind it to this thread.

        Returns False only when no ticket could be created. Failing to store the
        binding or refresh the thread is logged and leaves a usable ticket.
        """
        try:
            self.ticket = await self._ctx.jira.create_issue(self._issue_fields(params))
        except ServiceDeskError as e:
            logger.error(
                "Ticket creation failed for thread %s: %s", self.thread_id, describe_error(e)
            )
            await self._reply(f":warning: I wasn't able to create the ticket: {describe_error(e)}")
            return False

        key = self.ticket.key
        try:
            await self._ctx.jira.set_issue_property(key, THREAD_PROPERTY, self.thread_binding())
        except ExternalCallFailure as e:
            logger.error("Could not bind %s to thread %s: %s", key, self.thread_id, describe_error(e))

        try:
            await self.update_slack_thread()
        except ExternalCallFailure as e:
            logger.error("Could not refresh thread %s for %s: %s", self.thread_id, key, describe_error(e))

        await self._notify(f"New request {key} from <@{self.slack_user_id}>")
        return True

    async def update_slack_thread(self) -> None:
        """Redraw the thread root from the ticket and announce status changes."""
        if self.ticket is None:
            logger.warning("No ticket bound to thread %s; nothing to update", self.thread_id)
            return

        text, blocks = render_thread_root(
            self.ticket, self.slack_user_id or "", self._ctx.jira.browse_url(self.ticket.key)
        )
        await self._ctx.slack.update_message(
            self.thread_id.channel, self.thread_id.ts, text, blocks=blocks
        )
        logger.info("Updated thread %s for %s", self.thread_id, self.ticket.key)

        change = self.status_change
        if change is not None:
            line = (
                f"Status changed from *{change.from_string or 'none'}* "
                f"to *{change.to_string or 'none'}*"
            )
            await self._reply(line)
            await self._notify(f"{self.ticket.key}: {line}")

    async def _reply(self, text: str) -> None:
        try:
            await self._ctx.slack.post_message(
                self.thread_id.channel, text, thread_ts=self.thread_id.ts
            )
        except ExternalCallFailure as e:
            logger.warning("Could not reply in thread %s: %s", self.thread_id, describe_error(e))

    async def _notify(self, text: str) -> None:
        """Post to the notification channel when it is not the conversation channel."""
        if self.notification_channel_id == self.conversation_channel_id:
            return
        try:
            permalink = await self._ctx.slack.get_permalink(self.thread_id.channel, self.thread_id.ts)
            if permalink:
                text = f"{text} (<{permalink}|view thread>)"
            await self._ctx.slack.post_message(self.notification_channel_id, text)
        except ExternalCallFailure as e:
            logger.warning(
                "Could not notify %s about %s: %s",
                self.notification_channel_id,
                self.thread_id,
                describe_error(e),
            )
