"""Slack thread identity, channel policy and thread-root rendering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from servicedesk.jira.events import JiraIssue


class ConversationRestriction(str, Enum):
    """Where request conversations are allowed to happen."""

    PRIMARY = "primary"  # every request thread lives in the primary channel
    INVITED = "invited"  # threads live wherever the bot was invoked
    NONE = "none"


@dataclass(frozen=True, slots=True)
class SlackMessageId:
    """A message (and therefore a thread root) is identified by channel + ts."""

    channel: str
    ts: str

    def __str__(self) -> str:
        return f"{self.channel}:{self.ts}"


@dataclass(frozen=True, slots=True)
class ChannelAssignments:
    conversation_channel_id: str
    notification_channel_id: str


def determine_conversation_channel(
    starting_channel_id: str | None,
    primary_channel_id: str | None,
    restriction: ConversationRestriction | str | None,
) -> ChannelAssignments:
    """Decide where the conversation for a new request happens.

    With the ``primary`` restriction both the conversation and the notifications
    stay in the primary channel. Otherwise the conversation continues where the
    request started and the primary channel only receives notifications.
    """
    policy = ConversationRestriction(restriction or ConversationRestriction.NONE)
    starting = starting_channel_id or primary_channel_id
    if not starting:
        msg = "Neither a starting channel nor a primary channel is available"
        raise ValueError(msg)

    if policy is ConversationRestriction.PRIMARY and primary_channel_id:
        return ChannelAssignments(primary_channel_id, primary_channel_id)

    return ChannelAssignments(
        conversation_channel_id=starting,
        notification_channel_id=primary_channel_id or starting,
    )


def _field_name(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("name") or "")
    return str(getattr(value, "name", "") or "")


def render_thread_root(
    issue: JiraIssue, slack_user_id: str, issue_url: str | None = None
) -> tuple[str, list[dict[str, Any]]]:
    """Render the thread-root message for a ticket as (fallback text, blocks)."""
    fields = issue.fields
    status = _field_name(fields.status) or "Unknown"
    priority = _field_name(fields.priority) or "None"
    key = f"<{issue_url}|{issue.key}>" if issue_url else issue.key

    text = f"{issue.key}: {fields.summary or ''} [{status}]"
    blocks: list[dict[str, Any]] = [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*{key}* {fields.summary or ''}"},
        },
        {
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"*Status:* {status}"},
                {"type": "mrkdwn", "text": f"*Priority:* {priority}"},
                {"type": "mrkdwn", "text": f"*Reporter:* <@{slack_user_id}>"},
            ],
        },
    ]
    if fields.description:
        blocks.insert(
            1,
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": fields.description[:2900]},
            },
        )
    return text, blocks
