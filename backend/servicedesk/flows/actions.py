from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from servicedesk.jira.events import JiraWebhookEvent
    from servicedesk.slack.events import SlackEvent


class FlowAction(str, Enum):
    """Trigger kinds a flow can declare interest in."""

    OPEN_MODAL = "open_modal"
    MODAL_SUBMITTED = "modal_submitted"
    TICKET_CHANGED = "ticket_changed"


@dataclass(frozen=True, slots=True)
class ActionData:
    """Out-of-band context carried next to an event; its meaning is per action."""

    default_text: str | None = None
    raw: dict[str, Any] | None = None


InboundEvent: TypeAlias = "SlackEvent | JiraWebhookEvent"
