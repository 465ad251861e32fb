"""Map typed inbound events to flow actions."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from servicedesk.jira.events import JiraWebhookEvent
from servicedesk.slack.events import ShortcutEvent, SlashCommandEvent, ViewSubmissionEvent
from servicedesk.slack.modal import REQUEST_MODAL_CALLBACK_ID

from .actions import FlowAction, InboundEvent

logger = logging.getLogger(__name__)

DEFAULT_SHORTCUT_CALLBACK_IDS = frozenset({"submit_request"})
DEFAULT_TICKET_EVENTS = frozenset({"jira:issue_updated"})


class ActionClassifier:
    """Classify an event into at most one ``FlowAction``.

    Events that match nothing classify to ``None``; that is not an error.
    """

    def __init__(
        self,
        *,
        commands: Iterable[str] | None = None,
        shortcut_callback_ids: Iterable[str] = DEFAULT_SHORTCUT_CALLBACK_IDS,
        modal_callback_ids: Iterable[str] = (REQUEST_MODAL_CALLBACK_ID,),
        ticket_events: Iterable[str] = DEFAULT_TICKET_EVENTS,
    ) -> None:
        # None accepts every slash command routed to this app
        self._commands = frozenset(commands) if commands is not None else None
        self._shortcuts = frozenset(shortcut_callback_ids)
        self._modals = frozenset(modal_callback_ids)
        self._ticket_events = frozenset(ticket_events)

    def classify(self, event: InboundEvent) -> FlowAction | None:
        if isinstance(event, SlashCommandEvent):
            if self._commands is None or event.command in self._commands:
                return FlowAction.OPEN_MODAL
        elif isinstance(event, ShortcutEvent):
            if event.callback_id in self._shortcuts:
                return FlowAction.OPEN_MODAL
        elif isinstance(event, ViewSubmissionEvent):
            if event.view.callback_id in self._modals:
                return FlowAction.MODAL_SUBMITTED
        elif isinstance(event, JiraWebhookEvent):
            if event.webhook_event in self._ticket_events and event.issue is not None:
                return FlowAction.TICKET_CHANGED

        logger.debug("Event %s did not classify to any action", type(event).__name__)
        return None
