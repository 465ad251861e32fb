"""Intake flow.

Handles the actions that take a request from "user wants something" to a Jira
ticket with a Slack thread bound to it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from servicedesk.core.exceptions import (
    ConfigurationError,
    ExternalCallFailure,
    MissingContextError,
    ServiceDeskError,
    describe_error,
)
from servicedesk.services.service_request import RequestParams, ServiceRequest
from servicedesk.slack.events import ShortcutEvent, SlashCommandEvent
from servicedesk.slack.modal import ModalPrefill, RequestModal
from servicedesk.slack.thread import (
    ChannelAssignments,
    SlackMessageId,
    determine_conversation_channel,
)

from .actions import FlowAction
from .base import ServiceFlow
from .orchestrator import FlowOrchestrator

if TYPE_CHECKING:
    from servicedesk.core.app_context import AppContext

    from .actions import ActionData, InboundEvent

logger = logging.getLogger(__name__)


def _user_id(event: InboundEvent) -> str | None:
    user = getattr(event, "user", None)
    return getattr(user, "id", None)


class IntakeFlow(ServiceFlow):
    ACTIONS = frozenset(
        {FlowAction.OPEN_MODAL, FlowAction.MODAL_SUBMITTED, FlowAction.TICKET_CHANGED}
    )

    def __init__(self, ctx: AppContext, orchestrator: FlowOrchestrator | None = None) -> None:
        self._ctx = ctx
        self._orchestrator = orchestrator or FlowOrchestrator(ctx)

    def get_flow_actions(
        self, _event: InboundEvent, _additional_data: ActionData | None
    ) -> set[FlowAction]:
        return set(self.ACTIONS)

    def handle_action_immediate_response(
        self, _action: FlowAction, _event: InboundEvent, _additional_data: ActionData | None
    ) -> bool:
        return True

    async def handle_action_slow_response(
        self, action: FlowAction, event: InboundEvent, additional_data: ActionData | None
    ) -> bool:
        if action is FlowAction.OPEN_MODAL:
            default_text = additional_data.default_text if additional_data else None
            return await self.begin_request_creation(event, default_text)
        if action is FlowAction.MODAL_SUBMITTED:
            return await self.finish_request_creation(event)
        if action is FlowAction.TICKET_CHANGED:
            return await self.refresh_request_thread(event, additional_data)
        return False

    async def begin_request_creation(
        self, event: InboundEvent, default_text: str | None = None
    ) -> bool:
        """Show the intake modal, pre-filled from the message that triggered it.

        Used when there is no thread for the request yet.
        """
        if not default_text and isinstance(event, (SlashCommandEvent, ShortcutEvent)):
            default_text = event.extract_text()

        try:
            channel = self._primary_channel()
            trigger_id = getattr(event, "trigger_id", None)
            if not trigger_id:
                msg = "The triggering event has no trigger_id"
                raise MissingContextError(msg)
        except (ConfigurationError, MissingContextError) as e:
            logger.error("Unable to show the create modal: %s", e)
            return False

        shown = await self.show_create_modal(
            trigger_id,
            ModalPrefill(slack_user_id=_user_id(event), title=default_text or "", channel_id=channel),
        )
        if not shown:
            logger.warning("Create modal was not shown for trigger %s", trigger_id)
        return True

    async def finish_request_creation(self, event: InboundEvent) -> bool:
        """Turn a modal submission into a thread root and a ticket.

        A posted root message whose ticket could not be created is left in
        place; nothing is rolled back.
        """
        try:
            channel_id = getattr(event, "originating_channel_id", None)
            if not channel_id:
                msg = "The modal submission carries no originating channel"
                raise MissingContextError(msg)

            slack_user_id = _user_id(event)
            values = event.submitted_fields()  # type: ignore[union-attr]

            channels = self.identify_channel_assignments(channel_id)

            # This message is the root of the request in Slack; the rest of the
            # conversation happens in its thread.
            message = await self._ctx.slack.post_message(
                channels.conversation_channel_id,
                f":gear: Creating a ticket for <@{slack_user_id}> ",
            )
            message_ts = message.get("ts")
            if not message_ts:
                msg = "chat.postMessage returned no ts"
                raise ExternalCallFailure(msg, response=message)

            request = ServiceRequest(
                SlackMessageId(channels.conversation_channel_id, str(message_ts)),
                channels.notification_channel_id,
                slack_user_id,
                self._ctx,
            )
            return await request.create(
                RequestParams(
                    slack_user_id=slack_user_id,
                    title=values.summary,
                    description=values.description,
                    priority=values.priority,
                    components=[values.category] if values.category else [],
                )
            )
        except MissingContextError as e:
            logger.error("Unable to finish the request submission: %s", e)
            return False
        except Exception as e:
            logger.error("There was a problem finishing the request submission: %s", describe_error(e))
            return False

    async def refresh_request_thread(
        self, event: InboundEvent, additional_data: ActionData | None
    ) -> bool:
        try:
            request = await self._orchestrator.build_request_from_jira_event(additional_data, event)
        except Exception as e:
            logger.warning("Could not rebuild a request from the ticket event: %s", describe_error(e))
            return False

        try:
            await request.update_slack_thread()
        except ServiceDeskError as e:
            logger.error("Could not update thread %s: %s", request.thread_id, describe_error(e))
            return False
        return True

    async def show_create_modal(self, trigger_id: str, prefill: ModalPrefill) -> bool:
        try:
            # Defaults apply when SUBMIT_MODAL_CONFIG is unset
            modal_config = self._ctx.settings.modal_config
            modal = RequestModal(prefill, modal_config, prefill.channel_id)
            return await modal.show(trigger_id, self._ctx.slack)
        except (ValidationError, ServiceDeskError) as e:
            logger.error("Exception thrown trying to show the create modal: %s", describe_error(e))
            return False

    def identify_channel_assignments(self, starting_channel_id: str) -> ChannelAssignments:
        """Pick the conversation and notification channels for a new request."""
        settings = self._ctx.settings
        return determine_conversation_channel(
            starting_channel_id,
            settings.slack_primary_channel,
            settings.slack_conversation_restriction,
        )

    def _primary_channel(self) -> str:
        channel = self._ctx.settings.slack_primary_channel
        if not channel:
            msg = "SLACK_PRIMARY_CHANNEL is not configured"
            raise ConfigurationError(msg)
        return channel
