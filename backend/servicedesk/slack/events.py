"""Typed Slack inbound events, decoded at the HTTP boundary.

Slash commands arrive as form fields; every other interaction arrives as a
JSON document in the ``payload`` form field. Both are decoded into the models
below before anything else looks at them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from servicedesk.slack.modal import (
    CATEGORY_FIELD,
    DESCRIPTION_FIELD,
    PRIORITY_FIELD,
    TITLE_FIELD,
)


class _SlackModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SlackUser(_SlackModel):
    id: str
    username: str | None = None
    name: str | None = None


class SlackChannel(_SlackModel):
    id: str
    name: str | None = None


class SlackMessage(_SlackModel):
    ts: str | None = None
    text: str = ""
    user: str | None = None


class SlashCommandEvent(_SlackModel):
    type: Literal["slash_command"] = "slash_command"
    command: str
    text: str = ""
    trigger_id: str | None = None
    user: SlackUser | None = None
    channel: SlackChannel | None = None
    team_id: str | None = None
    response_url: str | None = None

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> SlashCommandEvent:
        user_id = form.get("user_id")
        channel_id = form.get("channel_id")
        return cls(
            command=str(form.get("command", "")),
            text=str(form.get("text", "") or ""),
            trigger_id=form.get("trigger_id") or None,
            user=SlackUser(id=str(user_id), username=form.get("user_name")) if user_id else None,
            channel=(
                SlackChannel(id=str(channel_id), name=form.get("channel_name"))
                if channel_id
                else None
            ),
            team_id=form.get("team_id"),
            response_url=form.get("response_url"),
        )

    def extract_text(self) -> str:
        return self.text.strip()


class ShortcutEvent(_SlackModel):
    """A global shortcut (``shortcut``) or a message shortcut (``message_action``)."""

    type: Literal["shortcut", "message_action"]
    callback_id: str
    trigger_id: str | None = None
    user: SlackUser | None = None
    channel: SlackChannel | None = None
    message: SlackMessage | None = None

    def extract_text(self) -> str:
        return (self.message.text if self.message else "").strip()


class SelectedOption(_SlackModel):
    value: str | None = None


class ViewInputValue(_SlackModel):
    type: str | None = None
    value: str | None = None
    selected_option: SelectedOption | None = None

    @property
    def resolved(self) -> str | None:
        if self.selected_option is not None:
            return self.selected_option.value
        return self.value


class ViewState(_SlackModel):
    values: dict[str, dict[str, ViewInputValue]] = Field(default_factory=dict)

    def get(self, field: tuple[str, str]) -> str | None:
        block_id, action_id = field
        value = self.values.get(block_id, {}).get(action_id)
        return value.resolved if value else None


class SlackView(_SlackModel):
    id: str | None = None
    callback_id: str = ""
    private_metadata: str = ""
    state: ViewState = Field(default_factory=ViewState)


@dataclass(frozen=True, slots=True)
class RequestSubmission:
    """The intake fields captured by the request modal."""

    summary: str | None
    description: str | None
    priority: str | None
    category: str | None


class ViewSubmissionEvent(_SlackModel):
    type: Literal["view_submission"]
    trigger_id: str | None = None
    user: SlackUser | None = None
    view: SlackView

    @property
    def originating_channel_id(self) -> str | None:
        return self.view.private_metadata.strip() or None

    def submitted_fields(self) -> RequestSubmission:
        state = self.view.state
        return RequestSubmission(
            summary=state.get(TITLE_FIELD),
            description=state.get(DESCRIPTION_FIELD),
            priority=state.get(PRIORITY_FIELD),
            category=state.get(CATEGORY_FIELD),
        )


class UnsupportedInteraction(_SlackModel):
    """Any interaction type intake does not act on (block actions, view closed...)."""

    model_config = ConfigDict(extra="allow")

    type: str
    user: SlackUser | None = None


SlackInteraction = ShortcutEvent | ViewSubmissionEvent | UnsupportedInteraction
SlackEvent = SlashCommandEvent | SlackInteraction

_INTERACTION_MODELS: dict[str, type[BaseModel]] = {
    "shortcut": ShortcutEvent,
    "message_action": ShortcutEvent,
    "view_submission": ViewSubmissionEvent,
}


def parse_interaction(payload: Mapping[str, Any]) -> SlackInteraction:
    """Decode an interaction payload; raises ``pydantic.ValidationError`` on bad shape."""
    kind = str(payload.get("type", ""))
    model = _INTERACTION_MODELS.get(kind, UnsupportedInteraction)
    return model.model_validate(payload)  # type: ignore[return-value]
