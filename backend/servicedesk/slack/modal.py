"""Intake modal: configuration, view construction and display."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from servicedesk.core.exceptions import ExternalCallFailure, describe_error

if TYPE_CHECKING:
    from servicedesk.slack.client import SlackClient

logger = logging.getLogger(__name__)

REQUEST_MODAL_CALLBACK_ID = "servicedesk_request_modal"

# (block_id, action_id) pairs; submissions are decoded with the same ids
TITLE_FIELD = ("title_input", "title")
DESCRIPTION_FIELD = ("description_input", "description")
PRIORITY_FIELD = ("priority_input", "priority")
CATEGORY_FIELD = ("category_input", "category")


class ModalOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label: str
    value: str


class ModalConfig(BaseModel):
    """Shape of the SUBMIT_MODAL_CONFIG setting; every field has a default."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(default="Submit a Request", max_length=24)
    submit_label: str = Field(default="Submit", max_length=24)
    title_label: str = "Summary"
    description_label: str = "Description"
    priority_label: str = "Priority"
    category_label: str = "Category"
    priorities: list[ModalOption] = Field(
        default_factory=lambda: [
            ModalOption(label="Critical", value="Highest"),
            ModalOption(label="High", value="High"),
            ModalOption(label="Medium", value="Medium"),
            ModalOption(label="Low", value="Low"),
        ]
    )
    categories: list[ModalOption] = Field(
        default_factory=lambda: [
            ModalOption(label="Access", value="access"),
            ModalOption(label="Hardware", value="hardware"),
            ModalOption(label="Software", value="software"),
            ModalOption(label="Other", value="other"),
        ]
    )


@dataclass(frozen=True, slots=True)
class ModalPrefill:
    """Values the modal opens with."""

    slack_user_id: str | None
    title: str
    channel_id: str


def _plain(text: str) -> dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": True}


def _option(option: ModalOption) -> dict[str, Any]:
    return {"text": _plain(option.label), "value": option.value}


def _select_block(
    field: tuple[str, str], label: str, options: list[ModalOption], *, optional: bool
) -> dict[str, Any]:
    block_id, action_id = field
    return {
        "type": "input",
        "block_id": block_id,
        "optional": optional,
        "label": _plain(label),
        "element": {
            "type": "static_select",
            "action_id": action_id,
            "options": [_option(o) for o in options],
        },
    }


class RequestModal:
    """Builds the intake modal and opens it through the Slack Web API."""

    # The title becomes the Jira summary, so long message text is cut to a short line
    MAX_INITIAL_TITLE = 150

    def __init__(
        self,
        prefill: ModalPrefill,
        config: ModalConfig | None = None,
        channel_id: str | None = None,
    ) -> None:
        self.prefill = prefill
        self.config = config or ModalConfig()
        self.channel_id = channel_id or prefill.channel_id

    def build_view(self) -> dict[str, Any]:
        cfg = self.config
        title_block, title_action = TITLE_FIELD
        desc_block, desc_action = DESCRIPTION_FIELD

        title_element: dict[str, Any] = {"type": "plain_text_input", "action_id": title_action}
        initial_title = (self.prefill.title or "").strip()
        if initial_title:
            title_element["initial_value"] = initial_title[: self.MAX_INITIAL_TITLE]

        blocks: list[dict[str, Any]] = [
            {
                "type": "input",
                "block_id": title_block,
                "label": _plain(cfg.title_label),
                "element": title_element,
            },
            {
                "type": "input",
                "block_id": desc_block,
                "optional": True,
                "label": _plain(cfg.description_label),
                "element": {
                    "type": "plain_text_input",
                    "action_id": desc_action,
                    "multiline": True,
                },
            },
        ]
        if cfg.priorities:
            blocks.append(
                _select_block(PRIORITY_FIELD, cfg.priority_label, cfg.priorities, optional=True)
            )
        if cfg.categories:
            blocks.append(
                _select_block(CATEGORY_FIELD, cfg.category_label, cfg.categories, optional=False)
            )

        return {
            "type": "modal",
            "callback_id": REQUEST_MODAL_CALLBACK_ID,
            # The submission handler reads the originating channel back from here
            "private_metadata": self.channel_id,
            "title": _plain(cfg.title),
            "submit": _plain(cfg.submit_label),
            "close": _plain("Cancel"),
            "blocks": blocks,
        }

    async def show(self, trigger_id: str, slack: SlackClient) -> bool:
        try:
            await slack.open_view(trigger_id, self.build_view())
        except ExternalCallFailure as e:
            logger.error("Failed to open the request modal: %s", describe_error(e))
            return False
        logger.info(
            "Opened request modal for user=%s channel=%s", self.prefill.slack_user_id, self.channel_id
        )
        return True
