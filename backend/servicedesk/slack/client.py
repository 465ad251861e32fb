from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError as SdkApiError
from slack_sdk.errors import SlackClientError

from servicedesk.core.exceptions import SlackApiError

logger = logging.getLogger(__name__)


class SlackApiSettings(Protocol):
    """Protocol for settings needed by the Slack client."""

    slack_bot_token: str
    slack_api_url: str
    http_timeout: float


class SlackClient:
    """Slack Web API access for the bot user.

    ``slack_sdk.WebClient`` is blocking, so each call runs in a worker thread
    and the event loop stays free while a slow-response task waits on Slack.
    """

    def __init__(self, settings: SlackApiSettings, web_client: WebClient | None = None) -> None:
        self._web = web_client or WebClient(
            token=settings.slack_bot_token,
            base_url=f"{settings.slack_api_url.rstrip('/')}/",
            timeout=max(1, int(settings.http_timeout)),
        )

    async def _call(self, method: str, call: Callable[..., Any], **kwargs: Any) -> dict[str, Any]:
        try:
            response = await asyncio.to_thread(call, **kwargs)
        except SdkApiError as e:
            error = str(e.response.get("error") or "unknown_error")
            logger.warning("Slack call %s returned error=%s", method, error)
            raise SlackApiError(
                f"Slack call {method} was rejected", error=error, response=e.response
            ) from e
        except (SlackClientError, OSError) as e:
            raise SlackApiError(f"Slack call {method} failed", error=str(e)) from e
        return dict(response.data) if isinstance(response.data, dict) else {}

    async def post_message(
        self,
        channel: str,
        text: str,
        *,
        thread_ts: str | None = None,
        blocks: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Post a message; the returned ``ts`` identifies it (and any thread under it)."""
        return await self._call(
            "chat.postMessage",
            self._web.chat_postMessage,
            channel=channel,
            text=text,
            thread_ts=thread_ts,
            blocks=blocks,
        )

    async def update_message(
        self,
        channel: str,
        ts: str,
        text: str,
        *,
        blocks: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        return await self._call(
            "chat.update", self._web.chat_update, channel=channel, ts=ts, text=text, blocks=blocks
        )

    async def get_permalink(self, channel: str, ts: str) -> str | None:
        data = await self._call(
            "chat.getPermalink", self._web.chat_getPermalink, channel=channel, message_ts=ts
        )
        return data.get("permalink")

    async def open_view(self, trigger_id: str, view: dict[str, Any]) -> dict[str, Any]:
        return await self._call("views.open", self._web.views_open, trigger_id=trigger_id, view=view)
