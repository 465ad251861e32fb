"""In-memory Slack and Jira clients plus settings builders for tests."""

from __future__ import annotations

from typing import Any

from servicedesk.core.exceptions import JiraApiError, SlackApiError
from servicedesk.jira.events import JiraIssue
from servicedesk.settings import Settings


class FakeSlack:
    """Records Slack Web API calls; `fail` names methods that should raise."""

    def __init__(self, ts: str = "1700000000.000100") -> None:
        self.ts = ts
        self.posted: list[dict[str, Any]] = []
        self.updated: list[dict[str, Any]] = []
        self.views: list[dict[str, Any]] = []
        self.fail: set[str] = set()

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise SlackApiError(f"Slack call {method} was rejected", error="channel_not_found")

    async def post_message(self, channel, text, *, thread_ts=None, blocks=None):  # type: ignore[no-untyped-def]
        self._maybe_fail("post_message")
        self.posted.append({"channel": channel, "text": text, "thread_ts": thread_ts})
        return {"ok": True, "channel": channel, "ts": self.ts}

    async def update_message(self, channel, ts, text, *, blocks=None):  # type: ignore[no-untyped-def]
        self._maybe_fail("update_message")
        self.updated.append({"channel": channel, "ts": ts, "text": text, "blocks": blocks})
        return {"ok": True}

    async def get_permalink(self, channel, ts):  # type: ignore[no-untyped-def]
        self._maybe_fail("get_permalink")
        return f"https://example.slack.com/archives/{channel}/p{ts.replace('.', '')}"

    async def open_view(self, trigger_id, view):  # type: ignore[no-untyped-def]
        self._maybe_fail("open_view")
        self.views.append({"trigger_id": trigger_id, "view": view})
        return {"ok": True}


class FakeJira:
    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.properties: dict[tuple[str, str], dict[str, Any]] = {}
        self.fail: set[str] = set()
        self._next = 1

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise JiraApiError(f"Jira {method} failed with status 400", error="bad request")

    def browse_url(self, issue_key):  # type: ignore[no-untyped-def]
        return f"https://jira.example.com/browse/{issue_key}"

    async def create_issue(self, fields):  # type: ignore[no-untyped-def]
        self._maybe_fail("create_issue")
        self.created.append(fields)
        key = f"SD-{self._next}"
        self._next += 1
        return JiraIssue.model_validate(
            {
                "key": key,
                "fields": {
                    "summary": fields.get("summary"),
                    "description": fields.get("description"),
                    "status": {"name": "Open"},
                    "priority": fields.get("priority"),
                    "components": fields.get("components", []),
                },
            }
        )

    async def set_issue_property(self, issue_key, name, value):  # type: ignore[no-untyped-def]
        self._maybe_fail("set_issue_property")
        self.properties[(issue_key, name)] = value

    async def get_issue_property(self, issue_key, name):  # type: ignore[no-untyped-def]
        self._maybe_fail("get_issue_property")
        return self.properties.get((issue_key, name))


def build_settings(**overrides: Any) -> Settings:
    """Settings isolated from the process environment and any .env file."""
    values: dict[str, Any] = {
        "slack_bot_token": "xoxb-test",
        "slack_signing_secret": None,
        "slack_primary_channel": "C1",
        "slack_conversation_restriction": "none",
        "submit_modal_config": None,
        "jira_host": "jira.example.com",
        "jira_username": "bot@example.com",
        "jira_api_token": "token",
        "jira_project_key": "SD",
        "jira_issue_type": "Task",
        "jira_webhook_secret": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]
