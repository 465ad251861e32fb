"""Jira issue and webhook models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _JiraModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JiraNamed(_JiraModel):
    """Status, priority, component and issue type all share this shape."""

    id: str | None = None
    name: str | None = None


class JiraIssueFields(_JiraModel):
    summary: str | None = None
    description: str | None = None
    status: JiraNamed | None = None
    priority: JiraNamed | None = None
    components: list[JiraNamed] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)


class JiraIssue(_JiraModel):
    id: str | None = None
    key: str
    fields: JiraIssueFields = Field(default_factory=JiraIssueFields)


class JiraChangeItem(_JiraModel):
    field: str
    from_string: str | None = Field(default=None, alias="fromString")
    to_string: str | None = Field(default=None, alias="toString")


class JiraChangelog(_JiraModel):
    items: list[JiraChangeItem] = Field(default_factory=list)


class JiraWebhookEvent(_JiraModel):
    """An issue webhook delivery (``jira:issue_updated`` and friends)."""

    webhook_event: str = Field(alias="webhookEvent")
    issue: JiraIssue | None = None
    changelog: JiraChangelog | None = None
    timestamp: int | None = None

    @property
    def status_change(self) -> JiraChangeItem | None:
        if not self.changelog:
            return None
        for item in self.changelog.items:
            if item.field.lower() == "status":
                return item
        return None


def parse_jira_event(payload: dict[str, Any]) -> JiraWebhookEvent:
    return JiraWebhookEvent.model_validate(payload)
