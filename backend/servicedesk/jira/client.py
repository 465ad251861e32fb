"""Jira REST (v2) client for the ticket side of a service request."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import requests
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from servicedesk.core.exceptions import ConfigurationError, JiraApiError
from servicedesk.jira.events import JiraIssue

logger = logging.getLogger(__name__)


def _echo_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {
        "summary": fields.get("summary"),
        "description": fields.get("description"),
        "priority": fields.get("priority"),
        "components": fields.get("components", []),
        "labels": fields.get("labels", []),
    }


class JiraApiSettings(Protocol):
    jira_username: str | None
    jira_api_token: str | None
    http_timeout: float

    @property
    def jira_base_url(self) -> str: ...

    @property
    def jira_configured(self) -> bool: ...


class JiraClient:
    """Blocking ``requests`` calls run in a worker thread.

    Only reads are retried; a retried create could open duplicate tickets.
    """

    def __init__(self, settings: JiraApiSettings, session: requests.Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def browse_url(self, issue_key: str) -> str | None:
        base = self._settings.jira_base_url
        return f"{base}/browse/{issue_key}" if base else None

    def _send(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        if not self._settings.jira_configured:
            msg = "Jira is not configured (JIRA_HOST, JIRA_USERNAME, JIRA_API_TOKEN)"
            raise ConfigurationError(msg)
        url = f"{self._settings.jira_base_url}/rest/api/2/{path.lstrip('/')}"
        return self._session.request(
            method,
            url,
            auth=(self._settings.jira_username or "", self._settings.jira_api_token or ""),
            headers={"Accept": "application/json"},
            timeout=self._settings.http_timeout,
            **kwargs,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _read(self, path: str) -> requests.Response:
        return self._send("GET", path)

    @staticmethod
    def _check(response: requests.Response, what: str) -> None:
        if response.status_code < 400:
            return
        try:
            body = response.json()
            messages = list(body.get("errorMessages", [])) + [
                f"{k}: {v}" for k, v in (body.get("errors") or {}).items()
            ]
            error = "; ".join(messages) or response.reason
        except ValueError:
            error = response.text[:200] or response.reason
        raise JiraApiError(
            f"Jira {what} failed with status {response.status_code}", error=error, response=response
        )

    def _create_issue(self, fields: dict[str, Any]) -> str:
        try:
            response = self._send("POST", "issue", json={"fields": fields})
        except requests.RequestException as e:
            raise JiraApiError("Jira issue create failed", error=str(e)) from e
        self._check(response, "issue create")
        try:
            return str(response.json()["key"])
        except (ValueError, KeyError, TypeError) as e:
            raise JiraApiError(
                "Jira issue create returned no issue key", error=repr(e), response=response
            ) from e

    def _get_issue(self, issue_key: str) -> JiraIssue:
        try:
            response = self._read(f"issue/{issue_key}")
        except requests.RequestException as e:
            raise JiraApiError(f"Jira issue read failed for {issue_key}", error=str(e)) from e
        self._check(response, f"issue read for {issue_key}")
        return JiraIssue.model_validate(response.json())

    def _set_property(self, issue_key: str, name: str, value: dict[str, Any]) -> None:
        try:
            response = self._send("PUT", f"issue/{issue_key}/properties/{name}", json=value)
        except requests.RequestException as e:
            raise JiraApiError(f"Jira property write failed for {issue_key}", error=str(e)) from e
        self._check(response, f"property write for {issue_key}")

    def _get_property(self, issue_key: str, name: str) -> dict[str, Any] | None:
        try:
            response = self._read(f"issue/{issue_key}/properties/{name}")
        except requests.RequestException as e:
            raise JiraApiError(f"Jira property read failed for {issue_key}", error=str(e)) from e
        if response.status_code == 404:
            return None
        self._check(response, f"property read for {issue_key}")
        value = response.json().get("value")
        return value if isinstance(value, dict) else None

    async def create_issue(self, fields: dict[str, Any]) -> JiraIssue:
        """Create an issue and return it as Jira now sees it (status included)."""
        key = await asyncio.to_thread(self._create_issue, fields)
        logger.info("Created Jira issue %s", key)
        try:
            return await self.get_issue(key)
        except JiraApiError as e:
            # The ticket exists either way; fall back to what was submitted
            logger.warning("Could not read back new issue %s: %s", key, e)
            return JiraIssue.model_validate({"key": key, "fields": _echo_fields(fields)})

    async def get_issue(self, issue_key: str) -> JiraIssue:
        return await asyncio.to_thread(self._get_issue, issue_key)

    async def set_issue_property(self, issue_key: str, name: str, value: dict[str, Any]) -> None:
        await asyncio.to_thread(self._set_property, issue_key, name, value)

    async def get_issue_property(self, issue_key: str, name: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get_property, issue_key, name)
