"""Error taxonomy for request intake.

An event that classifies to no known action is not an error and has no
exception here; the dispatcher reports it as unhandled.
"""

from __future__ import annotations

from typing import Any


class ServiceDeskError(Exception):
    """Base exception for service desk errors."""


class ConfigurationError(ServiceDeskError):
    """Required configuration is missing or invalid."""


class MissingContextError(ServiceDeskError):
    """An inbound payload lacks context needed to continue (channel, trigger id)."""


class ExternalCallFailure(ServiceDeskError):
    """A call to the chat platform or the ticket tracker failed."""

    def __init__(self, message: str, *, error: str | None = None, response: Any = None) -> None:
        super().__init__(message)
        self.error = error
        self.response = response


class SlackApiError(ExternalCallFailure):
    """Slack Web API returned ``ok: false`` or could not be reached."""


class JiraApiError(ExternalCallFailure):
    """Jira REST API returned an error status or could not be reached."""


def describe_error(exc: BaseException) -> str:
    """Return a short human-readable message for logs and thread replies."""
    if isinstance(exc, ExternalCallFailure) and exc.error:
        return f"{exc} ({exc.error})"
    return str(exc) or exc.__class__.__name__
