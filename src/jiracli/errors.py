"""Error taxonomy, failure classification & redaction.

Every transport or HTTP failure is first captured as a ``RawFailure`` variant
by the dispatcher, then mapped to exactly one exception kind by the pure
``classify_failure`` function. Nothing above the dispatcher inspects raw
responses.

Public API:
- JiraCliError and its subclasses (the taxonomy)
- HttpFailure / TransportFailure / LocalFailure (raw failure variants)
- classify_failure(failure) -> JiraCliError
- is_fallback_eligible(failure) -> bool
- redact(text) -> str
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_GONE = 410

GENERIC_API_MESSAGE = "API request failed"

CONFIGURATION_GUIDANCE = (
    "JIRA CLI is not configured. Set configuration using:\n"
    "  jira config --server <url> --token <token>\n"
    "For Basic auth, also provide:\n"
    "  jira config --username <email>\n"
    "Or use environment variables:\n"
    "  Bearer auth: JIRA_HOST, JIRA_API_TOKEN\n"
    "  Basic auth: JIRA_HOST, JIRA_API_TOKEN, JIRA_USERNAME"
)

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]{6,}"),
    re.compile(r"(Basic\s+)[A-Za-z0-9+/=]{6,}"),
    re.compile(r"(ATATT)[A-Za-z0-9_\-=]{10,}"),  # Atlassian API tokens
    re.compile(r"(://)[^/\s:@]+:[^/\s@]+@"),  # credentials embedded in URLs
]

_REDACTION_PLACEHOLDER = "<redacted>"

# Response text fragments that mean "this API version no longer serves the endpoint"
_REMOVED_ENDPOINT_TOKENS = (
    "endpoint has been removed",
    "api has been removed",
    "endpoint is no longer available",
    "endpoint is no longer supported",
    "api version is no longer supported",
)
_DEPRECATED_SEARCH_TOKENS = (
    "/rest/api/2/search",
    "/rest/api/3/search",
    "migrate to the /rest/api/3/search/jql",
    "search/jql",
)


class JiraCliError(RuntimeError):
    """Base class for every error surfaced to the CLI boundary."""


class ConfigurationMissing(JiraCliError):
    """No usable credential source was found."""

    def __init__(self, message: str = CONFIGURATION_GUIDANCE):
        super().__init__(message)
        self.guidance = message


class ConfigError(JiraCliError):
    """The persisted configuration could not be read or the key is invalid."""


class AuthenticationFailed(JiraCliError):
    status = HTTP_UNAUTHORIZED

    def __init__(self, message: str = "Authentication failed. Please check your credentials."):
        super().__init__(message)


class AccessDenied(JiraCliError):
    status = HTTP_FORBIDDEN

    def __init__(
        self,
        message: str = "Access denied. You don't have permission to perform this action.",
    ):
        super().__init__(message)


class NotFound(JiraCliError):
    status = HTTP_NOT_FOUND

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message)


class RemoteApiError(JiraCliError):
    """Any other structured error response from the service."""

    def __init__(self, message: str = GENERIC_API_MESSAGE, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class NetworkError(JiraCliError):
    def __init__(
        self,
        message: str = "Network error. Please check your connection and server URL.",
        *,
        detail: str | None = None,
    ):
        super().__init__(message)
        self.detail = detail


# ---- Raw failure variants ------------------------------------------------


@dataclass(frozen=True)
class HttpFailure:
    """The service answered with an error status."""

    status: int
    payload: Any = None
    text: str = ""


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a response (DNS, TLS, connection, timeout)."""

    message: str


@dataclass(frozen=True)
class LocalFailure:
    """The request could not be built or sent for a local reason."""

    message: str


RawFailure = Union[HttpFailure, TransportFailure, LocalFailure]


def redact(text: str) -> str:
    """Replace credential-looking substrings with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
    return redacted


def api_error_message(payload: Any) -> str | None:
    """Extract the service's own error messages from an error body."""
    if not isinstance(payload, dict):
        return None
    messages: list[str] = []
    error_messages = payload.get("errorMessages")
    if isinstance(error_messages, list):
        messages.extend(str(m) for m in error_messages if m)
    errors = payload.get("errors")
    if isinstance(errors, dict):
        messages.extend(f"{field}: {msg}" for field, msg in errors.items() if msg)
    if not messages and isinstance(payload.get("message"), str):
        messages.append(payload["message"])
    return ", ".join(messages) if messages else None


def classify_failure(failure: RawFailure) -> JiraCliError:
    """Map a raw failure onto the error taxonomy."""
    if isinstance(failure, HttpFailure):
        if failure.status == HTTP_UNAUTHORIZED:
            return AuthenticationFailed()
        if failure.status == HTTP_FORBIDDEN:
            return AccessDenied()
        if failure.status == HTTP_NOT_FOUND:
            return NotFound()
        message = api_error_message(failure.payload) or GENERIC_API_MESSAGE
        return RemoteApiError(redact(message), status=failure.status)
    if isinstance(failure, TransportFailure):
        return NetworkError(detail=redact(failure.message))
    return JiraCliError(redact(failure.message))


def _failure_text(failure: RawFailure) -> str:
    if isinstance(failure, HttpFailure):
        parts = [failure.text or ""]
        detail = api_error_message(failure.payload)
        if detail:
            parts.append(detail)
        return " ".join(parts).lower()
    return failure.message.lower()


def is_fallback_eligible(failure: RawFailure) -> bool:
    """True when the failure says the requested API version is unavailable."""
    if not isinstance(failure, HttpFailure):
        return False
    if failure.status in (HTTP_NOT_FOUND, HTTP_GONE):
        return True
    text = _failure_text(failure)
    if any(tok in text for tok in _REMOVED_ENDPOINT_TOKENS):
        return True
    return "deprecated" in text and any(tok in text for tok in _DEPRECATED_SEARCH_TOKENS)


__all__ = [
    "JiraCliError",
    "ConfigurationMissing",
    "ConfigError",
    "AuthenticationFailed",
    "AccessDenied",
    "NotFound",
    "RemoteApiError",
    "NetworkError",
    "HttpFailure",
    "TransportFailure",
    "LocalFailure",
    "RawFailure",
    "api_error_message",
    "classify_failure",
    "is_fallback_eligible",
    "redact",
    "CONFIGURATION_GUIDANCE",
]
