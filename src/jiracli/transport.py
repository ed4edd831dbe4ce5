"""Authenticated HTTP dispatcher with REST API version negotiation.

Two REST API versions (``/rest/api/2`` and ``/rest/api/3``) plus the Agile
API (``/rest/agile/1.0``) are reached through one ``requests.Session``.
In ``auto`` mode a failed call whose signature says "this version does not
serve the endpoint" is retried once against the other version; when that
retry succeeds the dispatcher keeps using the other version for the rest of
its lifetime.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import requests

from . import __version__
from .config import CredentialSet
from .errors import (
    HttpFailure,
    LocalFailure,
    RawFailure,
    TransportFailure,
    classify_failure,
    is_fallback_eligible,
)
from .logging import get_logger
from .observability import get_tracer

USER_AGENT = f"jiracli/{__version__}"
DEFAULT_TIMEOUT = 30
HTTP_ERROR_STATUS = 400
AGILE_PATH = "/rest/agile/1.0"
DEFAULT_PREFERRED_VERSION = 3

_LOCAL_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
)


class ApiVersionMode(str, Enum):
    AUTO = "auto"
    V2 = "2"
    V3 = "3"

    @classmethod
    def parse(cls, value: ApiVersionMode | str | int) -> ApiVersionMode:
        if isinstance(value, ApiVersionMode):
            return value
        return cls(str(value).strip().lower())


class _FailedCall(Exception):
    """Carries a raw failure out of a single attempt."""

    def __init__(self, failure: RawFailure):
        super().__init__(repr(failure))
        self.failure = failure


def other_version(version: int) -> int:
    return 2 if version == 3 else 3


@dataclass
class JiraDispatcher:
    """Performs one authenticated call at a time and classifies failures."""

    credentials: CredentialSet
    version_mode: ApiVersionMode | str = ApiVersionMode.AUTO
    session: requests.Session | None = None
    timeout: float = DEFAULT_TIMEOUT
    preferred_version: int = field(init=False, default=DEFAULT_PREFERRED_VERSION)
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.version_mode = ApiVersionMode.parse(self.version_mode)
        if self.version_mode is not ApiVersionMode.AUTO:
            self.preferred_version = int(self.version_mode.value)
        self.logger = get_logger()
        self._session = self.session or requests.Session()
        self._attach_auth()

    def _attach_auth(self) -> None:
        headers = self._session.headers
        headers["Accept"] = "application/json"
        headers["Content-Type"] = "application/json"
        headers["User-Agent"] = USER_AGENT
        if self.credentials.username:
            headers.pop("Authorization", None)
            self._session.auth = (self.credentials.username, self.credentials.token)
        else:
            self._session.auth = None
            headers["Authorization"] = f"Bearer {self.credentials.token}"

    # ---- endpoints ----------------------------------------------------
    @property
    def server(self) -> str:
        return self.credentials.server

    def api_base(self, version: int) -> str:
        return f"{self.server}/rest/api/{version}"

    @property
    def agile_base(self) -> str:
        return f"{self.server}{AGILE_PATH}"

    # ---- single attempt -----------------------------------------------
    def _send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        start = time.perf_counter()
        with get_tracer().start_as_current_span("jira.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", url)
            try:
                response = self._session.request(
                    method,
                    url,
                    params=dict(params) if params else None,
                    json=json_body,
                    headers=self._session.headers,
                    timeout=self.timeout,
                )
            except _LOCAL_REQUEST_ERRORS as exc:
                raise _FailedCall(LocalFailure(str(exc))) from exc
            except UnicodeError as exc:
                # header values (bearer token, basic credentials) must be latin-1
                raise _FailedCall(
                    LocalFailure(f"Credentials contain characters that cannot be sent: {exc}")
                ) from exc
            except requests.RequestException as exc:
                raise _FailedCall(TransportFailure(str(exc))) from exc
            span.set_attribute("http.status_code", response.status_code)

        self.logger.log_request(
            method,
            url,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        if response.status_code >= HTTP_ERROR_STATUS:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            raise _FailedCall(HttpFailure(response.status_code, payload, response.text or ""))
        if not response.text:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _call_version(
        self,
        version: int,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None,
        json_body: Any | None,
        versioned_paths: Mapping[int, str] | None,
        versioned_params: Mapping[int, Mapping[str, Any]] | None,
        versioned_bodies: Mapping[int, Any] | None,
    ) -> Any:
        target_path = (versioned_paths or {}).get(version, path)
        target_params = (versioned_params or {}).get(version, params)
        target_body = (versioned_bodies or {}).get(version, json_body)
        return self._send(
            method,
            f"{self.api_base(version)}{target_path}",
            params=target_params,
            json_body=target_body,
        )

    # ---- public API ---------------------------------------------------
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
        versioned_paths: Mapping[int, str] | None = None,
        versioned_params: Mapping[int, Mapping[str, Any]] | None = None,
        versioned_bodies: Mapping[int, Any] | None = None,
    ) -> Any:
        """Call a versioned REST endpoint, falling back once in auto mode.

        ``versioned_paths``, ``versioned_params`` and ``versioned_bodies``
        replace ``path``, ``params`` and ``json_body`` for the version they
        are keyed by.
        """
        kwargs: dict[str, Any] = {
            "params": params,
            "json_body": json_body,
            "versioned_paths": versioned_paths,
            "versioned_params": versioned_params,
            "versioned_bodies": versioned_bodies,
        }
        version = self.preferred_version
        try:
            return self._call_version(version, method, path, **kwargs)
        except _FailedCall as exc:
            failure = exc.failure

        if self.version_mode is not ApiVersionMode.AUTO or not is_fallback_eligible(failure):
            raise classify_failure(failure)

        alternate = other_version(version)
        self.logger.info(
            f"API v{version} unavailable for {method} {path}; retrying with v{alternate}",
            operation="api_version_fallback",
            from_version=version,
            to_version=alternate,
        )
        try:
            result = self._call_version(alternate, method, path, **kwargs)
        except _FailedCall as exc:
            raise classify_failure(exc.failure) from None

        self.preferred_version = alternate
        self.logger.log_operation("api_version_pinned", version=alternate)
        return result

    def agile(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        """Call the Agile API; there is no alternate version to fall back to."""
        try:
            return self._send(method, f"{self.agile_base}{path}", params=params, json_body=json_body)
        except _FailedCall as exc:
            raise classify_failure(exc.failure) from None


__all__ = ["ApiVersionMode", "JiraDispatcher", "other_version", "USER_AGENT"]
