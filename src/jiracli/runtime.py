"""Runtime helpers for jiracli command orchestration."""

from __future__ import annotations

import time
import webbrowser
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import requests

from .client import JiraClient
from .config import ConfigStore, CredentialSet, resolve_api_version, resolve_credentials
from .errors import JiraCliError, redact
from .logging import get_logger
from .prompts import Prompter, TerminalPrompter
from .ux import print_error


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


class Factory:
    """Lazily builds the collaborators a command needs.

    Nothing is constructed until a command asks for it, so ``jira config``
    and ``jira init`` work before any credentials exist.
    """

    def __init__(
        self,
        *,
        store: ConfigStore | None = None,
        environ: Mapping[str, str] | None = None,
        api_version: str | None = None,
        session: requests.Session | None = None,
        prompter: Prompter | None = None,
        browser: Callable[[str], Any] | None = None,
    ):
        self._store = store
        self._environ = environ
        self._api_version = api_version
        self._session = session
        self._prompter = prompter
        self._browser = browser
        self._client: JiraClient | None = None

    @property
    def environ(self) -> Mapping[str, str] | None:
        return self._environ

    def get_config(self) -> ConfigStore:
        if self._store is None:
            self._store = ConfigStore()
        return self._store

    def get_client(self) -> JiraClient:
        if self._client is None:
            store = self.get_config()
            credentials = resolve_credentials(store, self._environ)
            mode = resolve_api_version(store, self._api_version, self._environ)
            get_logger().debug(
                "client created",
                server=credentials.server,
                auth=credentials.auth_mode,
                source=credentials.source,
                api_version=mode,
            )
            self._client = self.build_client(credentials, version_mode=mode)
        return self._client

    def build_client(self, credentials: CredentialSet, *, version_mode: str = "auto") -> JiraClient:
        return JiraClient(credentials, version_mode=version_mode, session=self._session)

    def reset_client(self) -> None:
        """Forget the cached client so the next call re-reads configuration."""
        self._client = None

    def get_prompter(self) -> Prompter:
        if self._prompter is None:
            self._prompter = TerminalPrompter()
        return self._prompter

    def get_browser(self) -> Callable[[str], Any]:
        return self._browser or webbrowser.open


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Run a command handler, turning library errors into exit code 1."""
    logger = get_logger()
    start = time.monotonic()
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    except JiraCliError as exc:
        message = redact(str(exc))
        logger.log_error("command failed", error=type(exc).__name__, command=command)
        print_error(message)
        exit_code = 1
    duration_ms = max(0.0, time.monotonic() - start) * 1000
    logger.log_performance(command, duration_ms, exit_code=exit_code)
    return exit_code


__all__ = ["Factory", "execute_command"]
