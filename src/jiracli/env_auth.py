"""Environment-based credential sources for jiracli.

Two environment layouts are recognised, checked in this order:

* primary: ``JIRA_HOST`` + ``JIRA_API_TOKEN`` (``JIRA_USERNAME`` optional,
  empty means bearer auth)
* legacy: ``JIRA_DOMAIN`` + ``JIRA_USERNAME`` + ``JIRA_API_TOKEN``

Values may also come from a ``.env`` file, loaded with python-dotenv without
overriding variables already present in the process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

DOTENV_LOCATIONS = (".env", ".env.local")


@dataclass
class EnvAuthConfig:
    """Names of the environment variables consulted for credentials."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    host_var: str = "JIRA_HOST"
    domain_var: str = "JIRA_DOMAIN"
    username_var: str = "JIRA_USERNAME"
    token_var: str = "JIRA_API_TOKEN"


@dataclass(frozen=True)
class EnvSource:
    """Raw (not yet normalized) credential values found in the environment."""

    origin: str
    server: str
    username: str
    token: str


class EnvironmentAuthManager:
    """Reads credential sources from environment variables and .env files."""

    def __init__(self, config: EnvAuthConfig, environ: Mapping[str, str] | None = None):
        self.config = config
        self.logger = get_logger()
        self._environ = environ
        self._dotenv_loaded = False

        # An explicit mapping is a snapshot; .env files only feed os.environ
        if config.load_dotenv and environ is None:
            self._load_dotenv()

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def _load_dotenv(self) -> None:
        candidates = [self.config.dotenv_path] if self.config.dotenv_path else list(DOTENV_LOCATIONS)
        for location in candidates:
            env_path = Path(location)
            if env_path.is_file():
                load_dotenv(str(env_path), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                break

    def _get(self, name: str) -> str:
        return (self.environ.get(name) or "").strip()

    def primary_source(self) -> EnvSource | None:
        host = self._get(self.config.host_var)
        token = self._get(self.config.token_var)
        if not (host and token):
            return None
        return EnvSource(
            origin=self.config.host_var,
            server=host,
            username=self._get(self.config.username_var),
            token=token,
        )

    def legacy_source(self) -> EnvSource | None:
        domain = self._get(self.config.domain_var)
        username = self._get(self.config.username_var)
        token = self._get(self.config.token_var)
        if not (domain and username and token):
            return None
        return EnvSource(
            origin=self.config.domain_var,
            server=domain,
            username=username,
            token=token,
        )

    def find_source(self) -> EnvSource | None:
        """Primary variables win over the legacy layout."""
        source = self.primary_source() or self.legacy_source()
        if source is not None:
            self.logger.debug(f"Using credentials from {source.origin} environment variables")
        return source

    def recommendations(self) -> list[str]:
        if self.find_source() is not None:
            return []
        recs = [
            f"Bearer auth: export {self.config.host_var}=<url> {self.config.token_var}=<token>",
            f"Basic auth: also export {self.config.username_var}=<email>",
            "Or create a .env file containing the same variables",
        ]
        if self._get(self.config.domain_var) and not self._get(self.config.username_var):
            recs.append(
                f"{self.config.domain_var} requires {self.config.username_var} "
                f"and {self.config.token_var}"
            )
        return recs


def create_env_auth_manager(
    config: EnvAuthConfig | None = None, environ: Mapping[str, str] | None = None
) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    if config is None:
        config = EnvAuthConfig()
    return EnvironmentAuthManager(config, environ=environ)


__all__ = [
    "EnvAuthConfig",
    "EnvSource",
    "EnvironmentAuthManager",
    "create_env_auth_manager",
]
