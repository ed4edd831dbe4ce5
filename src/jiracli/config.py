from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml
from jsonschema import Draft7Validator

from .env_auth import EnvAuthConfig, EnvSource, create_env_auth_manager
from .errors import ConfigError, ConfigurationMissing

CONFIG_PATH_VAR = "JIRA_CLI_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "jiracli" / "config.yaml"
KNOWN_KEYS = ("server", "username", "token", "api_version")
API_VERSION_CHOICES = ("auto", "2", "3")

CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "server": {"type": "string", "minLength": 1},
        "username": {"type": "string"},
        "token": {"type": "string", "minLength": 1},
        "api_version": {"type": "string", "enum": list(API_VERSION_CHOICES)},
    },
    "additionalProperties": False,
}
_CONFIG_VALIDATOR = Draft7Validator(CONFIG_SCHEMA)


def _schema_problems(data: Mapping[str, Any]) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err.path) or '(root)'}: {err.message}"
        for err in sorted(_CONFIG_VALIDATOR.iter_errors(data), key=lambda err: list(err.path))
    )


def normalize_server(value: str) -> str:
    """Prefix a scheme when missing and drop trailing slashes."""
    server = value.strip()
    if not server.startswith(("http://", "https://")):
        server = f"https://{server}"
    return server.rstrip("/")


@dataclass(frozen=True)
class CredentialSet:
    server: str
    username: str
    token: str
    source: str = "config"

    @property
    def auth_mode(self) -> str:
        return "basic" if self.username else "bearer"

    @classmethod
    def build(cls, server: str, username: str | None, token: str, source: str) -> CredentialSet:
        return cls(
            server=normalize_server(server),
            username=username or "",
            token=token,
            source=source,
        )


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


class ConfigStore:
    """Persisted key/value settings kept in a small YAML document."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else default_config_path()

    def _load(self) -> dict[str, Any]:
        """Parse the document without schema validation."""
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Configuration file is not valid YAML: {self.path}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {self.path}")
        return cast(dict[str, Any], raw)

    def _read(self) -> dict[str, Any]:
        data = self._load()
        problems = _schema_problems(data)
        if problems:
            raise ConfigError(f"Invalid configuration file {self.path}: " + problems)
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(data, sort_keys=True), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:  # pragma: no cover - platform dependent
            pass

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in KNOWN_KEYS:
            raise ConfigError(
                f"Unknown configuration key '{key}' (expected one of: {', '.join(KNOWN_KEYS)})"
            )

    def all(self) -> dict[str, Any]:
        return self._read()

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def has(self, key: str) -> bool:
        value = self._read().get(key)
        return value is not None and value != ""

    def set(self, key: str, value: str) -> None:
        self._check_key(key)
        if key == "server":
            value = value.strip().rstrip("/")
        if key == "api_version" and value not in API_VERSION_CHOICES:
            raise ConfigError(f"api_version must be one of: {', '.join(API_VERSION_CHOICES)}")
        data = self._load()
        data[key] = value
        problems = _schema_problems(data)
        if problems:
            raise ConfigError(f"Invalid value for {key}: " + problems)
        self._write(data)

    def delete(self, key: str) -> None:
        # unvalidated so a broken entry can still be removed
        data = self._load()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def _env_source(environ: Mapping[str, str] | None) -> EnvSource | None:
    manager = create_env_auth_manager(
        EnvAuthConfig(load_dotenv=environ is None), environ=environ
    )
    return manager.find_source()


def resolve_credentials(
    store: ConfigStore, environ: Mapping[str, str] | None = None
) -> CredentialSet:
    """Merge environment and persisted settings into one credential set."""
    source = _env_source(environ)
    if source is not None:
        return CredentialSet.build(source.server, source.username, source.token, source.origin)

    data = store.all()
    server = data.get("server")
    token = data.get("token")
    if not server or not token:
        raise ConfigurationMissing()
    return CredentialSet.build(str(server), data.get("username"), str(token), "config")


def is_configured(store: ConfigStore, environ: Mapping[str, str] | None = None) -> bool:
    try:
        resolve_credentials(store, environ)
    except ConfigurationMissing:
        return False
    return True


def resolve_api_version(
    store: ConfigStore, override: str | None = None, environ: Mapping[str, str] | None = None
) -> str:
    env = os.environ if environ is None else environ
    for candidate in (override, env.get("JIRA_API_VERSION"), store.get("api_version")):
        if candidate:
            value = str(candidate).strip().lower()
            if value not in API_VERSION_CHOICES:
                raise ConfigError(
                    f"Unsupported API version '{candidate}' "
                    f"(expected one of: {', '.join(API_VERSION_CHOICES)})"
                )
            return value
    return "auto"


def describe_configuration(
    store: ConfigStore, environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Redacted view of every configuration source, for display."""
    env_view: dict[str, str] | None = None
    source = _env_source(environ)
    if source is not None:
        env_view = {
            "origin": source.origin,
            "server": source.server,
            "username": source.username or "(token auth)",
            "token": "***configured***",
        }
    data = store.all()
    file_view: dict[str, str] | None = None
    if data:
        file_view = {
            "server": str(data.get("server") or "Not set"),
            "username": str(data.get("username") or "(Bearer auth)"),
            "token": "Set (hidden)" if data.get("token") else "Not set",
        }
        if data.get("api_version"):
            file_view["api_version"] = str(data["api_version"])
    return {
        "path": str(store.path),
        "environment": env_view,
        "file": file_view,
        "configured": is_configured(store, environ),
    }


__all__ = [
    "CredentialSet",
    "ConfigStore",
    "normalize_server",
    "resolve_credentials",
    "resolve_api_version",
    "is_configured",
    "describe_configuration",
    "default_config_path",
]
