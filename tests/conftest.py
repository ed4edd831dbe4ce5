"""Pytest configuration for jiracli tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and isolates every
test from the developer's real Jira environment variables, `.env` files and
persisted configuration.
"""

from __future__ import annotations

import json
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

_JIRA_ENV_VARS = (
    "JIRA_HOST",
    "JIRA_DOMAIN",
    "JIRA_USERNAME",
    "JIRA_API_TOKEN",
    "JIRA_API_VERSION",
    "JIRA_CLI_CONFIG_PATH",
    "JIRA_CLI_LOG_LEVEL",
    "JIRA_CLI_LOG_JSON",
    "JIRA_CLI_OTEL_EXPORTER",
    "NO_COLOR",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for name in _JIRA_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    from jiracli import ux

    monkeypatch.setitem(ux._COLOR_STATE, "disabled", False)
    config_path = tmp_path / "jiracli" / "config.yaml"
    monkeypatch.setenv("JIRA_CLI_CONFIG_PATH", str(config_path))
    # keep stray .env files in the working tree out of credential resolution
    monkeypatch.chdir(tmp_path)
    return config_path


@dataclass
class DummyResponse:
    status_code: int
    payload: Any = None

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        if self.payload is None:
            raise ValueError("no JSON body")
        return self.payload

    @property
    def text(self) -> str:
        payload = self.payload
        if payload is None:
            return ""
        if isinstance(payload, (dict, list)):
            return json.dumps(payload)
        return str(payload)


@dataclass
class DummySession:
    """Minimal stand-in for ``requests.Session`` that replays queued responses."""

    responses: list[DummyResponse | Exception] = field(default_factory=list)
    request_log: list[dict[str, Any]] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    auth: Any = None

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> DummyResponse:
        self.request_log.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers or {}),
                "json": json,
                "params": params,
                "auth": self.auth,
                "timeout": timeout,
            }
        )
        if not self.responses:
            raise AssertionError(f"No response queued for {method} {url}")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    @property
    def urls(self) -> list[str]:
        return [entry["url"] for entry in self.request_log]


@pytest.fixture
def dummy_session() -> DummySession:
    return DummySession()


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        duration = time.perf_counter() - start
        _TEST_DURATIONS.append((item.nodeid, duration))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
    total_time = sum(d for _, d in _TEST_DURATIONS)
    print(f"Total recorded test time: {total_time:0.3f}s over {len(_TEST_DURATIONS)} tests")
