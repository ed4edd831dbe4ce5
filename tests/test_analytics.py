from __future__ import annotations

from datetime import datetime, timezone

from conftest import DummyResponse, DummySession
from jiracli.analytics import (
    ProjectStats,
    project_stats,
    render_project_stats,
    render_user_workload,
    user_workload,
)
from jiracli.client import JiraClient
from jiracli.config import CredentialSet

CREDS = CredentialSet("https://jira.example.com", "", "tkn")


def _issue(key: str, status: str, assignee: str | None, **fields: object) -> dict[str, object]:
    base: dict[str, object] = {
        "status": {"name": status},
        "issuetype": {"name": "Bug"},
        "assignee": {"displayName": assignee} if assignee else None,
        "priority": {"name": "High"},
        "created": "2024-01-01T00:00:00.000+0000",
        "project": {"key": key.split("-")[0]},
        "summary": f"Summary {key}",
    }
    base.update(fields)
    return {"key": key, "fields": base}


def _client(payload: dict[str, object]) -> tuple[JiraClient, DummySession]:
    session = DummySession([DummyResponse(200, payload)])
    return JiraClient(CREDS, version_mode="2", session=session), session  # type: ignore[arg-type]


def test_project_stats_counts_and_resolution_time() -> None:
    issues = [
        _issue("P-1", "Done", "Jane", resolutiondate="2024-01-03T00:00:00.000+0000"),
        _issue("P-2", "Done", "Jane", resolutiondate="2024-01-05T00:00:00.000+0000"),
        _issue("P-3", "Open", None),
    ]
    client, session = _client({"issues": issues, "total": 3})

    stats = project_stats(client, "P")

    assert session.request_log[0]["params"]["jql"] == 'project = "P"'
    assert "resolutiondate" in session.request_log[0]["params"]["fields"]
    assert stats.total == 3
    assert stats.resolved == 2
    assert stats.unresolved == 1
    assert stats.avg_resolution_days == 3
    assert stats.by_status == {"Done": 2, "Open": 1}
    assert stats.by_assignee == {"Jane": 2, "Unassigned": 1}


def test_render_project_stats_mentions_sampling() -> None:
    stats = ProjectStats(total=10, sampled=2, resolved=1, unresolved=1)
    stats.by_status.update({"Done": 1, "Open": 1})
    text = render_project_stats("P", stats)

    assert "Project Analytics: P" in text
    assert "Total Issues: 10" in text
    assert "(based on the first 2 issues)" in text
    assert "By Status:" in text
    assert "Done    1      50%" in text


def test_user_workload_and_oldest_issue() -> None:
    issues = [
        _issue("A-1", "Open", "bob", created="2024-02-01T00:00:00.000+0000"),
        _issue("B-7", "In Progress", "bob", created="2024-01-01T00:00:00.000+0000"),
    ]
    client, session = _client({"issues": issues, "total": 2})

    workload = user_workload(client, "currentUser")

    jql = session.request_log[0]["params"]["jql"]
    assert jql == "assignee = currentUser() AND resolution = Unresolved"
    assert workload.by_project == {"A": 1, "B": 1}
    assert workload.oldest_issue is not None
    assert workload.oldest_issue["key"] == "B-7"

    text = render_user_workload(
        "currentUser", workload, now=datetime(2024, 1, 31, tzinfo=timezone.utc)
    )
    assert "Open Issues: 2" in text
    assert "Oldest Issue: B-7 (30 days old)" in text
    assert "By Project:" in text


def test_null_total_falls_back_to_sample_size() -> None:
    issues = [_issue("P-1", "Open", None), _issue("P-2", "Open", "Jane")]

    client, _ = _client({"issues": issues, "total": None})
    assert project_stats(client, "P").total == 2

    client, _ = _client({"issues": issues[:1], "total": None})
    assert user_workload(client, "bob").total == 1
