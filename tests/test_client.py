from __future__ import annotations

import pytest

from conftest import DummyResponse, DummySession
from jiracli.client import INTERNAL_VISIBILITY, JiraClient, adf_document, build_filter_query
from jiracli.config import CredentialSet
from jiracli.errors import RemoteApiError

CREDS = CredentialSet("https://jira.example.com", "", "tkn")


def _client(*responses: DummyResponse, version_mode: str = "auto") -> tuple[JiraClient, DummySession]:
    session = DummySession(list(responses))
    return JiraClient(CREDS, version_mode=version_mode, session=session), session  # type: ignore[arg-type]


# ---- filter query -------------------------------------------------------


def test_filter_query_joins_present_conditions_in_order() -> None:
    assert (
        build_filter_query("PROJ", None, "Open")
        == 'project = "PROJ" AND status = "Open"'
    )


def test_filter_query_current_user_function() -> None:
    assert build_filter_query(assignee="currentUser") == "assignee = currentUser()"
    assert build_filter_query(reporter="currentUser") == "reporter = currentUser()"


def test_filter_query_default_ordering() -> None:
    assert build_filter_query() == "ORDER BY updated DESC"


def test_filter_query_extra_filters() -> None:
    jql = build_filter_query(
        "PROJ",
        "bob",
        issue_type="Bug",
        reporter="alice",
        priority="High",
        created="-7d",
        updated="2023-01-01",
    )
    assert jql == (
        'project = "PROJ" AND assignee = "bob" AND issuetype = "Bug" AND reporter = "alice"'
        ' AND priority = "High" AND created >= -7d AND updated >= "2023-01-01"'
    )


def test_adf_document_wraps_each_line() -> None:
    doc = adf_document("one\n\ntwo")
    assert doc["type"] == "doc"
    assert doc["version"] == 1
    assert [p["content"] for p in doc["content"]] == [
        [{"type": "text", "text": "one"}],
        [],
        [{"type": "text", "text": "two"}],
    ]


# ---- operations ---------------------------------------------------------


def test_get_issue_is_idempotent() -> None:
    issue = {"key": "PROJ-1", "fields": {"summary": "Stable"}}
    client, session = _client(DummyResponse(200, issue), DummyResponse(200, issue))

    assert client.get_issue("PROJ-1") == client.get_issue("PROJ-1") == issue
    assert session.urls == ["https://jira.example.com/rest/api/3/issue/PROJ-1"] * 2


def test_search_uses_versioned_paths_and_default_fields() -> None:
    client, session = _client(DummyResponse(200, {"issues": []}), version_mode="3")
    client.search_issues("project = X", max_results=5)

    sent = session.request_log[0]
    assert sent["url"] == "https://jira.example.com/rest/api/3/search/jql"
    assert sent["params"] == {
        "jql": "project = X",
        "startAt": 0,
        "maxResults": 5,
        "fields": "summary,status,assignee,created,updated",
    }

    client, session = _client(DummyResponse(200, {"issues": []}), version_mode="2")
    client.search_issues("project = X", fields=["summary"])
    assert session.request_log[0]["url"] == "https://jira.example.com/rest/api/2/search"
    assert session.request_log[0]["params"]["fields"] == "summary"


def test_user_search_parameter_name_depends_on_version() -> None:
    client, session = _client(DummyResponse(404), DummyResponse(200, [{"name": "bob"}]))

    assert client.search_users("bob") == [{"name": "bob"}]
    assert session.request_log[0]["params"] == {"query": "bob"}
    assert session.request_log[1]["params"] == {"username": "bob"}
    assert client.preferred_version == 2


def test_test_connection_reports_user() -> None:
    client, _ = _client(DummyResponse(200, {"displayName": "Jane Doe"}))
    assert client.test_connection() == {"success": True, "user": {"displayName": "Jane Doe"}}


def test_test_connection_never_raises() -> None:
    client, _ = _client(DummyResponse(401))
    result = client.test_connection()
    assert result["success"] is False
    assert "Authentication failed" in result["error"]


def test_delete_operations_return_true() -> None:
    client, session = _client(DummyResponse(204), DummyResponse(204))

    assert client.delete_issue("PROJ-1") is True
    assert client.delete_comment("PROJ-1", 10) is True
    assert [entry["method"] for entry in session.request_log] == ["DELETE", "DELETE"]
    assert session.urls[1].endswith("/issue/PROJ-1/comment/10")


def test_create_issue_converts_description_for_v3() -> None:
    client, session = _client(DummyResponse(201, {"key": "PROJ-9"}))
    data = {"fields": {"summary": "S", "description": "line"}}

    assert client.create_issue(data) == {"key": "PROJ-9"}
    assert session.request_log[0]["json"]["fields"]["description"] == adf_document("line")
    assert data["fields"]["description"] == "line"


def test_update_issue_keeps_plain_description_on_v2() -> None:
    client, session = _client(DummyResponse(204), version_mode="2")
    client.update_issue("PROJ-1", {"fields": {"description": "plain"}})

    sent = session.request_log[0]
    assert sent["method"] == "PUT"
    assert sent["json"] == {"fields": {"description": "plain"}}


def test_internal_comment_sets_visibility() -> None:
    client, session = _client(DummyResponse(201, {"id": "100"}), version_mode="2")

    client.add_comment("PROJ-1", "secret note", internal=True)

    assert session.request_log[0]["json"] == {
        "body": "secret note",
        "visibility": INTERNAL_VISIBILITY,
    }


def test_comment_body_is_a_document_on_v3() -> None:
    client, session = _client(DummyResponse(200, {"id": "100"}))

    client.update_comment("PROJ-1", "100", "edited")

    sent = session.request_log[0]
    assert sent["url"].endswith("/rest/api/3/issue/PROJ-1/comment/100")
    assert sent["json"] == {"body": adf_document("edited")}


def test_comment_falls_back_with_plain_body() -> None:
    client, session = _client(DummyResponse(404), DummyResponse(201, {"id": "7"}))

    client.add_comment("PROJ-1", "hello")

    assert session.request_log[0]["json"]["body"] == adf_document("hello")
    assert session.request_log[1]["json"] == {"body": "hello"}


@pytest.mark.parametrize(
    ("call", "url"),
    [
        (lambda c: c.get_projects(), "/rest/api/3/project"),
        (lambda c: c.get_project("PROJ"), "/rest/api/3/project/PROJ"),
        (lambda c: c.get_project_components("PROJ"), "/rest/api/3/project/PROJ/components"),
        (lambda c: c.get_project_versions("PROJ"), "/rest/api/3/project/PROJ/versions"),
        (lambda c: c.get_issue_types(), "/rest/api/3/issuetype"),
        (lambda c: c.get_statuses(), "/rest/api/3/status"),
        (lambda c: c.get_comments("PROJ-1"), "/rest/api/3/issue/PROJ-1/comment"),
        (lambda c: c.get_boards(), "/rest/agile/1.0/board"),
        (lambda c: c.get_sprints(12), "/rest/agile/1.0/board/12/sprint"),
    ],
)
def test_read_operations_hit_expected_endpoints(call, url: str) -> None:
    client, session = _client(DummyResponse(200, {}))
    call(client)
    assert session.request_log[0]["method"] == "GET"
    assert session.urls == [f"https://jira.example.com{url}"]


def test_rejected_create_is_not_replayed_on_the_other_version() -> None:
    rejected = DummyResponse(400, {"errors": {"customfield_1": "Field customfield_1 is deprecated"}})
    client, session = _client(rejected, DummyResponse(201, {"key": "PROJ-9"}))

    with pytest.raises(RemoteApiError, match="customfield_1"):
        client.create_issue({"fields": {"summary": "S"}})

    assert session.urls == ["https://jira.example.com/rest/api/3/issue"]
    assert client.preferred_version == 3


def test_test_connection_reports_unencodable_token() -> None:
    error = UnicodeEncodeError("latin-1", "Bearer tok€en", 10, 11, "ordinal not in range(256)")
    session = DummySession([error])  # type: ignore[list-item]
    client = JiraClient(CredentialSet("https://jira.example.com", "", "tok€en"), session=session)  # type: ignore[arg-type]

    result = client.test_connection()

    assert result["success"] is False
    assert "cannot be sent" in result["error"]
