from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

import requests

from .config import CredentialSet
from .errors import JiraCliError
from .logging import get_logger
from .transport import ApiVersionMode, JiraDispatcher

DEFAULT_SEARCH_FIELDS = ("summary", "status", "assignee", "created", "updated")
DEFAULT_ORDERING = "ORDER BY updated DESC"
CURRENT_USER = "currentUser"
INTERNAL_VISIBILITY = {"type": "role", "value": "Administrators"}


_RELATIVE_DATE = re.compile(r"^[-+]?\d+[mhdwMy]$")


def _date_condition(field: str, value: str) -> str:
    # Relative offsets such as -7d are JQL literals, absolute dates are quoted
    value = value.strip()
    if _RELATIVE_DATE.match(value):
        return f"{field} >= {value}"
    return f'{field} >= "{value}"'


def adf_document(text: str) -> dict[str, Any]:
    """Wrap plain text in the document format v3 expects for rich-text fields."""
    paragraphs = [
        {"type": "paragraph", "content": [{"type": "text", "text": line}] if line else []}
        for line in text.split("\n")
    ]
    return {"type": "doc", "version": 1, "content": paragraphs}


def build_filter_query(
    project: str | None = None,
    assignee: str | None = None,
    status: str | None = None,
    *,
    issue_type: str | None = None,
    reporter: str | None = None,
    priority: str | None = None,
    created: str | None = None,
    updated: str | None = None,
) -> str:
    """AND-join the present filters into one JQL string.

    ``currentUser`` (for assignee or reporter) becomes the JQL function call.
    Without any filter the default ordering clause is returned.
    """
    conditions: list[str] = []
    if project:
        conditions.append(f'project = "{project}"')
    if assignee:
        conditions.append(
            "assignee = currentUser()" if assignee == CURRENT_USER else f'assignee = "{assignee}"'
        )
    if status:
        conditions.append(f'status = "{status}"')
    if issue_type:
        conditions.append(f'issuetype = "{issue_type}"')
    if reporter:
        conditions.append(
            "reporter = currentUser()" if reporter == CURRENT_USER else f'reporter = "{reporter}"'
        )
    if priority:
        conditions.append(f'priority = "{priority}"')
    if created:
        conditions.append(_date_condition("created", created))
    if updated:
        conditions.append(_date_condition("updated", updated))
    return " AND ".join(conditions) if conditions else DEFAULT_ORDERING


class JiraClient:
    """One method per remote capability, each a single dispatcher call."""

    def __init__(
        self,
        credentials: CredentialSet,
        *,
        version_mode: ApiVersionMode | str = ApiVersionMode.AUTO,
        session: requests.Session | None = None,
        dispatcher: JiraDispatcher | None = None,
    ):
        self.credentials = credentials
        self.dispatcher = dispatcher or JiraDispatcher(
            credentials, version_mode=version_mode, session=session
        )
        self.logger = get_logger()

    @property
    def server(self) -> str:
        return self.credentials.server

    @property
    def preferred_version(self) -> int:
        return self.dispatcher.preferred_version

    # ---- connection ---------------------------------------------------
    def test_connection(self) -> dict[str, Any]:
        """Never raises: failures are reported in the result."""
        try:
            user = self.dispatcher.request("GET", "/myself")
        except JiraCliError as exc:
            self.logger.debug("connection test failed", error=str(exc))
            return {"success": False, "error": str(exc)}
        return {"success": True, "user": user}

    # ---- issues -------------------------------------------------------
    def get_issue(self, key: str) -> dict[str, Any]:
        return self.dispatcher.request("GET", f"/issue/{key}")

    def search_issues(
        self,
        jql: str,
        *,
        start_at: int = 0,
        max_results: int = 50,
        fields: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        params = {
            "jql": jql,
            "startAt": start_at,
            "maxResults": max_results,
            "fields": ",".join(fields or DEFAULT_SEARCH_FIELDS),
        }
        return self.dispatcher.request(
            "GET",
            "/search",
            params=params,
            versioned_paths={2: "/search", 3: "/search/jql"},
        )

    @staticmethod
    def _issue_bodies(data: dict[str, Any]) -> dict[int, dict[str, Any]] | None:
        # v3 only accepts rich-text documents for the description field
        fields = data.get("fields") or {}
        description = fields.get("description")
        if not isinstance(description, str):
            return None
        v3_fields = {**fields, "description": adf_document(description)}
        return {2: data, 3: {**data, "fields": v3_fields}}

    def create_issue(self, data: dict[str, Any]) -> dict[str, Any]:
        return self.dispatcher.request(
            "POST", "/issue", json_body=data, versioned_bodies=self._issue_bodies(data)
        )

    def update_issue(self, key: str, data: dict[str, Any]) -> Any:
        return self.dispatcher.request(
            "PUT", f"/issue/{key}", json_body=data, versioned_bodies=self._issue_bodies(data)
        )

    def delete_issue(self, key: str) -> bool:
        self.dispatcher.request("DELETE", f"/issue/{key}")
        return True

    # ---- projects -----------------------------------------------------
    def get_projects(self) -> list[dict[str, Any]]:
        return self.dispatcher.request("GET", "/project")

    def get_project(self, key: str) -> dict[str, Any]:
        return self.dispatcher.request("GET", f"/project/{key}")

    def get_project_components(self, key: str) -> list[dict[str, Any]]:
        return self.dispatcher.request("GET", f"/project/{key}/components")

    def get_project_versions(self, key: str) -> list[dict[str, Any]]:
        return self.dispatcher.request("GET", f"/project/{key}/versions")

    # ---- agile --------------------------------------------------------
    def get_boards(self) -> dict[str, Any]:
        return self.dispatcher.agile("GET", "/board")

    def get_sprints(self, board_id: int | str) -> dict[str, Any]:
        return self.dispatcher.agile("GET", f"/board/{board_id}/sprint")

    # ---- metadata -----------------------------------------------------
    def get_issue_types(self) -> list[dict[str, Any]]:
        return self.dispatcher.request("GET", "/issuetype")

    def get_statuses(self) -> list[dict[str, Any]]:
        return self.dispatcher.request("GET", "/status")

    def search_users(self, query: str) -> list[dict[str, Any]]:
        return self.dispatcher.request(
            "GET",
            "/user/search",
            versioned_params={2: {"username": query}, 3: {"query": query}},
        )

    # ---- comments -----------------------------------------------------
    def get_comments(self, key: str) -> dict[str, Any]:
        return self.dispatcher.request("GET", f"/issue/{key}/comment")

    @staticmethod
    def _comment_bodies(body: str, **extra: Any) -> dict[int, dict[str, Any]]:
        return {
            2: {"body": body, **extra},
            3: {"body": adf_document(body), **extra},
        }

    def add_comment(self, key: str, body: str, *, internal: bool = False) -> dict[str, Any]:
        extra: dict[str, Any] = {}
        if internal:
            extra["visibility"] = dict(INTERNAL_VISIBILITY)
        bodies = self._comment_bodies(body, **extra)
        return self.dispatcher.request(
            "POST",
            f"/issue/{key}/comment",
            json_body=bodies[2],
            versioned_bodies=bodies,
        )

    def update_comment(self, key: str, comment_id: str | int, body: str) -> dict[str, Any]:
        bodies = self._comment_bodies(body)
        return self.dispatcher.request(
            "PUT",
            f"/issue/{key}/comment/{comment_id}",
            json_body=bodies[2],
            versioned_bodies=bodies,
        )

    def delete_comment(self, key: str, comment_id: str | int) -> bool:
        self.dispatcher.request("DELETE", f"/issue/{key}/comment/{comment_id}")
        return True


__all__ = [
    "JiraClient",
    "build_filter_query",
    "DEFAULT_ORDERING",
    "DEFAULT_SEARCH_FIELDS",
    "INTERNAL_VISIBILITY",
]
