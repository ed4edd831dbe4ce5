"""Presentation of already-fetched issues, projects, sprints and comments.

Everything here is a pure function of the JSON payloads returned by
:class:`jiracli.client.JiraClient`; nothing performs I/O.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from .ux import Colors, bold, colorize, render_table

SUMMARY_LIMIT = 50
COMMENT_LIMIT = 150
ELLIPSIS = "..."
RULE = "─" * 60
NOT_AVAILABLE = "N/A"

_SELF_ISSUE_PATH = re.compile(r"/rest/api/\d+/issue/[^/?#]+.*$")
_TZ_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")

_STATE_COLORS = {"ACTIVE": Colors.GREEN, "FUTURE": Colors.YELLOW}


def truncate(text: str | None, limit: int) -> str:
    if not text:
        return ""
    return text[:limit] + ELLIPSIS if len(text) > limit else text


def parse_timestamp(value: str) -> datetime | None:
    cleaned = value.strip().replace("Z", "+00:00")
    cleaned = _TZ_NO_COLON.sub(r"\1:\2", cleaned)
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        return None


def format_date(value: str | None, *, with_time: bool = True) -> str:
    if not value:
        return NOT_AVAILABLE
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M" if with_time else "%Y-%m-%d")


def plain_text(value: Any) -> str:
    """Flatten a rich-text document (v3) or return plain text (v2) as is."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        if value.get("type") == "text":
            return str(value.get("text", ""))
        children = value.get("content") or []
        separator = "\n" if value.get("type") == "doc" else ""
        return separator.join(plain_text(child) for child in children)
    if isinstance(value, list):
        return "".join(plain_text(item) for item in value)
    return str(value)


def display_name(person: Mapping[str, Any] | None, default: str = NOT_AVAILABLE) -> str:
    if not person:
        return default
    return str(person.get("displayName") or person.get("name") or default)


def _named(entry: Mapping[str, Any] | None) -> str:
    if not entry:
        return NOT_AVAILABLE
    return str(entry.get("name") or NOT_AVAILABLE)


def browse_url(issue: Mapping[str, Any], server: str | None = None) -> str:
    """User-facing URL for an issue, derived from its REST self link."""
    key = str(issue.get("key", ""))
    self_link = issue.get("self")
    if isinstance(self_link, str) and _SELF_ISSUE_PATH.search(self_link):
        return _SELF_ISSUE_PATH.sub(f"/browse/{key}", self_link)
    if server:
        return f"{server.rstrip('/')}/browse/{key}"
    return NOT_AVAILABLE


# ---- tables -------------------------------------------------------------


def issue_row(issue: Mapping[str, Any]) -> list[str]:
    fields = issue.get("fields") or {}
    summary = fields.get("summary")
    return [
        colorize(str(issue.get("key", "")), Colors.BLUE),
        truncate(summary, SUMMARY_LIMIT) if summary else NOT_AVAILABLE,
        colorize(_named(fields.get("status")), Colors.YELLOW) if fields.get("status") else NOT_AVAILABLE,
        display_name(fields.get("assignee"), "Unassigned"),
        format_date(fields.get("created")),
        format_date(fields.get("updated")),
    ]


def issues_table(issues: Iterable[Mapping[str, Any]]) -> str:
    headers = ("Key", "Summary", "Status", "Assignee", "Created", "Updated")
    return render_table(headers, [issue_row(issue) for issue in issues])


def projects_table(projects: Iterable[Mapping[str, Any]]) -> str:
    headers = ("Key", "Name", "Type", "Lead")
    rows = [
        [
            colorize(str(p.get("key", "")), Colors.BLUE),
            str(p.get("name", "")),
            str(p.get("projectTypeKey", NOT_AVAILABLE)),
            display_name(p.get("lead")),
        ]
        for p in projects
    ]
    return render_table(headers, rows)


def sprints_table(sprints: Iterable[Mapping[str, Any]]) -> str:
    headers = ("ID", "Name", "State", "Start Date", "End Date")
    rows = []
    for sprint in sprints:
        state = str(sprint.get("state", "")).upper()
        rows.append(
            [
                str(sprint.get("id", "")),
                str(sprint.get("name", "")),
                colorize(state, _STATE_COLORS.get(state, Colors.GRAY)),
                format_date(sprint.get("startDate"), with_time=False),
                format_date(sprint.get("endDate"), with_time=False),
            ]
        )
    return render_table(headers, rows)


def comments_table(comments: Iterable[Mapping[str, Any]]) -> str:
    headers = ("ID", "Author", "Created", "Body")
    rows = []
    for comment in comments:
        body = " ".join(plain_text(comment.get("body")).split())
        author = display_name(comment.get("author"), "Unknown")
        if comment.get("visibility"):
            author = f"{author} (internal)"
        rows.append(
            [
                str(comment.get("id", "")),
                author,
                format_date(comment.get("created")),
                truncate(body, COMMENT_LIMIT),
            ]
        )
    return render_table(headers, rows)


def sprint_summary(sprints: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    counts = Counter(str(s.get("state", "")).upper() for s in sprints)
    return dict(counts)


def sprint_summary_lines(summary: Mapping[str, int]) -> list[str]:
    lines = [bold("Sprint Summary:")]
    for state, count in summary.items():
        lines.append(f"  {colorize(state, _STATE_COLORS.get(state, Colors.GRAY))}: {count}")
    return lines


# ---- listings -----------------------------------------------------------


def _version_status(version: Mapping[str, Any]) -> str:
    if version.get("released"):
        return colorize("Released", Colors.GREEN)
    if version.get("archived"):
        return colorize("Archived", Colors.GRAY)
    return colorize("Unreleased", Colors.YELLOW)


def boards_listing(boards: Iterable[Mapping[str, Any]]) -> str:
    lines: list[str] = []
    for board in boards:
        lines.append(f"{colorize('•', Colors.CYAN)} {bold(str(board.get('name', '')))} ({board.get('type', '')})")
        lines.append(f"  {colorize('ID:', Colors.GRAY)} {board.get('id', '')}")
        location = board.get("location") or {}
        if location.get("displayName"):
            lines.append(f"  {colorize('Project:', Colors.GRAY)} {location['displayName']}")
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def components_listing(components: Iterable[Mapping[str, Any]]) -> str:
    lines: list[str] = []
    for component in components:
        lines.append(f"{colorize('•', Colors.CYAN)} {bold(str(component.get('name', '')))}")
        if component.get("description"):
            lines.append(f"  {colorize(str(component['description']), Colors.GRAY)}")
        if component.get("lead"):
            lines.append(f"  {colorize('Lead:', Colors.GRAY)} {display_name(component['lead'])}")
    return "\n".join(lines)


def versions_listing(versions: Iterable[Mapping[str, Any]]) -> str:
    lines: list[str] = []
    for version in versions:
        lines.append(
            f"{colorize('•', Colors.CYAN)} {bold(str(version.get('name', '')))} {_version_status(version)}"
        )
        if version.get("description"):
            lines.append(f"  {colorize(str(version['description']), Colors.GRAY)}")
        if version.get("releaseDate"):
            lines.append(f"  {colorize('Release Date:', Colors.GRAY)} {version['releaseDate']}")
    return "\n".join(lines)


# ---- detail views -------------------------------------------------------


def _label(name: str) -> str:
    return bold(f"{name}:")


def issue_details(issue: Mapping[str, Any], server: str | None = None) -> str:
    fields = issue.get("fields") or {}
    lines = [
        bold(f"{issue.get('key', '')}: {fields.get('summary', '')}"),
        colorize(RULE, Colors.GRAY),
        f"{_label('Status')} {colorize(_named(fields.get('status')), Colors.YELLOW)}",
        f"{_label('Type')} {_named(fields.get('issuetype'))}",
        f"{_label('Priority')} {_named(fields.get('priority'))}",
        f"{_label('Assignee')} {display_name(fields.get('assignee'), 'Unassigned')}",
        f"{_label('Reporter')} {display_name(fields.get('reporter'))}",
        f"{_label('Created')} {format_date(fields.get('created'))}",
        f"{_label('Updated')} {format_date(fields.get('updated'))}",
    ]
    description = plain_text(fields.get("description"))
    if description:
        lines.extend(["", _label("Description"), description])
    labels = fields.get("labels") or []
    if labels:
        lines.extend(["", f"{_label('Labels')} {', '.join(str(label) for label in labels)}"])
    lines.extend(["", f"{_label('URL')} {browse_url(issue, server)}"])
    return "\n".join(lines)


def project_details(project: Mapping[str, Any], server: str | None = None) -> str:
    lines = [
        bold(f"{project.get('key', '')}: {project.get('name', '')}"),
        colorize(RULE, Colors.GRAY),
        f"{_label('Type')} {project.get('projectTypeKey', NOT_AVAILABLE)}",
        f"{_label('Lead')} {display_name(project.get('lead'))}",
        f"{_label('Description')} {project.get('description') or 'No description'}",
    ]
    category = project.get("projectCategory")
    if category:
        lines.append(f"{_label('Category')} {_named(category)}")
    components = project.get("components") or []
    if components:
        lines.extend(["", _label("Components")])
        for component in components:
            suffix = f" - {component['description']}" if component.get("description") else ""
            lines.append(f"  {colorize('•', Colors.CYAN)} {component.get('name', '')}{suffix}")
    versions = project.get("versions") or []
    if versions:
        lines.extend(["", _label("Versions")])
        for version in versions:
            lines.append(
                f"  {colorize('•', Colors.CYAN)} {version.get('name', '')} ({_version_status(version)})"
            )
    if server:
        lines.extend(["", f"{_label('URL')} {server.rstrip('/')}/browse/{project.get('key', '')}"])
    return "\n".join(lines)


def user_greeting(user: Mapping[str, Any] | None) -> str:
    return f"Welcome, {display_name(user, 'unknown user')}!"


__all__ = [
    "truncate",
    "format_date",
    "plain_text",
    "display_name",
    "browse_url",
    "issue_row",
    "issues_table",
    "projects_table",
    "sprints_table",
    "comments_table",
    "sprint_summary",
    "sprint_summary_lines",
    "boards_listing",
    "components_listing",
    "versions_listing",
    "issue_details",
    "project_details",
    "user_greeting",
    "SUMMARY_LIMIT",
    "COMMENT_LIMIT",
]
