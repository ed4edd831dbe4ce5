"""Issue statistics for a project and open workload for a user.

Both summaries are computed from a single search page (``max_results``
issues); ``total`` reports the service's own count so a truncated sample is
visible to the reader.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .client import JiraClient, build_filter_query
from .formatting import display_name, parse_timestamp
from .ux import Colors, bold, colorize, render_table

STATS_PAGE_SIZE = 1000
TOP_ASSIGNEES = 10


@dataclass
class ProjectStats:
    total: int = 0
    sampled: int = 0
    resolved: int = 0
    unresolved: int = 0
    avg_resolution_days: int = 0
    by_status: Counter[str] = field(default_factory=Counter)
    by_type: Counter[str] = field(default_factory=Counter)
    by_assignee: Counter[str] = field(default_factory=Counter)
    by_priority: Counter[str] = field(default_factory=Counter)


@dataclass
class UserWorkload:
    total: int = 0
    sampled: int = 0
    by_project: Counter[str] = field(default_factory=Counter)
    by_status: Counter[str] = field(default_factory=Counter)
    by_type: Counter[str] = field(default_factory=Counter)
    by_priority: Counter[str] = field(default_factory=Counter)
    oldest_issue: dict[str, Any] | None = None


def _reported_total(result: Mapping[str, Any], sampled: int) -> int:
    total = result.get("total")
    return total if isinstance(total, int) else sampled


def _name(entry: Mapping[str, Any] | None, default: str) -> str:
    return str(entry.get("name")) if entry and entry.get("name") else default


def project_stats(client: JiraClient, project_key: str, *, max_results: int = STATS_PAGE_SIZE) -> ProjectStats:
    result = client.search_issues(
        build_filter_query(project=project_key),
        max_results=max_results,
        fields=["status", "issuetype", "assignee", "created", "resolutiondate", "priority"],
    )
    issues = result.get("issues") or []
    stats = ProjectStats(total=_reported_total(result, len(issues)), sampled=len(issues))
    resolution_days: list[float] = []
    for issue in issues:
        fields = issue.get("fields") or {}
        stats.by_status[_name(fields.get("status"), "Unknown")] += 1
        stats.by_type[_name(fields.get("issuetype"), "Unknown")] += 1
        stats.by_assignee[display_name(fields.get("assignee"), "Unassigned")] += 1
        stats.by_priority[_name(fields.get("priority"), "None")] += 1
        resolved_at = fields.get("resolutiondate")
        if resolved_at:
            stats.resolved += 1
            created = parse_timestamp(str(fields.get("created") or ""))
            resolved = parse_timestamp(str(resolved_at))
            if created and resolved:
                resolution_days.append((resolved - created).total_seconds() / 86400)
        else:
            stats.unresolved += 1
    if resolution_days:
        stats.avg_resolution_days = round(sum(resolution_days) / len(resolution_days))
    return stats


def user_workload(client: JiraClient, username: str, *, max_results: int = STATS_PAGE_SIZE) -> UserWorkload:
    jql = f"{build_filter_query(assignee=username)} AND resolution = Unresolved"
    result = client.search_issues(
        jql,
        max_results=max_results,
        fields=["status", "issuetype", "priority", "project", "created", "summary"],
    )
    issues = result.get("issues") or []
    workload = UserWorkload(total=_reported_total(result, len(issues)), sampled=len(issues))
    oldest: datetime | None = None
    for issue in issues:
        fields = issue.get("fields") or {}
        project = fields.get("project") or {}
        workload.by_project[str(project.get("key") or "Unknown")] += 1
        workload.by_status[_name(fields.get("status"), "Unknown")] += 1
        workload.by_type[_name(fields.get("issuetype"), "Unknown")] += 1
        workload.by_priority[_name(fields.get("priority"), "None")] += 1
        created = parse_timestamp(str(fields.get("created") or ""))
        if created and (oldest is None or created < oldest):
            oldest = created
            workload.oldest_issue = {
                "key": issue.get("key"),
                "summary": fields.get("summary"),
                "created": fields.get("created"),
            }
    return workload


def _breakdown(title: str, counts: Counter[str], total: int, limit: int | None = None) -> list[str]:
    if not counts:
        return []
    rows = [
        [name, count, f"{round(count / total * 100) if total else 0}%"]
        for name, count in counts.most_common(limit)
    ]
    return ["", bold(f"{title}:"), render_table((title.split()[-1], "Count", "Percentage"), rows)]


def render_project_stats(project_key: str, stats: ProjectStats) -> str:
    lines = [
        bold(f"Project Analytics: {project_key}"),
        colorize("═" * 60, Colors.GRAY),
        "",
        bold("Overview:"),
        f"Total Issues: {colorize(str(stats.total), Colors.BLUE)}",
        f"Resolved: {colorize(str(stats.resolved), Colors.GREEN)}",
        f"Unresolved: {colorize(str(stats.unresolved), Colors.RED)}",
    ]
    if stats.avg_resolution_days > 0:
        lines.append(
            f"Average Resolution Time: {colorize(str(stats.avg_resolution_days), Colors.YELLOW)} days"
        )
    if stats.sampled < stats.total:
        lines.append(f"(based on the first {stats.sampled} issues)")
    base = stats.sampled or stats.total
    lines += _breakdown("By Status", stats.by_status, base)
    lines += _breakdown("By Type", stats.by_type, base)
    lines += _breakdown("Top Assignee", stats.by_assignee, base, TOP_ASSIGNEES)
    return "\n".join(lines)


def render_user_workload(username: str, workload: UserWorkload, *, now: datetime | None = None) -> str:
    lines = [
        bold(f"Workload Analytics: {username}"),
        colorize("═" * 60, Colors.GRAY),
        "",
        bold("Overview:"),
        f"Open Issues: {colorize(str(workload.total), Colors.BLUE)}",
    ]
    if workload.oldest_issue:
        created = parse_timestamp(str(workload.oldest_issue.get("created") or ""))
        if created is not None:
            reference = now or datetime.now(timezone.utc)
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            age = (reference - created).days
            lines.append(
                f"Oldest Issue: {colorize(str(workload.oldest_issue.get('key')), Colors.YELLOW)} ({age} days old)"
            )
    base = workload.sampled or workload.total
    lines += _breakdown("By Project", workload.by_project, base)
    lines += _breakdown("By Priority", workload.by_priority, base)
    return "\n".join(lines)


__all__ = [
    "ProjectStats",
    "UserWorkload",
    "project_stats",
    "user_workload",
    "render_project_stats",
    "render_user_workload",
]
