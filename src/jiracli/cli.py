"""jiracli command line interface.

Command groups:
  config     -> show or change the persisted connection settings (alias: c)
  init       -> interactive first-time setup (alias: setup)
  issue      -> list/view/create/edit/delete issues and manage comments
  project    -> list/view projects, components and versions
  sprint     -> list boards and sprints (Agile API)
  analytics  -> issue statistics per project and open workload per user
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from . import __version__
from .analytics import project_stats, render_project_stats, render_user_workload, user_workload
from .client import JiraClient, build_filter_query
from .config import (
    API_VERSION_CHOICES,
    ConfigStore,
    CredentialSet,
    describe_configuration,
    is_configured,
    normalize_server,
)
from .concurrency import run_concurrently
from .errors import ConfigError, JiraCliError
from .formatting import (
    boards_listing,
    browse_url,
    comments_table,
    components_listing,
    issue_details,
    issues_table,
    plain_text,
    project_details,
    projects_table,
    sprint_summary,
    sprint_summary_lines,
    sprints_table,
    user_greeting,
    versions_listing,
)
from .logging import configure_logging
from .observability import configure_telemetry
from .runtime import Factory, execute_command
from .ux import (
    Colors,
    bold,
    colorize,
    disable_color,
    print_error,
    print_header,
    print_info,
    print_success,
    print_summary_box,
    print_warning,
)

DEFAULT_LIMIT = 20
SECRET_KEYS = {"token"}
CONNECTION_KEYS = {"server", "username", "token"}

CONFIG_USAGE = (
    "Configuration requires explicit options.\n\n"
    "Bearer authentication (recommended):\n"
    "  jira config --server <url> --token <token>\n\n"
    "Basic authentication (optional):\n"
    "  jira config --server <url> --username <email> --token <token>\n\n"
    "Or set using individual commands:\n"
    "  jira config set server <url>\n"
    "  jira config set token <token>\n"
    "  jira config set username <email>  # optional for Basic auth\n\n"
    "Or use environment variables:\n"
    "  Bearer auth: export JIRA_HOST=<url> JIRA_API_TOKEN=<token>\n"
    "  Basic auth: export JIRA_HOST=<url> JIRA_API_TOKEN=<token> JIRA_USERNAME=<email>"
)

NEXT_STEPS = (
    "You can now start using jiracli:",
    "  • List issues: jira issue list",
    "  • View an issue: jira issue view PROJ-123",
    "  • Create an issue: jira issue create",
    "  • List projects: jira project list",
    "  • Show help: jira --help",
)

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.RawDescriptionHelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _subparsers(parser: argparse.ArgumentParser, dest: str, *, required: bool = True) -> Any:
    return parser.add_subparsers(
        dest=dest,
        required=required,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )


def _add_config_parser(sub: Any) -> None:
    cfg = sub.add_parser("config", aliases=["c"], help="Show or change connection settings")
    cfg.add_argument("-s", "--show", action="store_true", help="Show current configuration")
    cfg.add_argument("--server", help="Set server URL")
    cfg.add_argument("--username", help="Set username (enables Basic auth)")
    cfg.add_argument("--token", help="Set API token")
    cfg_sub = _subparsers(cfg, "config_cmd", required=False)
    get = cfg_sub.add_parser("get", help="Print one setting, or all of them")
    get.add_argument("key", nargs="?", help="Setting name")
    get.set_defaults(action="get")
    set_ = cfg_sub.add_parser("set", help="Store one setting")
    set_.add_argument("key", help="Setting name (server, username, token, api_version)")
    set_.add_argument("value", help="New value")
    set_.set_defaults(action="set")
    unset = cfg_sub.add_parser("unset", help="Remove one setting")
    unset.add_argument("key", help="Setting name")
    unset.set_defaults(action="unset")


def _add_issue_parser(sub: Any) -> None:
    issue = sub.add_parser("issue", aliases=["i"], help="Manage issues")
    issue_sub = _subparsers(issue, "issue_cmd")

    ls = issue_sub.add_parser(
        "list",
        aliases=["ls"],
        help="List issues with filtering",
        epilog=(
            "Examples:\n"
            "  jira issue list                              # recent issues\n"
            "  jira issue list --assignee currentUser       # your assigned issues\n"
            "  jira issue list --status Open --limit 50     # open issues (max 50)\n"
            "  jira issue list --project TEST --type Bug    # bugs in TEST"
        ),
    )
    ls.add_argument("--project", help="Filter by project key")
    ls.add_argument("--assignee", help='Filter by assignee ("currentUser" for yourself)')
    ls.add_argument("--status", help="Filter by status (e.g. Open, In Progress)")
    ls.add_argument("--type", help="Filter by issue type (e.g. Bug, Story)")
    ls.add_argument("--reporter", help="Filter by reporter")
    ls.add_argument("--priority", help="Filter by priority (e.g. High, Medium)")
    ls.add_argument("--created", help="Created since (e.g. -7d, 2023-01-01)")
    ls.add_argument("--updated", help="Updated since (e.g. -7d, 2023-01-01)")
    ls.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Maximum results (default: 20)")
    ls.add_argument("--jql", help="Raw JQL query; overrides the filters above")
    ls.set_defaults(action="list")

    view = issue_sub.add_parser("view", aliases=["show"], help="Show issue details")
    view.add_argument("key", help="Issue key (e.g. PROJ-123)")
    view.add_argument("--web", action="store_true", help="Open the issue in a browser")
    view.set_defaults(action="view")

    create = issue_sub.add_parser(
        "create",
        aliases=["new"],
        help="Create an issue (interactive unless project, type and summary are given)",
    )
    create.add_argument("--project", help="Project key")
    create.add_argument("--type", help="Issue type name (e.g. Bug, Story, Task)")
    create.add_argument("--summary", help="Issue summary")
    create.add_argument("--description", help="Issue description")
    create.add_argument("--assignee", help="Assignee username")
    create.add_argument("--priority", help="Priority name")
    create.set_defaults(action="create")

    edit = issue_sub.add_parser("edit", aliases=["update"], help="Edit an issue")
    edit.add_argument("key", help="Issue key")
    edit.add_argument("--summary", help="New summary")
    edit.add_argument("--description", help="New description")
    edit.add_argument("--assignee", help="New assignee")
    edit.add_argument("--priority", help="New priority")
    edit.set_defaults(action="edit")

    delete = issue_sub.add_parser("delete", aliases=["rm"], help="Delete an issue")
    delete.add_argument("key", help="Issue key")
    delete.add_argument("-f", "--force", action="store_true", help="Skip confirmation")
    delete.set_defaults(action="delete")

    comment = issue_sub.add_parser("comment", help="Manage issue comments")
    comment_sub = _subparsers(comment, "comment_cmd")
    c_list = comment_sub.add_parser("list", aliases=["ls"], help="List comments on an issue")
    c_list.add_argument("key", help="Issue key")
    c_list.set_defaults(action="comment-list")
    c_add = comment_sub.add_parser("add", help="Add a comment")
    c_add.add_argument("key", help="Issue key")
    c_add.add_argument("body", nargs="?", help="Comment text (prompted when omitted)")
    c_add.add_argument(
        "--internal", action="store_true", help="Restrict visibility to the Administrators role"
    )
    c_add.set_defaults(action="comment-add")
    c_edit = comment_sub.add_parser("edit", help="Replace a comment's text")
    c_edit.add_argument("key", help="Issue key")
    c_edit.add_argument("comment_id", help="Comment id")
    c_edit.add_argument("body", nargs="?", help="New text (prompted when omitted)")
    c_edit.set_defaults(action="comment-edit")
    c_delete = comment_sub.add_parser("delete", aliases=["rm"], help="Delete a comment")
    c_delete.add_argument("key", help="Issue key")
    c_delete.add_argument("comment_id", help="Comment id")
    c_delete.add_argument("-f", "--force", action="store_true", help="Skip confirmation")
    c_delete.set_defaults(action="comment-delete")


def _add_project_parser(sub: Any) -> None:
    project = sub.add_parser("project", aliases=["p"], help="Browse projects")
    project_sub = _subparsers(project, "project_cmd")
    ls = project_sub.add_parser("list", aliases=["ls"], help="List all projects")
    ls.add_argument("--type", help="Filter by project type")
    ls.add_argument("--category", help="Filter by project category")
    ls.set_defaults(action="list")
    view = project_sub.add_parser("view", aliases=["show"], help="Show project details")
    view.add_argument("key", help="Project key")
    view.set_defaults(action="view")
    components = project_sub.add_parser("components", help="List project components")
    components.add_argument("key", help="Project key")
    components.set_defaults(action="components")
    versions = project_sub.add_parser("versions", help="List project versions")
    versions.add_argument("key", help="Project key")
    versions.set_defaults(action="versions")


def _add_sprint_parser(sub: Any) -> None:
    sprint = sub.add_parser("sprint", aliases=["s"], help="Browse boards and sprints")
    sprint_sub = _subparsers(sprint, "sprint_cmd")
    ls = sprint_sub.add_parser("list", aliases=["ls"], help="List sprints")
    ls.add_argument("-b", "--board", help="Board id (required when several boards exist)")
    ls.add_argument("-a", "--active", action="store_true", help="Only active sprints")
    ls.add_argument("--state", help="Filter by state (active, future, closed)")
    ls.set_defaults(action="list")
    active = sprint_sub.add_parser("active", help="List active sprints")
    active.add_argument("-b", "--board", help="Board id")
    active.set_defaults(action="active")
    boards = sprint_sub.add_parser("boards", help="List available boards")
    boards.set_defaults(action="boards")


def _add_analytics_parser(sub: Any) -> None:
    analytics = sub.add_parser("analytics", help="Issue statistics and workload")
    analytics_sub = _subparsers(analytics, "analytics_cmd")
    project = analytics_sub.add_parser("project", help="Statistics for one project")
    project.add_argument("key", help="Project key")
    project.add_argument("--limit", type=int, default=1000, help="Issues to sample (default: 1000)")
    project.set_defaults(action="project")
    workload = analytics_sub.add_parser("workload", help="Open issues assigned to a user")
    workload.add_argument("user", help='Username, or "currentUser"')
    workload.add_argument("--limit", type=int, default=1000, help="Issues to sample (default: 1000)")
    workload.set_defaults(action="workload")


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands.

    Keep ordering stable for help output readability.
    """
    p = _FormatterArgumentParser(prog="jira", description="Command line client for Jira")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    p.add_argument(
        "--no-color",
        action="store_true",
        help="Disable coloured output (env: NO_COLOR=1)",
    )
    p.add_argument(
        "--api-version",
        choices=API_VERSION_CHOICES,
        help="REST API version: auto, 2 or 3 (env: JIRA_API_VERSION)",
    )
    p.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file path (env: JIRA_CLI_CONFIG_PATH)",
    )
    p.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines (env: JIRA_CLI_LOG_JSON=1)",
    )
    sub = _subparsers(p, "cmd")
    _add_config_parser(sub)
    sub.add_parser("init", aliases=["setup"], help="Interactive first-time setup (run this first)")
    _add_issue_parser(sub)
    _add_project_parser(sub)
    _add_sprint_parser(sub)
    _add_analytics_parser(sub)
    return p


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def _greet(result: Mapping[str, Any]) -> None:
    print_success("Connection successful!")
    print(user_greeting(result.get("user")))


# ---- config ---------------------------------------------------------------


def _show_configuration(factory: Factory) -> int:
    view = describe_configuration(factory.get_config(), factory.environ)
    if not view["environment"] and not view["file"]:
        print_warning("No configuration found.")
        print(
            "Run "
            + colorize("jira config --server <url> --token <token>", Colors.CYAN)
            + " to set up your connection."
        )
        return 0
    print_header("Current JIRA Configuration:")
    env_view = view["environment"]
    if env_view:
        print_summary_box(
            f"From Environment Variables ({env_view['origin']}):",
            [("Server", env_view["server"]), ("Username", env_view["username"]), ("Token", env_view["token"])],
        )
    file_view = view["file"]
    if file_view:
        items = [("Server", file_view["server"]), ("Username", file_view["username"]), ("Token", file_view["token"])]
        if "api_version" in file_view:
            items.append(("API version", file_view["api_version"]))
        print_summary_box("From Config File:", items)
    print(f"Config file: {view['path']}")
    if env_view and file_view:
        print_info("Environment variables take precedence over the config file.")
    return 0


def _test_saved_configuration(factory: Factory, *, strict: bool) -> int:
    if not is_configured(factory.get_config(), factory.environ):
        return 0
    print_info("Testing connection...")
    factory.reset_client()
    result = factory.get_client().test_connection()
    if result["success"]:
        _greet(result)
        return 0
    if strict:
        print_error(f"Connection failed: {result['error']}")
        return 1
    print_warning(f"Configuration saved but connection test failed: {result['error']}")
    return 0


def _cmd_config(factory: Factory, args: argparse.Namespace) -> int:
    action = getattr(args, "action", None)
    if action == "get":
        return _cmd_config_get(factory, args)
    if action == "set":
        return _cmd_config_set(factory, args)
    if action == "unset":
        return _cmd_config_unset(factory, args)
    if args.show:
        return _show_configuration(factory)
    if not (args.server or args.username or args.token):
        raise ConfigError(CONFIG_USAGE)
    store = factory.get_config()
    if args.server:
        store.set("server", args.server)
        print_success(f"Server set to: {args.server}")
    if args.username:
        store.set("username", args.username)
        print_success(f"Username set to: {args.username}")
    if args.token:
        store.set("token", args.token)
        print_success("API token updated")
    return _test_saved_configuration(factory, strict=True)


def _cmd_config_get(factory: Factory, args: argparse.Namespace) -> int:
    if not args.key:
        return _show_configuration(factory)
    value = factory.get_config().get(args.key)
    if value is None:
        print_warning(f"Configuration key '{args.key}' not found")
        return 1
    print(f"{args.key}: {'***' if args.key in SECRET_KEYS else value}")
    return 0


def _cmd_config_set(factory: Factory, args: argparse.Namespace) -> int:
    factory.get_config().set(args.key, args.value)
    print_success(f"{args.key} set successfully")
    if args.key in CONNECTION_KEYS:
        return _test_saved_configuration(factory, strict=False)
    return 0


def _cmd_config_unset(factory: Factory, args: argparse.Namespace) -> int:
    factory.get_config().delete(args.key)
    print_success(f"{args.key} unset successfully")
    return 0


# ---- init -----------------------------------------------------------------


def _cmd_init(factory: Factory, args: argparse.Namespace) -> int:
    store = factory.get_config()
    prompter = factory.get_prompter()
    print(f"\n🚀 {bold('Welcome to jiracli!')}\n")
    print(colorize("Let's set up your JIRA connection...", Colors.CYAN))
    server = normalize_server(
        prompter.ask("JIRA server URL", default=store.get("server"), required=True)
    )
    method = prompter.choose(
        "Authentication method:",
        [("Bearer token (recommended)", "bearer"), ("Basic (username + API token)", "basic")],
    )
    username = prompter.ask("Username or email", required=True) if method == "basic" else ""
    token = prompter.secret("API token")

    print_info("Testing connection...")
    client = factory.build_client(CredentialSet.build(server, username, token, "config"))
    result = client.test_connection()
    if not result["success"]:
        raise JiraCliError(
            f"Setup failed: {result['error']}\n"
            "Nothing was saved. Run 'jira init' again or configure manually with 'jira config'."
        )
    store.set("server", server)
    if username:
        store.set("username", username)
    else:
        store.delete("username")
    store.set("token", token)
    factory.reset_client()
    _greet(result)
    print(f"\n🎉 Setup complete! Settings saved to {store.path}\n")
    _print_lines(NEXT_STEPS)
    return 0


# ---- issues ---------------------------------------------------------------


def _issue_url(client: JiraClient, key: str) -> str:
    return f"{client.server}/browse/{key}"


def _issue_list(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    jql = args.jql or build_filter_query(
        args.project,
        args.assignee,
        args.status,
        issue_type=args.type,
        reporter=args.reporter,
        priority=args.priority,
        created=args.created,
        updated=args.updated,
    )
    result = client.search_issues(jql, max_results=args.limit)
    issues = result.get("issues") or []
    if not issues:
        print_info("No issues found")
        return 0
    print(bold(f"\nFound {len(issues)} issues:\n"))
    print(issues_table(issues))
    total = result.get("total")
    if isinstance(total, int) and total > len(issues):
        print_info(f"Showing {len(issues)} of {total} total issues")
    return 0


def _issue_view(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    issue = client.get_issue(args.key)
    print(issue_details(issue, client.server))
    if args.web:
        factory.get_browser()(browse_url(issue, client.server))
    return 0


def _issue_fields_from_args(args: argparse.Namespace) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "project": {"key": args.project},
        "issuetype": {"name": args.type},
        "summary": args.summary,
    }
    if args.description:
        fields["description"] = args.description
    if args.assignee:
        fields["assignee"] = {"name": args.assignee}
    if args.priority:
        fields["priority"] = {"name": args.priority}
    return fields


def _issue_fields_interactive(factory: Factory, client: JiraClient) -> dict[str, Any]:
    projects, issue_types = run_concurrently(client.get_projects, client.get_issue_types)
    prompter = factory.get_prompter()
    project = prompter.choose(
        "Select project:", [(f"{p['key']} - {p.get('name', '')}", str(p["key"])) for p in projects]
    )
    issue_type = prompter.choose(
        "Select issue type:", [(str(t.get("name", t["id"])), str(t["id"])) for t in issue_types]
    )
    summary = prompter.ask("Issue summary", required=True)
    description = prompter.ask("Issue description (optional)")
    fields: dict[str, Any] = {
        "project": {"key": project},
        "issuetype": {"id": issue_type},
        "summary": summary,
    }
    if description:
        fields["description"] = description
    return fields


def _issue_create(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    if args.project and args.type and args.summary:
        fields = _issue_fields_from_args(args)
    else:
        fields = _issue_fields_interactive(factory, client)
    result = client.create_issue({"fields": fields})
    key = str(result.get("key", ""))
    print_success(f"Issue created: {key}")
    print(f"URL: {_issue_url(client, key)}")
    return 0


def _issue_edit(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    issue = client.get_issue(args.key)
    current = issue.get("fields") or {}
    current_summary = current.get("summary") or ""
    current_description = plain_text(current.get("description"))
    print(bold(f"\nUpdating issue: {issue.get('key', args.key)}"))
    print(f"Current summary: {current_summary}\n")

    changes: dict[str, Any] = {}
    if args.summary or args.description or args.assignee or args.priority:
        summary, description = args.summary, args.description
        if args.assignee:
            changes["assignee"] = {"name": args.assignee}
        if args.priority:
            changes["priority"] = {"name": args.priority}
    else:
        prompter = factory.get_prompter()
        summary = prompter.ask("New summary (leave empty to keep current)", default=current_summary)
        description = prompter.ask("New description (leave empty to keep current)")
    if summary and summary != current_summary:
        changes["summary"] = summary
    if description and description != current_description:
        changes["description"] = description

    if not changes:
        print_info("No changes made")
        return 0
    client.update_issue(args.key, {"fields": changes})
    print_success(f"Issue {args.key} updated successfully")
    return 0


def _issue_delete(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    issue = client.get_issue(args.key)
    print(bold(f"\nIssue to delete: {issue.get('key', args.key)}"))
    print(f"Summary: {(issue.get('fields') or {}).get('summary', '')}\n")
    confirmed = args.force or factory.get_prompter().confirm(
        colorize("Are you sure you want to delete this issue? This action cannot be undone.", Colors.RED)
    )
    if not confirmed:
        print_info("Deletion cancelled")
        return 0
    client.delete_issue(args.key)
    print_success(f"Issue {args.key} deleted successfully")
    return 0


def _comment_body(factory: Factory, body: str | None) -> str:
    return body or factory.get_prompter().ask("Comment text", required=True)


def _comment_list(factory: Factory, args: argparse.Namespace) -> int:
    result = factory.get_client().get_comments(args.key)
    comments = result.get("comments") or []
    if not comments:
        print_info(f"No comments on {args.key}")
        return 0
    print(bold(f"\nComments on {args.key} ({len(comments)}):\n"))
    print(comments_table(comments))
    return 0


def _comment_add(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    result = client.add_comment(args.key, _comment_body(factory, args.body), internal=args.internal)
    suffix = " (internal)" if args.internal else ""
    print_success(f"Comment {result.get('id', '')} added to {args.key}{suffix}")
    return 0


def _comment_edit(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    client.update_comment(args.key, args.comment_id, _comment_body(factory, args.body))
    print_success(f"Comment {args.comment_id} updated")
    return 0


def _comment_delete(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    confirmed = args.force or factory.get_prompter().confirm(
        f"Delete comment {args.comment_id} on {args.key}?"
    )
    if not confirmed:
        print_info("Deletion cancelled")
        return 0
    client.delete_comment(args.key, args.comment_id)
    print_success(f"Comment {args.comment_id} deleted")
    return 0


# ---- projects -------------------------------------------------------------


def _matches(value: Any, needle: str | None) -> bool:
    return not needle or needle.lower() in str(value or "").lower()


def _project_list(factory: Factory, args: argparse.Namespace) -> int:
    projects = factory.get_client().get_projects() or []
    projects = [
        p
        for p in projects
        if _matches(p.get("projectTypeKey"), args.type)
        and _matches((p.get("projectCategory") or {}).get("name"), args.category)
    ]
    if not projects:
        print_info("No projects found")
        return 0
    print(bold(f"\nFound {len(projects)} projects:\n"))
    print(projects_table(projects))
    return 0


def _project_view(factory: Factory, args: argparse.Namespace) -> int:
    client = factory.get_client()
    print(project_details(client.get_project(args.key), client.server))
    return 0


def _project_components(factory: Factory, args: argparse.Namespace) -> int:
    components = factory.get_client().get_project_components(args.key) or []
    if not components:
        print_info(f"No components found for {args.key}")
        return 0
    print(bold(f"\nComponents in {args.key} ({len(components)}):\n"))
    print(components_listing(components))
    return 0


def _project_versions(factory: Factory, args: argparse.Namespace) -> int:
    versions = factory.get_client().get_project_versions(args.key) or []
    if not versions:
        print_info(f"No versions found for {args.key}")
        return 0
    print(bold(f"\nVersions in {args.key} ({len(versions)}):\n"))
    print(versions_listing(versions))
    return 0


# ---- sprints --------------------------------------------------------------


def _board_sprints(
    client: JiraClient,
    board_id: Any,
    *,
    active_only: bool = False,
    state: str | None = None,
    board_name: str | None = None,
) -> int:
    sprints = client.get_sprints(board_id).get("values") or []
    if active_only:
        sprints = [s for s in sprints if str(s.get("state", "")).upper() == "ACTIVE"]
    if state:
        sprints = [s for s in sprints if str(s.get("state", "")).lower() == state.lower()]
    label = "active sprints" if active_only else f"{state} sprints" if state else "sprints"
    where = f" for {board_name}" if board_name else ""
    if not sprints:
        print_info(f"No {label} found{where}")
        return 0
    print(bold(f"\nFound {len(sprints)} {label}{where}:\n"))
    print(sprints_table(sprints))
    if not active_only and not state:
        print()
        _print_lines(sprint_summary_lines(sprint_summary(sprints)))
    return 0


def _sprints(factory: Factory, board: str | None, *, active_only: bool, state: str | None = None) -> int:
    client = factory.get_client()
    if board:
        return _board_sprints(client, board, active_only=active_only, state=state)
    boards = client.get_boards().get("values") or []
    if not boards:
        print_info("No boards found")
        return 0
    if len(boards) == 1:
        only = boards[0]
        return _board_sprints(
            client, only["id"], active_only=active_only, state=state, board_name=only.get("name")
        )
    print(bold("\nMultiple boards found:\n"))
    for entry in boards:
        print(f"  {colorize(str(entry.get('id', '')).ljust(6), Colors.CYAN)} {entry.get('name', '')} ({entry.get('type', '')})")
    print("\n" + colorize("Please specify a board using --board <ID>", Colors.YELLOW))
    print(f"Example: jira sprint list --board {boards[0].get('id', '')}\n")
    raise JiraCliError("Board ID required when multiple boards exist")


def _sprint_list(factory: Factory, args: argparse.Namespace) -> int:
    return _sprints(factory, args.board, active_only=args.active, state=args.state)


def _sprint_active(factory: Factory, args: argparse.Namespace) -> int:
    return _sprints(factory, args.board, active_only=True)


def _sprint_boards(factory: Factory, args: argparse.Namespace) -> int:
    boards = factory.get_client().get_boards().get("values") or []
    if not boards:
        print_info("No boards found")
        return 0
    print(bold(f"\nFound {len(boards)} boards:\n"))
    print(boards_listing(boards))
    return 0


# ---- analytics ------------------------------------------------------------


def _analytics_project(factory: Factory, args: argparse.Namespace) -> int:
    stats = project_stats(factory.get_client(), args.key, max_results=args.limit)
    print(render_project_stats(args.key, stats))
    return 0


def _analytics_workload(factory: Factory, args: argparse.Namespace) -> int:
    workload = user_workload(factory.get_client(), args.user, max_results=args.limit)
    print(render_user_workload(args.user, workload))
    return 0


# ---- dispatch -------------------------------------------------------------

_Handler = Callable[[Factory, argparse.Namespace], int]

_GROUP_ACTIONS: dict[str, dict[str, _Handler]] = {
    "issue": {
        "list": _issue_list,
        "view": _issue_view,
        "create": _issue_create,
        "edit": _issue_edit,
        "delete": _issue_delete,
        "comment-list": _comment_list,
        "comment-add": _comment_add,
        "comment-edit": _comment_edit,
        "comment-delete": _comment_delete,
    },
    "project": {
        "list": _project_list,
        "view": _project_view,
        "components": _project_components,
        "versions": _project_versions,
    },
    "sprint": {
        "list": _sprint_list,
        "active": _sprint_active,
        "boards": _sprint_boards,
    },
    "analytics": {
        "project": _analytics_project,
        "workload": _analytics_workload,
    },
}

_COMMAND_ALIASES = {"c": "config", "i": "issue", "p": "project", "s": "sprint", "setup": "init"}


def _group_handler(group: str, factory: Factory, args: argparse.Namespace) -> Callable[[], int]:
    handler = _GROUP_ACTIONS[group][args.action]
    return lambda: handler(factory, args)


def _build_handlers(args: argparse.Namespace, factory: Factory) -> dict[str, Any]:
    handlers: dict[str, Any] = {
        "config": lambda: _cmd_config(factory, args),
        "init": lambda: _cmd_init(factory, args),
    }
    command = _COMMAND_ALIASES.get(args.cmd, args.cmd)
    if command in _GROUP_ACTIONS:
        handlers[command] = _group_handler(command, factory, args)
    return handlers


def _configure_runtime(args: argparse.Namespace) -> None:
    if args.no_color:
        disable_color()
    configure_logging(
        json_logging=True if args.json_logs else None,
        level="DEBUG" if args.verbose else None,
    )
    exporter = os.environ.get("JIRA_CLI_OTEL_EXPORTER")
    if exporter:
        configure_telemetry(
            service_name=os.environ.get("JIRA_CLI_SERVICE_NAME", "jiracli"),
            exporter="otlp" if exporter.lower() == "otlp" else "console",
            endpoint=os.environ.get("JIRA_CLI_OTEL_ENDPOINT"),
        )


def main(argv: list[str] | None = None, *, factory: Factory | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_runtime(args)
    factory = factory or Factory(
        store=ConfigStore(args.config) if args.config else None,
        api_version=args.api_version,
    )
    command = _COMMAND_ALIASES.get(args.cmd, args.cmd)
    handler = _build_handlers(args, factory).get(command)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return execute_command(handler, command)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
