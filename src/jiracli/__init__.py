"""jiracli - command line client and library for the Jira REST API.

High-level public API (stable):

from jiracli import ConfigStore, JiraClient, resolve_credentials

client = JiraClient(resolve_credentials(ConfigStore()))
result = client.search_issues(build_filter_query(project="PROJ"))
print(result["issues"])

The ``jira`` command delegates to this library; everything it prints can be
reproduced with the client and the functions in :mod:`jiracli.formatting`.
"""

from __future__ import annotations

# Version constant (sync manually with pyproject)
__version__ = "0.3.0"

from .client import JiraClient, build_filter_query  # noqa: E402
from .config import (  # noqa: E402
    ConfigStore,
    CredentialSet,
    is_configured,
    resolve_api_version,
    resolve_credentials,
)
from .errors import (  # noqa: E402
    AccessDenied,
    AuthenticationFailed,
    ConfigError,
    ConfigurationMissing,
    JiraCliError,
    NetworkError,
    NotFound,
    RemoteApiError,
)
from .transport import ApiVersionMode, JiraDispatcher  # noqa: E402

__all__ = [
    "JiraClient",
    "JiraDispatcher",
    "ApiVersionMode",
    "build_filter_query",
    "ConfigStore",
    "CredentialSet",
    "resolve_credentials",
    "resolve_api_version",
    "is_configured",
    "JiraCliError",
    "ConfigurationMissing",
    "ConfigError",
    "AuthenticationFailed",
    "AccessDenied",
    "NotFound",
    "RemoteApiError",
    "NetworkError",
    "__version__",
]
