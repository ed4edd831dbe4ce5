from __future__ import annotations

from importlib import import_module
from pathlib import Path
from typing import Any

import pytest

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def test_jiracli_dunder_all_exports() -> None:
    module = import_module("jiracli")
    exported = set(module.__all__)
    expected = {
        "JiraClient",
        "ConfigStore",
        "resolve_credentials",
        "build_filter_query",
        "JiraCliError",
        "__version__",
    }
    assert expected <= exported
    for name in exported:
        assert hasattr(module, name)


def test_version_matches_pyproject() -> None:
    module = import_module("jiracli")
    text = PYPROJECT.read_text()
    assert f'version = "{module.__version__}"' in text
    assert 'jira = "jiracli.cli:main"' in text


def test_module_main_run_invokes_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    module = import_module("jiracli.__main__")
    called: dict[str, Any] = {}

    def fake_main(argv: Any) -> int:
        called["argv"] = argv
        return 123

    monkeypatch.setattr(module, "main", fake_main)

    result = module.run()
    assert called["argv"] is None
    assert result == 123
