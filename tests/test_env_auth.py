import os
from pathlib import Path

from jiracli.env_auth import (
    EnvAuthConfig,
    EnvironmentAuthManager,
    EnvSource,
    create_env_auth_manager,
)


def test_env_auth_config_defaults():
    """Test EnvAuthConfig with defaults."""
    config = EnvAuthConfig()

    assert config.load_dotenv is True
    assert config.dotenv_path is None
    assert config.host_var == "JIRA_HOST"
    assert config.domain_var == "JIRA_DOMAIN"
    assert config.username_var == "JIRA_USERNAME"
    assert config.token_var == "JIRA_API_TOKEN"


def test_no_source_without_variables():
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False), environ={})

    assert manager.find_source() is None
    recs = manager.recommendations()
    assert any("JIRA_HOST" in rec for rec in recs)


def test_primary_source_username_is_optional():
    manager = EnvironmentAuthManager(
        EnvAuthConfig(load_dotenv=False),
        environ={"JIRA_HOST": " jira.example.com ", "JIRA_API_TOKEN": "tkn"},
    )

    assert manager.primary_source() == EnvSource("JIRA_HOST", "jira.example.com", "", "tkn")
    assert manager.recommendations() == []


def test_primary_source_wins_over_legacy():
    manager = EnvironmentAuthManager(
        EnvAuthConfig(load_dotenv=False),
        environ={
            "JIRA_HOST": "new.example.com",
            "JIRA_DOMAIN": "old.example.com",
            "JIRA_USERNAME": "bob",
            "JIRA_API_TOKEN": "tkn",
        },
    )

    source = manager.find_source()
    assert source is not None
    assert source.origin == "JIRA_HOST"
    assert source.server == "new.example.com"
    assert source.username == "bob"


def test_legacy_source_needs_username():
    environ = {"JIRA_DOMAIN": "old.example.com", "JIRA_API_TOKEN": "tkn"}
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False), environ=environ)

    assert manager.legacy_source() is None
    assert any("requires JIRA_USERNAME" in rec for rec in manager.recommendations())


def test_custom_variable_names():
    config = EnvAuthConfig(load_dotenv=False, host_var="MY_JIRA", token_var="MY_TOKEN")
    manager = create_env_auth_manager(config, environ={"MY_JIRA": "h", "MY_TOKEN": "t"})

    source = manager.find_source()
    assert source is not None
    assert source.origin == "MY_JIRA"


def test_dotenv_file_feeds_process_environment(tmp_path: Path, monkeypatch):
    (tmp_path / ".env").write_text("JIRA_HOST=dotenv.example.com\nJIRA_API_TOKEN=from-file\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(os, "environ", dict(os.environ))
    monkeypatch.setenv("JIRA_API_TOKEN", "from-process")

    manager = create_env_auth_manager()

    source = manager.find_source()
    assert source is not None
    assert source.server == "dotenv.example.com"
    # Existing variables are never overridden by the file
    assert source.token == "from-process"


def test_explicit_dotenv_path(tmp_path: Path, monkeypatch):
    env_file = tmp_path / "custom.env"
    env_file.write_text("JIRA_HOST=custom.example.com\nJIRA_API_TOKEN=t\n")
    monkeypatch.setattr(os, "environ", dict(os.environ))

    manager = create_env_auth_manager(EnvAuthConfig(dotenv_path=str(env_file)))

    assert manager.find_source() is not None
    assert os.environ["JIRA_HOST"] == "custom.example.com"


def test_explicit_mapping_skips_dotenv(tmp_path: Path, monkeypatch):
    (tmp_path / ".env").write_text("JIRA_HOST=dotenv.example.com\nJIRA_API_TOKEN=t\n")
    monkeypatch.chdir(tmp_path)

    manager = create_env_auth_manager(environ={})

    assert manager.find_source() is None
    assert "JIRA_HOST" not in os.environ
