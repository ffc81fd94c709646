"""Unit tests for reconcile_sync_configuration function."""

from pathlib import Path

import pytest

from issue_mirror.config import Settings
from issue_mirror.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from issue_mirror.configuration.models import GitHubAuthenticationType
from issue_mirror.configuration.reconcile import reconcile_sync_configuration


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in Settings.model_fields:
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides: object) -> Settings:
    # _env_file=None keeps a developer's .env file out of the tests.
    values: dict = {"REPO": "octo/widgets", "GITHUB_PAT_TOKEN": "settings-token"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.asyncio
async def test_settings_only() -> None:
    config = await reconcile_sync_configuration(settings=make_settings())

    assert config.repo == "octo/widgets"
    assert config.github_authentication_type == GitHubAuthenticationType.PAT
    assert config.github_pat_token == "settings-token"
    assert config.github_api_url == "https://api.github.com"
    assert config.database_url == "sqlite:///./issue_mirror.db"
    assert config.search_query == "repo:octo/widgets is:issue"
    assert config.project_status_field is None
    assert config.snapshot_max_bytes == 256
    assert config.debug is False


@pytest.mark.asyncio
async def test_cli_values_win_over_settings() -> None:
    settings = make_settings(SYNC_QUERY="repo:octo/widgets label:bug", PROJECT_STATUS_FIELD="Status", SNAPSHOT_MAX_BYTES=512)

    config = await reconcile_sync_configuration(
        cli_debug=True,
        cli_github_api_url="https://ghe.example.com/api/v3",
        cli_github_pat_token="cli-token",
        cli_repo="acme/gadgets",
        cli_database_url="sqlite:///cli.db",
        cli_search_query="org:acme is:issue",
        cli_project_status_field="Stage",
        cli_snapshot_max_bytes=128,
        settings=settings,
    )

    assert config.debug is True
    assert config.github_api_url == "https://ghe.example.com/api/v3"
    assert config.github_pat_token == "cli-token"
    assert config.repo == "acme/gadgets"
    assert config.database_url == "sqlite:///cli.db"
    assert config.search_query == "org:acme is:issue"
    assert config.project_status_field == "Stage"
    assert config.snapshot_max_bytes == 128


@pytest.mark.asyncio
async def test_query_from_settings_when_not_given_on_cli() -> None:
    config = await reconcile_sync_configuration(settings=make_settings(SYNC_QUERY="repo:octo/widgets label:bug"))
    assert config.search_query == "repo:octo/widgets label:bug"


@pytest.mark.asyncio
async def test_github_app_from_cli() -> None:
    config = await reconcile_sync_configuration(
        cli_github_app_id=123,
        cli_github_app_private_key_path=Path("/path/to/key.pem"),
        cli_github_app_installation_id=456,
        settings=make_settings(GITHUB_PAT_TOKEN=None),
    )

    assert config.github_authentication_type == GitHubAuthenticationType.APP
    assert config.github_app_id == 123


@pytest.mark.asyncio
async def test_missing_repository() -> None:
    with pytest.raises(RequiredConfigurationElementError) as exc_info:
        await reconcile_sync_configuration(settings=make_settings(REPO=None))

    assert exc_info.value.cli_name == "--repo"
    assert exc_info.value.env_name == "REPO"
    assert "command line option --repo" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_authentication() -> None:
    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        await reconcile_sync_configuration(settings=make_settings(GITHUB_PAT_TOKEN=None))
