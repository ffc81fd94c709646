"""Reconciles configuration between CLI arguments, environment variables and settings."""

from pathlib import Path

from issue_mirror.config import Settings, get_settings
from issue_mirror.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from issue_mirror.configuration.models import GitHubAuthenticationType, SyncConfig

_GITHUB_APP_SETTINGS = (
    ("github_app_id", "GitHub App ID", "GITHUB_APP_ID"),
    ("github_app_private_key_path", "GitHub App private key path", "GITHUB_APP_PRIVATE_KEY_PATH"),
    ("github_app_installation_id", "GitHub App installation ID", "GITHUB_APP_INSTALLATION_ID"),
)


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Exactly one of a PAT or a complete GitHub App configuration must be set.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If both or neither are
            configured, or if the GitHub App configuration is incomplete.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    app_values = {
        "github_app_id": github_app_id,
        "github_app_private_key_path": github_app_private_key_path,
        "github_app_installation_id": github_app_installation_id,
    }
    any_app_setting = any(app_values.values())

    if github_pat_token and any_app_setting:
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")
    if github_pat_token:
        return GitHubAuthenticationType.PAT
    if all(app_values.values()):
        return GitHubAuthenticationType.APP
    if any_app_setting:
        missing = [
            f"{name} (command line option {cli_name}, environment variable {env_name})"
            for cli_name, name, env_name in _GITHUB_APP_SETTINGS
            if not app_values[cli_name]
        ]
        raise GitHubAuthenticationConfigurationUndefinedError("Incomplete GitHub App configuration - missing settings include " + ", ".join(missing))
    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
    )


async def reconcile_sync_configuration(
    cli_debug: bool | None = None,
    cli_github_api_url: str | None = None,
    cli_github_pat_token: str | None = None,
    cli_github_app_id: int | None = None,
    cli_github_app_private_key_path: Path | None = None,
    cli_github_app_installation_id: int | None = None,
    cli_repo: str | None = None,
    cli_database_url: str | None = None,
    cli_search_query: str | None = None,
    cli_project_status_field: str | None = None,
    cli_snapshot_max_bytes: int | None = None,
    settings: Settings | None = None,
) -> SyncConfig:
    """Merge CLI values over settings into the configuration of the sync command.

    CLI values win when given. When no search query is given anywhere, the
    query defaults to the open issues of the configured repository.

    Raises:
        RequiredConfigurationElementError: If no repository is configured.
        GitHubAuthenticationConfigurationUndefinedError: If authentication is misconfigured.
    """
    settings = settings or get_settings()

    repo = cli_repo or settings.REPO
    if not repo:
        raise RequiredConfigurationElementError(name="repository", cli_name="--repo", env_name="REPO")

    github_pat_token = cli_github_pat_token or settings.GITHUB_PAT_TOKEN
    github_app_id = cli_github_app_id or settings.GITHUB_APP_ID
    github_app_private_key_path = cli_github_app_private_key_path or settings.GITHUB_APP_PRIVATE_KEY_PATH
    github_app_installation_id = cli_github_app_installation_id or settings.GITHUB_APP_INSTALLATION_ID
    auth_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )

    return SyncConfig(
        debug=cli_debug if cli_debug is not None else settings.DEBUG,
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL,
        github_authentication_type=auth_type,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
        repo=repo,
        database_url=cli_database_url or settings.DATABASE_URL,
        search_query=cli_search_query or settings.SYNC_QUERY or f"repo:{repo.strip('/')} is:issue",
        project_status_field=cli_project_status_field or settings.PROJECT_STATUS_FIELD,
        snapshot_max_bytes=cli_snapshot_max_bytes if cli_snapshot_max_bytes is not None else settings.SNAPSHOT_MAX_BYTES,
    )
