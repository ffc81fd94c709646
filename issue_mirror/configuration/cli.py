"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from sqlalchemy.orm import sessionmaker
from typer import Argument, Option
from typing_extensions import Annotated

from issue_mirror.canonical.publisher import publish_canonical_issue
from issue_mirror.canonical.resolver import CanonicalIdResolver
from issue_mirror.config import get_settings
from issue_mirror.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from issue_mirror.configuration.logging import configure_logging
from issue_mirror.configuration.models import SyncConfig
from issue_mirror.configuration.reconcile import reconcile_sync_configuration
from issue_mirror.exceptions import IssueMirrorError
from issue_mirror.github.adapter import GitHubKitAdapter
from issue_mirror.storage.base import create_db_engine, create_session_factory, init_db
from issue_mirror.storage.repository import SQLAlchemyIssueMirrorStore, SQLAlchemySyncRunLedger
from issue_mirror.synchronize.orchestrator import SyncOrchestrator
from issue_mirror.synchronize.types import SyncRunStatus

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Mirror GitHub issue status into the issue mirror store.")

RepoOption = Annotated[str | None, Option("--repo", envvar="REPO", help="Repository name (owner/repo).")]
DatabaseUrlOption = Annotated[str | None, Option("--database-url", envvar="DATABASE_URL", help="SQLAlchemy database URL.")]
GitHubApiUrlOption = Annotated[str | None, Option("--github-api-url", envvar="GITHUB_API_URL", help="GitHub API URL.")]
GitHubPatTokenOption = Annotated[str | None, Option("--github-pat-token", envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")]
GitHubAppIdOption = Annotated[int | None, Option("--github-app-id", envvar="GITHUB_APP_ID", help="GitHub App ID.")]
GitHubAppPrivateKeyPathOption = Annotated[
    Path | None, Option("--github-app-private-key-path", envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")
]
GitHubAppInstallationIdOption = Annotated[
    int | None, Option("--github-app-installation-id", envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")
]
ProjectStatusFieldOption = Annotated[
    str | None, Option("--project-status-field", envvar="PROJECT_STATUS_FIELD", help="Name of the GitHub Projects status field to read.")
]


@typer_app.callback()
def main(debug: Annotated[bool, Option("--debug", envvar="DEBUG", help="Enable debug logging.")] = False) -> None:
    """Mirror GitHub issue status into the issue mirror store."""
    configure_logging(debug)


def _session_factory(database_url: str | None) -> sessionmaker:
    engine = create_db_engine(database_url or get_settings().DATABASE_URL)
    init_db(engine)
    return create_session_factory(engine)


def _load_config(
    repo: str | None,
    database_url: str | None,
    github_api_url: str | None,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    project_status_field: str | None = None,
    search_query: str | None = None,
    snapshot_max_bytes: int | None = None,
) -> SyncConfig:
    try:
        return asyncio.run(
            reconcile_sync_configuration(
                cli_github_api_url=github_api_url,
                cli_github_pat_token=github_pat_token,
                cli_github_app_id=github_app_id,
                cli_github_app_private_key_path=github_app_private_key_path,
                cli_github_app_installation_id=github_app_installation_id,
                cli_repo=repo,
                cli_database_url=database_url,
                cli_search_query=search_query,
                cli_project_status_field=project_status_field,
                cli_snapshot_max_bytes=snapshot_max_bytes,
            )
        )
    except (RequiredConfigurationElementError, GitHubAuthenticationConfigurationUndefinedError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e


async def create_adapter(config: SyncConfig) -> GitHubKitAdapter:
    """Create the GitHub adapter described by a reconciled configuration."""
    return await GitHubKitAdapter.create(
        repo=config.repo,
        github_auth_type=config.github_authentication_type,
        github_pat_token=config.github_pat_token,
        github_app_id=config.github_app_id,
        github_app_private_key_path=config.github_app_private_key_path,
        github_app_installation_id=config.github_app_installation_id,
        github_api_url=config.github_api_url,
        project_status_field=config.project_status_field,
    )


@typer_app.command(name="init-db")
def init_db_cli(database_url: DatabaseUrlOption = None) -> None:
    """Create the issue mirror tables."""
    _session_factory(database_url)
    typer.echo("Database initialized")


@typer_app.command(name="track")
def track_cli(
    issue_id: Annotated[str, Argument(help="Internal issue ID.")],
    issue_number: Annotated[int | None, Option("--issue-number", help="GitHub issue number to link; omit to unlink.")] = None,
    title: Annotated[str | None, Option("--title", help="Internal issue title.")] = None,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Track an internal issue, optionally linked to a GitHub issue number."""
    store = SQLAlchemyIssueMirrorStore(_session_factory(database_url))
    ref = store.link_issue(issue_id, issue_number, title=title)
    if ref.is_linked:
        typer.echo(f"Tracking issue {ref.id} linked to GitHub issue #{ref.external_issue_number}")
    else:
        typer.echo(f"Tracking issue {ref.id} (not linked)")


@typer_app.command(name="sync")
def sync_cli(
    query: Annotated[str | None, Option("--query", envvar="SYNC_QUERY", help="GitHub issue search query for discovery.")] = None,
    snapshot_max_bytes: Annotated[
        int | None, Option("--snapshot-max-bytes", envvar="SNAPSHOT_MAX_BYTES", help="Byte budget of the status snapshot.")
    ] = None,
    repo: RepoOption = None,
    database_url: DatabaseUrlOption = None,
    github_api_url: GitHubApiUrlOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    project_status_field: ProjectStatusFieldOption = None,
) -> None:
    """Mirror the status of linked issues and discover issues matching a query."""
    config = _load_config(
        repo,
        database_url,
        github_api_url,
        github_pat_token,
        github_app_id,
        github_app_private_key_path,
        github_app_installation_id,
        project_status_field=project_status_field,
        search_query=query,
        snapshot_max_bytes=snapshot_max_bytes,
    )
    session_factory = _session_factory(config.database_url)

    async def run() -> dict:
        adapter = await create_adapter(config)
        orchestrator = SyncOrchestrator(
            client=adapter,
            store=SQLAlchemyIssueMirrorStore(session_factory),
            ledger=SQLAlchemySyncRunLedger(session_factory),
            owner=adapter.owner,
            repo=adapter.repo_name,
            snapshot_max_bytes=config.snapshot_max_bytes,
        )
        result = await orchestrator.run_sync(config.search_query)
        return result.to_dict()

    try:
        result = asyncio.run(run())
    except IssueMirrorError as e:
        typer.echo(json.dumps({"code": e.code, "message": str(e)}), err=True)
        raise typer.Exit(1) from e

    typer.echo(json.dumps(result, indent=2))
    if result["status"] != SyncRunStatus.SUCCESS.value:
        raise typer.Exit(1)


@typer_app.command(name="resolve")
def resolve_cli(
    canonical_id: Annotated[str, Argument(help="Canonical ID to resolve.")],
    repo: RepoOption = None,
    github_api_url: GitHubApiUrlOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
) -> None:
    """Find the GitHub issue carrying a canonical ID marker."""
    config = _load_config(repo, None, github_api_url, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id)

    async def run() -> dict:
        adapter = await create_adapter(config)
        match = await CanonicalIdResolver(adapter).resolve(adapter.owner, adapter.repo_name, canonical_id)
        return {"mode": match.mode, "issueNumber": match.issue_number, "issueUrl": match.issue_url, "matchedBy": match.matched_by}

    try:
        result = asyncio.run(run())
    except IssueMirrorError as e:
        typer.echo(json.dumps({"code": e.code, "message": str(e)}), err=True)
        raise typer.Exit(1) from e
    typer.echo(json.dumps(result, indent=2))


@typer_app.command(name="publish")
def publish_cli(
    canonical_id: Annotated[str, Argument(help="Canonical ID of the issue.")],
    title: Annotated[str, Option("--title", help="Issue title, without the canonical ID marker.")],
    body: Annotated[str | None, Option("--body", help="Issue body, without the canonical ID marker.")] = None,
    body_file: Annotated[Path | None, Option("--body-file", help="Read the issue body from a file.")] = None,
    label: Annotated[list[str] | None, Option("--label", help="Label to apply; may be repeated.")] = None,
    repo: RepoOption = None,
    github_api_url: GitHubApiUrlOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
) -> None:
    """Create or update the GitHub issue for a canonical ID."""
    if body is not None and body_file is not None:
        typer.echo("Use either --body or --body-file, not both.", err=True)
        raise typer.Exit(1)
    if body_file is not None:
        if not body_file.exists():
            typer.echo(f"Body file not found: {body_file.absolute()}", err=True)
            raise typer.Exit(1)
        body = body_file.read_text(encoding="utf-8")

    config = _load_config(repo, None, github_api_url, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id)

    async def run() -> dict:
        adapter = await create_adapter(config)
        result = await publish_canonical_issue(
            adapter,
            CanonicalIdResolver(adapter),
            adapter.owner,
            adapter.repo_name,
            canonical_id,
            title,
            body,
            labels=label,
        )
        return {
            "mode": result.mode,
            "canonicalId": result.canonical_id,
            "issueNumber": result.issue_number,
            "issueUrl": result.issue_url,
            "matchedBy": result.matched_by,
            "labelsApplied": result.labels_applied,
        }

    try:
        result = asyncio.run(run())
    except IssueMirrorError as e:
        typer.echo(json.dumps({"code": e.code, "message": str(e)}), err=True)
        raise typer.Exit(1) from e
    typer.echo(json.dumps(result, indent=2))


@typer_app.command(name="runs")
def runs_cli(
    limit: Annotated[int, Option("--limit", min=1, help="Number of runs to show.")] = 20,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Show recent sync runs and snapshot staleness."""
    ledger = SQLAlchemySyncRunLedger(_session_factory(database_url))
    staleness = ledger.get_sync_staleness()
    if staleness.last_synced_at is None:
        typer.echo("Snapshots: none synced yet")
    else:
        typer.echo(
            f"Snapshots: {staleness.total_snapshots} total, last synced {staleness.last_synced_at.isoformat()} "
            f"({staleness.hours_since_last_sync:.1f} hours ago)"
        )
    runs = ledger.list_recent_runs(limit)
    if not runs:
        typer.echo("No sync runs recorded")
        return
    for run in runs:
        line = f"{run.started_at.isoformat()}  {run.status.value:<7}  total={run.total_count} upserted={run.upserted_count}  {run.query}"
        if run.error:
            line += f"  error={run.error}"
        typer.echo(line)


if __name__ == "__main__":
    typer_app()
