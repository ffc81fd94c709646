"""Runs a sync pass that mirrors GitHub issue status into the internal store.

A run goes through these steps:

1. validate the search query (nothing is written for an invalid query),
2. open a RUNNING ledger row,
3. sync every linked tracked issue, sequentially and in a stable order,
4. discover unlinked issues matching the query and upsert their snapshots,
5. close the ledger row exactly once.

A fetch failure is isolated to its issue, which is recorded as ERROR. A
persistence failure closes the run as FAILED and is re-raised, so reported
counts always match the writes actually applied.
"""

import time
from datetime import datetime
from typing import Callable, Iterable, Sequence

import structlog

from issue_mirror.exceptions import FetchError, InvalidSearchQueryError, InvalidSnapshotBudgetError, PersistenceError
from issue_mirror.github.abc import GitHubClientBase
from issue_mirror.schemas.issues import RawExternalIssue
from issue_mirror.status.classifier import derive_mirror_status
from issue_mirror.status.extractor import extract_status
from issue_mirror.status.models import MirrorStatus
from issue_mirror.storage.abc import IssueMirrorStore, SyncRunLedger
from issue_mirror.storage.base import utcnow
from issue_mirror.synchronize.discovery import discover_issue_snapshots
from issue_mirror.synchronize.results import SyncRunResult
from issue_mirror.synchronize.types import IssueSyncState, SyncRunStatus, TrackedIssueRef
from issue_mirror.utils.constants import DEFAULT_SNAPSHOT_MAX_BYTES, MAX_SEARCH_QUERY_LENGTH, SEARCH_SCOPE_QUALIFIERS
from issue_mirror.utils.github import parse_iso_timestamp
from issue_mirror.utils.sanitize import describe_exception
from issue_mirror.utils.truncation import bound_status_snapshot, minimum_snapshot_bytes

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def validate_search_query(query: str | None) -> str:
    """Validate a sync search query and return it trimmed.

    Raises:
        InvalidSearchQueryError: If the query is blank, too long, spans
            several lines or is not scoped to a repository, organization or user.
    """
    if query is None or not query.strip():
        raise InvalidSearchQueryError("Search query must be a non-empty string")
    query = query.strip()
    if len(query) > MAX_SEARCH_QUERY_LENGTH:
        raise InvalidSearchQueryError(f"Search query must be at most {MAX_SEARCH_QUERY_LENGTH} characters")
    if "\n" in query or "\r" in query:
        raise InvalidSearchQueryError("Search query must be a single line")
    if not any(qualifier in query for qualifier in SEARCH_SCOPE_QUALIFIERS):
        raise InvalidSearchQueryError(f"Search query must be scoped with one of: {', '.join(SEARCH_SCOPE_QUALIFIERS)}")
    return query


def validate_snapshot_budget(max_bytes: int) -> int:
    """Check that a status snapshot without labels fits the byte budget.

    Raises:
        InvalidSnapshotBudgetError: If even the largest snapshot without labels exceeds the budget.
    """
    required = minimum_snapshot_bytes()
    if max_bytes < required:
        raise InvalidSnapshotBudgetError(f"Snapshot budget must be at least {required} bytes, got {max_bytes}")
    return max_bytes


def order_tracked_issues(issues: Iterable[TrackedIssueRef]) -> list[TrackedIssueRef]:
    """Keep linked issues only, ordered by (external issue number, internal ID)."""
    linked = [issue for issue in issues if issue.is_linked]
    return sorted(linked, key=lambda issue: (issue.external_issue_number, issue.id))


class SyncOrchestrator:
    """Mirrors the status of linked GitHub issues and discovers unlinked ones."""

    def __init__(
        self,
        client: GitHubClientBase,
        store: IssueMirrorStore,
        ledger: SyncRunLedger,
        owner: str,
        repo: str,
        snapshot_max_bytes: int = DEFAULT_SNAPSHOT_MAX_BYTES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.client = client
        self.store = store
        self.ledger = ledger
        self.owner = owner
        self.repo = repo
        self.snapshot_max_bytes = validate_snapshot_budget(snapshot_max_bytes)
        self.clock = clock

    async def run_sync(self, search_query: str, tracked_issues: Sequence[TrackedIssueRef] | None = None) -> SyncRunResult:
        """Run one sync pass.

        Args:
            search_query: GitHub issue search query for the discovery pass.
            tracked_issues: Tracked issues to sync. Loaded from the store when None.

        Returns:
            Counts for the run. Its status is FAILED when discovery failed,
            SUCCESS otherwise.

        Raises:
            InvalidSearchQueryError: If the query is rejected. No ledger row is written.
            PersistenceError: If a write fails. The run is closed as FAILED first.
        """
        query = validate_search_query(search_query)
        start_time = time.time()
        run_id = self.ledger.create_run(query)
        result = SyncRunResult(run_id=run_id)
        logger.info("Starting sync run", run_id=run_id, query=query, owner=self.owner, repo=self.repo)

        try:
            if tracked_issues is None:
                tracked_issues = self.store.list_linked_issues()
            ordered = order_tracked_issues(tracked_issues)
            for tracked_issue in ordered:
                issue_number = tracked_issue.external_issue_number
                if issue_number is None:
                    continue
                await self._sync_issue(tracked_issue, issue_number, result)
        except Exception as exc:
            self._close_failed(result, exc)
            raise

        linked_keys = {(self.owner, self.repo, issue.external_issue_number) for issue in ordered}
        try:
            discovery = await discover_issue_snapshots(
                self.client,
                self.store,
                query,
                default_owner=self.owner,
                default_repo=self.repo,
                linked_keys=linked_keys,
            )
        except PersistenceError as exc:
            self._close_failed(result, exc)
            raise
        except Exception as exc:
            logger.error("Issue discovery failed", run_id=run_id, error_type=type(exc).__name__)
            self._close_failed(result, exc)
            return result

        result.total_found = discovery.total_found
        result.upserted = discovery.upserted
        result.status = SyncRunStatus.SUCCESS
        self.ledger.update_run(run_id, SyncRunStatus.SUCCESS, total_count=result.total_found, upserted_count=result.upserted)
        logger.info("Finished sync run", **result.to_dict(), duration=round(time.time() - start_time, 3))
        return result

    def _close_failed(self, result: SyncRunResult, exc: BaseException) -> None:
        error = describe_exception(exc)
        result.status = SyncRunStatus.FAILED
        result.error = error.as_dict()
        result.upserted = 0
        self.ledger.update_run(
            result.run_id,
            SyncRunStatus.FAILED,
            total_count=result.total_found,
            upserted_count=0,
            error=error.message,
        )
        logger.warning("Sync run failed", run_id=result.run_id, error_code=error.code)

    async def _fetch_issue(self, issue_number: int) -> RawExternalIssue:
        """Fetch one issue, reducing any failure to a sanitized FetchError."""
        try:
            return await self.client.get_issue(issue_number)
        except Exception as exc:
            error = describe_exception(exc)
            raise FetchError(error.code, error.message) from exc

    async def _sync_issue(self, tracked_issue: TrackedIssueRef, issue_number: int, result: SyncRunResult) -> None:
        try:
            raw_issue = await self._fetch_issue(issue_number)
        except FetchError as exc:
            logger.warning(
                "Failed to fetch issue from GitHub",
                issue_id=tracked_issue.id,
                issue_number=issue_number,
                error_code=exc.code,
            )
            self.store.save_sync_state(
                IssueSyncState(
                    issue_id=tracked_issue.id,
                    external_issue_number=issue_number,
                    mirror_status=MirrorStatus.ERROR,
                    status_raw=None,
                    status_raw_snapshot=None,
                    status_source=None,
                    status_updated_at=None,
                    last_sync_at=self.clock(),
                    sync_error={"code": exc.code, "message": exc.message},
                )
            )
            result.attempted += 1
            result.fetch_failed += 1
            result.synced += 1
            return

        signal = extract_status(raw_issue.project_status, raw_issue.labels, raw_issue.state)
        derived = derive_mirror_status(signal, raw_issue.state)
        snapshot = bound_status_snapshot(
            raw_issue.state,
            raw_issue.labels,
            raw_issue.updated_at,
            closed_at=raw_issue.closed_at,
            max_bytes=self.snapshot_max_bytes,
        )
        self.store.save_sync_state(
            IssueSyncState(
                issue_id=tracked_issue.id,
                external_issue_number=issue_number,
                mirror_status=derived.mirror_status,
                status_raw=derived.status_raw,
                status_raw_snapshot=snapshot,
                status_source=derived.status_source,
                status_updated_at=parse_iso_timestamp(raw_issue.updated_at),
                last_sync_at=self.clock(),
                sync_error=None,
            )
        )
        result.attempted += 1
        result.fetch_ok += 1
        result.synced += 1
        logger.debug(
            "Synced issue status",
            issue_id=tracked_issue.id,
            issue_number=issue_number,
            mirror_status=derived.mirror_status.value,
            status_source=derived.status_source.value if derived.status_source else None,
        )


async def run_sync(
    client: GitHubClientBase,
    store: IssueMirrorStore,
    ledger: SyncRunLedger,
    owner: str,
    repo: str,
    search_query: str,
    tracked_issues: Sequence[TrackedIssueRef] | None = None,
    snapshot_max_bytes: int = DEFAULT_SNAPSHOT_MAX_BYTES,
) -> SyncRunResult:
    """Run one sync pass with a one-off orchestrator."""
    orchestrator = SyncOrchestrator(client, store, ledger, owner, repo, snapshot_max_bytes=snapshot_max_bytes)
    return await orchestrator.run_sync(search_query, tracked_issues=tracked_issues)
