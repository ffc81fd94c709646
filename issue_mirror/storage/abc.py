"""Base ABCs for the issue mirror store and the sync run ledger."""

from abc import ABC, abstractmethod

from issue_mirror.synchronize.types import (
    IssueSnapshotRecord,
    IssueSyncState,
    SyncRunRecord,
    SyncRunStatus,
    SyncStaleness,
    TrackedIssueRef,
)


class IssueMirrorStore(ABC):
    """Persistence for tracked issues, their mirror fields and discovered snapshots."""

    @abstractmethod
    def list_tracked_issues(self) -> list[TrackedIssueRef]:
        """List all tracked issues, linked or not."""
        pass

    @abstractmethod
    def list_linked_issues(self) -> list[TrackedIssueRef]:
        """List tracked issues that carry a GitHub issue number."""
        pass

    @abstractmethod
    def link_issue(self, issue_id: str, external_issue_number: int | None, title: str | None = None) -> TrackedIssueRef:
        """Create or update a tracked issue and its link to a GitHub issue."""
        pass

    @abstractmethod
    def save_sync_state(self, state: IssueSyncState) -> None:
        """Write the mirror fields of one tracked issue in its own transaction."""
        pass

    @abstractmethod
    def get_sync_state(self, issue_id: str) -> IssueSyncState | None:
        """Read back the mirror fields of a tracked issue, if it was ever synced."""
        pass

    @abstractmethod
    def upsert_issue_snapshot(self, snapshot: IssueSnapshotRecord) -> None:
        """Insert or replace a discovered issue snapshot."""
        pass


class SyncRunLedger(ABC):
    """Append-only record of sync runs."""

    @abstractmethod
    def create_run(self, query: str) -> str:
        """Record a new RUNNING run and return its ID."""
        pass

    @abstractmethod
    def update_run(
        self,
        run_id: str,
        status: SyncRunStatus,
        total_count: int,
        upserted_count: int,
        error: str | None = None,
    ) -> None:
        """Close a run. Each run may be closed exactly once."""
        pass

    @abstractmethod
    def get_run(self, run_id: str) -> SyncRunRecord | None:
        """Get a single run."""
        pass

    @abstractmethod
    def list_recent_runs(self, limit: int = 20) -> list[SyncRunRecord]:
        """List the most recent runs, newest first."""
        pass

    @abstractmethod
    def get_sync_staleness(self) -> SyncStaleness:
        """Describe how long ago discovered snapshots were last refreshed."""
        pass
