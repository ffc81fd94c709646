"""Records exchanged between the sync orchestrator and the store."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from issue_mirror.status.models import MirrorStatus, StatusSource


class SyncRunStatus(str, Enum):
    """Lifecycle of a sync run ledger row."""

    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class TrackedIssueRef:
    """An internal issue, optionally linked to a GitHub issue number."""

    id: str
    external_issue_number: int | None = None
    title: str | None = None

    @property
    def is_linked(self) -> bool:
        return self.external_issue_number is not None


@dataclass
class IssueSyncState:
    """Mirror fields written for a tracked issue after each sync attempt."""

    issue_id: str
    external_issue_number: int
    mirror_status: MirrorStatus
    status_raw: str | None
    status_raw_snapshot: str | None
    status_source: StatusSource | None
    status_updated_at: datetime | None
    last_sync_at: datetime
    sync_error: dict[str, str] | None = None


@dataclass
class IssueSnapshotRecord:
    """A discovered GitHub issue, keyed by (repo_owner, repo_name, issue_number)."""

    repo_owner: str
    repo_name: str
    issue_number: int
    title: str
    state: str
    canonical_id: str | None = None
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    updated_at: str | None = None
    node_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncRunRecord:
    """A row of the sync run ledger."""

    run_id: str
    query: str
    status: SyncRunStatus
    total_count: int
    upserted_count: int
    error: str | None
    started_at: datetime
    finished_at: datetime | None


@dataclass(frozen=True)
class SyncStaleness:
    """How fresh the discovered issue snapshots are."""

    last_synced_at: datetime | None
    hours_since_last_sync: float | None
    total_snapshots: int
