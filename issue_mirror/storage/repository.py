"""SQLAlchemy implementations of the issue mirror store and sync run ledger.

Every write runs in its own transaction. SQLAlchemy errors roll back the
transaction and are re-raised as PersistenceError.
"""

import json
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from issue_mirror.exceptions import PersistenceError
from issue_mirror.status.models import MirrorStatus, StatusSource
from issue_mirror.storage.abc import IssueMirrorStore, SyncRunLedger
from issue_mirror.storage.base import utcnow
from issue_mirror.storage.models import IssueSnapshot, IssueSyncRun, TrackedIssue
from issue_mirror.synchronize.types import (
    IssueSnapshotRecord,
    IssueSyncState,
    SyncRunRecord,
    SyncRunStatus,
    SyncStaleness,
    TrackedIssueRef,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@contextmanager
def _transaction(session_factory: sessionmaker, operation: str) -> Iterator[Session]:
    db: Session = session_factory()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database operation failed", operation=operation, error_type=type(e).__name__)
        raise PersistenceError(f"{operation} failed: {type(e).__name__}") from e
    finally:
        db.close()


def _to_ref(row: TrackedIssue) -> TrackedIssueRef:
    return TrackedIssueRef(id=row.id, external_issue_number=row.external_issue_number, title=row.title)


def _to_run_record(row: IssueSyncRun) -> SyncRunRecord:
    return SyncRunRecord(
        run_id=row.id,
        query=row.query,
        status=SyncRunStatus(row.status),
        total_count=row.total_count,
        upserted_count=row.upserted_count,
        error=row.error,
        started_at=row.started_at,
        finished_at=row.finished_at,
    )


class SQLAlchemyIssueMirrorStore(IssueMirrorStore):
    """Issue mirror store backed by a relational database."""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow) -> None:
        self.session_factory = session_factory
        self.clock = clock

    def list_tracked_issues(self) -> list[TrackedIssueRef]:
        with _transaction(self.session_factory, "list_tracked_issues") as db:
            rows = db.scalars(select(TrackedIssue).order_by(TrackedIssue.id)).all()
            return [_to_ref(row) for row in rows]

    def list_linked_issues(self) -> list[TrackedIssueRef]:
        with _transaction(self.session_factory, "list_linked_issues") as db:
            rows = db.scalars(
                select(TrackedIssue)
                .where(TrackedIssue.external_issue_number.is_not(None))
                .order_by(TrackedIssue.external_issue_number, TrackedIssue.id)
            ).all()
            return [_to_ref(row) for row in rows]

    def link_issue(self, issue_id: str, external_issue_number: int | None, title: str | None = None) -> TrackedIssueRef:
        with _transaction(self.session_factory, "link_issue") as db:
            row = db.get(TrackedIssue, issue_id)
            if row is None:
                row = TrackedIssue(id=issue_id, title=title, external_issue_number=external_issue_number)
                db.add(row)
            else:
                row.external_issue_number = external_issue_number
                if title is not None:
                    row.title = title
            ref = TrackedIssueRef(id=issue_id, external_issue_number=external_issue_number, title=row.title)
        logger.info("Linked tracked issue", issue_id=issue_id, external_issue_number=external_issue_number)
        return ref

    def save_sync_state(self, state: IssueSyncState) -> None:
        with _transaction(self.session_factory, "save_sync_state") as db:
            row = db.get(TrackedIssue, state.issue_id)
            if row is None:
                row = TrackedIssue(id=state.issue_id)
                db.add(row)
            row.external_issue_number = state.external_issue_number
            row.mirror_status = state.mirror_status.value
            row.status_raw = state.status_raw
            row.status_raw_snapshot = state.status_raw_snapshot
            row.status_source = state.status_source.value if state.status_source is not None else None
            row.status_updated_at = state.status_updated_at
            row.last_sync_at = state.last_sync_at
            row.sync_error = json.dumps(state.sync_error) if state.sync_error is not None else None

    def get_sync_state(self, issue_id: str) -> IssueSyncState | None:
        with _transaction(self.session_factory, "get_sync_state") as db:
            row = db.get(TrackedIssue, issue_id)
            if row is None or row.last_sync_at is None:
                return None
            return IssueSyncState(
                issue_id=row.id,
                external_issue_number=row.external_issue_number,
                mirror_status=MirrorStatus(row.mirror_status),
                status_raw=row.status_raw,
                status_raw_snapshot=row.status_raw_snapshot,
                status_source=StatusSource(row.status_source) if row.status_source else None,
                status_updated_at=row.status_updated_at,
                last_sync_at=row.last_sync_at,
                sync_error=json.loads(row.sync_error) if row.sync_error else None,
            )

    def upsert_issue_snapshot(self, snapshot: IssueSnapshotRecord) -> None:
        with _transaction(self.session_factory, "upsert_issue_snapshot") as db:
            row = db.scalars(
                select(IssueSnapshot).where(
                    IssueSnapshot.repo_owner == snapshot.repo_owner,
                    IssueSnapshot.repo_name == snapshot.repo_name,
                    IssueSnapshot.issue_number == snapshot.issue_number,
                )
            ).first()
            if row is None:
                row = IssueSnapshot(
                    repo_owner=snapshot.repo_owner,
                    repo_name=snapshot.repo_name,
                    issue_number=snapshot.issue_number,
                )
                db.add(row)
            row.canonical_id = snapshot.canonical_id
            row.state = snapshot.state
            row.title = snapshot.title
            row.labels = json.dumps(snapshot.labels)
            row.assignees = json.dumps(snapshot.assignees)
            row.gh_updated_at = snapshot.updated_at
            row.gh_node_id = snapshot.node_id
            row.payload_json = json.dumps(snapshot.payload, default=str)
            row.synced_at = self.clock()

    def list_issue_snapshots(self) -> list[IssueSnapshotRecord]:
        """List discovered snapshots ordered by repository and issue number."""
        with _transaction(self.session_factory, "list_issue_snapshots") as db:
            rows = db.scalars(
                select(IssueSnapshot).order_by(IssueSnapshot.repo_owner, IssueSnapshot.repo_name, IssueSnapshot.issue_number)
            ).all()
            return [
                IssueSnapshotRecord(
                    repo_owner=row.repo_owner,
                    repo_name=row.repo_name,
                    issue_number=row.issue_number,
                    title=row.title,
                    state=row.state,
                    canonical_id=row.canonical_id,
                    labels=json.loads(row.labels),
                    assignees=json.loads(row.assignees),
                    updated_at=row.gh_updated_at,
                    node_id=row.gh_node_id,
                    payload=json.loads(row.payload_json),
                )
                for row in rows
            ]


class SQLAlchemySyncRunLedger(SyncRunLedger):
    """Sync run ledger backed by the issue_sync_runs table."""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow) -> None:
        self.session_factory = session_factory
        self.clock = clock

    def create_run(self, query: str) -> str:
        run_id = str(uuid.uuid4())
        with _transaction(self.session_factory, "create_run") as db:
            db.add(IssueSyncRun(id=run_id, query=query, status=SyncRunStatus.RUNNING, started_at=self.clock()))
        return run_id

    def update_run(
        self,
        run_id: str,
        status: SyncRunStatus,
        total_count: int,
        upserted_count: int,
        error: str | None = None,
    ) -> None:
        if status == SyncRunStatus.RUNNING:
            raise PersistenceError(f"Sync run {run_id} must be closed with SUCCESS or FAILED")
        with _transaction(self.session_factory, "update_run") as db:
            row = db.get(IssueSyncRun, run_id)
            if row is None:
                raise PersistenceError(f"Sync run {run_id} does not exist")
            if row.status != SyncRunStatus.RUNNING:
                raise PersistenceError(f"Sync run {run_id} was already closed with status {SyncRunStatus(row.status).value}")
            row.status = status
            row.total_count = total_count
            row.upserted_count = upserted_count
            row.error = error
            row.finished_at = self.clock()

    def get_run(self, run_id: str) -> SyncRunRecord | None:
        with _transaction(self.session_factory, "get_run") as db:
            row = db.get(IssueSyncRun, run_id)
            return _to_run_record(row) if row is not None else None

    def list_recent_runs(self, limit: int = 20) -> list[SyncRunRecord]:
        with _transaction(self.session_factory, "list_recent_runs") as db:
            rows = db.scalars(select(IssueSyncRun).order_by(IssueSyncRun.started_at.desc()).limit(limit)).all()
            return [_to_run_record(row) for row in rows]

    def get_sync_staleness(self) -> SyncStaleness:
        with _transaction(self.session_factory, "get_sync_staleness") as db:
            last_synced_at, total = db.execute(select(func.max(IssueSnapshot.synced_at), func.count(IssueSnapshot.id))).one()
        hours = None
        if last_synced_at is not None:
            hours = (self.clock() - last_synced_at).total_seconds() / 3600
        return SyncStaleness(last_synced_at=last_synced_at, hours_since_last_sync=hours, total_snapshots=total)
