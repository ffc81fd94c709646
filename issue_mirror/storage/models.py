"""Database models for tracked issues, discovered snapshots and sync runs."""

from sqlalchemy import Column, DateTime, Enum, Integer, String, Text, UniqueConstraint

from issue_mirror.status.models import MirrorStatus
from issue_mirror.storage.base import Base, utcnow
from issue_mirror.synchronize.types import SyncRunStatus


class TrackedIssue(Base):
    """Internal issue and the mirror fields derived from its GitHub issue."""

    __tablename__ = "tracked_issues"

    id = Column(String(64), primary_key=True)
    title = Column(String, nullable=True)
    external_issue_number = Column(Integer, nullable=True, index=True)

    # Mirror fields, written only by the sync orchestrator
    mirror_status = Column(String(32), nullable=False, default=MirrorStatus.UNKNOWN.value)
    status_raw = Column(Text, nullable=True)
    status_raw_snapshot = Column(String(256), nullable=True)
    status_source = Column(String(32), nullable=True)
    status_updated_at = Column(DateTime, nullable=True)
    last_sync_at = Column(DateTime, nullable=True)
    sync_error = Column(Text, nullable=True)  # JSON {code, message}

    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<TrackedIssue(id='{self.id}', external_issue_number={self.external_issue_number})>"


class IssueSnapshot(Base):
    """GitHub issue discovered by the bulk search pass."""

    __tablename__ = "issue_snapshots"
    __table_args__ = (UniqueConstraint("repo_owner", "repo_name", "issue_number", name="uq_issue_snapshots_repo_number"),)

    id = Column(Integer, primary_key=True, index=True)
    repo_owner = Column(String, nullable=False)
    repo_name = Column(String, nullable=False)
    issue_number = Column(Integer, nullable=False)

    canonical_id = Column(String, nullable=True, index=True)
    state = Column(String(16), nullable=False)
    title = Column(Text, nullable=False)
    labels = Column(Text, nullable=False, default="[]")  # JSON list
    assignees = Column(Text, nullable=False, default="[]")  # JSON list
    gh_updated_at = Column(String(32), nullable=True)
    gh_node_id = Column(String, nullable=True)
    payload_json = Column(Text, nullable=False, default="{}")

    synced_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<IssueSnapshot(repo='{self.repo_owner}/{self.repo_name}', issue_number={self.issue_number})>"


class IssueSyncRun(Base):
    """Append-only ledger row describing one sync run."""

    __tablename__ = "issue_sync_runs"

    id = Column(String(36), primary_key=True)
    query = Column(Text, nullable=False)
    status = Column(Enum(SyncRunStatus), nullable=False, default=SyncRunStatus.RUNNING)
    total_count = Column(Integer, nullable=False, default=0)
    upserted_count = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    started_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    finished_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<IssueSyncRun(id='{self.id}', status={self.status})>"
