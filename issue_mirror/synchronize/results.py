"""Contains results of sync runs."""

from dataclasses import asdict, dataclass
from typing import Any

from issue_mirror.synchronize.types import SyncRunStatus


@dataclass
class DiscoveryResult:
    """Counts produced by the bulk discovery pass."""

    total_found: int = 0
    upserted: int = 0
    skipped_linked: int = 0


@dataclass
class SyncRunResult:
    """Structured counts returned to callers of a sync run.

    ``attempted`` counts tracked issues processed, ``fetch_ok`` and
    ``fetch_failed`` split them by fetch outcome, and ``synced`` counts
    state writes actually applied.
    """

    run_id: str
    status: SyncRunStatus = SyncRunStatus.RUNNING
    attempted: int = 0
    fetch_ok: int = 0
    fetch_failed: int = 0
    synced: int = 0
    total_found: int = 0
    upserted: int = 0
    error: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
