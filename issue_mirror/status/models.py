"""Models describing mirror status signals."""

from dataclasses import dataclass
from enum import Enum


class MirrorStatus(str, Enum):
    """Canonical mirror status of a tracked issue."""

    UNKNOWN = "UNKNOWN"
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    MERGE_READY = "MERGE_READY"
    DONE = "DONE"
    HOLD = "HOLD"
    CLOSED = "CLOSED"
    ERROR = "ERROR"


class StatusSource(str, Enum):
    """Where a raw status signal was taken from."""

    EXTERNAL_PROJECT = "external_project"
    EXTERNAL_LABEL = "external_label"
    EXTERNAL_STATE = "external_state"
    NONE = "none"


@dataclass(frozen=True)
class StatusSignal:
    """A raw status signal and its source.

    ``raw`` is the value fed to the classifier. ``evidence`` is the signal
    text as found on the issue (the whole label name for label signals).
    """

    raw: str | None
    source: StatusSource
    evidence: str | None = None


NO_SIGNAL = StatusSignal(raw=None, source=StatusSource.NONE)


@dataclass(frozen=True)
class DerivedStatus:
    """Mirror status after the composition rule has been applied."""

    mirror_status: MirrorStatus
    status_raw: str | None
    status_source: StatusSource | None
