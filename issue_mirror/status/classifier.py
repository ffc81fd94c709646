"""Maps raw status signals to canonical mirror statuses."""

import re

import structlog

from issue_mirror.status.models import DerivedStatus, MirrorStatus, StatusSignal, StatusSource

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# Families are checked in this order; the first family with a matching phrase wins.
STATUS_FAMILIES: tuple[tuple[MirrorStatus, tuple[str, ...]], ...] = (
    (MirrorStatus.IN_PROGRESS, ("implementing", "in progress")),
    (MirrorStatus.MERGE_READY, ("review", "pr", "merge ready")),
    (MirrorStatus.DONE, ("done", "completed", "closed")),
    (MirrorStatus.HOLD, ("blocked", "hold", "waiting")),
    (MirrorStatus.OPEN, ("ready", "todo")),
)

_SEPARATORS = re.compile(r"[-_]")
_WHITESPACE = re.compile(r"\s+")


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)")


_FAMILY_PATTERNS: tuple[tuple[MirrorStatus, tuple[re.Pattern[str], ...]], ...] = tuple(
    (status, tuple(_phrase_pattern(phrase) for phrase in phrases)) for status, phrases in STATUS_FAMILIES
)


def normalize_status_text(raw: str) -> str:
    """Trim, case-fold, turn dashes and underscores into spaces and collapse whitespace."""
    text = _SEPARATORS.sub(" ", raw.strip().casefold())
    return _WHITESPACE.sub(" ", text).strip()


def classify(raw: str | None) -> MirrorStatus | None:
    """Classify a raw status string into a mirror status.

    Returns None for empty or unrecognized input. ``"Ready for review"``
    classifies as MERGE_READY because that family is checked before OPEN.
    """
    if raw is None:
        return None
    text = normalize_status_text(raw)
    if not text:
        return None
    for status, patterns in _FAMILY_PATTERNS:
        if any(pattern.search(text) for pattern in patterns):
            return status
    return None


def derive_mirror_status(signal: StatusSignal, issue_state: str | None) -> DerivedStatus:
    """Combine a status signal and the issue state into the persisted status.

    A closed issue whose only signal is its closed state carries no
    explicit completion signal, so it maps to UNKNOWN with no raw value or
    source. Unrecognized signals also map to UNKNOWN but keep their
    evidence for later inspection.
    """
    is_closed = issue_state is not None and issue_state.strip().lower() == "closed"
    if is_closed and signal.source is StatusSource.EXTERNAL_STATE:
        return DerivedStatus(mirror_status=MirrorStatus.UNKNOWN, status_raw=None, status_source=None)

    source = None if signal.source is StatusSource.NONE else signal.source
    status_raw = signal.evidence if signal.evidence is not None else signal.raw
    mirror_status = classify(signal.raw)
    if mirror_status is None:
        if signal.raw is not None:
            logger.debug("Unrecognized status signal", status_raw=status_raw, status_source=signal.source.value)
        return DerivedStatus(mirror_status=MirrorStatus.UNKNOWN, status_raw=status_raw, status_source=source)
    return DerivedStatus(mirror_status=mirror_status, status_raw=status_raw, status_source=source)
