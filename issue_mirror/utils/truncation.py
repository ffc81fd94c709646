"""Utilities for keeping persisted text within storage limits."""

from __future__ import annotations

import json
from typing import Any, Iterable

import structlog

from issue_mirror.utils.constants import DEFAULT_SNAPSHOT_MAX_BYTES, SNAPSHOT_REFERENCE_TIMESTAMP, TRUNCATION_SUFFIX
from issue_mirror.utils.labels import LabelType, label_names

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def truncate_string_at_end(
    content: str,
    max_length: int,
    truncation_suffix: str = TRUNCATION_SUFFIX,
) -> tuple[str, bool]:
    """Cut a string down to max_length characters, marking the cut with a suffix.

    Args:
        content: The string to potentially truncate.
        max_length: Maximum allowed length of the result, suffix included.
        truncation_suffix: Template for the truncation indicator with a {remaining} placeholder.

    Returns:
        Tuple of (content, was_truncated).
    """
    if not content or len(content) <= max_length:
        return content, False

    suffix = truncation_suffix.format(remaining=len(content) - max_length)
    keep = max_length - len(suffix)
    if keep <= 0:
        # The suffix alone does not fit, so cut without it.
        return content[:max_length], True
    return content[:keep] + suffix, True


def _serialize_snapshot(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _utf8_size(text: str) -> int:
    return len(text.encode("utf-8"))


def minimum_snapshot_bytes() -> int:
    """Size of the largest snapshot without labels, a closed issue with both timestamps."""
    payload = {
        "state": "closed",
        "labels": [],
        "updatedAt": SNAPSHOT_REFERENCE_TIMESTAMP,
        "closedAt": SNAPSHOT_REFERENCE_TIMESTAMP,
    }
    return _utf8_size(_serialize_snapshot(payload))


def bound_status_snapshot(
    state: str,
    labels: Iterable[LabelType] | None,
    updated_at: str,
    closed_at: str | None = None,
    max_bytes: int = DEFAULT_SNAPSHOT_MAX_BYTES,
) -> str:
    """Serialize the raw status snapshot of an issue within a UTF-8 byte budget.

    The snapshot is compact JSON holding the issue state, its labels, the
    update timestamp and, for closed issues, the close timestamp. Labels are
    de-duplicated and sorted, then the last (lexicographically largest)
    label is dropped until the snapshot fits. The same label set therefore
    always keeps the same subset regardless of input order.

    Args:
        state: Issue state, ``open`` or ``closed``.
        labels: Issue labels as strings, dicts, or objects with a name.
        updated_at: ISO 8601 update timestamp.
        closed_at: ISO 8601 close timestamp, if the issue is closed.
        max_bytes: Budget for the serialized snapshot, in UTF-8 bytes.

    Returns:
        The serialized snapshot.

    Raises:
        ValueError: If the snapshot does not fit even without any labels.
    """
    retained = sorted(label_names(labels))
    payload: dict[str, Any] = {"state": state, "labels": retained, "updatedAt": updated_at}
    if closed_at is not None:
        payload["closedAt"] = closed_at

    serialized = _serialize_snapshot(payload)
    original_count = len(retained)
    while _utf8_size(serialized) > max_bytes and retained:
        retained.pop()
        serialized = _serialize_snapshot(payload)

    if _utf8_size(serialized) > max_bytes:
        raise ValueError(f"Status snapshot without labels needs {_utf8_size(serialized)} bytes, exceeding the budget of {max_bytes} bytes")

    if len(retained) < original_count:
        logger.debug(
            "Trimmed labels from status snapshot",
            labels_removed=original_count - len(retained),
            labels_kept=len(retained),
            max_bytes=max_bytes,
        )
    return serialized
