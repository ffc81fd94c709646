"""Parsing and generation of canonical ID markers in issue titles and bodies.

Two markers make an issue resolvable by canonical ID:

- a title prefix, ``[CID:<canonical id>] <title>``
- a single body line, ``Canonical-ID: <canonical id>``

Parsing returns a tagged result so callers can tell an absent marker from a
malformed one.
"""

from dataclasses import dataclass
from typing import Literal, Protocol

from issue_mirror.exceptions import InvalidCanonicalIdError
from issue_mirror.utils.constants import (
    BODY_MARKER_PREFIX,
    TITLE_MARKER_PATTERN,
    TITLE_MARKER_PREFIX,
    TITLE_MARKER_SUFFIX,
    TITLE_PREFIX_ID_PATTERN,
)

MarkerLocation = Literal["title", "body"]


@dataclass(frozen=True)
class Marker:
    """A well-formed canonical ID marker."""

    location: MarkerLocation
    value: str


@dataclass(frozen=True)
class MalformedMarker:
    """A marker that is present but unusable, such as an empty or unterminated one."""

    location: MarkerLocation
    reason: str


MarkerResult = Marker | MalformedMarker | None


class IssueText(Protocol):
    """Anything exposing an issue title and body."""

    @property
    def title(self) -> str | None: ...

    @property
    def body(self) -> str | None: ...


@dataclass(frozen=True)
class IssueMatch:
    """Outcome of checking a single issue against a canonical ID."""

    matched: bool
    matched_by: MarkerLocation | None = None


def parse_title_marker(title: str | None) -> MarkerResult:
    """Parse the ``[CID:<id>]`` marker at the start of an issue title."""
    if not title:
        return None
    match = TITLE_MARKER_PATTERN.match(title)
    if match is None:
        return None
    if match.group("close") is None:
        return MalformedMarker(location="title", reason="unterminated marker")
    value = match.group("value").strip()
    if not value:
        return MalformedMarker(location="title", reason="empty canonical id")
    return Marker(location="title", value=value)


def parse_body_marker(body: str | None) -> MarkerResult:
    """Parse the first ``Canonical-ID: <id>`` line of an issue body.

    Both ``\\n`` and ``\\r\\n`` line endings are accepted. Only the first line
    carrying the prefix is considered.
    """
    if not body:
        return None
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped.startswith(BODY_MARKER_PREFIX):
            continue
        value = stripped[len(BODY_MARKER_PREFIX) :].strip()
        if not value:
            return MalformedMarker(location="body", reason="empty canonical id")
        return Marker(location="body", value=value)
    return None


def extract_canonical_id_from_title(title: str | None) -> str | None:
    marker = parse_title_marker(title)
    return marker.value if isinstance(marker, Marker) else None


def extract_canonical_id_from_body(body: str | None) -> str | None:
    marker = parse_body_marker(body)
    return marker.value if isinstance(marker, Marker) else None


def extract_canonical_id(title: str | None, body: str | None) -> str | None:
    """Best-effort canonical ID for an issue found by discovery.

    Checks the body marker, then the title marker, then a leading ID prefix
    in the title such as ``I751:`` or ``E64.1:``.
    """
    canonical_id = extract_canonical_id_from_body(body) or extract_canonical_id_from_title(title)
    if canonical_id:
        return canonical_id
    if not title:
        return None
    match = TITLE_PREFIX_ID_PATTERN.match(title)
    return match.group("value") if match else None


def check_issue_match(issue: IssueText, canonical_id: str) -> IssueMatch:
    """Check whether an issue carries a marker equal to canonical_id.

    The body marker is checked first, so it wins when both markers match.
    """
    if extract_canonical_id_from_body(issue.body) == canonical_id:
        return IssueMatch(matched=True, matched_by="body")
    if extract_canonical_id_from_title(issue.title) == canonical_id:
        return IssueMatch(matched=True, matched_by="title")
    return IssueMatch(matched=False)


def normalize_canonical_id(canonical_id: object) -> str:
    """Trim a canonical ID and check that both markers can carry it.

    Raises:
        InvalidCanonicalIdError: If the ID is not a string, is blank, or holds
            a closing bracket or line break, which the markers cannot parse back.
    """
    if not isinstance(canonical_id, str) or not canonical_id.strip():
        raise InvalidCanonicalIdError("canonical_id must be a non-empty string")
    canonical_id = canonical_id.strip()
    if TITLE_MARKER_SUFFIX in canonical_id:
        raise InvalidCanonicalIdError(f"canonical_id must not contain {TITLE_MARKER_SUFFIX!r}")
    if len(canonical_id.splitlines()) > 1:
        raise InvalidCanonicalIdError("canonical_id must be a single line")
    return canonical_id


def _require_markable(canonical_id: str) -> None:
    if normalize_canonical_id(canonical_id) != canonical_id:
        raise InvalidCanonicalIdError("canonical_id must not have surrounding whitespace")


def title_with_marker(canonical_id: str, title: str) -> str:
    """Prefix a title with the canonical ID marker.

    Raises:
        InvalidCanonicalIdError: If the ID would not parse back from the marker.
    """
    _require_markable(canonical_id)
    return f"{TITLE_MARKER_PREFIX}{canonical_id}{TITLE_MARKER_SUFFIX} {title}"


def body_with_marker(canonical_id: str, body: str) -> str:
    """Prepend the canonical ID marker line to a body."""
    _require_markable(canonical_id)
    return f"{BODY_MARKER_PREFIX} {canonical_id}\n\n{body}"
