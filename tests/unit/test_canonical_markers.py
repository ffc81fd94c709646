"""Unit tests for canonical ID marker parsing and generation."""

from types import SimpleNamespace

import pytest

from issue_mirror.canonical.markers import (
    IssueMatch,
    MalformedMarker,
    Marker,
    body_with_marker,
    check_issue_match,
    extract_canonical_id,
    normalize_canonical_id,
    parse_body_marker,
    parse_title_marker,
    title_with_marker,
)
from issue_mirror.exceptions import InvalidCanonicalIdError


@pytest.mark.parametrize("canonical_id", ["I751", "E64.1", "auth/login", "REQ 12"])
def test_generated_markers_parse_back(canonical_id: str) -> None:
    assert parse_title_marker(title_with_marker(canonical_id, "Login works")) == Marker(location="title", value=canonical_id)
    assert parse_body_marker(body_with_marker(canonical_id, "Details")) == Marker(location="body", value=canonical_id)


def test_title_with_marker_layout() -> None:
    assert title_with_marker("I751", "Login works") == "[CID:I751] Login works"
    assert body_with_marker("I751", "Details") == "Canonical-ID: I751\n\nDetails"


@pytest.mark.parametrize(
    "canonical_id",
    [
        pytest.param(" I751", id="leading-space"),
        pytest.param("I751 ", id="trailing-space"),
        pytest.param("I7]51", id="closing-bracket"),
        pytest.param("I751\nI752", id="newline"),
        pytest.param("", id="empty"),
    ],
)
def test_markers_reject_ids_that_cannot_parse_back(canonical_id: str) -> None:
    with pytest.raises(InvalidCanonicalIdError):
        title_with_marker(canonical_id, "Login works")
    with pytest.raises(InvalidCanonicalIdError):
        body_with_marker(canonical_id, "Details")


@pytest.mark.parametrize(
    "value,expected",
    [
        pytest.param("  I751  ", "I751", id="trimmed"),
        pytest.param("REQ 12", "REQ 12", id="inner-space"),
        pytest.param("auth/login", "auth/login", id="slash"),
    ],
)
def test_normalize_canonical_id(value: str, expected: str) -> None:
    assert normalize_canonical_id(value) == expected


@pytest.mark.parametrize("value", [None, 751, "   ", "I751]", "I751\r\nI752"])
def test_normalize_canonical_id_rejects(value: object) -> None:
    with pytest.raises(InvalidCanonicalIdError):
        normalize_canonical_id(value)


@pytest.mark.parametrize(
    "title,expected",
    [
        pytest.param("[CID:I751] Login works", Marker(location="title", value="I751"), id="plain"),
        pytest.param("  [ CID : I751 ] Login works", Marker(location="title", value="I751"), id="spaced"),
        pytest.param("Login works [CID:I751]", None, id="not-at-start"),
        pytest.param("Login works", None, id="absent"),
        pytest.param(None, None, id="none"),
        pytest.param("[CID:I751 Login works", MalformedMarker(location="title", reason="unterminated marker"), id="unterminated"),
        pytest.param("[CID:   ] Login works", MalformedMarker(location="title", reason="empty canonical id"), id="empty"),
    ],
)
def test_parse_title_marker(title: str | None, expected: object) -> None:
    assert parse_title_marker(title) == expected


@pytest.mark.parametrize(
    "body,expected",
    [
        pytest.param("Canonical-ID: I751\n\nDetails", Marker(location="body", value="I751"), id="first-line"),
        pytest.param("Intro\r\nCanonical-ID: I751\r\nMore", Marker(location="body", value="I751"), id="crlf"),
        pytest.param("Canonical-ID: I751\nCanonical-ID: I752", Marker(location="body", value="I751"), id="first-marker-wins"),
        pytest.param("  Canonical-ID:   E64.1   \n", Marker(location="body", value="E64.1"), id="surrounding-whitespace"),
        pytest.param("See Canonical-ID: I751 for details", None, id="not-line-start"),
        pytest.param("Canonical-ID:\nbody", MalformedMarker(location="body", reason="empty canonical id"), id="empty"),
        pytest.param("", None, id="blank"),
        pytest.param(None, None, id="none"),
    ],
)
def test_parse_body_marker(body: str | None, expected: object) -> None:
    assert parse_body_marker(body) == expected


@pytest.mark.parametrize(
    "title,body,expected",
    [
        pytest.param("[CID:T1] Title", "Canonical-ID: B1", "B1", id="body-wins"),
        pytest.param("[CID:T1] Title", "No marker", "T1", id="title-marker"),
        pytest.param("I751: Login works", None, "I751", id="legacy-prefix"),
        pytest.param("E64.1: Export CSV", "", "E64.1", id="legacy-dotted-prefix"),
        pytest.param("Fix: login bug", None, None, id="word-prefix-is-not-an-id"),
        pytest.param("I751:no-space", None, None, id="prefix-needs-space"),
        pytest.param("Plain title", "Plain body", None, id="absent"),
    ],
)
def test_extract_canonical_id(title: str, body: str | None, expected: str | None) -> None:
    assert extract_canonical_id(title, body) == expected


@pytest.mark.parametrize(
    "title,body,expected",
    [
        pytest.param("[CID:I751] Login", "Canonical-ID: I751", IssueMatch(matched=True, matched_by="body"), id="both-body-wins"),
        pytest.param("[CID:I751] Login", "Canonical-ID: I999", IssueMatch(matched=True, matched_by="title"), id="title-only"),
        pytest.param("Login", "Canonical-ID: I751", IssueMatch(matched=True, matched_by="body"), id="body-only"),
        pytest.param("[CID:I7510] Login", "Mentions I751 in passing", IssueMatch(matched=False), id="substring-is-not-a-match"),
        pytest.param("[CID:I751 Login", None, IssueMatch(matched=False), id="malformed"),
    ],
)
def test_check_issue_match(title: str, body: str | None, expected: IssueMatch) -> None:
    assert check_issue_match(SimpleNamespace(title=title, body=body), "I751") == expected
