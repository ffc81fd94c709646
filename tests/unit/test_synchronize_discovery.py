"""Unit tests for the bulk issue discovery pass."""

from typing import Any

import pytest

from issue_mirror.schemas.issues import ExternalIssueSummary
from issue_mirror.storage.repository import SQLAlchemyIssueMirrorStore
from issue_mirror.synchronize.discovery import discover_issue_snapshots, issue_ref_from_summary, snapshot_from_summary


def summary(number: int, title: str = "Issue", body: str | None = None, repository_url: str | None = None) -> ExternalIssueSummary:
    return ExternalIssueSummary(
        number=number,
        title=title,
        body=body,
        state="open",
        repository_url=repository_url,
        labels=["bug"],
        assignees=["hubot"],
        updated_at="2026-01-03T00:00:00Z",
        payload={"number": number},
    )


def test_snapshot_from_summary_uses_repository_url() -> None:
    snapshot = snapshot_from_summary(summary(4, repository_url="https://api.github.com/repos/acme/gadgets"), "octo", "widgets")
    assert (snapshot.repo_owner, snapshot.repo_name, snapshot.issue_number) == ("acme", "gadgets", 4)


def test_snapshot_from_summary_falls_back_to_default_repository() -> None:
    snapshot = snapshot_from_summary(summary(4, repository_url="not a url"), "octo", "widgets")
    assert (snapshot.repo_owner, snapshot.repo_name) == ("octo", "widgets")


def test_issue_ref_from_summary() -> None:
    ref = issue_ref_from_summary(summary(4, repository_url="https://api.github.com/repos/acme/gadgets"), "octo", "widgets")
    assert ref.full_name == "acme/gadgets"
    assert ref.number == 4


@pytest.mark.parametrize(
    "title,body,expected",
    [
        pytest.param("I751: Login works", None, "I751", id="legacy-prefix"),
        pytest.param("[CID:E64.1] Export", None, "E64.1", id="title-marker"),
        pytest.param("Export", "Canonical-ID: E64.1", "E64.1", id="body-marker"),
        pytest.param("Export", None, None, id="none"),
    ],
)
def test_snapshot_from_summary_extracts_canonical_id(title: str, body: str | None, expected: str | None) -> None:
    assert snapshot_from_summary(summary(1, title, body), "octo", "widgets").canonical_id == expected


@pytest.mark.asyncio
async def test_discovery_skips_linked_issues_and_duplicates(fake_github_client: Any, store: SQLAlchemyIssueMirrorStore) -> None:
    client = fake_github_client(search_results=[summary(1), summary(2), summary(2), summary(3)])

    result = await discover_issue_snapshots(
        client,
        store,
        "repo:octo/widgets is:issue",
        default_owner="octo",
        default_repo="widgets",
        linked_keys={("octo", "widgets", 2)},
    )

    assert (result.total_found, result.upserted, result.skipped_linked) == (4, 2, 2)
    assert [snapshot.issue_number for snapshot in store.list_issue_snapshots()] == [1, 3]


@pytest.mark.asyncio
async def test_discovery_only_skips_linked_key_in_same_repository(fake_github_client: Any, store: SQLAlchemyIssueMirrorStore) -> None:
    client = fake_github_client(search_results=[summary(2, repository_url="https://api.github.com/repos/acme/gadgets")])

    result = await discover_issue_snapshots(client, store, "org:acme", "octo", "widgets", linked_keys={("octo", "widgets", 2)})

    assert result.upserted == 1
    assert store.list_issue_snapshots()[0].repo_owner == "acme"


@pytest.mark.asyncio
async def test_discovery_failure_writes_nothing(fake_github_client: Any, store: SQLAlchemyIssueMirrorStore) -> None:
    client = fake_github_client(search_results=RuntimeError("search unavailable"))

    with pytest.raises(RuntimeError):
        await discover_issue_snapshots(client, store, "repo:octo/widgets", "octo", "widgets")

    assert store.list_issue_snapshots() == []
