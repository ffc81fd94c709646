"""Bulk discovery of GitHub issues matching a sync search query."""

import structlog

from issue_mirror.canonical.markers import extract_canonical_id
from issue_mirror.github.abc import GitHubClientBase
from issue_mirror.schemas.issues import ExternalIssueRef, ExternalIssueSummary
from issue_mirror.storage.abc import IssueMirrorStore
from issue_mirror.synchronize.results import DiscoveryResult
from issue_mirror.synchronize.types import IssueSnapshotRecord
from issue_mirror.utils.constants import MAX_SEARCH_PAGES, SEARCH_RESULTS_PER_PAGE
from issue_mirror.utils.github import repository_from_api_url

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def issue_ref_from_summary(item: ExternalIssueSummary, default_owner: str, default_repo: str) -> ExternalIssueRef:
    """Identify a search result item by repository and number.

    The repository comes from the item's repository_url, falling back to
    the default repository when the URL is missing or unparseable.
    """
    owner, repo = repository_from_api_url(item.repository_url) or (default_owner, default_repo)
    return ExternalIssueRef(owner=owner, repo=repo, number=item.number)


def snapshot_from_summary(item: ExternalIssueSummary, default_owner: str, default_repo: str) -> IssueSnapshotRecord:
    """Build a snapshot record from a search result item."""
    ref = issue_ref_from_summary(item, default_owner, default_repo)
    return IssueSnapshotRecord(
        repo_owner=ref.owner,
        repo_name=ref.repo,
        issue_number=ref.number,
        title=item.title,
        state=item.state,
        canonical_id=extract_canonical_id(item.title, item.body),
        labels=list(item.labels),
        assignees=list(item.assignees),
        updated_at=item.updated_at,
        node_id=item.node_id,
        payload=item.payload,
    )


async def discover_issue_snapshots(
    client: GitHubClientBase,
    store: IssueMirrorStore,
    query: str,
    default_owner: str,
    default_repo: str,
    linked_keys: set[tuple[str, str, int]] | frozenset[tuple[str, str, int]] = frozenset(),
    max_pages: int = MAX_SEARCH_PAGES,
) -> DiscoveryResult:
    """Search all pages of a query and upsert a snapshot per unlinked issue.

    Every page is fetched before anything is written, so a search failure
    leaves the store untouched. Issues whose (owner, repo, number) key is
    in linked_keys are skipped; the linked-issue pass owns them.
    """
    items = await client.search_all_issues(query, per_page=SEARCH_RESULTS_PER_PAGE, max_pages=max_pages)
    result = DiscoveryResult(total_found=len(items))

    seen: set[tuple[str, str, int]] = set()
    for item in items:
        snapshot = snapshot_from_summary(item, default_owner, default_repo)
        key = (snapshot.repo_owner, snapshot.repo_name, snapshot.issue_number)
        if key in linked_keys:
            result.skipped_linked += 1
            continue
        if key in seen:
            continue
        seen.add(key)
        store.upsert_issue_snapshot(snapshot)
        result.upserted += 1

    logger.info(
        "Discovered issue snapshots",
        query=query,
        total_found=result.total_found,
        upserted=result.upserted,
        skipped_linked=result.skipped_linked,
    )
    return result
