"""Resolves a canonical ID to an existing GitHub issue.

Resolution keeps issue creation idempotent: before creating an issue for a
canonical ID, callers ask whether an issue carrying that ID's marker
already exists in the repository.
"""

from dataclasses import dataclass
from typing import Literal

import structlog

from issue_mirror.canonical.markers import MarkerLocation, check_issue_match, normalize_canonical_id
from issue_mirror.exceptions import CanonicalIdResolverError
from issue_mirror.github.abc import GitHubClientBase
from issue_mirror.schemas.issues import ExternalIssueSummary
from issue_mirror.utils.constants import SEARCH_RESULTS_PER_PAGE
from issue_mirror.utils.sanitize import sanitize_message

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CanonicalMatch:
    """Result of resolving a canonical ID."""

    mode: Literal["found", "not_found"]
    issue_number: int | None = None
    issue_url: str | None = None
    matched_by: MarkerLocation | None = None

    @property
    def found(self) -> bool:
        return self.mode == "found"


NOT_FOUND = CanonicalMatch(mode="not_found")


def build_canonical_id_query(owner: str, repo: str, canonical_id: str) -> str:
    """Build the repository-scoped issue search for a canonical ID."""
    return f'repo:{owner}/{repo} is:issue "{canonical_id}"'


def select_match(candidates: list[ExternalIssueSummary], canonical_id: str) -> CanonicalMatch:
    """Pick the issue a canonical ID resolves to among search candidates.

    Body matches win over title matches. Within each group the lowest
    issue number wins, so the outcome does not depend on search ordering.
    """
    body_matches: list[ExternalIssueSummary] = []
    title_matches: list[ExternalIssueSummary] = []
    for candidate in candidates:
        match = check_issue_match(candidate, canonical_id)
        if match.matched_by == "body":
            body_matches.append(candidate)
        elif match.matched_by == "title":
            title_matches.append(candidate)

    for matched_by, group in (("body", body_matches), ("title", title_matches)):
        if group:
            selected = min(group, key=lambda issue: issue.number)
            return CanonicalMatch(mode="found", issue_number=selected.number, issue_url=selected.html_url, matched_by=matched_by)  # type: ignore[arg-type]
    return NOT_FOUND


class CanonicalIdResolver:
    """Resolves canonical IDs through the GitHub issue search API."""

    def __init__(self, client: GitHubClientBase) -> None:
        self.client = client

    async def resolve(self, owner: str, repo: str, canonical_id: str) -> CanonicalMatch:
        """Resolve a canonical ID to the issue carrying its marker.

        Args:
            owner: Repository owner.
            repo: Repository name.
            canonical_id: Canonical ID to look for.

        Returns:
            A found match with the issue number, URL and matching marker,
            or a not_found match.

        Raises:
            InvalidCanonicalIdError: If canonical_id is blank or cannot be carried by a marker.
            CanonicalIdResolverError: If the GitHub search fails.
        """
        canonical_id = normalize_canonical_id(canonical_id)

        query = build_canonical_id_query(owner, repo, canonical_id)
        try:
            result = await self.client.search_issues(query, per_page=SEARCH_RESULTS_PER_PAGE, page=1)
        except Exception as exc:
            message = sanitize_message(f"Failed to search issues in {owner}/{repo}: {exc}")
            logger.error("Canonical ID search failed", owner=owner, repo=repo, canonical_id=canonical_id, error=message)
            raise CanonicalIdResolverError(message) from exc

        match = select_match(result.items, canonical_id)
        logger.debug(
            "Resolved canonical ID",
            owner=owner,
            repo=repo,
            canonical_id=canonical_id,
            mode=match.mode,
            issue_number=match.issue_number,
            matched_by=match.matched_by,
            candidates=len(result.items),
        )
        return match


async def resolve_canonical_id(client: GitHubClientBase, owner: str, repo: str, canonical_id: str) -> CanonicalMatch:
    """Resolve a canonical ID using a one-off resolver."""
    return await CanonicalIdResolver(client).resolve(owner, repo, canonical_id)
