"""Idempotent publishing of issues identified by a canonical ID."""

from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from issue_mirror.canonical.markers import (
    MarkerLocation,
    body_with_marker,
    extract_canonical_id_from_body,
    extract_canonical_id_from_title,
    normalize_canonical_id,
    title_with_marker,
)
from issue_mirror.canonical.resolver import CanonicalIdResolver
from issue_mirror.github.abc import GitHubClientBase
from issue_mirror.utils.labels import label_names

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class PublishResult:
    """Outcome of publishing an issue for a canonical ID."""

    mode: Literal["created", "updated"]
    canonical_id: str
    issue_number: int
    issue_url: str | None = None
    matched_by: MarkerLocation | None = None
    labels_applied: list[str] = field(default_factory=list)


def render_marked_issue(canonical_id: str, title: str, body: str | None) -> tuple[str, str]:
    """Return title and body carrying both canonical ID markers.

    Text that already carries the marker for canonical_id is left as-is.
    """
    marked_title = title if extract_canonical_id_from_title(title) == canonical_id else title_with_marker(canonical_id, title)
    body = body or ""
    marked_body = body if extract_canonical_id_from_body(body) == canonical_id else body_with_marker(canonical_id, body)
    return marked_title, marked_body


def _issue_url(issue: Any) -> str | None:
    url = getattr(issue, "html_url", None)
    return url if isinstance(url, str) else None


async def publish_canonical_issue(
    client: GitHubClientBase,
    resolver: CanonicalIdResolver,
    owner: str,
    repo: str,
    canonical_id: str,
    title: str,
    body: str | None = None,
    labels: list[str] | None = None,
) -> PublishResult:
    """Ensure exactly one GitHub issue exists for a canonical ID.

    The canonical ID is resolved first. When an issue already carries its
    marker, that issue's title, body and labels are updated; otherwise a new
    issue is created with both markers so later runs resolve to it.

    Raises:
        InvalidCanonicalIdError: If canonical_id is blank or cannot be carried by a marker.
        CanonicalIdResolverError: If the canonical ID cannot be resolved.
    """
    canonical_id = normalize_canonical_id(canonical_id)
    marked_title, marked_body = render_marked_issue(canonical_id, title, body)
    applied_labels = label_names(labels)

    match = await resolver.resolve(owner, repo, canonical_id)
    if match.found and match.issue_number is not None:
        logger.info(
            "Updating existing issue for canonical ID",
            canonical_id=canonical_id,
            issue_number=match.issue_number,
            matched_by=match.matched_by,
        )
        issue = await client.update_issue(
            match.issue_number,
            title=marked_title,
            body=marked_body,
            labels=applied_labels if labels is not None else None,
        )
        return PublishResult(
            mode="updated",
            canonical_id=canonical_id,
            issue_number=match.issue_number,
            issue_url=_issue_url(issue) or match.issue_url,
            matched_by=match.matched_by,
            labels_applied=applied_labels,
        )

    logger.info("Creating issue for canonical ID", canonical_id=canonical_id, owner=owner, repo=repo)
    issue = await client.create_issue(title=marked_title, body=marked_body, labels=applied_labels or None)
    return PublishResult(
        mode="created",
        canonical_id=canonical_id,
        issue_number=issue.number,
        issue_url=_issue_url(issue),
        labels_applied=applied_labels,
    )
