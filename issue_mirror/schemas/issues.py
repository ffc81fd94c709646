"""Pydantic schemas for GitHub issues as seen by the issue mirror."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ExternalIssueRef(BaseModel):
    """Pydantic model pointing at a single GitHub issue."""

    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RawExternalIssue(BaseModel):
    """Pydantic model for a GitHub issue fetched for status mirroring.

    Timestamps are ISO 8601 strings in UTC. Labels form an ordered set.
    """

    number: int
    title: str
    body: str | None = None
    state: Literal["open", "closed"]
    updated_at: str
    closed_at: str | None = None
    labels: list[str] = Field(default_factory=list)
    project_status: str | None = None
    html_url: str | None = None
    node_id: str | None = None


class ExternalIssueSummary(BaseModel):
    """Pydantic model for an issue returned by the GitHub search API."""

    number: int
    title: str
    body: str | None = None
    state: str
    html_url: str | None = None
    repository_url: str | None = None
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    node_id: str | None = None
    updated_at: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class SearchIssuesPage(BaseModel):
    """One page of issue search results, pull requests excluded."""

    total_count: int
    items: list[ExternalIssueSummary] = Field(default_factory=list)
    # Items on the page before pull requests were removed.
    raw_item_count: int = 0
