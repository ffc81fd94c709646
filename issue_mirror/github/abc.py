"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any

from issue_mirror.schemas.issues import ExternalIssueSummary, RawExternalIssue, SearchIssuesPage


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients bound to a single repository."""

    owner: str
    repo_name: str

    # Issue reads
    @abstractmethod
    async def get_issue(self, issue_number: int) -> RawExternalIssue:
        """Get a single issue, including its project status when configured."""
        pass

    @abstractmethod
    async def get_project_status(self, issue_number: int) -> str | None:
        """Get the value of the project status field for an issue."""
        pass

    # Search
    @abstractmethod
    async def search_issues(
        self,
        query: str,
        per_page: int = 100,
        page: int = 1,
        sort: str = "updated",
        order: str = "desc",
    ) -> SearchIssuesPage:
        """Search issues across GitHub; pull requests are excluded."""
        pass

    @abstractmethod
    async def search_all_issues(self, query: str, per_page: int = 100, max_pages: int = 10) -> list[ExternalIssueSummary]:
        """Search issues across GitHub, following pagination."""
        pass

    # Issue writes
    @abstractmethod
    async def create_issue(
        self,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Create an issue in the repository."""
        pass

    @abstractmethod
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Update an issue in the repository."""
        pass
