"""GitHub client adapter for the githubkit library."""

from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import Issue, IssueSearchResultItem

from issue_mirror.configuration.models import GitHubAuthenticationType
from issue_mirror.schemas.issues import ExternalIssueSummary, RawExternalIssue, SearchIssuesPage
from issue_mirror.utils.constants import MAX_SEARCH_PAGES, SEARCH_RESULTS_PER_PAGE
from issue_mirror.utils.github import split_repository_in_configuration, to_iso_timestamp
from issue_mirror.utils.labels import label_names
from issue_mirror.utils.retry import retry_on_rate_limit

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

PROJECT_STATUS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!, $field: String!) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) {
      projectItems(first: 10) {
        nodes {
          fieldValueByName(name: $field) {
            ... on ProjectV2ItemFieldSingleSelectValue {
              name
            }
          }
        }
      }
    }
  }
}
"""


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code != 422:
                raise
            try:
                error_data = exc.response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("message", "Unprocessable Entity")
            errors = error_data.get("errors", [])
            logger.error(
                "GitHub 422 Unprocessable Entity",
                function=func.__name__,
                message=message,
                errors=errors,
                status_code=422,
            )
            raise ValueError(f"GitHub 422 error in {func.__name__}: {message} | errors: {errors}") from exc

    return wrapper  # type: ignore


def _field(obj: Any, name: str) -> Any:
    """Read a field from a githubkit model or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _optional_str(value: Any) -> str | None:
    # githubkit marks absent fields with a falsy UNSET sentinel rather than None.
    return value if isinstance(value, str) else None


def _user_logins(users: Any) -> list[str]:
    if not isinstance(users, list):
        return []
    logins: list[str] = []
    for user in users:
        login = _optional_str(_field(user, "login"))
        if login and login not in logins:
            logins.append(login)
    return logins


def _search_item_payload(item: Any) -> dict[str, Any]:
    if isinstance(item, dict):
        return dict(item)
    if hasattr(item, "model_dump"):
        return item.model_dump(mode="json", exclude_unset=True)
    return {}


def search_item_to_summary(item: IssueSearchResultItem | dict[str, Any] | Any) -> ExternalIssueSummary:
    """Convert an issue search result item into an ExternalIssueSummary."""
    return ExternalIssueSummary(
        number=_field(item, "number"),
        title=_field(item, "title") or "",
        body=_optional_str(_field(item, "body")),
        state=_field(item, "state") or "open",
        html_url=_optional_str(_field(item, "html_url")),
        repository_url=_optional_str(_field(item, "repository_url")),
        labels=label_names(_field(item, "labels")),
        assignees=_user_logins(_field(item, "assignees")),
        node_id=_optional_str(_field(item, "node_id")),
        updated_at=to_iso_timestamp(_field(item, "updated_at")),
        payload=_search_item_payload(item),
    )


def is_pull_request(item: Any) -> bool:
    """Return True when a search result item is a pull request."""
    return bool(_field(item, "pull_request"))


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str, project_status_field: str | None = None) -> None:
        """Initialize the GitHub client adapter with an already-initialized client.

        Project status lookups are only performed when project_status_field
        names the single-select field to read.
        """
        self.client = client
        self.owner = owner
        self.repo_name = repo_name
        self.project_status_field = project_status_field

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
        project_status_field: str | None = None,
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)
            project_status_field: Name of the Projects status field to read, if any

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name, project_status_field=project_status_field)

    # Issue reads
    @retry_on_rate_limit()
    async def _get_issue_model(self, issue_number: int) -> Issue:
        response: Response[Issue] = await self.client.rest.issues.async_get(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
        )
        return response.parsed_data

    async def get_issue(self, issue_number: int) -> RawExternalIssue:
        """Get a single issue, including its project status when configured."""
        issue = await self._get_issue_model(issue_number)
        project_status = await self.get_project_status(issue_number) if self.project_status_field else None
        return RawExternalIssue(
            number=issue.number,
            title=issue.title,
            body=_optional_str(issue.body),
            state="closed" if issue.state == "closed" else "open",
            updated_at=to_iso_timestamp(issue.updated_at) or "",
            closed_at=to_iso_timestamp(issue.closed_at),
            labels=label_names(issue.labels),
            project_status=project_status,
            html_url=_optional_str(issue.html_url),
            node_id=_optional_str(issue.node_id),
        )

    @retry_on_rate_limit()
    async def get_project_status(self, issue_number: int) -> str | None:
        """Get the project status field value for an issue via GraphQL.

        An issue may belong to several projects. A single distinct value is
        returned as-is; conflicting values yield None so the caller falls
        back to labels.
        """
        if not self.project_status_field:
            return None
        data = await self.client.async_graphql(
            PROJECT_STATUS_QUERY,
            variables={
                "owner": self.owner,
                "repo": self.repo_name,
                "number": issue_number,
                "field": self.project_status_field,
            },
        )
        issue = ((data or {}).get("repository") or {}).get("issue") or {}
        nodes = (issue.get("projectItems") or {}).get("nodes") or []
        values: list[str] = []
        for node in nodes:
            value = ((node or {}).get("fieldValueByName") or {}).get("name")
            if isinstance(value, str) and value.strip() and value.strip() not in values:
                values.append(value.strip())
        if len(values) > 1:
            logger.warning(
                "Conflicting project status values for issue",
                issue_number=issue_number,
                field=self.project_status_field,
                values=values,
            )
            return None
        return values[0] if values else None

    # Search
    @retry_on_rate_limit()
    async def search_issues(
        self,
        query: str,
        per_page: int = SEARCH_RESULTS_PER_PAGE,
        page: int = 1,
        sort: str = "updated",
        order: str = "desc",
    ) -> SearchIssuesPage:
        """Search issues across GitHub; pull requests are excluded."""
        response = await self.client.rest.search.async_issues_and_pull_requests(
            q=query,
            sort=sort,  # type: ignore
            order=order,  # type: ignore
            per_page=per_page,
            page=page,
        )
        result = response.parsed_data
        raw_items = list(result.items)
        items = [search_item_to_summary(item) for item in raw_items if not is_pull_request(item)]
        return SearchIssuesPage(total_count=result.total_count, items=items, raw_item_count=len(raw_items))

    async def search_all_issues(
        self,
        query: str,
        per_page: int = SEARCH_RESULTS_PER_PAGE,
        max_pages: int = MAX_SEARCH_PAGES,
    ) -> list[ExternalIssueSummary]:
        """Search issues across GitHub, following pagination up to max_pages."""
        all_items: list[ExternalIssueSummary] = []
        page = 1
        while True:
            result = await self.search_issues(query, per_page=per_page, page=page)
            all_items.extend(result.items)
            if result.raw_item_count < per_page or page * per_page >= result.total_count:
                break
            if page >= max_pages:
                logger.warning(
                    "Reached page limit for search",
                    query=query,
                    pages_fetched=page,
                    results_count=len(all_items),
                    total_count=result.total_count,
                )
                break
            page += 1
        return all_items

    # Issue writes
    @handle_github_422
    @retry_on_rate_limit()
    async def create_issue(
        self,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        **kwargs: Any,
    ) -> Issue:
        """Create an issue in the repository."""
        params = self._omit_null_parameters(title=title, body=body, labels=labels, **kwargs)
        response: Response[Issue] = await self.client.rest.issues.async_create(
            owner=self.owner,
            repo=self.repo_name,
            **params,
        )
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        **kwargs: Any,
    ) -> Issue:
        """Update an issue in the repository."""
        params = self._omit_null_parameters(title=title, body=body, labels=labels, **kwargs)
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            **params,
        )
        return response.parsed_data
