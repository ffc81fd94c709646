"""Fixtures for unit tests."""

from datetime import datetime, timedelta
from typing import Any, Callable, Generator

import pytest
import structlog
from sqlalchemy.orm import sessionmaker

from issue_mirror.github.abc import GitHubClientBase
from issue_mirror.schemas.issues import ExternalIssueSummary, RawExternalIssue, SearchIssuesPage
from issue_mirror.storage.base import create_db_engine, create_session_factory, init_db
from issue_mirror.storage.repository import SQLAlchemyIssueMirrorStore, SQLAlchemySyncRunLedger


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 4, 12, 0, 0)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + timedelta(seconds=1)
        return now


class FakeGitHubClient(GitHubClientBase):
    """In-memory GitHub client recording every call it receives.

    ``issues`` maps issue numbers to RawExternalIssue objects or to the
    exception raised when that issue is fetched. ``search_results`` is the
    list returned by searches, or an exception to raise.
    """

    def __init__(
        self,
        issues: dict[int, RawExternalIssue | Exception] | None = None,
        search_results: list[ExternalIssueSummary] | Exception | None = None,
        owner: str = "octo",
        repo_name: str = "widgets",
    ) -> None:
        self.owner = owner
        self.repo_name = repo_name
        self.issues = issues or {}
        self.search_results = search_results if search_results is not None else []
        self.fetched: list[int] = []
        self.searches: list[dict[str, Any]] = []
        self.created: list[dict[str, Any]] = []
        self.updated: list[dict[str, Any]] = []

    async def get_issue(self, issue_number: int) -> RawExternalIssue:
        self.fetched.append(issue_number)
        issue = self.issues[issue_number]
        if isinstance(issue, Exception):
            raise issue
        return issue

    async def get_project_status(self, issue_number: int) -> str | None:
        return None

    async def search_issues(self, query: str, per_page: int = 100, page: int = 1, sort: str = "updated", order: str = "desc") -> SearchIssuesPage:
        self.searches.append({"query": query, "per_page": per_page, "page": page, "sort": sort, "order": order})
        if isinstance(self.search_results, Exception):
            raise self.search_results
        return SearchIssuesPage(total_count=len(self.search_results), items=list(self.search_results), raw_item_count=len(self.search_results))

    async def search_all_issues(self, query: str, per_page: int = 100, max_pages: int = 10) -> list[ExternalIssueSummary]:
        page = await self.search_issues(query, per_page=per_page)
        return page.items

    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Any:
        number = 100 + len(self.created)
        self.created.append({"title": title, "body": body, "labels": labels})
        return RawExternalIssue(number=number, title=title, body=body, state="open", updated_at="2026-01-04T00:00:00Z", html_url=f"https://github.com/{self.owner}/{self.repo_name}/issues/{number}")

    async def update_issue(self, issue_number: int, title: str | None = None, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Any:
        self.updated.append({"issue_number": issue_number, "title": title, "body": body, "labels": labels})
        return RawExternalIssue(
            number=issue_number,
            title=title or "",
            body=body,
            state="open",
            updated_at="2026-01-04T00:00:00Z",
            html_url=f"https://github.com/{self.owner}/{self.repo_name}/issues/{issue_number}",
        )


@pytest.fixture
def fake_github_client() -> type[FakeGitHubClient]:
    """Return the fake GitHub client class for tests to instantiate."""
    return FakeGitHubClient


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def clock_factory() -> type[StepClock]:
    """Return the step clock class for tests needing several independent clocks."""
    return StepClock


@pytest.fixture
def session_factory() -> sessionmaker:
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: sessionmaker, clock: Callable[[], datetime]) -> SQLAlchemyIssueMirrorStore:
    return SQLAlchemyIssueMirrorStore(session_factory, clock=clock)


@pytest.fixture
def ledger(session_factory: sessionmaker, clock: Callable[[], datetime]) -> SQLAlchemySyncRunLedger:
    return SQLAlchemySyncRunLedger(session_factory, clock=clock)
