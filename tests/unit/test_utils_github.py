"""Unit tests for the GitHub utility functions."""

from datetime import datetime, timedelta, timezone

import pytest

from issue_mirror.utils.github import (
    parse_iso_timestamp,
    repository_from_api_url,
    split_repository_in_configuration,
    to_iso_timestamp,
)
from issue_mirror.utils.labels import label_names


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo,expected",
    [
        pytest.param("octo/widgets", ("octo", "widgets"), id="plain"),
        pytest.param("/octo/widgets/", ("octo", "widgets"), id="surrounding-slashes"),
        pytest.param(" octo/widgets ", ("octo", "widgets"), id="surrounding-whitespace"),
    ],
)
async def test_split_repository_in_configuration(repo: str, expected: tuple[str, str]) -> None:
    assert await split_repository_in_configuration(repo) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("repo", [None, "octo", "octo/widgets/extra", "octo//widgets"])
async def test_split_repository_in_configuration_rejects_invalid(repo: str | None) -> None:
    with pytest.raises(ValueError):
        await split_repository_in_configuration(repo)


@pytest.mark.parametrize(
    "url,expected",
    [
        pytest.param("https://api.github.com/repos/octo/widgets", ("octo", "widgets"), id="github-com"),
        pytest.param("https://ghe.example.com/api/v3/repos/team/tool/", ("team", "tool"), id="enterprise"),
        pytest.param("https://api.github.com/users/octo", None, id="not-a-repo"),
        pytest.param("https://api.github.com/repos/octo", None, id="missing-name"),
        pytest.param(None, None, id="none"),
        pytest.param("", None, id="empty"),
    ],
)
def test_repository_from_api_url(url: str | None, expected: tuple[str, str] | None) -> None:
    assert repository_from_api_url(url) == expected


def test_to_iso_timestamp() -> None:
    assert to_iso_timestamp(datetime(2026, 1, 4, 1, 2, 3, tzinfo=timezone.utc)) == "2026-01-04T01:02:03Z"
    assert to_iso_timestamp(datetime(2026, 1, 4, 3, 2, 3, tzinfo=timezone(timedelta(hours=2)))) == "2026-01-04T01:02:03Z"
    assert to_iso_timestamp(datetime(2026, 1, 4, 1, 2, 3)) == "2026-01-04T01:02:03Z"
    assert to_iso_timestamp("2026-01-04T01:02:03Z") == "2026-01-04T01:02:03Z"
    assert to_iso_timestamp(None) is None


def test_parse_iso_timestamp() -> None:
    assert parse_iso_timestamp("2026-01-04T01:02:03Z") == datetime(2026, 1, 4, 1, 2, 3)
    assert parse_iso_timestamp("2026-01-04T03:02:03+02:00") == datetime(2026, 1, 4, 1, 2, 3)
    assert parse_iso_timestamp(None) is None


def test_label_names_keeps_first_occurrence_order() -> None:
    class Named:
        def __init__(self, name: str) -> None:
            self.name = name

    labels = ["bug", {"name": "status: done"}, Named("bug"), {"color": "fff"}, Named("team: core"), ""]
    assert label_names(labels) == ["bug", "status: done", "team: core"]
    assert label_names(None) == []
