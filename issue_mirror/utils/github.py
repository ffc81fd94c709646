"""Contains utility functions for GitHub interactions."""

from datetime import datetime, timezone


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the repository in the configuration into owner and repository."""
    if repo is None:
        raise ValueError("A repository in the form 'owner/repo' is required.")
    repo = repo.strip().strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def repository_from_api_url(url: str | None) -> tuple[str, str] | None:
    """Extract (owner, repo) from a repository API URL.

    Example:
        https://api.github.com/repos/octo/widgets -> ("octo", "widgets")
    """
    if not url:
        return None
    parts = url.rstrip("/").split("/")
    if "repos" not in parts:
        return None
    idx = parts.index("repos")
    if len(parts) < idx + 3 or not parts[idx + 1] or not parts[idx + 2]:
        return None
    return parts[idx + 1], parts[idx + 2]


def parse_iso_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into a tz-naive UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_iso_timestamp(value: datetime | str | None) -> str | None:
    """Render a GitHub timestamp as ISO 8601 UTC with a trailing 'Z'."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
