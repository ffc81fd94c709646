"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_SNAPSHOT_MAX_BYTES,
    MAX_SEARCH_QUERY_LENGTH,
    SEARCH_RESULTS_PER_PAGE,
)
from .retry import retry_on_rate_limit
from .truncation import bound_status_snapshot, truncate_string_at_end

__all__ = [
    "DEFAULT_SNAPSHOT_MAX_BYTES",
    "MAX_SEARCH_QUERY_LENGTH",
    "SEARCH_RESULTS_PER_PAGE",
    "bound_status_snapshot",
    "retry_on_rate_limit",
    "truncate_string_at_end",
]
