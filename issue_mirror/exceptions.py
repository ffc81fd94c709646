"""Exceptions raised by the issue mirror reconciliation engine."""


class IssueMirrorError(Exception):
    """Base class for all issue mirror errors."""

    code = "ISSUE_MIRROR_ERROR"


class MirrorValidationError(IssueMirrorError):
    """Raised when input is rejected before any work starts."""

    code = "VALIDATION_ERROR"


class InvalidCanonicalIdError(MirrorValidationError):
    """Raised when a canonical ID is empty or whitespace-only."""

    code = "INVALID_CANONICAL_ID"


class InvalidSearchQueryError(MirrorValidationError):
    """Raised when a sync search query is malformed."""

    code = "INVALID_SEARCH_QUERY"


class InvalidSnapshotBudgetError(MirrorValidationError):
    """Raised when the status snapshot budget cannot hold a snapshot without labels."""

    code = "INVALID_SNAPSHOT_BUDGET"


class FetchError(IssueMirrorError):
    """Raised when fetching a single issue from GitHub fails.

    Only the sanitized code and message are kept, never the original
    exception text, so the error can be persisted safely.
    """

    def __init__(self, code: str, message: str) -> None:
        """Initialize the error with a sanitized code and message."""
        super().__init__(message)
        self.code = code
        self.message = message


class CanonicalIdResolverError(IssueMirrorError):
    """Raised when resolving a canonical ID against GitHub fails."""

    code = "CANONICAL_ID_RESOLVER_ERROR"


class PersistenceError(IssueMirrorError):
    """Raised when a write to the issue mirror store fails."""

    code = "PERSISTENCE_ERROR"
