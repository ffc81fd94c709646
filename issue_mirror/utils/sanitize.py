"""Turns arbitrary exceptions into error details that are safe to persist."""

from dataclasses import dataclass

from githubkit.exception import (
    PrimaryRateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
    SecondaryRateLimitExceeded,
)

from issue_mirror.exceptions import IssueMirrorError
from issue_mirror.utils.constants import MAX_SYNC_ERROR_MESSAGE_LENGTH, REDACTED, SECRET_PATTERNS
from issue_mirror.utils.truncation import truncate_string_at_end


@dataclass(frozen=True)
class SyncErrorInfo:
    """Sanitized error code and message."""

    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


def redact_secrets(text: str) -> str:
    """Replace credential material such as tokens and private keys."""
    for pattern in SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


def sanitize_message(text: str, max_length: int = MAX_SYNC_ERROR_MESSAGE_LENGTH) -> str:
    """Redact secrets from a message and bound its length."""
    message = " ".join(redact_secrets(text).split())
    message, _ = truncate_string_at_end(message, max_length)
    return message


def error_code_for(exc: BaseException) -> str:
    """Return a stable machine-readable code for an exception."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return "GITHUB_RATE_LIMITED"
    if isinstance(exc, RequestFailed):
        status_code = exc.response.status_code
        if status_code == 429:
            return "GITHUB_RATE_LIMITED"
        return f"GITHUB_HTTP_{status_code}"
    if isinstance(exc, RequestTimeout):
        return "GITHUB_TIMEOUT"
    if isinstance(exc, RequestError):
        return "GITHUB_NETWORK_ERROR"
    code = getattr(exc, "code", None)
    if isinstance(exc, IssueMirrorError) and isinstance(code, str):
        return code
    return "FETCH_FAILED"


def describe_exception(exc: BaseException) -> SyncErrorInfo:
    """Build a sanitized code and message for an exception.

    The message never carries credentials and is bounded so it can be
    written to the store or ledger as-is.
    """
    text = str(exc) or type(exc).__name__
    return SyncErrorInfo(code=error_code_for(exc), message=sanitize_message(text))
