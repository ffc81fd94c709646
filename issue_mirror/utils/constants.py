"""Shared constants used across the application."""

# This file is intended to hold shared constants.

import re

# Canonical ID Markers
# --------------------

TITLE_MARKER_PREFIX = "[CID:"
"""Prefix of the canonical ID marker placed at the start of an issue title."""

TITLE_MARKER_SUFFIX = "]"
"""Suffix closing the canonical ID title marker."""

BODY_MARKER_PREFIX = "Canonical-ID:"
"""Prefix of the single-line canonical ID marker placed in an issue body."""

TITLE_MARKER_PATTERN = re.compile(r"^\s*\[\s*CID\s*:(?P<value>[^\]]*)(?P<close>\])?")
"""Pattern matching a (possibly unterminated) title marker at the start of a title."""

TITLE_PREFIX_ID_PATTERN = re.compile(r"^\s*(?P<value>[A-Z]{1,3}\d+(?:\.\d+)*)\s*:\s")
"""Pattern matching legacy title prefixes such as 'I751: ' or 'E64.1: '."""

# Status Signals
# --------------

STATUS_LABEL_PATTERN = re.compile(r"^\s*status\s*:\s*(?P<value>.*?)\s*$", re.IGNORECASE)
"""Pattern matching the 'status: <value>' label convention."""

# Search Settings
# ---------------

MAX_SEARCH_QUERY_LENGTH = 256
"""GitHub rejects search queries longer than 256 characters."""

SEARCH_SCOPE_QUALIFIERS = ("repo:", "org:", "user:")
"""At least one of these qualifiers must scope a sync search query."""

SEARCH_RESULTS_PER_PAGE = 100
"""Maximum page size supported by the GitHub search API."""

MAX_SEARCH_PAGES = 10
"""GitHub only serves the first 1,000 search results (10 pages of 100)."""

# Snapshot Bounding Constants
# ---------------------------

DEFAULT_SNAPSHOT_MAX_BYTES = 256
"""Storage budget for the serialized status snapshot, in UTF-8 bytes."""

SNAPSHOT_REFERENCE_TIMESTAMP = "2000-01-01T00:00:00Z"
"""Timestamp in the format GitHub returns, used to size a snapshot without labels."""

# Error Sanitizing Constants
# --------------------------

MAX_SYNC_ERROR_MESSAGE_LENGTH = 500
"""Maximum length of a persisted sync error message."""

TRUNCATION_SUFFIX = "... [truncated - {remaining} characters removed]"
"""Suffix template appended to truncated content. Use .format(remaining=N) to fill in count."""

SECRET_PATTERNS = (
    re.compile(r"\b(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{20,}\b"),
    re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"),
    re.compile(r"(?i)\b(bearer|token)\s+[A-Za-z0-9._\-]{8,}"),
    re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.DOTALL),
)
"""Patterns of credential material that must never be persisted or logged."""

REDACTED = "[REDACTED]"
"""Replacement text for redacted credential material."""
