"""
Text normalisation helpers shared by the classifier and fingerprint builder.
"""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")

# Region names, field labels and anchors are cut to this length.
MAX_SANITIZED_LENGTH = 80


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_title(text: str, limit: int = MAX_SANITIZED_LENGTH) -> str:
    """Collapse whitespace, trim, and truncate to *limit* characters."""
    return collapse_whitespace(text or "")[:limit]


def normalize_key(text: str) -> str:
    """Case-insensitive dedup key for a title or label."""
    return sanitize_title(text).lower()
