"""
PII redaction applied to every text cell before it reaches the scorer.
"""

from __future__ import annotations

import re
from typing import Any


EMAIL_PLACEHOLDER = "[EMAIL]"
PHONE_PLACEHOLDER = "[PHONE]"

_EMAIL_RE = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE)

# 555-123-4567, 555.123.4567, 5551234567, (555) 123-4567, +1 555 123 4567
_PHONE_RE = re.compile(
    r"(?<![\w+])(?:\+\d{1,3}[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}\b"
)


def redact(text: Any) -> str:
    """Mask email- and phone-like substrings; non-string input yields ''."""
    if not isinstance(text, str) or not text:
        return ""
    redacted = _EMAIL_RE.sub(EMAIL_PLACEHOLDER, text)
    return _PHONE_RE.sub(PHONE_PLACEHOLDER, redacted)
