"""
Case-insensitive column lookup for uploaded CSV rows.
"""

from __future__ import annotations

from typing import Any, Mapping


DEFAULT_TEXT_COLUMN = "post"


def normalize_row(row: Mapping[Any, Any]) -> dict[str, Any]:
    """Lowercase every key; values are left untouched."""
    return {str(key).strip().lower(): value for key, value in row.items()}


def select_text(row: Mapping[Any, Any], column: str = DEFAULT_TEXT_COLUMN) -> str:
    """Return the text cell for ``column`` or '' when it is missing or not a string."""
    wanted = (column or DEFAULT_TEXT_COLUMN).strip().lower()
    value = normalize_row(row).get(wanted, "")
    return value if isinstance(value, str) else ""
