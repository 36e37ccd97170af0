"""
A1-notation helpers.
"""

from __future__ import annotations

from openpyxl.utils import get_column_letter


def coord(col: int, row: int) -> str:
    """Return an A1-style coordinate from 1-based col/row indices."""
    return f"{get_column_letter(col)}{row}"


def a1_range(left: int, top: int, right: int, bottom: int) -> str:
    """Return an A1 range such as ``A1:D4``."""
    return f"{coord(left, top)}:{coord(right, bottom)}"
