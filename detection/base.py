"""
Base class for the anchor detectors.

Each detector scans the full ``SheetGrid`` once and returns what it found
in row-major discovery order.  Detectors are independent of each other and
hold no state between calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List

from dto.sheet_grid import SheetGrid


class AnchorDetector(ABC):
    """Interface that every anchor detector must implement."""

    @abstractmethod
    def detect(self, grid: SheetGrid) -> List[Any]:
        """Scan *grid* and return the detected items (may be empty)."""
        ...
