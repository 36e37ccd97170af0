"""
MergeResolver — determines which rectangular blocks of a worksheet are
merged.

Strategies are tried in priority order; the first non-empty result wins:

  1. ModelMergeStrategy  — the workbook model's merge list
                           (openpyxl ``ws.merged_cells.ranges``)
  2. MergeTableStrategy  — a low-level merge table of 0-based, half-open
                           ``(row_lo, row_hi, col_lo, col_hi)`` tuples
                           (xlrd's ``Sheet.merged_cells`` shape)
  3. FlagScanStrategy    — infer rectangles from per-cell "is merged"
                           flags in the ``SheetGrid``

A strategy that has nothing to offer returns ``[]``; it never raises.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Set, Tuple

from dto.coordinate import MergedRange
from dto.sheet_grid import SheetGrid
from errors import AmbiguousMerge

logger = logging.getLogger(__name__)


class MergeStrategy(ABC):
    """One way of discovering merged ranges."""

    name: str = "strategy"

    @abstractmethod
    def resolve(self, grid: SheetGrid, handle: Any) -> List[MergedRange]:
        """Return merged ranges, or ``[]`` when this source has none."""
        ...


# ---------------------------------------------------------------------------
# 1. Workbook model
# ---------------------------------------------------------------------------


class ModelMergeStrategy(MergeStrategy):
    name = "model"

    def resolve(self, grid: SheetGrid, handle: Any) -> List[MergedRange]:
        merged_cells = getattr(handle, "merged_cells", None)
        ranges = getattr(merged_cells, "ranges", None)
        if not ranges:
            return []
        out: List[MergedRange] = []
        try:
            for mr in ranges:
                out.append(
                    MergedRange.from_bounds(mr.min_row, mr.min_col, mr.max_row, mr.max_col)
                )
        except (AttributeError, TypeError, ValueError):
            logger.warning("Unreadable merge model — ignoring", exc_info=True)
            return []
        return out


# ---------------------------------------------------------------------------
# 2. Low-level merge table
# ---------------------------------------------------------------------------


class MergeTableStrategy(MergeStrategy):
    name = "merge_table"

    def resolve(self, grid: SheetGrid, handle: Any) -> List[MergedRange]:
        table = getattr(handle, "merged_cells", None)
        if not isinstance(table, (list, tuple)) or not table:
            return []
        out: List[MergedRange] = []
        try:
            for rlo, rhi, clo, chi in table:
                if rhi <= rlo or chi <= clo:
                    continue
                out.append(MergedRange.from_bounds(rlo + 1, clo + 1, rhi, chi))
        except (TypeError, ValueError):
            logger.warning("Unreadable merge table — ignoring", exc_info=True)
            return []
        return out


# ---------------------------------------------------------------------------
# 3. Flag scan
# ---------------------------------------------------------------------------


class FlagScanStrategy(MergeStrategy):
    """
    Infer merged rectangles from the per-cell merged flag.

    For each flagged cell not already covered: walk up, then left, to the
    top-left corner; walk down, then right, to the bottom-right corner;
    then verify every cell in the rectangle is flagged.  A rectangle that
    fails verification is an ``AmbiguousMerge`` and the cell is treated as
    unmerged.
    """

    name = "flag_scan"

    def resolve(self, grid: SheetGrid, handle: Any) -> List[MergedRange]:
        out: List[MergedRange] = []
        seen: Set[Tuple[int, int, int, int]] = set()
        covered: Set[Tuple[int, int]] = set()

        for row, col in grid.merged_flagged():
            if (row, col) in covered:
                continue
            try:
                top, left, bottom, right = self._find_merge_master(grid, row, col)
            except AmbiguousMerge as exc:
                logger.warning("%s — treating as unmerged", exc)
                continue

            if top == bottom and left == right:
                # A lone flagged cell is not a merge
                continue

            key = (top, left, bottom, right)
            if key in seen:
                continue
            seen.add(key)
            covered.update(
                (r, c) for r in range(top, bottom + 1) for c in range(left, right + 1)
            )
            out.append(MergedRange.from_bounds(top, left, bottom, right))

        return out

    @staticmethod
    def _find_merge_master(grid: SheetGrid, row: int, col: int) -> Tuple[int, int, int, int]:
        top, left = row, col
        while top > 1 and grid.is_merged(top - 1, left):
            top -= 1
        while left > 1 and grid.is_merged(top, left - 1):
            left -= 1

        bottom, right = top, left
        while bottom + 1 <= grid.row_count and grid.is_merged(bottom + 1, left):
            bottom += 1
        while right + 1 <= grid.column_count and grid.is_merged(top, right + 1):
            right += 1

        for r in range(top, bottom + 1):
            for c in range(left, right + 1):
                if not grid.is_merged(r, c):
                    raise AmbiguousMerge(
                        row,
                        col,
                        f"Merged flag at ({row}, {col}) does not form a rectangle "
                        f"({top},{left})-({bottom},{right})",
                    )
        return top, left, bottom, right


# =====================================================================
# MergeResolver
# =====================================================================


class MergeResolver:
    """
    Runs the strategy chain and normalises the winning result.

    The returned ranges lie inside the grid's used extents, are
    deduplicated by bounding box, never overlap, and are sorted by
    (top, left).
    """

    # Evaluated in this order; the first non-empty result wins.
    _DEFAULT_STRATEGIES: List[MergeStrategy] = [
        ModelMergeStrategy(),
        MergeTableStrategy(),
        FlagScanStrategy(),
    ]

    def __init__(self, strategies: Optional[Iterable[MergeStrategy]] = None):
        self._strategies = list(strategies) if strategies is not None else list(
            self._DEFAULT_STRATEGIES
        )

    def resolve(self, grid: SheetGrid, handle: Any = None) -> List[MergedRange]:
        for strategy in self._strategies:
            ranges = strategy.resolve(grid, handle)
            if ranges:
                logger.info(
                    "  -> %d merged range(s) via %s strategy", len(ranges), strategy.name
                )
                return self._normalise(self._clip(ranges, grid))
        return []

    @staticmethod
    def _clip(ranges: List[MergedRange], grid: SheetGrid) -> List[MergedRange]:
        """
        Cut ranges to the used extents, the only cells the flag scan can see.
        A range left with a single cell, or none, is no longer a merge.
        """
        out: List[MergedRange] = []
        for mr in ranges:
            box = mr.bbox
            bottom = min(box.bottom, grid.row_count)
            right = min(box.right, grid.column_count)
            if box.top > bottom or box.left > right:
                continue
            if box.top == bottom and box.left == right:
                continue
            if (bottom, right) != (box.bottom, box.right):
                logger.debug("Clipping merged range %s to the used range", mr.range)
                mr = MergedRange.from_bounds(box.top, box.left, bottom, right)
            out.append(mr)
        return out

    @staticmethod
    def _normalise(ranges: List[MergedRange]) -> List[MergedRange]:
        accepted: List[MergedRange] = []
        seen: Set[Tuple[int, int, int, int]] = set()
        for mr in sorted(ranges, key=lambda m: (m.bbox.top, m.bbox.left)):
            box = mr.bbox
            key = (box.left, box.top, box.right, box.bottom)
            if key in seen:
                continue
            clash = next((a for a in accepted if a.bbox.intersects(box)), None)
            if clash is not None:
                logger.warning(
                    "Merged range %s overlaps %s — dropping it", mr.range, clash.range
                )
                continue
            seen.add(key)
            accepted.append(mr)
        return accepted
