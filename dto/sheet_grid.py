"""
SheetGrid: the read-only cell matrix every scan works from.

The WorkbookReader builds one per upload.  After construction nothing
mutates it, so detectors and merge inference can share it freely.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict

from dto.cell_data import CellData


class SheetGrid(BaseModel):
    """Normalised view of the used range of one worksheet."""

    model_config = ConfigDict(frozen=True)

    sheet_name: str

    # Actual used extents (last non-empty row / column), not sheet capacity.
    row_count: int
    column_count: int

    # Sparse (row, col) → CellData lookup.  Absent keys are empty cells.
    cells: Dict[Tuple[int, int], CellData] = {}

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0 or self.column_count == 0

    def cell_text(self, row: int, col: int) -> str:
        cd = self.cells.get((row, col))
        return cd.text if cd is not None else ""

    def is_merged(self, row: int, col: int) -> bool:
        cd = self.cells.get((row, col))
        return bool(cd and cd.merged)

    def iter_cells(self) -> Iterator[CellData]:
        """Yield every stored cell in row-major order."""
        for row in range(1, self.row_count + 1):
            for col in range(1, self.column_count + 1):
                cd = self.cells.get((row, col))
                if cd is not None:
                    yield cd

    def merged_flagged(self) -> List[Tuple[int, int]]:
        """Row-major list of (row, col) flagged as part of a merge."""
        return [(cd.row, cd.column) for cd in self.iter_cells() if cd.merged]
