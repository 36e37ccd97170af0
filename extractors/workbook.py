"""
WorkbookReader — loads the worksheet of interest from an uploaded workbook.

Responsibilities:
  1. Open the byte stream with the right library (openpyxl for OOXML,
     xlrd for legacy BIFF ``.xls``), wrapping any failure in
     ``InvalidWorkbook``.
  2. Pick the first worksheet that is not hidden (fallback: the first one).
  3. Find the actual used extents (last non-empty row / column).
  4. Normalise every cell to plain text plus bold / merged flags and
     freeze the result into a ``SheetGrid``.

The workbook handle is scoped: ``WorkbookReader.open`` is a context
manager that closes it on every exit path.
"""

from __future__ import annotations

import datetime
import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Set, Tuple, Union

import openpyxl
import xlrd
from openpyxl.cell.cell import MergedCell
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula
from openpyxl.worksheet.worksheet import Worksheet

from detection.constants import MAX_SCAN_COLUMNS, MAX_SCAN_ROWS
from dto.cell_data import CellData
from dto.sheet_grid import SheetGrid
from errors import InvalidWorkbook
from utils.coords import coord

logger = logging.getLogger(__name__)

WorkbookSource = Union[bytes, bytearray, str, Path, BinaryIO]

_XLSX_SIGNATURE = b"PK\x03\x04"
_XLS_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

_HIDDEN_STATES = frozenset({"hidden", "veryHidden"})


# ---------------------------------------------------------------------------
# Value normalisation
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _format_datetime(value: datetime.datetime) -> str:
    if value.time() == datetime.time(0, 0) and value.tzinfo is None:
        return value.date().isoformat()
    return value.isoformat()


def cell_text(value: Any) -> str:
    """
    Normalise an openpyxl cell value to plain text.

      - None                      → ""
      - bool                      → "true" / "false"
      - int / float               → natural string form ("150", "1.5")
      - datetime / date / time    → ISO-8601
      - rich text                 → concatenated runs
      - formula without a cached result → ""
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, datetime.datetime):
        return _format_datetime(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, CellRichText):
        return "".join(
            part.text if isinstance(part, TextBlock) else str(part) for part in value
        )
    if isinstance(value, (ArrayFormula, DataTableFormula)):
        return ""
    return str(value)


def _xls_cell_text(cell: xlrd.sheet.Cell, datemode: int) -> str:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return ""
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return "true" if cell.value else "false"
    if ctype == xlrd.XL_CELL_NUMBER:
        return _format_number(float(cell.value))
    if ctype == xlrd.XL_CELL_DATE:
        try:
            return _format_datetime(xlrd.xldate.xldate_as_datetime(cell.value, datemode))
        except (xlrd.xldate.XLDateError, ValueError, OverflowError):
            return _format_number(float(cell.value))
    return str(cell.value)


# ---------------------------------------------------------------------------
# LoadedSheet
# ---------------------------------------------------------------------------


class LoadedSheet:
    """
    The selected worksheet of an open workbook.

    ``grid`` is the normalised, immutable cell matrix.  ``handle`` is the
    library's own sheet object (openpyxl ``Worksheet`` or xlrd ``Sheet``),
    kept only so the merge strategies can read its merge metadata.
    """

    def __init__(self, grid: SheetGrid, handle: Any, source_format: str):
        self.grid = grid
        self.handle = handle
        self.source_format = source_format

    @property
    def sheet_name(self) -> str:
        return self.grid.sheet_name

    @property
    def row_count(self) -> int:
        return self.grid.row_count

    @property
    def column_count(self) -> int:
        return self.grid.column_count

    def cell_text(self, row: int, col: int) -> str:
        return self.grid.cell_text(row, col)


# =====================================================================
# WorkbookReader
# =====================================================================


class WorkbookReader:
    """
    Opens an uploaded workbook and exposes its first visible worksheet.

    Usage::

        reader = WorkbookReader()
        with reader.open(upload_bytes) as sheet:
            print(sheet.row_count, sheet.cell_text(1, 1))
    """

    def __init__(
        self,
        max_scan_rows: int = MAX_SCAN_ROWS,
        max_scan_columns: int = MAX_SCAN_COLUMNS,
    ):
        self._max_rows = max_scan_rows
        self._max_cols = max_scan_columns

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @contextmanager
    def open(self, source: WorkbookSource) -> Iterator[LoadedSheet]:
        data = self._read_bytes(source)
        if data.startswith(_XLS_SIGNATURE):
            with self._open_xls(data) as sheet:
                yield sheet
        elif data.startswith(_XLSX_SIGNATURE):
            with self._open_xlsx(data) as sheet:
                yield sheet
        else:
            raise InvalidWorkbook("Unrecognised workbook format (expected .xlsx or .xls)")

    def read(self, source: WorkbookSource) -> SheetGrid:
        """Load the worksheet and return only its grid."""
        with self.open(source) as sheet:
            return sheet.grid

    # ------------------------------------------------------------------
    # Source handling
    # ------------------------------------------------------------------

    @staticmethod
    def _read_bytes(source: WorkbookSource) -> bytes:
        try:
            if isinstance(source, (bytes, bytearray)):
                return bytes(source)
            if isinstance(source, (str, Path)):
                return Path(source).read_bytes()
            return source.read()
        except OSError as exc:
            raise InvalidWorkbook(f"Cannot read workbook: {exc}") from exc

    def _clamp(self, max_row: int, max_col: int, sheet_name: str) -> Tuple[int, int]:
        if max_row > self._max_rows or max_col > self._max_cols:
            logger.warning(
                "Sheet '%s' spans %d×%d cells — scanning only the first %d×%d",
                sheet_name,
                max_row,
                max_col,
                self._max_rows,
                self._max_cols,
            )
        return min(max_row, self._max_rows), min(max_col, self._max_cols)

    # ------------------------------------------------------------------
    # OOXML (.xlsx / .xlsm) via openpyxl
    # ------------------------------------------------------------------

    @contextmanager
    def _open_xlsx(self, data: bytes) -> Iterator[LoadedSheet]:
        try:
            # data_only exposes Excel's cached formula results instead of
            # formula strings; uncached formulas come back as None.
            workbook = openpyxl.load_workbook(
                io.BytesIO(data),
                data_only=True,
                read_only=False,
                rich_text=True,
            )
        except Exception as exc:
            raise InvalidWorkbook(f"Cannot open workbook: {exc}") from exc

        try:
            ws = self._pick_xlsx_sheet(workbook)
            grid = self._read_xlsx_grid(ws)
            logger.info(
                "Loaded sheet '%s' (%d rows × %d columns)",
                grid.sheet_name,
                grid.row_count,
                grid.column_count,
            )
            yield LoadedSheet(grid=grid, handle=ws, source_format="xlsx")
        finally:
            workbook.close()

    @staticmethod
    def _pick_xlsx_sheet(workbook: Workbook) -> Worksheet:
        worksheets = workbook.worksheets
        if not worksheets:
            raise InvalidWorkbook("Workbook contains no worksheets")
        for ws in worksheets:
            if ws.sheet_state not in _HIDDEN_STATES:
                return ws
        logger.warning("All worksheets are hidden — using '%s'", worksheets[0].title)
        return worksheets[0]

    def _find_xlsx_extent(self, ws: Worksheet) -> Tuple[int, int]:
        """Return (last_row, last_col) holding non-blank text, 0 when empty."""
        max_row, max_col = self._clamp(ws.max_row, ws.max_column, ws.title)
        last_row = last_col = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, max_col=max_col):
            for cell in row:
                if cell_text(cell.value).strip():
                    last_row = max(last_row, cell.row)
                    last_col = max(last_col, cell.column)
        return last_row, last_col

    def _read_xlsx_grid(self, ws: Worksheet) -> SheetGrid:
        row_count, column_count = self._find_xlsx_extent(ws)

        merged_masters: Set[Tuple[int, int]] = {
            (mr.min_row, mr.min_col) for mr in ws.merged_cells.ranges
        }

        cells: Dict[Tuple[int, int], CellData] = {}
        if row_count and column_count:
            for row in ws.iter_rows(min_row=1, max_row=row_count, max_col=column_count):
                for cell in row:
                    text = cell_text(cell.value)
                    merged = (
                        isinstance(cell, MergedCell)
                        or (cell.row, cell.column) in merged_masters
                    )
                    if not text and not merged:
                        continue
                    font = cell.font
                    cells[(cell.row, cell.column)] = CellData(
                        coordinate=coord(cell.column, cell.row),
                        row=cell.row,
                        column=cell.column,
                        text=text,
                        font_bold=bool(font and font.bold),
                        merged=merged,
                    )

        return SheetGrid(
            sheet_name=ws.title,
            row_count=row_count,
            column_count=column_count,
            cells=cells,
        )

    # ------------------------------------------------------------------
    # Legacy BIFF (.xls) via xlrd
    # ------------------------------------------------------------------

    @contextmanager
    def _open_xls(self, data: bytes) -> Iterator[LoadedSheet]:
        try:
            book = xlrd.open_workbook(file_contents=data, formatting_info=True)
        except Exception as exc:
            raise InvalidWorkbook(f"Cannot open workbook: {exc}") from exc

        try:
            sheet = self._pick_xls_sheet(book)
            grid = self._read_xls_grid(book, sheet)
            logger.info(
                "Loaded sheet '%s' (%d rows × %d columns)",
                grid.sheet_name,
                grid.row_count,
                grid.column_count,
            )
            yield LoadedSheet(grid=grid, handle=sheet, source_format="xls")
        finally:
            book.release_resources()

    @staticmethod
    def _pick_xls_sheet(book: xlrd.book.Book) -> xlrd.sheet.Sheet:
        if book.nsheets == 0:
            raise InvalidWorkbook("Workbook contains no worksheets")
        sheets = [book.sheet_by_index(i) for i in range(book.nsheets)]
        for sheet in sheets:
            if sheet.visibility == 0:
                return sheet
        logger.warning("All worksheets are hidden — using '%s'", sheets[0].name)
        return sheets[0]

    @staticmethod
    def _xls_font(book: xlrd.book.Book, xf_index: int) -> Optional[Any]:
        try:
            xf = book.xf_list[xf_index]
            return book.font_list[xf.font_index]
        except (IndexError, AttributeError):
            return None

    def _read_xls_grid(self, book: xlrd.book.Book, sheet: xlrd.sheet.Sheet) -> SheetGrid:
        nrows, ncols = self._clamp(sheet.nrows, sheet.ncols, sheet.name)

        merged: Set[Tuple[int, int]] = set()
        for rlo, rhi, clo, chi in sheet.merged_cells:
            for r in range(rlo, rhi):
                for c in range(clo, chi):
                    merged.add((r + 1, c + 1))

        texts: List[Tuple[int, int, str, Any]] = []
        row_count = column_count = 0
        for r0 in range(nrows):
            for c0 in range(min(ncols, sheet.row_len(r0))):
                cell = sheet.cell(r0, c0)
                text = _xls_cell_text(cell, book.datemode)
                row, col = r0 + 1, c0 + 1
                if text.strip():
                    row_count = max(row_count, row)
                    column_count = max(column_count, col)
                if text or (row, col) in merged:
                    texts.append((row, col, text, self._xls_font(book, cell.xf_index)))

        cells: Dict[Tuple[int, int], CellData] = {}
        for row, col, text, font in texts:
            if row > row_count or col > column_count:
                continue
            cells[(row, col)] = CellData(
                coordinate=coord(col, row),
                row=row,
                column=col,
                text=text,
                font_bold=bool(font is not None and font.bold),
                merged=(row, col) in merged,
            )

        return SheetGrid(
            sheet_name=sheet.name,
            row_count=row_count,
            column_count=column_count,
            cells=cells,
        )
