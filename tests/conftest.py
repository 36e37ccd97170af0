from __future__ import annotations

import datetime
import io
from typing import Any, Callable, Dict, Iterable, Tuple

import pytest
import xlwt
from openpyxl import Workbook
from openpyxl.styles import Font

from dto.cell_data import CellData
from dto.sheet_grid import SheetGrid
from utils.coords import coord

Cells = Dict[Tuple[int, int], Any]


def build_xlsx(
    cells: Cells,
    bold: Iterable[Tuple[int, int]] = (),
    merges: Iterable[str] = (),
    title: str = "Datasheet",
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for (row, col), value in cells.items():
        ws.cell(row=row, column=col, value=value)
    for row, col in bold:
        ws.cell(row=row, column=col).font = Font(bold=True)
    for rng in merges:
        ws.merge_cells(rng)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_grid(
    texts: Cells,
    row_count: int,
    column_count: int,
    bold: Iterable[Tuple[int, int]] = (),
    merged: Iterable[Tuple[int, int]] = (),
) -> SheetGrid:
    bold = set(bold)
    merged = set(merged)
    cells = {}
    for row, col in set(texts) | bold | merged:
        cells[(row, col)] = CellData(
            coordinate=coord(col, row),
            row=row,
            column=col,
            text=str(texts.get((row, col), "")),
            font_bold=(row, col) in bold,
            merged=(row, col) in merged,
        )
    return SheetGrid(
        sheet_name="Datasheet",
        row_count=row_count,
        column_count=column_count,
        cells=cells,
    )


@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    return build_xlsx


@pytest.fixture
def make_grid() -> Callable[..., SheetGrid]:
    return build_grid


@pytest.fixture
def datasheet_xlsx() -> bytes:
    """
    40 rows × 6 columns: bold title in the header band, bold
    "EQUIPMENT DATA" at row 5 and 12 label/value pairs.
    """
    cells: Cells = {
        (1, 1): "PUMP DATASHEET",
        (1, 6): "Rev. A",
        (5, 1): "EQUIPMENT DATA",
        (10, 1): "Design Pressure:",
        (10, 2): "150 psi",
        (11, 1): "Design Temperature:",
        (11, 2): "15 °C",
        (12, 1): "Material:",
        (12, 2): "Stainless Steel",
        (13, 1): "Certification:",
        (13, 2): "CSA/ATEX/IECEx",
        (14, 1): "Insulated:",
        (14, 2): "Yes",
        (15, 1): "Inspection Date:",
        (15, 2): "2024-03-15",
        (16, 1): "Speed:",
        (16, 2): "1450 rpm",
        (17, 1): "Tag No.:",
        (17, 2): "P-101A",
        (18, 1): "Service:",
        (18, 2): "Cooling water",
        (19, 1): "Quantity:",
        (19, 2): 2,
        (20, 1): "Flow:",
        (20, 2): "-3.5",
        (40, 3): "Remarks:",
        (40, 4): "None",
    }
    return build_xlsx(cells, bold=[(1, 1), (5, 1)])


@pytest.fixture
def datasheet_xls() -> bytes:
    """
    Legacy BIFF workbook: a hidden "Cover" sheet, then "Data" with a bold
    merged A1:C1 title, a bold section title and typed values.
    """
    bold = xlwt.easyxf("font: bold on")
    date_style = xlwt.easyxf(num_format_str="YYYY-MM-DD")

    wb = xlwt.Workbook()
    cover = wb.add_sheet("Cover")
    cover.write(0, 0, "cover page")
    cover.visibility = 1

    ws = wb.add_sheet("Data")
    ws.write_merge(0, 0, 0, 2, "DATASHEET", bold)
    ws.write(4, 0, "EQUIPMENT DATA", bold)
    ws.write(5, 0, "Qty:")
    ws.write(5, 1, 2)
    ws.write(5, 2, "pcs")
    ws.write(6, 0, "Flag:")
    ws.write(6, 1, True)
    ws.write(7, 0, "Rate:")
    ws.write(7, 1, 1.5)
    ws.write(8, 0, "Inspected:")
    ws.write(8, 1, datetime.datetime(2024, 3, 15), date_style)
    wb.active_sheet = 1

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
