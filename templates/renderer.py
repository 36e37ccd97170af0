"""
XlsxRenderer — the value applier.

Given a confirmed TemplateDefinition and a value map, writes a fresh .xlsx:

  - exact placement (``renderHints.exactPlacement``): region titles at each
    region's top-left, then every field's "Label:" at its label cell and
    its value at its value cell.  Fields take precedence over region
    titles; among fields the first to claim a cell keeps it.
  - sequential placement: the client key at A1, then one field per row
    from row 3 (labels in column A, values in column B).

Values are looked up by field key first, then by field label.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Set, Tuple, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.worksheet.worksheet import Worksheet

from dto.template import FieldDefinition, TemplateDefinition

logger = logging.getLogger(__name__)

ValueMap = Mapping[str, Union[str, int, float, bool, None]]

_MISSING = object()

_SHEET_NAME_FORBIDDEN = re.compile(r"[\\/*?:\[\]]")
_MAX_SHEET_NAME = 31

_DEFAULT_COL_WIDTH = 18
_SEQUENTIAL_START_ROW = 3


def safe_sheet_name(name: str) -> str:
    """Excel limits sheet names to 31 chars and forbids ``\\ / * ? : [ ]``."""
    cleaned = _SHEET_NAME_FORBIDDEN.sub(" ", name).strip()
    return (cleaned or "Sheet")[:_MAX_SHEET_NAME]


def to_display(value: Any) -> Any:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return value


def lookup_value(values: ValueMap, field: FieldDefinition) -> Any:
    if field.key in values:
        return values[field.key]
    if field.label in values:
        return values[field.label]
    return _MISSING


class XlsxRenderer:

    def render(
        self,
        definition: TemplateDefinition,
        values: ValueMap,
        output: Union[str, Path, BinaryIO],
    ) -> Union[str, Path, BinaryIO]:
        wb = Workbook()
        ws = wb.active
        ws.title = safe_sheet_name(definition.client_key)
        ws.sheet_format.defaultColWidth = _DEFAULT_COL_WIDTH
        ws.sheet_format.defaultRowHeight = definition.render_hints.base_line_height

        font_name = definition.render_hints.font
        if definition.render_hints.exact_placement:
            self._place_by_bbox(ws, definition, values, font_name)
        else:
            self._place_sequentially(ws, definition, values, font_name)
        self._draw_borders(ws, definition)

        if isinstance(output, (str, Path)):
            Path(output).parent.mkdir(parents=True, exist_ok=True)
        wb.save(output)
        wb.close()
        logger.info("Rendered %d field(s) for %s", len(definition.fields), definition.id)
        return output

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    @staticmethod
    def _set(ws: Worksheet, row: int, col: int, value: Any, font_name: str, bold: bool = False) -> None:
        cell = ws.cell(row=row, column=col)
        cell.value = value
        cell.font = Font(name=font_name, bold=bold)
        cell.alignment = Alignment(vertical="center")

    def _place_by_bbox(
        self, ws: Worksheet, definition: TemplateDefinition, values: ValueMap, font_name: str
    ) -> None:
        occupied: Set[Tuple[int, int]] = set()

        def write_if_free(row: int, col: int, value: Any, bold: bool) -> None:
            if (row, col) in occupied:
                return
            self._set(ws, row, col, value, font_name, bold)
            occupied.add((row, col))

        for region in definition.regions:
            self._set(ws, region.bbox.top, region.bbox.left, region.name, font_name, bold=True)

        for f in definition.fields:
            write_if_free(f.bbox.top, f.bbox.left, f"{f.label}:", True)
            value = lookup_value(values, f)
            if value is not _MISSING:
                write_if_free(f.bbox.top, f.bbox.right, to_display(value), False)

    def _place_sequentially(
        self, ws: Worksheet, definition: TemplateDefinition, values: ValueMap, font_name: str
    ) -> None:
        self._set(ws, 1, 1, definition.client_key, font_name, bold=True)
        ws.row_dimensions[1].height = 18
        ws.column_dimensions["A"].width = 34
        ws.column_dimensions["B"].width = 28

        row = _SEQUENTIAL_START_ROW
        for f in definition.fields:
            self._set(ws, row, 1, f"{f.label}:", font_name, bold=True)
            value = lookup_value(values, f)
            if value is not _MISSING:
                self._set(ws, row, 2, to_display(value), font_name)
            row += 1

    @staticmethod
    def _draw_borders(ws: Worksheet, definition: TemplateDefinition) -> None:
        thin = Side(style="thin")
        no_side = Side()
        for box in definition.render_hints.table_borders:
            for r in range(box.top, box.bottom + 1):
                for c in range(box.left, box.right + 1):
                    ws.cell(row=r, column=c).border = Border(
                        left=thin if c == box.left else no_side,
                        right=thin if c == box.right else no_side,
                        top=thin if r == box.top else no_side,
                        bottom=thin if r == box.bottom else no_side,
                    )
