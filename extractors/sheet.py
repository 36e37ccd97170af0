"""
SheetExtractor — the per-sheet learning orchestrator.

Responsibilities:
  1. Resolve merged ranges through the MergeResolver strategy chain.
  2. Run the anchor detectors (bold titles, label:value pairs) over the
     full used grid.
  3. Bundle everything into an ephemeral ``WorkbookAnalysis``.
"""

from __future__ import annotations

import logging
from typing import Optional

from detection.constants import PAGE_HEIGHT, PAGE_WIDTH
from detection.heading import BoldTitleDetector
from detection.key_value import LabelValueDetector
from dto.output import WorkbookAnalysis, WorkbookMeta
from dto.template import PageSize
from extractors.merges import MergeResolver
from extractors.workbook import LoadedSheet

logger = logging.getLogger(__name__)


class SheetExtractor:
    """
    Extracts the raw structural signals from a single worksheet.

    Usage::

        with WorkbookReader().open(path) as sheet:
            analysis = SheetExtractor().extract(sheet)
    """

    def __init__(
        self,
        merge_resolver: Optional[MergeResolver] = None,
        title_detector: Optional[BoldTitleDetector] = None,
        pair_detector: Optional[LabelValueDetector] = None,
        page_size: Optional[PageSize] = None,
    ):
        self._merges = merge_resolver or MergeResolver()
        self._titles = title_detector or BoldTitleDetector()
        self._pairs = pair_detector or LabelValueDetector()
        # Logical units for downstream layouting; renderers scale as needed.
        self._page_size = page_size or PageSize(w=PAGE_WIDTH, h=PAGE_HEIGHT)

    def extract(self, sheet: LoadedSheet) -> WorkbookAnalysis:
        grid = sheet.grid

        merged_cells = self._merges.resolve(grid, sheet.handle)
        bold_titles = self._titles.detect(grid)
        pairs, detected_labels = self._pairs.detect_with_labels(grid)

        logger.info(
            "  -> %d bold title(s), %d label/value pair(s)",
            len(bold_titles),
            len(pairs),
        )

        return WorkbookAnalysis(
            meta=WorkbookMeta(
                sheet_name=grid.sheet_name,
                row_count=grid.row_count,
                column_count=grid.column_count,
                page_size=self._page_size,
            ),
            merged_cells=merged_cells,
            bold_titles=bold_titles,
            label_value_pairs=pairs,
            detected_labels=detected_labels,
        )
