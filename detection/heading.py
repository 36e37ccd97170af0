"""
Detector for bold title cells — candidate section / subsheet headings.

Heuristic rules (all must hold):
  - Resolved text is non-empty after trimming
  - Text is at most ``MAX_TITLE_LENGTH`` characters (64)
  - The cell font is bold

Duplicates are kept here; the fingerprint builder dedupes them.
"""

from __future__ import annotations

import logging
from typing import List

from detection.base import AnchorDetector
from detection.constants import MAX_TITLE_LENGTH
from dto.anchors import Anchor
from dto.sheet_grid import SheetGrid

logger = logging.getLogger(__name__)


class BoldTitleDetector(AnchorDetector):

    def __init__(self, max_length: int = MAX_TITLE_LENGTH):
        self._max_length = max_length

    def detect(self, grid: SheetGrid) -> List[Anchor]:
        titles: List[Anchor] = []
        for cd in grid.iter_cells():
            if not cd.font_bold or not cd.text.strip():
                continue
            if len(cd.text) > self._max_length:
                continue
            titles.append(
                Anchor(text=cd.text, row=cd.row, col=cd.column, address=cd.coordinate)
            )
        logger.debug("Found %d bold title(s) in '%s'", len(titles), grid.sheet_name)
        return titles
