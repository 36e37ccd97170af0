"""
Detector for "Label: value" field pairs.

Heuristic rules:
  - The label cell's trimmed text ends with ":" or the full-width "："
  - Stripping the trailing colon leaves a non-empty label
  - The cell immediately to the right (within the used columns) has
    non-empty trimmed text, which becomes the value hint

The rule is deliberately permissive ("Pressure:", "Temp (°C):") and does
not try multi-line or multi-column labels.  Requiring a non-empty right
neighbour keeps false positives down.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from detection.base import AnchorDetector
from detection.constants import LABEL_SUFFIXES
from dto.anchors import DetectedLabel, LabelValuePair
from dto.sheet_grid import SheetGrid

logger = logging.getLogger(__name__)


def is_colon_label(text: str) -> bool:
    return bool(text) and text.rstrip().endswith(LABEL_SUFFIXES)


def clean_label(text: str) -> str:
    """Strip one trailing colon and surrounding whitespace."""
    label = text.rstrip()
    if label.endswith(LABEL_SUFFIXES):
        label = label[:-1]
    return label.strip()


class LabelValueDetector(AnchorDetector):

    def detect(self, grid: SheetGrid) -> List[LabelValuePair]:
        pairs, _ = self.detect_with_labels(grid)
        return pairs

    def detect_with_labels(
        self, grid: SheetGrid
    ) -> Tuple[List[LabelValuePair], List[DetectedLabel]]:
        """
        Return the pairs plus the ``detected_labels`` side list, deduplicated
        by (label, source address) in first-seen order.
        """
        pairs: List[LabelValuePair] = []
        detected: Dict[Tuple[str, str], DetectedLabel] = {}

        for cd in grid.iter_cells():
            raw = cd.text.strip()
            if not is_colon_label(raw):
                continue

            label = clean_label(raw)
            if not label:
                continue

            if cd.column >= grid.column_count:
                continue
            value = grid.cell_text(cd.row, cd.column + 1).strip()
            if not value:
                continue

            pairs.append(
                LabelValuePair(
                    label=label,
                    value_hint=value,
                    row=cd.row,
                    label_column=cd.column,
                    value_column=cd.column + 1,
                )
            )
            key = (label, cd.coordinate)
            if key not in detected:
                detected[key] = DetectedLabel(label=label, address=cd.coordinate)

        logger.debug("Found %d label/value pair(s) in '%s'", len(pairs), grid.sheet_name)
        return pairs, list(detected.values())
