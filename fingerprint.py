"""
FingerprintBuilder — reduces a learned layout to a small, stable signature
used to recognise repeat uploads of the same template.

    Fingerprint
      ├─ page_size    logical page size
      ├─ anchors      ≤ 12 bold titles, deduped by normalised text
      ├─ grid_hash    "r{rows}c{cols}" — coarse on purpose
      └─ label_set    ≤ 40 field labels, deduped case-insensitively

Output depends only on the input order (top-to-bottom, left-to-right,
first occurrence wins), so the same worksheet always yields the same JSON.
"""

from __future__ import annotations

from typing import List, Set

from detection.constants import MAX_ANCHORS, MAX_LABELS
from dto.anchors import Anchor, LabelValuePair
from dto.coordinate import BoundingBox
from dto.output import WorkbookAnalysis
from dto.template import Fingerprint, FingerprintAnchor
from utils.text import normalize_key, sanitize_title


def grid_hash(row_count: int, column_count: int) -> str:
    return f"r{row_count}c{column_count}"


class FingerprintBuilder:

    def __init__(self, max_anchors: int = MAX_ANCHORS, max_labels: int = MAX_LABELS):
        self._max_anchors = max_anchors
        self._max_labels = max_labels

    def build(self, analysis: WorkbookAnalysis) -> Fingerprint:
        meta = analysis.meta
        return Fingerprint(
            page_size=meta.page_size,
            anchors=self.build_anchors(analysis.bold_titles),
            grid_hash=grid_hash(meta.row_count, meta.column_count),
            label_set=self.build_label_set(analysis.label_value_pairs),
        )

    def build_anchors(self, titles: List[Anchor]) -> List[FingerprintAnchor]:
        seen: Set[str] = set()
        out: List[FingerprintAnchor] = []

        for title in sorted(titles, key=lambda t: (t.row, t.col)):
            if len(out) >= self._max_anchors:
                break
            text = sanitize_title(title.text)
            if not text:
                continue
            key = normalize_key(text)
            if key in seen:
                continue
            seen.add(key)
            pos = title.position
            out.append(
                FingerprintAnchor(text=text, bbox=BoundingBox.cell(pos.row, pos.column))
            )

        return out

    def build_label_set(self, pairs: List[LabelValuePair]) -> List[str]:
        seen: Set[str] = set()
        labels: List[str] = []

        for pair in pairs:
            if len(labels) >= self._max_labels:
                break
            label = sanitize_title(pair.label)
            if not label:
                continue
            key = label.lower()
            if key in seen:
                continue
            seen.add(key)
            labels.append(label)

        return labels
