"""
StructureClassifier — turns raw anchors and label/value pairs into a draft
TemplateDefinition.

  - Header region:    the top band, at least 3 rows, else ~8% of the sheet.
  - Subsheet regions: bold titles below the header become section anchors;
                      each region runs down to the row above the next one.
  - Equipment region: the left-hand block right under the header, at most
                      8 rows and never past the first subsheet.
  - Fields:           one per label/value pair, typed from the value hint.

All band sizes come from a ``ClassifierPolicy`` so deployments can tune
them without touching the algorithm.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from detection.constants import (
    EQUIPMENT_COLUMN_RATIO,
    EQUIPMENT_MAX_ROWS,
    EQUIPMENT_MIN_COLUMNS,
    HEADER_MIN_ROWS,
    HEADER_ROW_RATIO,
)
from detection.type_inference import infer_type
from dto.anchors import Anchor, LabelValuePair
from dto.coordinate import BoundingBox
from dto.output import WorkbookAnalysis
from dto.region import Region
from dto.template import FieldDefinition, FieldMapping, Fingerprint, TemplateDefinition
from fingerprint import grid_hash
from utils.text import sanitize_title

logger = logging.getLogger(__name__)

HEADER_REGION_NAME = "HEADER"
EQUIPMENT_REGION_NAME = "EQUIPMENT"


class ClassifierPolicy(BaseModel):
    """Layout conventions used to carve the sheet into regions."""

    header_min_rows: int = Field(default=HEADER_MIN_ROWS, ge=1)
    header_row_ratio: float = Field(default=HEADER_ROW_RATIO, ge=0, le=1)
    equipment_max_rows: int = Field(default=EQUIPMENT_MAX_ROWS, ge=1)
    equipment_min_columns: int = Field(default=EQUIPMENT_MIN_COLUMNS, ge=1)
    equipment_column_ratio: float = Field(default=EQUIPMENT_COLUMN_RATIO, gt=0, le=1)

    def header_rows(self, row_count: int) -> int:
        return max(self.header_min_rows, math.floor(row_count * self.header_row_ratio))

    def equipment_columns(self, column_count: int) -> int:
        return max(
            self.equipment_min_columns,
            math.floor(column_count * self.equipment_column_ratio),
        )


class StructureClassifier:

    def __init__(self, policy: Optional[ClassifierPolicy] = None):
        self.policy = policy or ClassifierPolicy()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, analysis: WorkbookAnalysis) -> TemplateDefinition:
        """
        Build a draft definition from *analysis*.

        The draft carries a coarse fingerprint (page size + grid hash only);
        the FingerprintBuilder fills in anchors and labels afterwards.
        """
        meta = analysis.meta
        row_count = max(meta.row_count, 1)
        column_count = max(meta.column_count, 1)

        header_rows = self.policy.header_rows(meta.row_count)
        header = Region(
            kind="header",
            name=HEADER_REGION_NAME,
            bbox=BoundingBox(left=1, top=1, right=column_count, bottom=header_rows),
        )

        anchors = self.subsheet_anchors(analysis.bold_titles, header_rows)
        subsheets = self.subsheet_regions(anchors, row_count, column_count)

        first_subsheet_row = subsheets[0].bbox.top if subsheets else row_count
        equipment = Region(
            kind="equipment",
            name=EQUIPMENT_REGION_NAME,
            bbox=self.equipment_bbox(header_rows, first_subsheet_row, column_count),
        )

        fields = self.build_fields(analysis.label_value_pairs)

        logger.info(
            "  -> header %d row(s), %d subsheet(s), %d field(s)",
            header_rows,
            len(subsheets),
            len(fields),
        )

        return TemplateDefinition(
            id=str(uuid.uuid4()),
            client_key=f"{meta.sheet_name}-v1",
            fingerprint=Fingerprint(
                page_size=meta.page_size,
                grid_hash=grid_hash(meta.row_count, meta.column_count),
            ),
            regions=[header, equipment, *subsheets],
            fields=fields,
        )

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    @staticmethod
    def subsheet_anchors(titles: List[Anchor], header_rows: int) -> List[Anchor]:
        """
        Bold titles strictly below the header band, sorted by (row, col).
        Only the leftmost title on a row starts a subsheet.
        """
        anchors: List[Anchor] = []
        for title in sorted(titles, key=lambda t: (t.row, t.col)):
            if title.row <= header_rows:
                continue
            if anchors and anchors[-1].row == title.row:
                continue
            if not sanitize_title(title.text):
                continue
            anchors.append(title)
        return anchors

    @staticmethod
    def subsheet_regions(
        anchors: List[Anchor], row_count: int, column_count: int
    ) -> List[Region]:
        regions: List[Region] = []
        for i, anchor in enumerate(anchors):
            top = anchor.row
            if i + 1 < len(anchors):
                bottom = max(top, anchors[i + 1].row - 1)
            else:
                bottom = max(top, row_count)
            regions.append(
                Region(
                    kind="subsheet",
                    name=sanitize_title(anchor.text),
                    bbox=BoundingBox(left=1, top=top, right=column_count, bottom=bottom),
                )
            )
        return regions

    def equipment_bbox(
        self, header_rows: int, first_subsheet_row: int, column_count: int
    ) -> BoundingBox:
        top = header_rows + 1
        bottom = min(top + self.policy.equipment_max_rows - 1, first_subsheet_row - 1)
        return BoundingBox(
            left=1,
            top=top,
            right=self.policy.equipment_columns(column_count),
            bottom=max(bottom, top),
        )

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @staticmethod
    def build_fields(pairs: List[LabelValuePair]) -> List[FieldDefinition]:
        fields: List[FieldDefinition] = []
        for idx, pair in enumerate(pairs):
            fields.append(
                FieldDefinition(
                    key=f"f_{idx:03d}",
                    label=sanitize_title(pair.label),
                    bbox=BoundingBox(
                        left=pair.label_column,
                        top=pair.row,
                        right=pair.value_column,
                        bottom=pair.row,
                    ),
                    type=infer_type(pair.value_hint),
                    map_to=FieldMapping(bucket="templateField"),
                )
            )
        return fields
