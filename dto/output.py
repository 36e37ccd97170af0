"""
Top-level output DTOs.

    WorkbookAnalysis   ephemeral extraction output, one per upload
      ├─ meta: WorkbookMeta
      ├─ merged_cells / bold_titles / label_value_pairs / detected_labels

    LearnResult        what the Learn stage hands back for human review
      ├─ draft_definition: TemplateDefinition
      └─ detected_fields: List[DetectedLabel]
"""

from __future__ import annotations

from typing import List

from dto.anchors import Anchor, DetectedLabel, LabelValuePair
from dto.base import ContractModel
from dto.coordinate import MergedRange
from dto.template import PageSize, TemplateDefinition


class WorkbookMeta(ContractModel):
    sheet_name: str
    row_count: int
    column_count: int
    page_size: PageSize


class WorkbookAnalysis(ContractModel):
    meta: WorkbookMeta
    merged_cells: List[MergedRange] = []
    bold_titles: List[Anchor] = []
    label_value_pairs: List[LabelValuePair] = []
    detected_labels: List[DetectedLabel] = []


class LearnResult(ContractModel):
    draft_definition: TemplateDefinition
    detected_fields: List[DetectedLabel] = []


class MatchCandidate(ContractModel):
    definition: TemplateDefinition
    score: float
