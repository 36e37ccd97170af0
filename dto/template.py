"""
Template definition DTOs — the reusable, field-level description of a
learned spreadsheet layout.

    TemplateDefinition
      ├─ fingerprint: Fingerprint        (page size, anchors, grid hash, labels)
      ├─ regions: List[Region]           (header, equipment, subsheets…)
      ├─ fields: List[FieldDefinition]   (label, bbox, type, mapTo)
      └─ render_hints: RenderHints

Serialises with camelCase keys (``clientKey``, ``gridHash``, ``mapTo`` …).
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from dto.base import ContractModel
from dto.coordinate import BoundingBox
from dto.region import Region

FieldType = Literal["string", "number", "bool", "date", "enum"]

MappingBucket = Literal["sheet-header", "equipment", "subsheet", "templateField"]


# -------------------------------------------------------------------
# Fields
# -------------------------------------------------------------------

class FieldMapping(ContractModel):
    """Destination of a field in the downstream datasheet model."""
    bucket: MappingBucket = "templateField"
    subsheet: Optional[str] = None
    field_id: Optional[str] = None


class FieldDefinition(ContractModel):
    key: str
    label: str
    bbox: BoundingBox
    type: FieldType = "string"
    map_to: FieldMapping = Field(default_factory=FieldMapping)


# -------------------------------------------------------------------
# Fingerprint
# -------------------------------------------------------------------

class PageSize(ContractModel):
    w: int
    h: int


class FingerprintAnchor(ContractModel):
    text: str
    bbox: BoundingBox


class Fingerprint(ContractModel):
    page_size: PageSize
    anchors: List[FingerprintAnchor] = []
    grid_hash: str
    label_set: List[str] = []


# -------------------------------------------------------------------
# Definition
# -------------------------------------------------------------------

class RenderHints(ContractModel):
    font: str = "Calibri"
    base_line_height: int = 14
    table_borders: List[BoundingBox] = []
    exact_placement: bool = False


class TemplateDefinition(ContractModel):
    id: str
    client_key: str
    source_kind: Literal["spreadsheet"] = "spreadsheet"
    version: int = Field(default=1, ge=1)
    fingerprint: Fingerprint
    regions: List[Region] = []
    fields: List[FieldDefinition] = []
    render_hints: RenderHints = Field(default_factory=RenderHints)

    # ------------------------------------------------------------------
    # Region accessors
    # ------------------------------------------------------------------

    @property
    def header(self) -> Optional[Region]:
        return next((r for r in self.regions if r.kind == "header"), None)

    @property
    def equipment(self) -> Optional[Region]:
        return next((r for r in self.regions if r.kind == "equipment"), None)

    @property
    def subsheets(self) -> List[Region]:
        return [r for r in self.regions if r.kind == "subsheet"]

    def field_by_key(self, key: str) -> Optional[FieldDefinition]:
        return next((f for f in self.fields if f.key == key), None)
