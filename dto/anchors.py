"""
Anchor DTOs produced by the detectors.

  - ``Anchor``          — a bold title cell, candidate section heading
  - ``LabelValuePair``  — a "Label:" cell with a non-empty right neighbour
  - ``DetectedLabel``   — provenance entry (label + A1 address) for review
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from dto.base import ContractModel
from dto.coordinate import CellAddress


class Anchor(ContractModel):
    text: str
    row: int = Field(ge=1)
    col: int = Field(ge=1)
    address: str
    kind: Literal["bold"] = "bold"

    @property
    def position(self) -> CellAddress:
        return CellAddress(row=self.row, column=self.col)


class LabelValuePair(ContractModel):
    label: str
    value_hint: str
    row: int = Field(ge=1)
    label_column: int = Field(ge=1)
    value_column: int = Field(ge=1)


class DetectedLabel(ContractModel):
    label: str
    address: str
