"""
Grid geometry DTOs.

All coordinates are 1-based.  A ``BoundingBox`` is inclusive on every side
and serialises as ``[left, top, right, bottom]`` to match the template JSON
contract.
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from utils.coords import a1_range


class CellAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int = Field(ge=1)
    column: int = Field(ge=1)


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    left: int = Field(ge=1)
    top: int = Field(ge=1)
    right: int = Field(ge=1)
    bottom: int = Field(ge=1)

    @model_validator(mode="before")
    @classmethod
    def from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 4:
                raise ValueError("bbox must be [left, top, right, bottom]")
            left, top, right, bottom = data
            return {"left": left, "top": top, "right": right, "bottom": bottom}
        return data

    @model_validator(mode="after")
    def check_order(self) -> "BoundingBox":
        if self.left > self.right:
            raise ValueError(f"left ({self.left}) > right ({self.right})")
        if self.top > self.bottom:
            raise ValueError(f"top ({self.top}) > bottom ({self.bottom})")
        return self

    @model_serializer
    def serialize_as_list(self) -> List[int]:
        return [self.left, self.top, self.right, self.bottom]

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    @classmethod
    def cell(cls, row: int, col: int) -> "BoundingBox":
        """A 1×1 box at (row, col)."""
        return cls(left=col, top=row, right=col, bottom=row)

    @property
    def a1(self) -> str:
        return a1_range(self.left, self.top, self.right, self.bottom)

    def overlaps_rows(self, other: "BoundingBox") -> bool:
        return self.top <= other.bottom and other.top <= self.bottom

    def intersects(self, other: "BoundingBox") -> bool:
        return self.overlaps_rows(other) and (
            self.left <= other.right and other.left <= self.right
        )


class MergedRange(BaseModel):
    """A bounding box known to be a single merged cell block."""

    model_config = ConfigDict(frozen=True)

    range: str
    bbox: BoundingBox

    @classmethod
    def from_bounds(cls, top: int, left: int, bottom: int, right: int) -> "MergedRange":
        bbox = BoundingBox(left=left, top=top, right=right, bottom=bottom)
        return cls(range=bbox.a1, bbox=bbox)
