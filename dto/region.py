"""
Region DTO: a named rectangular zone of the learned worksheet.

A template has exactly one ``header`` region, one ``equipment`` region and
zero or more ``subsheet`` regions ordered top to bottom.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from dto.coordinate import BoundingBox

RegionKind = Literal["header", "equipment", "subsheet"]


class Region(BaseModel):
    kind: RegionKind
    name: str
    bbox: BoundingBox
