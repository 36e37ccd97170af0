"""
Anchor detectors and field type inference.

Two independent scans over the full used grid:
  1. BoldTitleDetector   — bold, short cells (section / subsheet titles)
  2. LabelValueDetector  — "Label:" cells with a non-empty right neighbour

``infer_type`` turns a value hint into a field type via an ordered rule
table.
"""

from detection.base import AnchorDetector
from detection.heading import BoldTitleDetector
from detection.key_value import LabelValueDetector
from detection.type_inference import TYPE_RULES, infer_type

__all__ = [
    "AnchorDetector",
    "BoldTitleDetector",
    "LabelValueDetector",
    "TYPE_RULES",
    "infer_type",
]
