"""
Exception taxonomy for the template learning pipeline.

    TemplateLearningError
      ├─ InvalidWorkbook      — file cannot be opened / has no worksheets (fatal)
      ├─ NoUsableContent      — worksheet opens but yields nothing to learn
      ├─ AmbiguousMerge       — merged-flag rectangle failed verification
      ├─ InvalidDefinition    — confirmed definition fails shape checks
      └─ TemplateNotFound     — apply/lookup for an unknown template id
"""

from __future__ import annotations


class TemplateLearningError(Exception):
    """Base class for every error raised by this package."""


class InvalidWorkbook(TemplateLearningError):
    pass


class NoUsableContent(TemplateLearningError):
    pass


class AmbiguousMerge(TemplateLearningError):
    """Raised inside merge inference and resolved locally by skipping the merge."""

    def __init__(self, row: int, col: int, message: str = "") -> None:
        self.row = row
        self.col = col
        super().__init__(message or f"Ambiguous merge at row {row}, column {col}")


class InvalidDefinition(TemplateLearningError):
    pass


class TemplateNotFound(TemplateLearningError):
    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template '{template_id}' not found")
