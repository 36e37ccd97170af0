from templates.store import (
    InMemoryTemplateStore,
    JsonTemplateStore,
    TemplateStore,
    parse_definition,
    validate_definition,
)
from templates.matcher import TemplateMatcher, similarity
from templates.renderer import XlsxRenderer

__all__ = [
    "TemplateStore",
    "InMemoryTemplateStore",
    "JsonTemplateStore",
    "parse_definition",
    "validate_definition",
    "TemplateMatcher",
    "similarity",
    "XlsxRenderer",
]
