"""
Field type inference from a value hint.

An ordered rule table of ``(predicate, type)`` pairs, evaluated top to
bottom.  The first matching rule wins; ``string`` is the fallback, so every
field always resolves to a type.
"""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from dto.template import FieldType

_BOOL_RE = re.compile(r"^(yes|no|true|false)$", re.IGNORECASE)

# YYYY-M-D or YYYY/M/D, 1–2 digit month and day
_DATE_RE = re.compile(r"^[0-9]{4}[-/][0-9]{1,2}[-/][0-9]{1,2}$")

# 12, -3.5, 1,5, 1000 rpm, 15 °C, 80 %
_NUMBER_RE = re.compile(r"^[+-]?[0-9]+(?:[.,][0-9]+)?(?:\s*[A-Za-z%/.°-]{1,12})?$")

# CSA/ATEX/IECEx, IP65, IP66
_ENUM_RE = re.compile(r"^[A-Za-z0-9]{2,10}(?:\s*[,/]\s*[A-Za-z0-9]{2,10}){1,6}$")

TypeRule = Tuple[Callable[[str], bool], FieldType]

TYPE_RULES: List[TypeRule] = [
    (lambda v: bool(_BOOL_RE.match(v)), "bool"),
    (lambda v: bool(_DATE_RE.match(v)), "date"),
    (lambda v: bool(_NUMBER_RE.match(v)), "number"),
    (lambda v: bool(_ENUM_RE.match(v)), "enum"),
]

DEFAULT_TYPE: FieldType = "string"


def infer_type(value_hint: str, rules: List[TypeRule] = TYPE_RULES) -> FieldType:
    value = (value_hint or "").strip()
    for predicate, field_type in rules:
        if predicate(value):
            return field_type
    return DEFAULT_TYPE
