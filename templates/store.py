"""
Template stores — persistence for confirmed TemplateDefinitions.

Confirming a definition runs the shape checks, collapses duplicate labels on
the same row, and stores an immutable copy.  Re-confirming an id whose
content changed stores a new version; the earlier versions stay untouched.

Two implementations:
  - InMemoryTemplateStore — process-local dict, for tests and short-lived use
  - JsonTemplateStore     — one JSON document per ``<id>/v<version>.json``
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from dto.template import FieldDefinition, TemplateDefinition
from errors import InvalidDefinition, TemplateNotFound

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shape checks
# ---------------------------------------------------------------------------


def validate_definition(definition: TemplateDefinition) -> None:
    """Basic shape checks only; deeper validation belongs to the UI boundary."""
    if not definition.id or not definition.id.strip():
        raise InvalidDefinition("definition.id is required")
    if not definition.client_key or not definition.client_key.strip():
        raise InvalidDefinition("definition.clientKey is required")
    if not definition.regions:
        raise InvalidDefinition("definition must have at least one region")

    keys: Set[str] = set()
    for f in definition.fields:
        if not f.key or not f.key.strip():
            raise InvalidDefinition(f"field '{f.label}' has an empty key")
        if f.key in keys:
            raise InvalidDefinition(f"duplicate field key '{f.key}'")
        keys.add(f.key)


def dedupe_row_labels(fields: List[FieldDefinition]) -> List[FieldDefinition]:
    """Drop repeated labels on the same row (case-insensitive), keeping the first."""
    seen: Set[Tuple[str, int]] = set()
    out: List[FieldDefinition] = []
    for f in fields:
        key = (f.label.lower(), f.bbox.top)
        if key in seen:
            continue
        seen.add(key)
        out.append(f)
    return out


def parse_definition(data: Union[str, bytes, dict]) -> TemplateDefinition:
    """Parse a (possibly human-edited) definition from JSON text or a dict."""
    try:
        if isinstance(data, dict):
            return TemplateDefinition.model_validate(data)
        return TemplateDefinition.model_validate_json(data)
    except ValidationError as exc:
        raise InvalidDefinition(str(exc)) from exc


# =====================================================================
# TemplateStore
# =====================================================================


class TemplateStore(ABC):
    """Versioned store of confirmed template definitions."""

    def __init__(self):
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _load(self, template_id: str, version: int) -> Optional[TemplateDefinition]:
        ...

    @abstractmethod
    def _save(self, definition: TemplateDefinition) -> None:
        ...

    @abstractmethod
    def versions(self, template_id: str) -> List[int]:
        """Stored version numbers for *template_id*, ascending."""
        ...

    @abstractmethod
    def ids(self) -> List[str]:
        """Every stored template id, sorted."""
        ...

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def confirm(self, definition: TemplateDefinition) -> TemplateDefinition:
        validate_definition(definition)
        candidate = definition.model_copy(
            update={"fields": dedupe_row_labels(definition.fields)}, deep=True
        )
        dropped = len(definition.fields) - len(candidate.fields)
        if dropped:
            logger.info("Dropped %d duplicate same-row label(s)", dropped)

        with self._lock:
            latest = self._latest(candidate.id)
            if latest is not None:
                if _same_content(latest, candidate):
                    logger.info(
                        "Template %s v%d unchanged — nothing to store",
                        latest.id,
                        latest.version,
                    )
                    return latest.model_copy(deep=True)
                candidate = candidate.model_copy(update={"version": latest.version + 1})

            self._save(candidate)

        logger.info("Confirmed template %s v%d", candidate.id, candidate.version)
        return candidate.model_copy(deep=True)

    def get(self, template_id: str, version: Optional[int] = None) -> TemplateDefinition:
        """Return a copy of the requested version (latest by default)."""
        if version is None:
            found = self._latest(template_id)
        else:
            found = self._load(template_id, version)
        if found is None:
            raise TemplateNotFound(template_id)
        return found.model_copy(deep=True)

    def list_latest(self) -> List[TemplateDefinition]:
        out: List[TemplateDefinition] = []
        for template_id in self.ids():
            latest = self._latest(template_id)
            if latest is not None:
                out.append(latest.model_copy(deep=True))
        return out

    def _latest(self, template_id: str) -> Optional[TemplateDefinition]:
        versions = self.versions(template_id)
        if not versions:
            return None
        return self._load(template_id, versions[-1])


def _same_content(a: TemplateDefinition, b: TemplateDefinition) -> bool:
    return a.model_dump(exclude={"version"}) == b.model_dump(exclude={"version"})


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryTemplateStore(TemplateStore):

    def __init__(self):
        super().__init__()
        self._defs: Dict[str, Dict[int, TemplateDefinition]] = {}

    def _load(self, template_id: str, version: int) -> Optional[TemplateDefinition]:
        return self._defs.get(template_id, {}).get(version)

    def _save(self, definition: TemplateDefinition) -> None:
        self._defs.setdefault(definition.id, {})[definition.version] = definition.model_copy(
            deep=True
        )

    def versions(self, template_id: str) -> List[int]:
        return sorted(self._defs.get(template_id, {}))

    def ids(self) -> List[str]:
        return sorted(self._defs)


# ---------------------------------------------------------------------------
# JSON files
# ---------------------------------------------------------------------------


class JsonTemplateStore(TemplateStore):
    """Stores each version as ``<root>/<id>/v<version>.json``."""

    def __init__(self, root: Union[str, Path]):
        super().__init__()
        self._root = Path(root)

    def _dir_for(self, template_id: str) -> Path:
        if not template_id or "/" in template_id or "\\" in template_id or template_id in (".", ".."):
            raise InvalidDefinition(f"Template id '{template_id}' is not a valid store key")
        return self._root / template_id

    def _load(self, template_id: str, version: int) -> Optional[TemplateDefinition]:
        path = self._dir_for(template_id) / f"v{version}.json"
        if not path.is_file():
            return None
        return TemplateDefinition.model_validate_json(path.read_text(encoding="utf-8"))

    def _save(self, definition: TemplateDefinition) -> None:
        directory = self._dir_for(definition.id)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"v{definition.version}.json"
        path.write_text(
            definition.model_dump_json(indent=2, by_alias=True), encoding="utf-8"
        )
        logger.debug("Wrote %s", path)

    def versions(self, template_id: str) -> List[int]:
        directory = self._dir_for(template_id)
        if not directory.is_dir():
            return []
        found: List[int] = []
        for path in directory.glob("v*.json"):
            stem = path.stem[1:]
            if stem.isdigit():
                found.append(int(stem))
        return sorted(found)

    def ids(self) -> List[str]:
        if not self._root.is_dir():
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_dir())
