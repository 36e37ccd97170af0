"""
TemplateMatcher — ranks stored templates against a fresh fingerprint.

A stored template is a candidate only when its grid hash is identical.
Its score is the mean Jaccard overlap of (lower-cased) anchor texts and
label sets; candidates scoring at least the threshold are returned best
first, ties broken by template id.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from detection.constants import MATCH_THRESHOLD
from dto.output import MatchCandidate
from dto.template import Fingerprint
from templates.store import TemplateStore

logger = logging.getLogger(__name__)


def _jaccard(a: Set[str], b: Set[str]) -> float:
    if not a and not b:
        return 1.0
    return len(a & b) / len(a | b)


def _lowered(items: Iterable[str]) -> Set[str]:
    return {s.lower() for s in items}


def similarity(a: Fingerprint, b: Fingerprint) -> float:
    """0.0 – 1.0; always 0.0 when the grid hashes differ."""
    if a.grid_hash != b.grid_hash:
        return 0.0
    anchors = _jaccard(
        _lowered(x.text for x in a.anchors), _lowered(x.text for x in b.anchors)
    )
    labels = _jaccard(_lowered(a.label_set), _lowered(b.label_set))
    return (anchors + labels) / 2


class TemplateMatcher:

    def __init__(self, store: TemplateStore, threshold: float = MATCH_THRESHOLD):
        self._store = store
        self._threshold = threshold

    def match(self, fingerprint: Fingerprint) -> List[MatchCandidate]:
        candidates: List[MatchCandidate] = []
        for definition in self._store.list_latest():
            score = similarity(fingerprint, definition.fingerprint)
            if score >= self._threshold and score > 0.0:
                candidates.append(MatchCandidate(definition=definition, score=round(score, 4)))

        candidates.sort(key=lambda c: (-c.score, c.definition.id))
        logger.info("  -> %d candidate template(s) for %s", len(candidates), fingerprint.grid_hash)
        return candidates
