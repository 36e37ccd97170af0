"""
Template learning pipeline — the Learn / Confirm / Apply / Match stages.

    learn_template      upload → draft TemplateDefinition + detected fields
    confirm_definition  reviewed definition → durable, versioned template
    apply_definition    template id + values → generated .xlsx
    match_template      upload → ranked stored templates with the same layout

Each call is self-contained: the workbook handle is opened and closed
within the call and nothing is shared between concurrent uploads.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from classifier import ClassifierPolicy, StructureClassifier
from dto.output import LearnResult, MatchCandidate, WorkbookAnalysis
from dto.template import TemplateDefinition
from errors import NoUsableContent
from extractors.sheet import SheetExtractor
from extractors.workbook import WorkbookReader, WorkbookSource
from fingerprint import FingerprintBuilder
from templates.matcher import TemplateMatcher
from templates.renderer import ValueMap, XlsxRenderer
from templates.store import TemplateStore, parse_definition

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("tmp_outputs")

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


# -------------------------------------------------------------------
# Learn
# -------------------------------------------------------------------


def analyze_workbook(
    source: WorkbookSource,
    reader: Optional[WorkbookReader] = None,
    extractor: Optional[SheetExtractor] = None,
) -> WorkbookAnalysis:
    """
    Open *source*, extract its structural signals and close it again.

    Raises ``InvalidWorkbook`` for unreadable input and ``NoUsableContent``
    when the sheet is blank or yields neither titles nor label/value pairs.
    """
    reader = reader or WorkbookReader()
    extractor = extractor or SheetExtractor()

    with reader.open(source) as sheet:
        if sheet.grid.is_empty:
            raise NoUsableContent(f"Worksheet '{sheet.sheet_name}' has no content")
        analysis = extractor.extract(sheet)

    if not analysis.bold_titles and not analysis.label_value_pairs:
        raise NoUsableContent(
            f"Worksheet '{analysis.meta.sheet_name}' has no titles or label/value pairs"
        )
    return analysis


def learn_template(
    source: WorkbookSource,
    file_name: Optional[str] = None,
    policy: Optional[ClassifierPolicy] = None,
) -> LearnResult:
    """Learn a draft template definition from an uploaded workbook."""
    logger.info("Learning template from %s", file_name or "upload")

    analysis = analyze_workbook(source)

    draft = StructureClassifier(policy).classify(analysis)
    draft.fingerprint = FingerprintBuilder().build(analysis)

    logger.info(
        "  -> fingerprint %s, %d anchor(s), %d label(s)",
        draft.fingerprint.grid_hash,
        len(draft.fingerprint.anchors),
        len(draft.fingerprint.label_set),
    )
    return LearnResult(
        draft_definition=draft,
        detected_fields=analysis.detected_labels,
    )


# -------------------------------------------------------------------
# Confirm
# -------------------------------------------------------------------


def confirm_definition(
    definition: Union[TemplateDefinition, dict, str, bytes],
    store: TemplateStore,
) -> TemplateDefinition:
    """Persist a reviewed definition; returns the stored (versioned) copy."""
    if not isinstance(definition, TemplateDefinition):
        definition = parse_definition(definition)
    return store.confirm(definition)


# -------------------------------------------------------------------
# Apply
# -------------------------------------------------------------------


def default_output_path(definition: TemplateDefinition, output_dir: Path = DEFAULT_OUTPUT_DIR) -> Path:
    stem = _UNSAFE_FILENAME.sub("_", f"{definition.client_key}-{definition.id}").strip("_")
    return output_dir / f"{stem}.xlsx"


def apply_definition(
    template_id: str,
    values: ValueMap,
    store: TemplateStore,
    output: Union[str, Path, BinaryIO, None] = None,
    version: Optional[int] = None,
) -> Union[str, Path, BinaryIO]:
    """Render *values* into a new workbook laid out by the stored template."""
    definition = store.get(template_id, version)
    target = output if output is not None else default_output_path(definition)
    return XlsxRenderer().render(definition, values, target)


# -------------------------------------------------------------------
# Match
# -------------------------------------------------------------------


def match_template(
    source: WorkbookSource,
    store: TemplateStore,
    threshold: Optional[float] = None,
) -> List[MatchCandidate]:
    """Fingerprint an upload and rank stored templates with the same layout."""
    analysis = analyze_workbook(source)
    fingerprint = FingerprintBuilder().build(analysis)
    matcher = TemplateMatcher(store) if threshold is None else TemplateMatcher(store, threshold)
    return matcher.match(fingerprint)
