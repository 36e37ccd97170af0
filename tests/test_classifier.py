from typing import List, Tuple

import pytest

from classifier import ClassifierPolicy, StructureClassifier
from dto.anchors import Anchor, LabelValuePair
from dto.output import WorkbookAnalysis, WorkbookMeta
from dto.template import PageSize
from utils.coords import coord


def _analysis(
    row_count: int,
    column_count: int,
    titles: List[Tuple[str, int, int]] = (),
    pairs: List[Tuple[str, str, int, int]] = (),
) -> WorkbookAnalysis:
    return WorkbookAnalysis(
        meta=WorkbookMeta(
            sheet_name="Pump",
            row_count=row_count,
            column_count=column_count,
            page_size=PageSize(w=1000, h=1400),
        ),
        bold_titles=[
            Anchor(text=text, row=row, col=col, address=coord(col, row))
            for text, row, col in titles
        ],
        label_value_pairs=[
            LabelValuePair(
                label=label, value_hint=hint, row=row, label_column=col, value_column=col + 1
            )
            for label, hint, row, col in pairs
        ],
    )


@pytest.mark.parametrize(
    "row_count, expected",
    [(1, 3), (10, 3), (37, 3), (38, 3), (50, 4), (100, 8), (200, 16)],
)
def test_header_band_height(row_count, expected) -> None:
    assert ClassifierPolicy().header_rows(row_count) == expected

    definition = StructureClassifier().classify(_analysis(row_count, 4))
    assert definition.header.bbox.bottom == expected
    assert definition.header.bbox.right == 4


def test_subsheets_are_ordered_and_disjoint() -> None:
    analysis = _analysis(
        30,
        5,
        titles=[
            ("Cover", 2, 1),
            ("NOZZLES", 12, 1),
            ("PERFORMANCE", 5, 3),
            ("OPERATING", 5, 1),
            ("NOTES", 20, 2),
        ],
    )

    definition = StructureClassifier().classify(analysis)
    subsheets = definition.subsheets

    assert [(s.name, s.bbox.top, s.bbox.bottom) for s in subsheets] == [
        ("OPERATING", 5, 11),
        ("NOZZLES", 12, 19),
        ("NOTES", 20, 30),
    ]
    for region in subsheets:
        assert (region.bbox.left, region.bbox.right) == (1, 5)
    for upper, lower in zip(subsheets, subsheets[1:]):
        assert not upper.bbox.overlaps_rows(lower.bbox)


def test_titles_inside_header_band_never_start_subsheets() -> None:
    analysis = _analysis(40, 4, titles=[("DATASHEET", 1, 1), ("REV", 3, 4)])
    assert StructureClassifier().classify(analysis).subsheets == []


def test_equipment_region_without_subsheets() -> None:
    definition = StructureClassifier().classify(_analysis(30, 6))
    box = definition.equipment.bbox

    assert (box.left, box.top, box.right, box.bottom) == (1, 4, 3, 11)


def test_equipment_region_stops_above_first_subsheet() -> None:
    analysis = _analysis(30, 2, titles=[("PROCESS", 7, 1)])
    box = StructureClassifier().classify(analysis).equipment.bbox

    assert (box.top, box.bottom, box.right) == (4, 6, 2)


def test_equipment_region_is_at_least_one_row() -> None:
    analysis = _analysis(40, 6, titles=[("EQUIPMENT DATA", 4, 1)])
    box = StructureClassifier().classify(analysis).equipment.bbox

    assert box.top == box.bottom == 4


def test_region_order_and_draft_identity() -> None:
    definition = StructureClassifier().classify(_analysis(20, 3, titles=[("A", 8, 1)]))

    assert [r.kind for r in definition.regions] == ["header", "equipment", "subsheet"]
    assert definition.client_key == "Pump-v1"
    assert definition.version == 1
    assert definition.source_kind == "spreadsheet"
    assert definition.fingerprint.grid_hash == "r20c3"
    assert definition.id


def test_fields_are_keyed_typed_and_placed() -> None:
    analysis = _analysis(
        20,
        4,
        pairs=[
            ("Design   Pressure", "150 psi", 10, 1),
            ("Material", "Stainless Steel", 11, 3),
        ],
    )

    fields = StructureClassifier().classify(analysis).fields

    assert [f.key for f in fields] == ["f_000", "f_001"]
    assert fields[0].label == "Design Pressure"
    assert fields[0].type == "number"
    assert list(fields[0].bbox.model_dump()) == [1, 10, 2, 10]
    assert fields[1].type == "string"
    assert fields[1].map_to.bucket == "templateField"


def test_policy_overrides_band_sizes() -> None:
    policy = ClassifierPolicy(header_min_rows=5, equipment_max_rows=2, equipment_column_ratio=1.0)
    definition = StructureClassifier(policy).classify(_analysis(30, 6))

    assert definition.header.bbox.bottom == 5
    box = definition.equipment.bbox
    assert (box.top, box.bottom, box.right) == (6, 7, 6)
