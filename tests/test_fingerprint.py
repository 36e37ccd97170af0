import random

from dto.anchors import Anchor, LabelValuePair
from dto.output import WorkbookAnalysis, WorkbookMeta
from dto.template import PageSize
from fingerprint import FingerprintBuilder, grid_hash
from pipeline import analyze_workbook
from utils.coords import coord


def _meta(rows: int = 60, cols: int = 4) -> WorkbookMeta:
    return WorkbookMeta(
        sheet_name="Sheet1", row_count=rows, column_count=cols, page_size=PageSize(w=1000, h=1400)
    )


def _title(text: str, row: int, col: int = 1) -> Anchor:
    return Anchor(text=text, row=row, col=col, address=coord(col, row))


def _pair(label: str, row: int) -> LabelValuePair:
    return LabelValuePair(label=label, value_hint="1", row=row, label_column=1, value_column=2)


def test_grid_hash() -> None:
    assert grid_hash(40, 6) == "r40c6"


def test_anchor_cap_keeps_first_twelve_by_position() -> None:
    titles = [_title(f"SECTION {i}", row=i + 1) for i in range(50)]
    random.Random(7).shuffle(titles)

    fp = FingerprintBuilder().build(WorkbookAnalysis(meta=_meta(), bold_titles=titles))

    assert len(fp.anchors) == 12
    assert [a.text for a in fp.anchors] == [f"SECTION {i}" for i in range(12)]


def test_anchor_dedupe_and_one_cell_bbox() -> None:
    titles = [
        _title("  Process   Data ", 5, 2),
        _title("PROCESS DATA", 9, 1),
        _title("Notes", 12, 3),
    ]

    anchors = FingerprintBuilder().build_anchors(titles)

    assert [a.text for a in anchors] == ["Process Data", "Notes"]
    assert anchors[0].bbox.model_dump() == [2, 5, 2, 5]
    assert anchors[1].bbox.model_dump() == [3, 12, 3, 12]


def test_label_set_dedupes_case_insensitively() -> None:
    pairs = [_pair("Pressure", 1), _pair("pressure", 2), _pair("Temperature", 3)]
    assert FingerprintBuilder().build_label_set(pairs) == ["Pressure", "Temperature"]


def test_colon_labels_differing_in_case_share_one_entry(make_xlsx) -> None:
    data = make_xlsx(
        {
            (1, 1): "DATASHEET",
            (4, 1): "Pressure:",
            (4, 2): "10 bar",
            (6, 1): "pressure:",
            (6, 2): "12 bar",
        },
        bold=[(1, 1)],
    )
    analysis = analyze_workbook(data)

    fp = FingerprintBuilder().build(analysis)

    assert len(analysis.label_value_pairs) == 2
    assert fp.label_set == ["Pressure"]


def test_label_set_cap() -> None:
    pairs = [_pair(f"Label {i}", i + 1) for i in range(45)]
    labels = FingerprintBuilder().build_label_set(pairs)

    assert len(labels) == 40
    assert labels[-1] == "Label 39"


def test_same_analysis_gives_identical_json() -> None:
    analysis = WorkbookAnalysis(
        meta=_meta(),
        bold_titles=[_title("B", 4), _title("A", 2)],
        label_value_pairs=[_pair("Size", 6)],
    )
    builder = FingerprintBuilder()

    first = builder.build(analysis).model_dump_json(by_alias=True)
    second = builder.build(analysis).model_dump_json(by_alias=True)

    assert first == second
    assert '"gridHash":"r60c4"' in first
    assert '"labelSet":["Size"]' in first
