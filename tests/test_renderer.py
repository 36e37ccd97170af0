import io

from openpyxl import load_workbook

from dto.coordinate import BoundingBox
from dto.region import Region
from dto.template import FieldDefinition, Fingerprint, PageSize, RenderHints, TemplateDefinition
from templates.renderer import XlsxRenderer, safe_sheet_name


def _definition(exact: bool, borders=()) -> TemplateDefinition:
    return TemplateDefinition(
        id="tpl-1",
        client_key="Pump/Data:v1",
        fingerprint=Fingerprint(page_size=PageSize(w=1000, h=1400), grid_hash="r20c4"),
        regions=[
            Region(kind="header", name="HEADER", bbox=BoundingBox(left=1, top=1, right=4, bottom=3)),
            Region(kind="equipment", name="EQUIPMENT", bbox=BoundingBox(left=1, top=4, right=2, bottom=9)),
            Region(kind="subsheet", name="PROCESS", bbox=BoundingBox(left=1, top=10, right=4, bottom=20)),
        ],
        fields=[
            FieldDefinition(key="f_000", label="Design Pressure", bbox=BoundingBox(left=1, top=11, right=2, bottom=11)),
            FieldDefinition(key="f_001", label="Insulated", bbox=BoundingBox(left=3, top=11, right=4, bottom=11), type="bool"),
            FieldDefinition(key="f_002", label="Material", bbox=BoundingBox(left=1, top=12, right=2, bottom=12)),
            # label cells on the top-left corner of a region
            FieldDefinition(key="f_003", label="Tag No.", bbox=BoundingBox(left=1, top=10, right=2, bottom=10)),
            FieldDefinition(key="f_004", label="Service", bbox=BoundingBox(left=1, top=4, right=2, bottom=4)),
            # same label cell as f_000
            FieldDefinition(key="f_005", label="Duplicate", bbox=BoundingBox(left=1, top=11, right=2, bottom=11)),
        ],
        render_hints=RenderHints(exact_placement=exact, table_borders=list(borders)),
    )


def _render(definition: TemplateDefinition, values):
    buf = io.BytesIO()
    XlsxRenderer().render(definition, values, buf)
    buf.seek(0)
    return load_workbook(buf).active


def test_safe_sheet_name() -> None:
    assert safe_sheet_name("Pump/Data:v1") == "Pump Data v1"
    assert safe_sheet_name("[]") == "Sheet"
    assert len(safe_sheet_name("x" * 40)) == 31


def test_exact_placement_uses_field_boxes() -> None:
    ws = _render(
        _definition(exact=True),
        {"f_000": "150 psi", "Insulated": True},
    )

    assert ws.title == "Pump Data v1"
    assert ws["A1"].value == "HEADER"
    assert ws["A1"].font.b
    assert ws["A11"].value == "Design Pressure:"
    assert ws["B11"].value == "150 psi"
    assert ws["C11"].value == "Insulated:"
    assert ws["D11"].value == "Yes"
    # no value supplied
    assert ws["A12"].value == "Material:"
    assert ws["B12"].value is None


def test_exact_placement_fields_win_over_region_titles() -> None:
    ws = _render(_definition(exact=True), {"Tag No.": "P-101", "f_004": "Cooling water"})

    assert ws["A4"].value == "Service:"
    assert ws["B4"].value == "Cooling water"
    assert ws["A10"].value == "Tag No.:"
    assert ws["B10"].value == "P-101"


def test_exact_placement_first_field_keeps_a_shared_cell() -> None:
    ws = _render(_definition(exact=True), {"f_000": "150 psi", "f_005": "ignored"})

    assert ws["A11"].value == "Design Pressure:"
    assert ws["B11"].value == "150 psi"


def test_sequential_placement() -> None:
    ws = _render(_definition(exact=False), {"f_002": "Steel", "Insulated": False})

    assert ws["A1"].value == "Pump/Data:v1"
    assert [ws.cell(row=r, column=1).value for r in range(3, 9)] == [
        "Design Pressure:",
        "Insulated:",
        "Material:",
        "Tag No.:",
        "Service:",
        "Duplicate:",
    ]
    assert ws["B3"].value is None
    assert ws["B4"].value == "No"
    assert ws["B5"].value == "Steel"


def test_table_borders_outline_the_box() -> None:
    box = BoundingBox(left=1, top=14, right=2, bottom=15)
    ws = _render(_definition(exact=True, borders=[box]), {})

    assert ws["A14"].border.left.style == "thin"
    assert ws["A14"].border.top.style == "thin"
    assert ws["A14"].border.right.style is None
    assert ws["B15"].border.right.style == "thin"
    assert ws["B15"].border.bottom.style == "thin"


def test_render_to_path_creates_parent(tmp_path) -> None:
    target = tmp_path / "out" / "filled.xlsx"
    XlsxRenderer().render(_definition(exact=True), {}, target)
    assert target.is_file()
