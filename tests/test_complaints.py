"""Tests for the complaint loader."""

from datetime import datetime

import pytest

from qos_dashboard.config import CATEGORY_BY_TYPE, NOTIFICATION_TYPES
from qos_dashboard.loaders.complaints import parse_complaints, parse_notification_type
from qos_dashboard.loaders.utils import SheetFormatError
from qos_dashboard.models import ParseContext, Plant


def _sheet(headers, *rows):
    return [list(headers)] + [list(r) for r in rows]


def test_every_type_maps_to_a_category():
    """The nine notification codes all have a category."""
    assert set(CATEGORY_BY_TYPE) == set(NOTIFICATION_TYPES)
    assert CATEGORY_BY_TYPE["Q1"] == "CustomerComplaint"
    assert CATEGORY_BY_TYPE["Q3"] == "InternalComplaint"
    assert CATEGORY_BY_TYPE["D2"] == "Deviation"
    assert CATEGORY_BY_TYPE["P3"] == "PPAP"


def test_parse_notification_type():
    assert parse_notification_type("Q1") == ("Q1", ["Q1"])
    assert parse_notification_type("q 2 - supplier") == ("Q2", ["Q2"])
    assert parse_notification_type("ZQ1")[0] is None
    assert parse_notification_type("Q1/Q2") == ("Q1", ["Q1", "Q2"])
    assert parse_notification_type("Customer")[0] is None


def test_volume_conversion(complaint_headers):
    """ML complaints are stored as pieces with the raw value kept."""
    sheet = _sheet(
        complaint_headers,
        ["2000001", "Q1", "101", datetime(2025, 3, 4), 1200, "ML", "SEALANT BOTTLE 600ML"],
    )
    result = parse_complaints(sheet)

    assert result.ok
    [c] = result.records
    assert c.id == "101-2000001"
    assert c.notification_type == "Q1"
    assert c.category == "CustomerComplaint"
    assert c.defective_parts == 2
    assert c.conversion.was_converted
    assert c.conversion.original_value == 1200
    assert c.month == "2025-03"


def test_area_conversion(complaint_headers):
    sheet = _sheet(
        complaint_headers,
        ["2000002", "Q2", "101", "2025-03-05", 4, "M2", "W1000MM H2000MM"],
    )
    [c] = parse_complaints(sheet).records
    assert c.defective_parts == 2
    assert c.conversion.was_converted


def test_failed_conversion_keeps_original_value(complaint_headers):
    sheet = _sheet(
        complaint_headers,
        ["2000003", "Q1", "101", "2025-03-05", 30, "KG", "GRANULATE"],
    )
    [c] = parse_complaints(sheet).records
    assert c.defective_parts == 30
    assert c.conversion.converted_value is None
    assert c.conversion_status == "needs_attention"


def test_piece_units_have_no_conversion(complaint_headers):
    sheet = _sheet(
        complaint_headers,
        ["2000004", "Q3", "101", "2025-03-05", 10, "PC", "HOUSING"],
    )
    [c] = parse_complaints(sheet).records
    assert c.defective_parts == 10
    assert c.conversion is None
    assert c.category == "InternalComplaint"


def test_missing_required_column_is_file_error():
    sheet = _sheet(["Notification", "Plant", "Defective Parts"], ["1", "101", 3])
    result = parse_complaints(sheet, file_name="complaints.xlsx")
    assert not result.ok
    assert "notification_type" in result.error
    assert "created_on" in result.error
    assert result.records == []


def test_no_header_row_raises():
    with pytest.raises(SheetFormatError):
        parse_complaints([])


def test_bad_rows_are_skipped_with_warnings(complaint_headers):
    sheet = _sheet(
        complaint_headers,
        ["2000010", "Q1", "101", "not a date", 1, "PC", ""],
        [None, None, None, None, None, None, None],
        ["", "Q1", "101", "2025-03-01", 1, "PC", ""],
        ["2000011", "Complaint", "101", "2025-03-01", 1, "PC", ""],
        ["2000012", "Q1", "101", "2025-03-01", 1, "PC", ""],
    )
    result = parse_complaints(sheet)

    assert [c.notification_number for c in result.records] == ["2000012"]
    assert result.warnings == [
        "Row 2: Missing or invalid creation date",
        "Row 4: Missing notification number",
        "Row 5: Unrecognised notification type 'Complaint'",
    ]


def test_several_codes_warn_and_use_first(complaint_headers):
    sheet = _sheet(complaint_headers, ["2000020", "Q2 (was Q1)", "101", "2025-03-01", 1, "PC", ""])
    result = parse_complaints(sheet)
    assert result.records[0].notification_type == "Q2"
    assert "Several notification types" in result.warnings[0]


def test_plant_from_file_name():
    sheet = _sheet(
        ["Notification", "Notification Type", "Created On", "Defective Parts"],
        ["2000030", "Q1", "2025-03-01", 2],
    )
    result = parse_complaints(sheet, file_name="Q Cockpit Complaints PPM - 410.xlsx")
    [c] = result.records
    assert c.plant_code == "410"
    assert c.site_code == "410"
    assert c.id == "410-2000030"


def test_row_without_any_plant_is_skipped():
    sheet = _sheet(
        ["Notification", "Notification Type", "Created On"],
        ["2000031", "Q1", "2025-03-01"],
    )
    result = parse_complaints(sheet, file_name="complaints.xlsx")
    assert result.records == []
    assert result.warnings == ["Row 2: Missing plant code"]


def test_q1_prefers_internal_and_q2_external_columns():
    headers = [
        "Notification", "Notification Type", "Plant", "Created On",
        "Defective Parts", "Defective (Internal)", "Defective (External)",
    ]
    sheet = _sheet(
        headers,
        ["1", "Q1", "101", "2025-03-01", 5, 7, 9],
        ["2", "Q2", "101", "2025-03-01", 5, 7, 9],
        ["3", "Q2", "101", "2025-03-01", 5, 7, None],
        ["4", "Q3", "101", "2025-03-01", 5, 7, 9],
    )
    parts = [c.defective_parts for c in parse_complaints(sheet).records]
    assert parts == [7, 9, 5, 5]


def test_negative_quantities_clamp_to_zero(complaint_headers):
    sheet = _sheet(complaint_headers, ["2000040", "Q1", "101", "2025-03-01", -4, "PC", ""])
    assert parse_complaints(sheet).records[0].defective_parts == 0


def test_numeric_cells_and_serial_dates(complaint_headers):
    sheet = _sheet(complaint_headers, [2000050.0, "Q1", 101.0, 45736, 1, "PC", None])
    [c] = parse_complaints(sheet).records
    assert c.notification_number == "2000050"
    assert c.plant_code == "101"
    assert c.created_on == datetime(2025, 3, 20)


def test_reparse_is_deterministic(complaint_headers):
    sheet = _sheet(
        complaint_headers,
        ["2000060", "Q1", "101", "2025-03-01", 1200, "ML", "600ML"],
        ["2000061", "Q2", "235", "2025-04-01", 3, "PC", ""],
    )
    assert parse_complaints(sheet).records == parse_complaints(sheet).records


def test_context_fills_site_name_and_overrides(complaint_headers):
    headers = complaint_headers[:4] + ["Menge"]
    sheet = _sheet(headers, ["2000070", "Q1", "101", "2025-03-01", 6])
    context = ParseContext.from_plants(
        [Plant(code="101", name="Lahnstein")],
        column_overrides={"complaints": {"defective_parts": "Menge"}},
    )
    [c] = parse_complaints(sheet, context=context).records
    assert c.site_name == "Lahnstein"
    assert c.defective_parts == 6


def test_customer_number_is_not_a_notification_number():
    """Without a notification column the sheet fails instead of reusing another number."""
    sheet = _sheet(
        ["Customer Number", "Notification Type", "Plant", "Created On", "Defective Parts"],
        ["C-900", "Q1", "101", "2025-03-01", 8],
        ["C-900", "Q1", "101", "2025-03-02", 6],
        ["C-900", "Q1", "101", "2025-03-03", 4],
    )
    result = parse_complaints(sheet)
    assert not result.ok
    assert "notification_number" in result.error
    assert result.records == []


def test_material_type_is_not_a_notification_type():
    sheet = _sheet(["Material Type", "Notification", "Created On"], ["ROH", "2000080", "2025-03-01"])
    result = parse_complaints(sheet)
    assert not result.ok
    assert "notification_type" in result.error
