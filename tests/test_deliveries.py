"""Tests for the delivery loader and the per-month fold."""

from datetime import datetime

from qos_dashboard.loaders.deliveries import parse_deliveries, parse_delivery_kind
from qos_dashboard.models import CUSTOMER, SUPPLIER, ParseContext, Plant


def test_outbound_rows_fold_into_one_month():
    """Three outbound rows in March for plant 235 become one Delivery."""
    sheet = [
        ["Plant", "Date", "Quantity", "Customer or Supplier"],
        [None, datetime(2025, 3, 3), 100, None],
        [None, "2025-03-10", 50, ""],
        [None, 45736, 25, None],
    ]
    result = parse_deliveries(sheet, file_name="Outbound 235_PS4.xlsx")

    assert result.ok
    assert result.warnings == []
    [d] = result.records
    assert d.plant_code == "235"
    assert d.site_code == "235"
    assert d.month == "2025-03"
    assert d.kind == CUSTOMER
    assert d.quantity == 175.0
    assert d.id == "235-235-2025-03-Customer"


def test_blank_goods_issue_date_skips_row():
    """The generic date column is not used when the role column is present."""
    sheet = [
        ["Plant", "Actual Goods Issue Date", "Date", "Quantity"],
        [101, None, "2025-03-01", 5],
        [101, "2025-03-02", "2025-04-01", 7],
    ]
    result = parse_deliveries(sheet, file_name="Outbound 101.xlsx")

    assert result.warnings == ["Row 2: Missing actual goods issue date"]
    [d] = result.records
    assert d.month == "2025-03"
    assert d.quantity == 7.0


def test_inbound_is_supplier_and_file_plant_wins():
    sheet = [
        ["Plant", "Actual Goods Receipt Date", "Quantity"],
        ["999", datetime(2025, 1, 5), 3],
        ["999", datetime(2025, 1, 20), 4],
    ]
    [d] = parse_deliveries(sheet, file_name="Inbound 410_PS4.xlsx").records
    assert d.kind == SUPPLIER
    assert d.plant_code == "410"
    assert d.quantity == 7.0


def test_kind_from_column_defaults_to_customer():
    sheet = [
        ["Plant", "Date", "Quantity", "Direction"],
        [101, "2025-04-01", 10, "Inbound"],
        [101, "2025-03-01", 5, "Customer"],
        [235, "2025-03-01", 5, "?"],
        [101, "2025-03-15", 5, "out"],
    ]
    result = parse_deliveries(sheet, file_name="deliveries.xlsx")

    assert [(d.plant_code, d.month, d.kind, d.quantity) for d in result.records] == [
        ("101", "2025-03", CUSTOMER, 10.0),
        ("101", "2025-04", SUPPLIER, 10.0),
        ("235", "2025-03", CUSTOMER, 5.0),
    ]
    assert result.warnings == ["1 rows had no customer/supplier kind and were counted as Customer"]


def test_non_positive_quantities_are_dropped():
    sheet = [
        ["Plant", "Date", "Quantity"],
        [101, "2025-03-01", 0],
        [101, "2025-03-01", -5],
        [101, "2025-03-01", "n/a"],
    ]
    result = parse_deliveries(sheet, file_name="Outbound 101.xlsx")
    assert result.ok
    assert result.records == []
    assert result.warnings == []


def test_missing_quantity_or_date_column_is_file_error():
    no_qty = parse_deliveries([["Plant", "Date"], [101, "2025-03-01"]], file_name="Outbound 101.xlsx")
    assert "quantity" in no_qty.error

    no_date = parse_deliveries([["Plant", "Quantity"], [101, 4]], file_name="Outbound 101.xlsx")
    assert "date" in no_date.error
    assert no_date.records == []


def test_invalid_date_is_warned():
    sheet = [["Plant", "Date", "Quantity"], [101, "someday", 4]]
    result = parse_deliveries(sheet, file_name="deliveries.xlsx")
    assert result.records == []
    assert result.warnings == ["Row 2: Missing or invalid date"]


def test_site_name_from_context():
    sheet = [["Date", "Quantity"], ["2025-03-01", 4]]
    context = ParseContext.from_plants([Plant(code="235", name="Brno")])
    [d] = parse_deliveries(sheet, file_name="Outbound 235_PS4.xlsx", context=context).records
    assert d.site_name == "Brno"


def test_parse_delivery_kind():
    assert parse_delivery_kind("Supplier") == SUPPLIER
    assert parse_delivery_kind(" in ") == SUPPLIER
    assert parse_delivery_kind("Outbound") == CUSTOMER
    assert parse_delivery_kind("C") == CUSTOMER
    assert parse_delivery_kind("") is None
    assert parse_delivery_kind("transfer") is None
