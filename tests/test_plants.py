"""Tests for the plant master-data loader."""

from qos_dashboard.loaders.plants import parse_plants
from qos_dashboard.transforms import build_dim_plant


def _plants_sheet():
    return [
        ["Plant Code", "Plant Name", "City", "Country", "ERP"],
        [235, None, "Brno", None, None],
        [101.0, "Lahnstein Works", "Lahnstein", "Germany", "PS4"],
        [101, "Duplicate", "Elsewhere", None, None],
        [None, "No code", None, None, None],
    ]


def test_parse_plants():
    result = parse_plants(_plants_sheet(), file_name="Plants.xlsx")

    brno, lahnstein = result.records
    assert brno.code == "235"
    assert brno.name == "Brno"
    assert brno.location == "Brno"
    assert lahnstein.code == "101"
    assert lahnstein.name == "Lahnstein Works"
    assert lahnstein.location == "Lahnstein, Germany"
    assert lahnstein.erp == "PS4"
    assert result.warnings == [
        "Row 4: Duplicate plant code 101",
        "Row 5: Missing plant code",
    ]


def test_plants_need_a_code_column():
    result = parse_plants([["Name", "City"], ["Brno", "Brno"]])
    assert not result.ok
    assert "code" in result.error


def test_dim_plant_is_sorted_by_code():
    df = build_dim_plant(parse_plants(_plants_sheet()).records)
    assert list(df["code"]) == ["101", "235"]
    assert "location" in df.columns
