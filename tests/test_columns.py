"""Tests for header resolution."""

from qos_dashboard.config import COMPLAINT_COLUMNS, DELIVERY_COLUMNS
from qos_dashboard.loaders.columns import (
    ColumnSpec,
    build_schema,
    find_column,
    resolve_columns,
)


def _spec(**entry):
    return ColumnSpec.from_config(entry)


def test_exact_match_wins_over_substring():
    """An exact header is preferred to an earlier header containing the term."""
    headers = ["Plant Name Short", "Plant"]
    assert find_column(headers, _spec(candidates=["plant"])) == 1


def test_candidate_order_decides():
    headers = ["Site", "Plant Code"]
    assert find_column(headers, _spec(candidates=["plant code", "site"])) == 1


def test_notification_number_never_binds_to_type_or_status():
    """Excluded terms keep 'Notification Type' away from the number field."""
    schema = build_schema(COMPLAINT_COLUMNS)
    headers = ["Notification Type", "Notification Status", "Notification", "Created On"]
    mapping = resolve_columns(headers, schema)
    assert mapping["notification_number"] == 2
    assert mapping["notification_type"] == 0


def test_substring_respects_word_boundaries():
    spec = _spec(candidates=["plant"])
    assert find_column(["Plant for Material"], spec) == 0
    assert find_column(["Planting Date"], spec) is None


def test_keyword_fallback():
    spec = _spec(candidates=["notification number"], keywords=["notif"])
    assert find_column(["Notif. Nr"], spec) == 0


def test_predicate_fallback():
    spec = ColumnSpec(candidates=("quantity",), fallback=lambda h: h.startswith("menge"))
    assert find_column(["Werk", "Menge (ST)"], spec) == 1


def test_empty_headers_never_match():
    spec = _spec(candidates=["qty"], keywords=[""])
    assert find_column(["", None, "Qty"], spec) == 2


def test_unresolved_is_none():
    mapping = resolve_columns(["Foo", "Bar"], build_schema(DELIVERY_COLUMNS))
    assert mapping["quantity"] is None
    assert not mapping.resolved("quantity")
    assert mapping.missing() == ["quantity"]


def test_mapping_accessors():
    schema = build_schema(COMPLAINT_COLUMNS)
    headers = ["Notification", "Type", "Created On", "Defective (Internal)", "Defective Qty"]
    mapping = resolve_columns(headers, schema)
    assert mapping.header("defective_internal") == "Defective (Internal)"
    assert mapping["defective_parts"] == 4
    assert mapping.missing() == []
    assert mapping.missing(["plant", "created_on"]) == ["plant"]
    assert len(mapping) == len(schema)


def test_overrides_pin_a_header():
    schema = build_schema(DELIVERY_COLUMNS)
    headers = ["Qty", "Menge", "Date"]
    assert resolve_columns(headers, schema)["quantity"] == 0
    pinned = resolve_columns(headers, schema, overrides={"quantity": "menge"})
    assert pinned["quantity"] == 1


def test_override_for_missing_header_is_ignored():
    schema = build_schema(DELIVERY_COLUMNS)
    mapping = resolve_columns(["Qty", "Date"], schema, overrides={"quantity": "Stückzahl"})
    assert mapping["quantity"] == 0


def test_other_number_columns_are_excluded():
    schema = build_schema(COMPLAINT_COLUMNS)
    headers = ["Customer Number", "Order Nr", "Vendor Number", "Material Type", "Created On"]
    mapping = resolve_columns(headers, schema)
    assert mapping["notification_number"] is None
    assert mapping["notification_type"] is None
    assert mapping.missing() == ["notification_number", "notification_type"]
