"""Tests for KPI merging, record corrections and manual KPI entry."""

import dataclasses

import pytest

from qos_dashboard.models import MonthlySiteKpi
from qos_dashboard.reconcile import apply_corrections, build_manual_kpi, merge_kpis, replace_fields


def _kpi(month, site, q1=0):
    return MonthlySiteKpi(month=month, site_code=site, customer_complaints_q1=q1)


def test_merge_replaces_by_key():
    """Overlapping keys are replaced, not summed or duplicated."""
    existing = [
        _kpi("2025-03", "101", 1),
        _kpi("2025-03", "235", 1),
        _kpi("2025-04", "101", 1),
        _kpi("2025-04", "235", 1),
    ]
    incoming = [
        _kpi("2025-04", "235", 7),
        _kpi("2025-03", "101", 9),
        _kpi("2025-05", "101", 2),
    ]
    merged = merge_kpis(existing, incoming)

    assert len(merged) == 5
    assert [k.key for k in merged] == sorted(k.key for k in merged)
    by_key = {k.key: k.customer_complaints_q1 for k in merged}
    assert by_key[("2025-03", "101")] == 9
    assert by_key[("2025-04", "235")] == 7
    assert by_key[("2025-03", "235")] == 1


def test_merge_with_empty_sides():
    rows = [_kpi("2025-03", "101")]
    assert merge_kpis([], rows) == rows
    assert merge_kpis(rows, []) == rows


def test_apply_corrections(make_complaint):
    a, b, c = (make_complaint("Q1", parts=1) for _ in range(3))
    fixed_b = replace_fields(b, defective_parts=4.0)
    extra = make_complaint("Q2", parts=1)

    result = apply_corrections([a, b, c], [fixed_b, extra])

    assert [r.id for r in result] == [a.id, b.id, c.id, extra.id]
    assert result[1].defective_parts == 4.0
    assert result[0] is a


def test_replace_fields_keeps_id(make_complaint):
    record = make_complaint("Q1", parts=1)
    fixed = replace_fields(record, notification_type="Q2")
    assert fixed.id == record.id
    assert fixed.category == "SupplierComplaint"
    with pytest.raises(ValueError):
        replace_fields(record, id="other")


def test_manual_kpi_computes_ppm():
    kpi = build_manual_kpi(
        "2025-03", "101",
        site_name="Lahnstein",
        ppap_in_progress=2,
        customer_complaints_q1=1,
        customer_defective_parts=5,
        customer_deliveries=1_000_000,
        customer_ppm=999,
        audits=3,
    )
    assert kpi.customer_ppm == pytest.approx(5.0)
    assert kpi.supplier_ppm is None
    assert kpi.ppap_p.in_progress == 2
    assert kpi.customer_complaints_q1 == 1
    assert kpi.extensions == {"audits": 3}
    assert dataclasses.asdict(kpi)["site_name"] == "Lahnstein"


def test_manual_kpi_accepts_numeric_text():
    kpi = build_manual_kpi("2025-12", " 235 ", deviations_d="4", supplier_deliveries="250.5")
    assert kpi.site_code == "235"
    assert kpi.deviations_d == 4
    assert kpi.supplier_deliveries == 250.5


@pytest.mark.parametrize("month, site, fields", [
    ("2025-13", "101", {}),
    ("03-2025", "101", {}),
    ("2025-03", "10", {}),
    ("2025-03", "ABC", {}),
    ("2025-03", "101", {"customer_deliveries": -1}),
    ("2025-03", "101", {"deviations_d": True}),
    ("2025-03", "101", {"supplier_defective_parts": "lots"}),
    ("2025-03", "101", {"ppap_completed": -2}),
])
def test_manual_kpi_rejects_invalid_input(month, site, fields):
    with pytest.raises(ValueError):
        build_manual_kpi(month, site, **fields)
