"""Tests for the dashboard output functions."""

import pytest

from qos_dashboard.dashboard import (
    filter_kpis,
    get_available_months,
    get_available_sites,
    get_conversion_review,
    get_site_trend,
    get_summary,
)
from qos_dashboard.kpis import calculate_monthly_site_kpis
from qos_dashboard.loaders.units import convert_to_pieces
from qos_dashboard.models import CONVERTED


@pytest.fixture
def kpis(make_complaint, make_delivery):
    complaints = [
        make_complaint("Q1", site="101", month=(2025, 3), parts=10),
        make_complaint("Q1", site="235", month=(2025, 3), parts=0),
        make_complaint("Q3", site="101", month=(2025, 4), parts=2),
        make_complaint("P1", site="235", month=(2025, 4)),
    ]
    deliveries = [
        make_delivery(1000, site="101", month="2025-03", site_name="Lahnstein"),
        make_delivery(9000, site="235", month="2025-03", site_name="Brno"),
        make_delivery(500, site="101", month="2025-04"),
    ]
    return calculate_monthly_site_kpis(complaints, deliveries)


def test_filter_by_site_and_month_range(kpis):
    assert [k.key for k in filter_kpis(kpis, site_codes=["101"])] == [
        ("2025-03", "101"), ("2025-04", "101"),
    ]
    assert [k.key for k in filter_kpis(kpis, start_month="2025-04")] == [
        ("2025-04", "101"), ("2025-04", "235"),
    ]
    assert len(filter_kpis(kpis, start_month="2025-03", end_month="2025-03")) == 2
    assert filter_kpis(kpis) == kpis


def test_summary_pools_ppm(kpis):
    """Customer PPM of the selection is 10 / 10500, not a mean of site PPMs."""
    summary = get_summary(kpis)
    assert summary["customer_complaints_q1"] == 2
    assert summary["internal_complaints_q3"] == 2
    assert summary["internal_notifications_q3"] == 1
    assert summary["ppap_in_progress"] == 1
    assert summary["customer_deliveries"] == 10_500.0
    assert summary["customer_ppm"] == pytest.approx(10 / 10_500 * 1_000_000)
    assert summary["supplier_ppm"] is None
    assert summary["sites"] == 2
    assert summary["months"] == ["2025-03", "2025-04"]


def test_summary_of_nothing():
    summary = get_summary([])
    assert summary["customer_ppm"] is None
    assert summary["sites"] == 0
    assert summary["months"] == []


def test_site_trend(kpis):
    trend = get_site_trend(kpis, "101")
    assert trend["site_name"] == "Lahnstein"
    assert trend["months"] == ["2025-03", "2025-04"]
    assert trend["customer_ppm"] == pytest.approx([10_000.0, 0.0])
    assert trend["complaints"] == [1, 1]
    assert get_site_trend(kpis, "999")["months"] == []


def test_available_months_and_sites(kpis):
    assert get_available_months(kpis) == ["2025-03", "2025-04"]
    assert get_available_sites(kpis) == [
        {"site_code": "101", "site_name": "Lahnstein"},
        {"site_code": "235", "site_name": "Brno"},
    ]


def test_conversion_review(make_complaint):
    ok = make_complaint("Q1", unit_of_measure="ML", conversion=convert_to_pieces(1200, "ML", "600ML"))
    failed = make_complaint("Q1", unit_of_measure="ML", conversion=convert_to_pieces(5, "ML", "SEALANT"))
    pieces = make_complaint("Q1", unit_of_measure="PC", parts=3)

    rows = get_conversion_review([ok, failed, pieces])
    assert [r["id"] for r in rows] == [failed.id]
    assert rows[0]["conversion_status"] == "failed"
    assert rows[0]["reason"]

    audited = get_conversion_review([ok, failed, pieces], statuses=(CONVERTED,))
    assert [r["converted_value"] for r in audited] == [2.0]


def test_trend_counts_notifications_not_parts(make_complaint):
    """A Q3 with 500 parts adds one complaint to the trend, not 500."""
    kpis = calculate_monthly_site_kpis(
        [make_complaint("Q1", parts=1), make_complaint("Q3", parts=500)], []
    )
    trend = get_site_trend(kpis, "101")
    assert trend["complaints"] == [2]
