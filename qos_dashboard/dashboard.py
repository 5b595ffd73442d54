"""
Dashboard-ready output functions.

These are the entry points for a front end. Each function returns plain
dicts or lists suitable for rendering cards, trend charts and review
tables.
"""

import logging

from .kpis import calculate_ppm
from .models import FAILED, NEEDS_ATTENTION, Complaint, MonthlySiteKpi

logger = logging.getLogger(__name__)


def filter_kpis(
    kpis: list[MonthlySiteKpi],
    site_codes: list[str] | None = None,
    start_month: str | None = None,
    end_month: str | None = None,
) -> list[MonthlySiteKpi]:
    """KPIs for the selected sites within an inclusive "YYYY-MM" range."""
    sites = set(site_codes) if site_codes else None
    return [
        k for k in kpis
        if (sites is None or k.site_code in sites)
        and (start_month is None or k.month >= start_month)
        and (end_month is None or k.month <= end_month)
    ]


def get_summary(kpis: list[MonthlySiteKpi]) -> dict:
    """Totals for the top-level cards.

    PPMs are recomputed from the summed parts and deliveries of the
    selection, never averaged across sites.

    Returns
    -------
    Dict with structure:
    {
        "customer_complaints_q1": 12, "supplier_complaints_q2": 3,
        "internal_complaints_q3": 17, "internal_notifications_q3": 5,
        "deviations_d": 2,
        "ppap_in_progress": 1, "ppap_completed": 4,
        "customer_deliveries": 250000.0, "supplier_deliveries": 90000.0,
        "customer_defective_parts": 40.0, "supplier_defective_parts": 9.0,
        "internal_defective_parts": 17.0,
        "customer_ppm": 160.0, "supplier_ppm": 100.0,
        "sites": 3, "months": ["2025-01", "2025-02"],
    }
    """
    summary = {
        "customer_complaints_q1": sum(k.customer_complaints_q1 for k in kpis),
        "supplier_complaints_q2": sum(k.supplier_complaints_q2 for k in kpis),
        "internal_complaints_q3": sum(k.internal_complaints_q3 for k in kpis),
        "internal_notifications_q3": sum(k.internal_notifications_q3 for k in kpis),
        "deviations_d": sum(k.deviations_d for k in kpis),
        "ppap_in_progress": sum(k.ppap_p.in_progress for k in kpis),
        "ppap_completed": sum(k.ppap_p.completed for k in kpis),
        "customer_deliveries": sum(k.customer_deliveries for k in kpis),
        "supplier_deliveries": sum(k.supplier_deliveries for k in kpis),
        "customer_defective_parts": sum(k.customer_defective_parts for k in kpis),
        "supplier_defective_parts": sum(k.supplier_defective_parts for k in kpis),
        "internal_defective_parts": sum(k.internal_defective_parts for k in kpis),
    }
    summary["customer_ppm"] = calculate_ppm(
        summary["customer_defective_parts"], summary["customer_deliveries"]
    )
    summary["supplier_ppm"] = calculate_ppm(
        summary["supplier_defective_parts"], summary["supplier_deliveries"]
    )
    summary["sites"] = len({k.site_code for k in kpis})
    summary["months"] = get_available_months(kpis)
    return summary


def get_site_trend(kpis: list[MonthlySiteKpi], site_code: str) -> dict:
    """Month-ordered series for one site's trend charts; "complaints" counts
    Q1, Q2 and Q3 notifications."""
    rows = sorted((k for k in kpis if k.site_code == site_code), key=lambda k: k.month)
    if not rows:
        logger.warning("No KPI rows for site '%s'", site_code)
    return {
        "site_code": site_code,
        "site_name": next((k.site_name for k in rows if k.site_name), None),
        "months": [k.month for k in rows],
        "customer_ppm": [k.customer_ppm for k in rows],
        "supplier_ppm": [k.supplier_ppm for k in rows],
        "complaints": [
            k.customer_complaints_q1 + k.supplier_complaints_q2 + k.internal_notifications_q3
            for k in rows
        ],
    }


def get_available_months(kpis: list[MonthlySiteKpi]) -> list[str]:
    """Sorted months for UI dropdowns."""
    return sorted({k.month for k in kpis})


def get_available_sites(kpis: list[MonthlySiteKpi]) -> list[dict]:
    """Sorted site codes with their first known name."""
    names: dict[str, str | None] = {}
    for k in kpis:
        if not names.get(k.site_code):
            names[k.site_code] = k.site_name
    return [{"site_code": code, "site_name": names[code]} for code in sorted(names)]


def get_conversion_review(
    complaints: list[Complaint],
    statuses: tuple[str, ...] = (FAILED, NEEDS_ATTENTION),
) -> list[dict]:
    """Complaints whose unit conversion needs a human look.

    By default lists failed and unsupported conversions; pass
    ``statuses=(CONVERTED,)`` to audit the successful ones.
    """
    rows = []
    for c in complaints:
        status = c.conversion_status
        if status not in statuses:
            continue
        conv = c.conversion
        rows.append({
            "id": c.id,
            "notification_number": c.notification_number,
            "notification_type": c.notification_type,
            "site_code": c.site_code,
            "month": c.month,
            "unit_of_measure": c.unit_of_measure,
            "material_description": c.material_description,
            "original_value": conv.original_value if conv else c.defective_parts,
            "converted_value": conv.converted_value if conv else None,
            "conversion_status": status,
            "reason": conv.reason if conv else None,
        })
    logger.info("%d complaints listed for conversion review", len(rows))
    return rows

