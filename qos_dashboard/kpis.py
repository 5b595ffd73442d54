"""
KPI computation functions: pure functions with no side effects.

Provides the PPM ratio, monthly per-site KPI aggregation and the global
(whole input set) PPM.
"""

import logging
import math

import pandas as pd

from .config import PPAP_COMPLETED_TYPES, PPAP_IN_PROGRESS_TYPES, PPM_FACTOR
from .models import (
    CUSTOMER,
    SUPPLIER,
    Delivery,
    GlobalPpm,
    MonthlySiteKpi,
    Notification,
    PpapCounts,
)
from .transforms import build_fact_deliveries, build_fact_notifications

logger = logging.getLogger(__name__)

_COUNT_MEASURES = [
    "customer_complaints_q1",
    "supplier_complaints_q2",
    "internal_complaints_q3",
    "internal_notifications_q3",
    "deviations_d",
    "ppap_in_progress",
    "ppap_completed",
]

_QUANTITY_MEASURES = [
    "customer_deliveries",
    "supplier_deliveries",
    "customer_defective_parts",
    "supplier_defective_parts",
    "internal_defective_parts",
]

_KEY = ["month", "site_code"]


def calculate_ppm(defects: float, deliveries: float) -> float | None:
    """Return defects per million delivered parts.

    None when deliveries are zero; zero defects over positive deliveries is
    a valid PPM of 0.
    """
    if deliveries == 0:
        return None
    return defects / deliveries * PPM_FACTOR


# ---------------------------------------------------------------------------
# Measure frames: one row per record, one column per KPI measure
# ---------------------------------------------------------------------------

def _notification_measures(records: list[Notification]) -> pd.DataFrame:
    df = build_fact_notifications(records)
    ntype = df["notification_type"]
    parts = df["defective_parts"]

    out = df[_KEY + ["site_name"]].copy()
    out["customer_complaints_q1"] = (ntype == "Q1").astype(int)
    out["supplier_complaints_q2"] = (ntype == "Q2").astype(int)
    # internal complaints are measured in defective parts, not notifications
    out["internal_complaints_q3"] = parts.where(ntype == "Q3", 0.0)
    out["internal_notifications_q3"] = (ntype == "Q3").astype(int)
    out["deviations_d"] = ntype.str.startswith("D").astype(int)
    out["ppap_in_progress"] = ntype.isin(PPAP_IN_PROGRESS_TYPES).astype(int)
    out["ppap_completed"] = ntype.isin(PPAP_COMPLETED_TYPES).astype(int)
    out["customer_deliveries"] = 0.0
    out["supplier_deliveries"] = 0.0
    out["customer_defective_parts"] = parts.where(ntype == "Q1", 0.0)
    out["supplier_defective_parts"] = parts.where(ntype == "Q2", 0.0)
    out["internal_defective_parts"] = parts.where(ntype == "Q3", 0.0)
    return out


def _delivery_measures(deliveries: list[Delivery]) -> pd.DataFrame:
    df = build_fact_deliveries(deliveries)
    qty = df["quantity"]

    out = df[_KEY + ["site_name"]].copy()
    for col in _COUNT_MEASURES:
        out[col] = 0
    out["customer_deliveries"] = qty.where(df["kind"] == CUSTOMER, 0.0)
    out["supplier_deliveries"] = qty.where(df["kind"] == SUPPLIER, 0.0)
    for col in ("customer_defective_parts", "supplier_defective_parts", "internal_defective_parts"):
        out[col] = 0.0
    return out


def _conversion_summaries(records: list[Notification]) -> dict[tuple[str, str], dict]:
    """Per-key summaries of converted Q1/Q2 quantities, for review."""
    field_by_type = {"Q1": "customer_conversions", "Q2": "supplier_conversions"}
    summaries: dict[tuple[str, str], dict] = {}

    for rec in records:
        conv = getattr(rec, "conversion", None)
        field = field_by_type.get(rec.notification_type)
        if field is None or conv is None or not conv.was_converted:
            continue
        ext = summaries.setdefault((rec.month, rec.site_code), {})
        summary = ext.setdefault(field, {
            "total_converted": 0,
            "total_original": 0.0,
            "total_pieces": 0.0,
            "conversions": [],
        })
        summary["total_converted"] += 1
        summary["total_original"] += conv.original_value
        summary["total_pieces"] += conv.converted_value
        summary["conversions"].append({
            "notification_number": rec.notification_number,
            "original_value": conv.original_value,
            "original_unit": conv.original_unit,
            "converted_value": conv.converted_value,
            "unit_size": conv.unit_size,
            "material_description": conv.material_description,
        })

    return summaries


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def calculate_monthly_site_kpis(
    complaints: list[Notification],
    deliveries: list[Delivery],
) -> list[MonthlySiteKpi]:
    """Aggregate notifications and deliveries into monthly per-site KPIs.

    Rules
    -----
    - Key is (month, site_code); month comes from ``created_on`` for
      notifications and from the folded month for deliveries.
    - Counts: one per notification for Q1, Q2, Q3 (``internal_notifications_q3``),
      D* and P1 vs P2-P3.
    - ``internal_complaints_q3`` is the sum of Q3 defective parts rounded
      half up, so Q3 notifications with no defective parts give 0 there
      and still count in ``internal_notifications_q3``.
    - Defective parts: summed per complaint category (customer = Q1,
      supplier = Q2, internal = Q3). Internal parts carry no PPM.
    - Deliveries: summed per kind.
    - Site name: first non-empty name among the key's notifications, then
      its deliveries.

    Returns
    -------
    List of MonthlySiteKpi sorted by (month, site_code).
    """
    frames = []
    if complaints:
        frames.append(_notification_measures(complaints))
    if deliveries:
        frames.append(_delivery_measures(deliveries))
    if not frames:
        return []

    df = pd.concat(frames, ignore_index=True)
    agg = {"site_name": ("site_name", "first")}
    for col in _COUNT_MEASURES + _QUANTITY_MEASURES:
        agg[col] = (col, "sum")
    grouped = df.groupby(_KEY, sort=True).agg(**agg).reset_index()

    conversions = _conversion_summaries(complaints)
    kpis = []
    for row in grouped.itertuples(index=False):
        customer_defects = float(row.customer_defective_parts)
        supplier_defects = float(row.supplier_defective_parts)
        customer_deliveries = float(row.customer_deliveries)
        supplier_deliveries = float(row.supplier_deliveries)

        kpis.append(MonthlySiteKpi(
            month=row.month,
            site_code=row.site_code,
            site_name=None if pd.isna(row.site_name) else row.site_name,
            customer_complaints_q1=int(row.customer_complaints_q1),
            supplier_complaints_q2=int(row.supplier_complaints_q2),
            internal_complaints_q3=math.floor(row.internal_complaints_q3 + 0.5),
            internal_notifications_q3=int(row.internal_notifications_q3),
            deviations_d=int(row.deviations_d),
            ppap_p=PpapCounts(
                in_progress=int(row.ppap_in_progress),
                completed=int(row.ppap_completed),
            ),
            customer_deliveries=customer_deliveries,
            supplier_deliveries=supplier_deliveries,
            customer_defective_parts=customer_defects,
            supplier_defective_parts=supplier_defects,
            internal_defective_parts=float(row.internal_defective_parts),
            customer_ppm=calculate_ppm(customer_defects, customer_deliveries),
            supplier_ppm=calculate_ppm(supplier_defects, supplier_deliveries),
            extensions=conversions.get((row.month, row.site_code), {}),
        ))

    logger.info("Calculated %d monthly site KPIs", len(kpis))
    return kpis


def calculate_global_ppm(
    complaints: list[Notification],
    deliveries: list[Delivery],
) -> GlobalPpm:
    """Customer and supplier PPM over the whole input set.

    Ratio of summed defects to summed deliveries, never a mean of per-site
    PPMs.
    """
    notes = build_fact_notifications(complaints)
    deliv = build_fact_deliveries(deliveries)

    customer_defects = float(notes.loc[notes["notification_type"] == "Q1", "defective_parts"].sum())
    supplier_defects = float(notes.loc[notes["notification_type"] == "Q2", "defective_parts"].sum())
    customer_qty = float(deliv.loc[deliv["kind"] == CUSTOMER, "quantity"].sum())
    supplier_qty = float(deliv.loc[deliv["kind"] == SUPPLIER, "quantity"].sum())

    return GlobalPpm(
        customer_ppm=calculate_ppm(customer_defects, customer_qty),
        supplier_ppm=calculate_ppm(supplier_defects, supplier_qty),
    )
