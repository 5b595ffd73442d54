"""
Data transforms: fold loader records and flatten them into fact and
dimension DataFrames for analysis and charting.
"""

import dataclasses
import logging

import pandas as pd

from .models import Delivery, MonthlySiteKpi, Notification, Plant

logger = logging.getLogger(__name__)

_NOTIFICATION_COLUMNS = [
    "id", "notification_number", "notification_type", "category", "plant_code",
    "site_code", "site_name", "month", "created_on", "defective_parts",
]

_DELIVERY_COLUMNS = ["id", "plant_code", "site_code", "site_name", "month", "kind", "quantity"]


def _none_if_na(value):
    return None if pd.isna(value) else value


def aggregate_deliveries(deliveries: list[Delivery]) -> list[Delivery]:
    """Fold deliveries into one record per (plant_code, month, kind).

    Quantities are summed; site code and site name are the first non-empty
    value seen for the key. Output is sorted by (plant_code, month, kind).
    """
    if not deliveries:
        return []

    df = build_fact_deliveries(deliveries)
    folded = (
        df.groupby(["plant_code", "month", "kind"], sort=True)
        .agg(
            site_code=("site_code", "first"),
            site_name=("site_name", "first"),
            quantity=("quantity", "sum"),
        )
        .reset_index()
    )

    result = []
    for row in folded.itertuples(index=False):
        site_code = _none_if_na(row.site_code) or row.plant_code
        result.append(Delivery(
            id=f"{row.plant_code}-{site_code}-{row.month}-{row.kind}",
            plant_code=row.plant_code,
            site_code=site_code,
            month=row.month,
            quantity=float(row.quantity),
            kind=row.kind,
            site_name=_none_if_na(row.site_name),
        ))

    logger.debug("Folded %d deliveries into %d", len(deliveries), len(result))
    return result


# ---------------------------------------------------------------------------
# Fact tables
# ---------------------------------------------------------------------------

def build_fact_notifications(records: list[Notification]) -> pd.DataFrame:
    """One row per notification (complaint, deviation or PPAP).

    Returns
    -------
    DataFrame with columns:
        id, notification_number, notification_type, category, plant_code,
        site_code, site_name, month, created_on, defective_parts
    """
    rows = [
        {
            "id": r.id,
            "notification_number": r.notification_number,
            "notification_type": r.notification_type,
            "category": r.category,
            "plant_code": r.plant_code,
            "site_code": r.site_code,
            "site_name": r.site_name,
            "month": r.month,
            "created_on": r.created_on,
            "defective_parts": r.defective_parts,
        }
        for r in records
    ]
    df = pd.DataFrame(rows, columns=_NOTIFICATION_COLUMNS)
    df["defective_parts"] = pd.to_numeric(df["defective_parts"]).astype("float64")
    return df


def build_fact_deliveries(deliveries: list[Delivery]) -> pd.DataFrame:
    df = pd.DataFrame([dataclasses.asdict(d) for d in deliveries], columns=_DELIVERY_COLUMNS)
    df["quantity"] = pd.to_numeric(df["quantity"]).astype("float64")
    return df


def build_fact_monthly_site_kpi(kpis: list[MonthlySiteKpi]) -> pd.DataFrame:
    """Flatten KPI records into a wide table (PPAP counts split out,
    extensions dropped)."""
    rows = []
    for k in kpis:
        row = dataclasses.asdict(k)
        ppap = row.pop("ppap_p")
        row.pop("extensions")
        row["ppap_in_progress"] = ppap["in_progress"]
        row["ppap_completed"] = ppap["completed"]
        rows.append(row)
    df = pd.DataFrame(rows)
    logger.info("Built fact_monthly_site_kpi: %d rows", len(df))
    return df


def build_dim_plant(plants: list[Plant]) -> pd.DataFrame:
    df = pd.DataFrame([p.to_dict() for p in plants])
    if not df.empty:
        df = df.sort_values("code").reset_index(drop=True)
    return df
