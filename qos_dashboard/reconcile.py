"""
Reconciliation of KPI sets and records: merging re-uploads, applying
manual corrections and validating hand-entered KPI rows.
"""

import dataclasses
import logging
import re
from typing import TypeVar

from .config import MONTH_PATTERN, SITE_CODE_PATTERN
from .kpis import calculate_ppm
from .models import MonthlySiteKpi, PpapCounts

logger = logging.getLogger(__name__)

R = TypeVar("R")

_COUNT_FIELDS = (
    "customer_complaints_q1",
    "supplier_complaints_q2",
    "internal_complaints_q3",
    "internal_notifications_q3",
    "deviations_d",
)

_QUANTITY_FIELDS = (
    "customer_deliveries",
    "supplier_deliveries",
    "customer_defective_parts",
    "supplier_defective_parts",
    "internal_defective_parts",
)


def merge_kpis(
    existing: list[MonthlySiteKpi],
    incoming: list[MonthlySiteKpi],
) -> list[MonthlySiteKpi]:
    """Merge two KPI sets by (month, site_code).

    An incoming row replaces the existing row for its key outright (last
    write wins, no summing). Output is sorted by (month, site_code).
    """
    merged = {k.key: k for k in existing}
    replaced = sum(1 for k in incoming if k.key in merged)
    for kpi in incoming:
        merged[kpi.key] = kpi

    logger.info(
        "Merged KPIs: %d existing, %d incoming, %d replaced", len(existing), len(incoming), replaced
    )
    return [merged[key] for key in sorted(merged)]


def apply_corrections(records: list[R], corrected: list[R]) -> list[R]:
    """Replace records by their stable ``id``.

    Order of ``records`` is kept; corrected records whose id is not in
    ``records`` are appended in the order given.
    """
    by_id = {c.id: c for c in corrected}
    known = set()
    result = []
    for rec in records:
        known.add(rec.id)
        result.append(by_id.get(rec.id, rec))

    appended = [c for c in by_id.values() if c.id not in known]
    if appended:
        logger.info("Corrections added %d records not present in the upload", len(appended))
    return result + appended


def build_manual_kpi(
    month: str,
    site_code: str,
    site_name: str | None = None,
    ppap_in_progress: int = 0,
    ppap_completed: int = 0,
    **fields,
) -> MonthlySiteKpi:
    """Validate a hand-entered KPI row and compute its PPMs.

    ``fields`` may hold any count or quantity field of MonthlySiteKpi;
    anything else (audit counts, quality costs, ...) goes into
    ``extensions``.

    Raises
    ------
    ValueError
        Month not "YYYY-MM", site code not three digits, or a negative or
        non-numeric count or quantity.
    """
    month = str(month).strip()
    site_code = str(site_code).strip()
    if not re.match(MONTH_PATTERN, month):
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    if not re.match(SITE_CODE_PATTERN, site_code):
        raise ValueError(f"Invalid site code '{site_code}', expected three digits")

    values = {
        "ppap_in_progress": _non_negative("ppap_in_progress", ppap_in_progress, int),
        "ppap_completed": _non_negative("ppap_completed", ppap_completed, int),
    }
    for name in _COUNT_FIELDS:
        values[name] = _non_negative(name, fields.pop(name, 0), int)
    for name in _QUANTITY_FIELDS:
        values[name] = _non_negative(name, fields.pop(name, 0.0), float)

    for name in ("customer_ppm", "supplier_ppm"):
        if name in fields:
            fields.pop(name)
            logger.debug("Ignoring supplied %s; it is computed from parts and deliveries", name)

    return MonthlySiteKpi(
        month=month,
        site_code=site_code,
        site_name=site_name or None,
        customer_complaints_q1=values["customer_complaints_q1"],
        supplier_complaints_q2=values["supplier_complaints_q2"],
        internal_complaints_q3=values["internal_complaints_q3"],
        internal_notifications_q3=values["internal_notifications_q3"],
        deviations_d=values["deviations_d"],
        ppap_p=PpapCounts(values["ppap_in_progress"], values["ppap_completed"]),
        customer_deliveries=values["customer_deliveries"],
        supplier_deliveries=values["supplier_deliveries"],
        customer_defective_parts=values["customer_defective_parts"],
        supplier_defective_parts=values["supplier_defective_parts"],
        internal_defective_parts=values["internal_defective_parts"],
        customer_ppm=calculate_ppm(values["customer_defective_parts"], values["customer_deliveries"]),
        supplier_ppm=calculate_ppm(values["supplier_defective_parts"], values["supplier_deliveries"]),
        extensions=dict(fields),
    )


def _non_negative(name: str, value, cast):
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if number < 0:
        raise ValueError(f"{name} must not be negative, got {value!r}")
    return number


def replace_fields(record: R, **changes) -> R:
    """Corrected copy of a frozen record with the same id."""
    if "id" in changes:
        raise ValueError("A correction cannot change the record id")
    return dataclasses.replace(record, **changes)
