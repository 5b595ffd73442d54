"""
Loader for delivery exports ("Outbound 235_PS4.xlsx", "Inbound 410.xlsx").

Outbound files are customer deliveries, inbound files supplier deliveries.
Rows are folded into one Delivery per (plant, month, kind) before they
leave the loader.
"""

import logging

from ..config import DELIVERY_COLUMNS
from ..models import CUSTOMER, SUPPLIER, Delivery, ParseContext, ParseResult
from ..transforms import aggregate_deliveries
from .columns import build_schema, map_sheet, missing_columns_message
from .detect import delivery_plant_from_filename, delivery_role
from .utils import (
    RawSheet,
    cell_at,
    cell_text,
    format_month,
    is_blank_row,
    normalise_plant_code,
    parse_date,
    parse_number,
)

logger = logging.getLogger(__name__)

_SCHEMA = build_schema(DELIVERY_COLUMNS)

_ROLE_DATE_FIELD = {
    CUSTOMER: ("actual_goods_issue_date", "actual goods issue date"),
    SUPPLIER: ("actual_goods_receipt_date", "actual goods receipt date"),
}


def parse_delivery_kind(text: str) -> str | None:
    """Customer / Supplier from a direction cell, or None if unclear."""
    lower = text.strip().lower()
    if not lower:
        return None
    if "supplier" in lower or "inbound" in lower or lower in ("in", "s"):
        return SUPPLIER
    if "customer" in lower or "outbound" in lower or lower in ("out", "c"):
        return CUSTOMER
    return None


def parse_deliveries(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[Delivery]:
    """Parse a delivery export and fold it by (plant, month, kind).

    Assumptions
    -----------
    - A quantity column and at least one date column are required.
    - For outbound/inbound files the plant in the file name wins over the
      plant column, and the file role fixes the kind.
    - Outbound files date rows by "Actual Goods Issue Date", inbound files
      by "Actual Goods Receipt Date". When that column exists a row with an
      empty cell there is skipped rather than dated from another column.
    - Rows with a quantity of zero or less are dropped silently.

    Returns
    -------
    ParseResult whose records hold at most one Delivery per
    (plant, month, kind), sorted by that key.
    """
    context = context or ParseContext()
    result: ParseResult[Delivery] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _SCHEMA, context.overrides_for("deliveries"))
    missing = cols.missing()
    date_fields = ("date", "actual_goods_issue_date", "actual_goods_receipt_date")
    if not any(cols.resolved(f) for f in date_fields):
        missing.append("date")
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "deliveries", result.error)
        return result

    role = delivery_role(file_name)
    file_plant = delivery_plant_from_filename(file_name)
    role_date = _ROLE_DATE_FIELD.get(role)
    kind_defaulted = 0
    non_positive = 0
    rows: list[Delivery] = []

    for idx, row in enumerate(sheet[1:], start=1):
        if is_blank_row(row):
            continue
        row_no = idx + 1

        plant = normalise_plant_code(cell_at(row, cols["plant"]))
        if file_plant and (role or not plant):
            plant = file_plant
        site_code = normalise_plant_code(cell_at(row, cols["site_code"])) or plant
        plant = plant or site_code
        if not plant:
            result.warnings.append(f"Row {row_no}: Missing plant (no plant column value or file name code)")
            continue

        if role_date and cols.resolved(role_date[0]):
            date = parse_date(cell_at(row, cols[role_date[0]]))
            if date is None:
                result.warnings.append(f"Row {row_no}: Missing {role_date[1]}")
                continue
        elif role_date:
            date = parse_date(cell_at(row, cols["date"]))
        else:
            date = (
                parse_date(cell_at(row, cols["actual_goods_issue_date"]))
                or parse_date(cell_at(row, cols["actual_goods_receipt_date"]))
                or parse_date(cell_at(row, cols["date"]))
            )
        if date is None:
            result.warnings.append(f"Row {row_no}: Missing or invalid date")
            continue

        quantity = parse_number(cell_at(row, cols["quantity"]))
        if quantity <= 0:
            non_positive += 1
            continue

        kind = role or parse_delivery_kind(cell_text(cell_at(row, cols["kind"])))
        if kind is None:
            kind = CUSTOMER
            kind_defaulted += 1

        month = format_month(date)
        rows.append(Delivery(
            id=f"{plant}-{site_code}-{month}-{kind}",
            plant_code=plant,
            site_code=site_code,
            month=month,
            quantity=quantity,
            kind=kind,
            site_name=cell_text(cell_at(row, cols["site_name"])) or context.site_name(site_code),
        ))

    if kind_defaulted:
        result.warnings.append(
            f"{kind_defaulted} rows had no customer/supplier kind and were counted as {CUSTOMER}"
        )
    if non_positive:
        logger.debug("%s: dropped %d rows with non-positive quantity", file_name, non_positive)
    if result.warnings:
        logger.warning("%s: skipped or flagged %d rows", file_name or "deliveries", len(result.warnings))

    result.records = aggregate_deliveries(rows)
    logger.info(
        "Loaded %d deliveries (%d rows) from %s", len(result.records), len(rows), file_name or "sheet"
    )
    return result
