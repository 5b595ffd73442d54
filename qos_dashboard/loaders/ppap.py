"""Loader for P-notification (PPAP) exports."""

import logging

from ..config import DEFAULT_PPAP_TYPE, DEFAULT_SOURCE, PPAP_COLUMNS
from ..models import PPAPNotification, ParseContext, ParseResult
from .columns import build_schema, map_sheet, missing_columns_message
from .utils import (
    RawSheet,
    cell_at,
    cell_text,
    is_blank_row,
    normalise_plant_code,
    parse_date,
    parse_notification_status,
)

logger = logging.getLogger(__name__)

_SCHEMA = build_schema(PPAP_COLUMNS)


def parse_ppap_type(text: str) -> str | None:
    """P1/P2/P3 from a type cell. "Completed" or "Approved" read as P2."""
    upper = text.strip().upper()
    if "P2" in upper or upper == "2" or "COMPLETED" in upper or "APPROVED" in upper:
        return "P2"
    if "P3" in upper or upper == "3":
        return "P3"
    if "P1" in upper or upper == "1":
        return "P1"
    return None


def parse_ppap(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[PPAPNotification]:
    """Parse a PPAP export into PPAPNotification records.

    Rows without a recognisable P1-P3 code are counted as DEFAULT_PPAP_TYPE
    (in progress) with a warning. Status comes from the SAP system status
    column when present.
    """
    context = context or ParseContext()
    result: ParseResult[PPAPNotification] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _SCHEMA, context.overrides_for("ppap"))
    missing = cols.missing()
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "ppap", result.error)
        return result

    if not cols.resolved("notification_type"):
        result.warnings.append(
            f"No notification type column, all PPAPs counted as {DEFAULT_PPAP_TYPE}"
        )

    for idx, row in enumerate(sheet[1:], start=1):
        if is_blank_row(row):
            continue
        row_no = idx + 1

        number = cell_text(cell_at(row, cols["notification_number"]))
        if not number:
            result.warnings.append(f"Row {row_no}: Missing notification number")
            continue

        created_on = parse_date(cell_at(row, cols["created_on"]))
        if created_on is None:
            result.warnings.append(f"Row {row_no}: Missing or invalid creation date")
            continue

        plant = normalise_plant_code(cell_at(row, cols["plant"]))
        if not plant:
            result.warnings.append(f"Row {row_no}: Missing plant code")
            continue

        ntype = DEFAULT_PPAP_TYPE
        if cols.resolved("notification_type"):
            type_text = cell_text(cell_at(row, cols["notification_type"]))
            parsed = parse_ppap_type(type_text)
            if parsed is None:
                result.warnings.append(
                    f"Row {row_no}: No PPAP sub-type in '{type_text}', using {DEFAULT_PPAP_TYPE}"
                )
            else:
                ntype = parsed

        status_text = cell_text(cell_at(row, cols["status"])) or None

        result.records.append(PPAPNotification(
            id=f"PPAP-{plant}-{number}",
            notification_number=number,
            notification_type=ntype,
            plant_code=plant,
            site_code=plant,
            site_name=cell_text(cell_at(row, cols["site_name"])) or context.site_name(plant),
            created_on=created_on,
            defective_parts=0.0,
            source=DEFAULT_SOURCE,
            status=parse_notification_status(status_text),
            status_text=status_text,
            part_number=cell_text(cell_at(row, cols["part_number"])) or None,
        ))

    if result.warnings:
        logger.warning("%s: %d warnings", file_name or "ppap", len(result.warnings))
    logger.info("Loaded %d PPAP notifications from %s", len(result.records), file_name or "sheet")
    return result
