"""
Loaders for D-notification exports and the deviation status reference
("Deviations Notifications_STATUS_PS4.XLSX").
"""

import dataclasses
import logging

from ..config import (
    DEFAULT_DEVIATION_TYPE,
    DEFAULT_SOURCE,
    DEVIATION_COLUMNS,
    DEVIATION_STATUS_COLUMNS,
)
from ..models import Deviation, DeviationStatus, ParseContext, ParseResult
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

_SCHEMA = build_schema(DEVIATION_COLUMNS)
_STATUS_SCHEMA = build_schema(DEVIATION_STATUS_COLUMNS)


def parse_deviation_type(text: str) -> str | None:
    """D1/D2/D3 from a type cell; a bare "2" or "3" counts as well."""
    upper = text.strip().upper()
    if "D2" in upper or upper == "2":
        return "D2"
    if "D3" in upper or upper == "3":
        return "D3"
    if "D1" in upper or upper == "1":
        return "D1"
    return None


def parse_deviations(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[Deviation]:
    """Parse a deviation export into Deviation records.

    Assumptions
    -----------
    - Notification number and created date are required columns.
    - The plant is usually "Plant for Material".
    - Rows whose type names no D1-D3 code are counted as
      DEFAULT_DEVIATION_TYPE, with a warning.
    - Deviations carry no defective quantity.
    """
    context = context or ParseContext()
    result: ParseResult[Deviation] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _SCHEMA, context.overrides_for("deviations"))
    missing = cols.missing()
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "deviations", result.error)
        return result

    if not cols.resolved("notification_type"):
        result.warnings.append(
            f"No notification type column, all deviations counted as {DEFAULT_DEVIATION_TYPE}"
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

        ntype = DEFAULT_DEVIATION_TYPE
        if cols.resolved("notification_type"):
            type_text = cell_text(cell_at(row, cols["notification_type"]))
            parsed = parse_deviation_type(type_text)
            if parsed is None:
                result.warnings.append(
                    f"Row {row_no}: No deviation sub-type in '{type_text}', using {DEFAULT_DEVIATION_TYPE}"
                )
            else:
                ntype = parsed

        status_text = cell_text(cell_at(row, cols["status"])) or None

        result.records.append(Deviation(
            id=f"DEV-{plant}-{number}",
            notification_number=number,
            notification_type=ntype,
            plant_code=plant,
            site_code=plant,
            site_name=cell_text(cell_at(row, cols["site_name"])) or context.site_name(plant),
            created_on=created_on,
            defective_parts=0.0,
            source=DEFAULT_SOURCE,
            deviation_type=cell_text(cell_at(row, cols["deviation_type"])) or None,
            severity=cell_text(cell_at(row, cols["severity"])) or None,
            status=parse_notification_status(status_text),
            status_text=status_text,
        ))

    if result.warnings:
        logger.warning("%s: %d warnings", file_name or "deviations", len(result.warnings))
    logger.info("Loaded %d deviations from %s", len(result.records), file_name or "sheet")
    return result


def parse_deviation_status(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[DeviationStatus]:
    """Parse the notification number -> status reference sheet."""
    context = context or ParseContext()
    result: ParseResult[DeviationStatus] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _STATUS_SCHEMA, context.overrides_for("deviation-status"))
    missing = cols.missing()
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "deviation status", result.error)
        return result

    for idx, row in enumerate(sheet[1:], start=1):
        if is_blank_row(row):
            continue
        number = cell_text(cell_at(row, cols["notification_number"]))
        if not number:
            result.warnings.append(f"Row {idx + 1}: Missing notification number")
            continue
        status_text = cell_text(cell_at(row, cols["status"])) or None
        result.records.append(DeviationStatus(
            notification_number=number,
            status=parse_notification_status(status_text),
            status_text=status_text,
        ))

    logger.info("Loaded %d deviation statuses from %s", len(result.records), file_name or "sheet")
    return result


def apply_deviation_status(
    deviations: list[Deviation],
    statuses: list[DeviationStatus],
) -> list[Deviation]:
    """Overlay reference statuses onto deviations by notification number.

    Later status rows win over earlier ones; deviations without a matching
    status row are returned unchanged.
    """
    by_number = {s.notification_number: s for s in statuses if s.status or s.status_text}
    updated = []
    for dev in deviations:
        ref = by_number.get(dev.notification_number)
        if ref is None:
            updated.append(dev)
            continue
        updated.append(dataclasses.replace(dev, status=ref.status, status_text=ref.status_text))
    return updated
