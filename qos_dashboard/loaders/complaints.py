"""
Loader for Q-notification exports (Q Cockpit / complaint lists).

One Complaint per data row. Defective quantities booked in ML, M or M2 are
converted to pieces from the material description; the raw figure is kept
on ``Complaint.conversion``.
"""

import logging
import re

from ..config import COMPLAINT_COLUMNS, DEFAULT_SOURCE
from ..models import Complaint, ParseContext, ParseResult
from .columns import build_schema, map_sheet, missing_columns_message
from .detect import complaint_plant_from_filename
from .units import convert_to_pieces, is_piece_unit, normalise_unit
from .utils import (
    RawSheet,
    cell_at,
    cell_text,
    is_blank_row,
    normalise_plant_code,
    parse_date,
    parse_number,
)

logger = logging.getLogger(__name__)

_SCHEMA = build_schema(COMPLAINT_COLUMNS)

# "Q1", "q 2", "Q3 - Internal"; letters directly before the code do not count.
_TYPE_CODE = re.compile(r"(?<![A-Z])([QDP])\s*([123])(?!\d)")


def parse_notification_type(text: str) -> tuple[str | None, list[str]]:
    """Return (first notification code in ``text``, all distinct codes)."""
    codes = []
    for letter, digit in _TYPE_CODE.findall(text.upper()):
        code = letter + digit
        if code not in codes:
            codes.append(code)
    return (codes[0] if codes else None), codes


def parse_complaints(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[Complaint]:
    """Parse a complaint export into Complaint records.

    Assumptions
    -----------
    - Row 0 is the header; notification number, type and created date
      columns are required.
    - The plant comes from a plant column, then a site column, then a
      trailing "- 101" in the file name.
    - Q1 rows prefer "Defective (Internal)" and Q2 rows "Defective
      (External)" when that cell is filled.
    - Negative quantities are clamped to 0.

    Returns
    -------
    ParseResult with one Complaint per accepted row and a "Row <n>: ..."
    warning for every skipped one.
    """
    context = context or ParseContext()
    result: ParseResult[Complaint] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _SCHEMA, context.overrides_for("complaints"))
    missing = cols.missing()
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "complaints", result.error)
        return result

    file_plant = complaint_plant_from_filename(file_name)

    for idx, row in enumerate(sheet[1:], start=1):
        if is_blank_row(row):
            continue
        row_no = idx + 1

        number = cell_text(cell_at(row, cols["notification_number"]))
        if not number:
            result.warnings.append(f"Row {row_no}: Missing notification number")
            continue

        type_text = cell_text(cell_at(row, cols["notification_type"]))
        ntype, codes = parse_notification_type(type_text)
        if ntype is None:
            reason = f"Unrecognised notification type '{type_text}'" if type_text else "Missing notification type"
            result.warnings.append(f"Row {row_no}: {reason}")
            continue
        if len(codes) > 1:
            result.warnings.append(
                f"Row {row_no}: Several notification types in '{type_text}', using {ntype}"
            )

        created_on = parse_date(cell_at(row, cols["created_on"]))
        if created_on is None:
            result.warnings.append(f"Row {row_no}: Missing or invalid creation date")
            continue

        plant = normalise_plant_code(cell_at(row, cols["plant"]))
        site_code = normalise_plant_code(cell_at(row, cols["site_code"])) or plant
        plant = plant or site_code or file_plant or ""
        site_code = site_code or plant
        if not plant:
            result.warnings.append(f"Row {row_no}: Missing plant code")
            continue

        site_name = cell_text(cell_at(row, cols["site_name"])) or context.site_name(site_code)

        raw_qty = cell_at(row, cols["defective_parts"])
        preferred = {"Q1": "defective_internal", "Q2": "defective_external"}.get(ntype)
        if preferred:
            preferred_qty = cell_at(row, cols[preferred])
            if preferred_qty is not None:
                raw_qty = preferred_qty
        quantity = max(parse_number(raw_qty), 0.0)

        unit = normalise_unit(cell_text(cell_at(row, cols["unit_of_measure"])))
        description = cell_text(cell_at(row, cols["material_description"])) or None

        conversion = None
        defective = quantity
        if not is_piece_unit(unit):
            conversion = convert_to_pieces(quantity, unit, description)
            if conversion.was_converted:
                defective = conversion.converted_value
            else:
                logger.debug(
                    "%s %s: could not convert %s %s, keeping original value",
                    ntype, number, quantity, unit,
                )

        result.records.append(Complaint(
            id=f"{plant}-{number}",
            notification_number=number,
            notification_type=ntype,
            plant_code=plant,
            site_code=site_code,
            site_name=site_name,
            created_on=created_on,
            defective_parts=defective,
            source=DEFAULT_SOURCE,
            unit_of_measure=unit or None,
            material_description=description,
            material_number=cell_text(cell_at(row, cols["material_number"])) or None,
            conversion=conversion,
        ))

    if result.warnings:
        logger.warning("%s: skipped or flagged %d rows", file_name or "complaints", len(result.warnings))
    logger.info("Loaded %d complaints from %s", len(result.records), file_name or "sheet")
    return result
