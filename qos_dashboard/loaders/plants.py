"""Loader for the plant master-data list (code, name, city, country, ERP)."""

import logging

from ..config import PLANT_COLUMNS
from ..models import ParseContext, ParseResult, Plant
from .columns import build_schema, map_sheet, missing_columns_message
from .utils import RawSheet, cell_at, cell_text, is_blank_row

logger = logging.getLogger(__name__)

_SCHEMA = build_schema(PLANT_COLUMNS)


def parse_plants(
    sheet: RawSheet,
    file_name: str | None = None,
    context: ParseContext | None = None,
) -> ParseResult[Plant]:
    """Parse plant master data.

    Assumptions
    -----------
    - A code column is required; numeric codes (106, 106.0) become "106".
    - Name falls back to the city, then the code.
    - ``location`` is "<city or name>, <country>" when a country is given.
    - A repeated code keeps its first row.
    """
    context = context or ParseContext()
    result: ParseResult[Plant] = ParseResult(file_name=file_name)

    cols = map_sheet(sheet, _SCHEMA, context.overrides_for("plants"))
    missing = cols.missing()
    if missing:
        result.error = missing_columns_message(missing, sheet)
        logger.error("%s: %s", file_name or "plants", result.error)
        return result

    seen: set[str] = set()
    for idx, row in enumerate(sheet[1:], start=1):
        if is_blank_row(row):
            continue

        code = cell_text(cell_at(row, cols["code"]))
        if not code:
            result.warnings.append(f"Row {idx + 1}: Missing plant code")
            continue
        if code in seen:
            result.warnings.append(f"Row {idx + 1}: Duplicate plant code {code}")
            continue
        seen.add(code)

        city = cell_text(cell_at(row, cols["city"])) or None
        country = cell_text(cell_at(row, cols["country"])) or None
        name = cell_text(cell_at(row, cols["name"])) or city or code
        location = f"{city or name}, {country}" if country else city or name

        result.records.append(Plant(
            code=code,
            name=name,
            city=city,
            country=country,
            erp=cell_text(cell_at(row, cols["erp"])) or None,
            abbreviation=cell_text(cell_at(row, cols["abbreviation"])) or None,
            location=location,
        ))

    logger.info("Loaded %d plants from %s", len(result.records), file_name or "sheet")
    return result
