"""
Shared utilities for data ingestion: workbook decoding, header
normalisation, date and number parsing, cell access.
"""

import io
import logging
import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any

import openpyxl
import pandas as pd

from ..config import DATE_FORMATS, EXCEL_EPOCH

logger = logging.getLogger(__name__)

RawSheet = list[list[Any]]

_EPOCH = datetime.fromisoformat(EXCEL_EPOCH)
_DATE_REGEXES = [(re.compile(pattern), order) for pattern, order in DATE_FORMATS]


class SheetFormatError(ValueError):
    """Raised when a sheet has no usable header row at all."""


# ---------------------------------------------------------------------------
# Workbook decoding
# ---------------------------------------------------------------------------

def read_workbook(data: bytes, sheet_name: str | None = None) -> RawSheet:
    """Decode .xlsx bytes into a RawSheet (list of rows, row 0 = header).

    Uses the first worksheet unless ``sheet_name`` is given and present.
    Leading blank rows are dropped so the header lands on row 0.
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    except Exception:
        logger.exception("Failed to open workbook (%d bytes)", len(data))
        raise

    try:
        if sheet_name and sheet_name in wb.sheetnames:
            ws = wb[sheet_name]
        else:
            if sheet_name:
                logger.warning("Sheet '%s' not found, using '%s'", sheet_name, wb.sheetnames[0])
            ws = wb[wb.sheetnames[0]]
        rows = [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    while rows and is_blank_row(rows[0]):
        rows.pop(0)
    return rows


def frame_to_sheet(df: pd.DataFrame) -> RawSheet:
    """Turn a DataFrame into a RawSheet, with NaN/NaT cells as None."""
    body = df.astype(object).where(pd.notna(df), None).values.tolist()
    return [[str(c) for c in df.columns]] + body


def sheet_headers(sheet: RawSheet) -> list[str]:
    """Return the header row as stripped strings.

    Raises SheetFormatError when the sheet is empty or its first row is
    entirely blank.
    """
    if not sheet or is_blank_row(sheet[0]):
        raise SheetFormatError("Sheet has no header row")
    return [cell_text(h) for h in sheet[0]]


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------

def is_blank(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    if isinstance(val, float):
        return math.isnan(val)
    return val is pd.NaT


def is_blank_row(row: list[Any]) -> bool:
    return all(is_blank(cell) for cell in row)


def cell_at(row: list[Any], index: int | None) -> Any:
    """Cell value at ``index``, or None if unresolved, out of range or blank."""
    if index is None or index >= len(row):
        return None
    val = row[index]
    return None if is_blank(val) else val


def cell_text(val: Any) -> str:
    """Render a cell as stripped text.

    Integral floats lose their ``.0`` so numeric plant codes and
    notification numbers survive the round trip (235.0 -> "235").
    """
    if is_blank(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if isinstance(val, datetime):
        return val.isoformat()
    return str(val).strip()


def normalise_plant_code(val: Any) -> str:
    """Plant code as text; "235 - Lahnstein" and 235.0 both give "235"."""
    text = cell_text(val)
    match = re.match(r"^(\d{3,4})\b", text)
    return match.group(1) if match else text


def normalise_header(name: Any) -> str:
    """Lower-case a header, turn punctuation into spaces, collapse whitespace.

    "Defective (Internal)" -> "defective internal", "C/S" -> "c s".
    """
    s = str(name or "").lower()
    s = re.sub(r"[\W_]+", " ", s)
    return s.strip()


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def parse_number(val: Any) -> float:
    """Coerce a cell to float, returning 0.0 for anything unparseable.

    Strings keep only digits, '.' and '-' before conversion, so "1,200 PC"
    becomes 1200.0. NaN and infinities never leave this function.
    """
    if val is None or isinstance(val, bool):
        return 0.0
    if isinstance(val, numbers.Real):
        num = float(val)
    elif isinstance(val, str):
        cleaned = re.sub(r"[^\d.\-]", "", val)
        try:
            num = float(cleaned)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def parse_date(val: Any) -> datetime | None:
    """Convert a cell to datetime, or None when it cannot be parsed.

    Native datetimes pass through. Numbers are spreadsheet serial dates on
    the 1899-12-30 epoch (fractions are time of day). Strings try ISO-8601,
    then YYYY-MM-DD, MM/DD/YYYY, DD.MM.YYYY and YYYYMMDD.
    """
    if val is None or val is pd.NaT or isinstance(val, bool):
        return None
    if isinstance(val, pd.Timestamp):
        return val.to_pydatetime()
    if isinstance(val, datetime):
        return val
    if isinstance(val, date):
        return datetime(val.year, val.month, val.day)
    if isinstance(val, numbers.Real):
        serial = float(val)
        if math.isnan(serial) or math.isinf(serial):
            return None
        try:
            return _EPOCH + timedelta(days=serial)
        except OverflowError:
            logger.debug("Serial date %s out of range", val)
            return None
    if isinstance(val, str):
        return _parse_date_text(val)
    return None


def _parse_date_text(raw: str) -> datetime | None:
    text = raw.strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for regex, order in _DATE_REGEXES:
        match = regex.match(text)
        if not match:
            continue
        parts = dict(zip(order, (int(g) for g in match.groups())))
        try:
            return datetime(parts["year"], parts["month"], parts["day"])
        except ValueError:
            continue

    return None


def format_month(dt: datetime) -> str:
    """Month key "YYYY-MM" for a datetime."""
    return f"{dt.year:04d}-{dt.month:02d}"


def parse_notification_status(text: str | None) -> str | None:
    """Map an SAP notification status text to In Progress / Completed / Pending.

    System status prefixes are the reliable signal: NOCO = notification
    completed, OSNO = outstanding notification. Other texts fall back to
    keyword heuristics.
    """
    if not text:
        return None
    upper = text.upper()
    if re.search(r"\bNOCO\b", upper):
        return "Completed"
    if re.search(r"\bOSNO\b", upper):
        return "In Progress"

    lower = text.lower()
    if any(word in lower for word in ("closed", "complete", "done")):
        return "Completed"
    if any(word in lower for word in ("progress", "ongoing", "open", "osts", "atco")):
        return "In Progress"
    return "Pending"
