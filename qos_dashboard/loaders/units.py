"""
Unit-of-measure conversion for defective quantities.

Complaints booked in ML, M or M2 are turned into piece-equivalents using
the per-piece size written into the material description, e.g.
"BOTTLE 600ML" (volume), "ROD L6100MM" (length), "PANEL W1000MM H2000MM"
(area).
"""

import logging
import re

from ..config import (
    AREA_PATTERNS,
    CONVERSION_DECIMALS,
    LENGTH_PATTERNS,
    PIECE_UNITS,
    UNIT_ALIASES,
    VOLUME_PATTERNS,
)
from ..models import ConversionResult

logger = logging.getLogger(__name__)

_SIZE_PATTERNS = {
    "ML": [(re.compile(p), scale) for p, scale in VOLUME_PATTERNS],
    "M": [(re.compile(p), scale) for p, scale in LENGTH_PATTERNS],
    "M2": [(re.compile(p), scale) for p, scale in AREA_PATTERNS],
}

_SIZE_LABEL = {"ML": "volume (ml)", "M": "length (mm/m)", "M2": "area (W x H)"}


def normalise_unit(unit: str | None) -> str:
    return (unit or "").strip().upper()


def is_piece_unit(unit: str | None) -> bool:
    return normalise_unit(unit) in PIECE_UNITS


def extract_unit_size(unit: str, description: str | None) -> float | None:
    """Per-piece size in ml, m or m2 read from a material description.

    Patterns are tried in order and the first one giving a positive size
    wins. Area patterns multiply both captured dimensions.
    """
    canonical = UNIT_ALIASES.get(normalise_unit(unit))
    if canonical is None or not description:
        return None

    text = description.upper()
    for regex, scale in _SIZE_PATTERNS[canonical]:
        match = regex.search(text)
        if not match:
            continue
        size = 1.0
        for group in match.groups():
            size *= float(group) * scale
        if size > 0:
            return size
    return None


def convert_to_pieces(
    value: float,
    unit: str | None,
    material_description: str | None = None,
) -> ConversionResult:
    """Convert a defective quantity into pieces.

    Returns
    -------
    ConversionResult with ``was_converted=True`` and ``converted_value``
    rounded to two decimals on success. Piece units pass through
    unconverted with ``converted_value=value``. Unsupported units and
    descriptions without a usable size give ``converted_value=None`` and a
    ``reason``.
    """
    unit_key = normalise_unit(unit)

    if unit_key in PIECE_UNITS:
        return ConversionResult(
            original_value=value,
            original_unit=unit_key,
            converted_value=value,
            was_converted=False,
            material_description=material_description,
        )

    canonical = UNIT_ALIASES.get(unit_key)
    if canonical is None:
        return _failed(value, unit_key, material_description, f"Unsupported unit '{unit_key}'")

    if not (material_description or "").strip():
        return _failed(value, unit_key, material_description, "No material description to read a unit size from")

    size = extract_unit_size(unit_key, material_description)
    if size is None:
        reason = f"No {_SIZE_LABEL[canonical]} size found in '{material_description}'"
        return _failed(value, unit_key, material_description, reason)

    return ConversionResult(
        original_value=value,
        original_unit=unit_key,
        converted_value=round(value / size, CONVERSION_DECIMALS),
        was_converted=True,
        unit_size=size,
        material_description=material_description,
    )


def _failed(value: float, unit: str, description: str | None, reason: str) -> ConversionResult:
    logger.debug("Conversion of %s %s failed: %s", value, unit, reason)
    return ConversionResult(
        original_value=value,
        original_unit=unit,
        converted_value=None,
        was_converted=False,
        material_description=description,
        reason=reason,
    )
