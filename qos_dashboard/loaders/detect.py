"""File-type detection from export file names."""

import re
from dataclasses import dataclass

from ..config import (
    COMPLAINT_FILENAME_PLANT_PATTERN,
    FILENAME_PLANT_PATTERNS,
    INBOUND_MARKER,
    OUTBOUND_MARKER,
)
from ..models import CUSTOMER, SUPPLIER

COMPLAINTS = "complaints"
DELIVERIES_OUTBOUND = "deliveries-outbound"
DELIVERIES_INBOUND = "deliveries-inbound"
DEVIATIONS = "deviations"
DEVIATION_STATUS = "deviation-status"
PPAP = "ppap"
PLANTS = "plants"
UNKNOWN = "unknown"

FILE_TYPES = (
    COMPLAINTS, DELIVERIES_OUTBOUND, DELIVERIES_INBOUND, DEVIATIONS,
    DEVIATION_STATUS, PPAP, PLANTS, UNKNOWN,
)

_ROLE_PLANT = [re.compile(p, re.IGNORECASE) for p in FILENAME_PLANT_PATTERNS]
_COMPLAINT_PLANT = re.compile(COMPLAINT_FILENAME_PLANT_PATTERN)


@dataclass(frozen=True)
class DetectedFile:
    type: str
    file_name: str
    plant_code: str | None = None


def delivery_role(file_name: str | None) -> str | None:
    """Customer for outbound exports, Supplier for inbound, else None."""
    lower = (file_name or "").lower()
    if OUTBOUND_MARKER in lower:
        return CUSTOMER
    if INBOUND_MARKER in lower:
        return SUPPLIER
    return None


def delivery_plant_from_filename(file_name: str | None) -> str | None:
    """"Outbound 235_PS4.xlsx" -> "235"."""
    for regex in _ROLE_PLANT:
        match = regex.search(file_name or "")
        if match:
            return match.group(1)
    return None


def complaint_plant_from_filename(file_name: str | None) -> str | None:
    """"Q Cockpit PPM - 101.xlsx" -> "101"."""
    match = _COMPLAINT_PLANT.search(file_name or "")
    return match.group(1) if match else None


def detect_file_type(file_name: str) -> DetectedFile:
    """Classify an export by its file name.

    Order matters: plant master data first, then delivery roles (a name like
    "Outbound 235" must not fall through to complaints), then complaints,
    deviation status, deviations and PPAP.
    """
    lower = file_name.lower()

    if "plant" in lower:
        return DetectedFile(PLANTS, file_name)

    if "complaint" not in lower:
        role = delivery_role(file_name)
        if role is not None:
            kind = DELIVERIES_OUTBOUND if role == CUSTOMER else DELIVERIES_INBOUND
            return DetectedFile(kind, file_name, delivery_plant_from_filename(file_name))

    if "complaint" in lower or "q cockpit" in lower:
        return DetectedFile(COMPLAINTS, file_name, complaint_plant_from_filename(file_name))

    if "deviation" in lower and "status" in lower:
        return DetectedFile(DEVIATION_STATUS, file_name)

    if "deviation" in lower or "d notif" in lower:
        return DetectedFile(DEVIATIONS, file_name)

    if "ppap" in lower or "p notif" in lower:
        return DetectedFile(PPAP, file_name)

    return DetectedFile(UNKNOWN, file_name)
