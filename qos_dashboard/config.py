"""
Configuration: column schemas, unit patterns, date formats, constants.

Each *_COLUMNS schema maps a canonical field name to its header candidates:

    candidates: header names tried as exact matches, then as substrings
    keywords:   fallback terms, any header containing one of them matches
    exclude:    substrings that disqualify a header for this field
    required:   an unresolved required column makes the whole sheet unusable
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# File paths: adjust these if source files move
# ---------------------------------------------------------------------------
DATA_DIR = Path(
    os.environ.get("QOS_DATA_DIR", Path(__file__).resolve().parent.parent / "attachments")
)

# ---------------------------------------------------------------------------
# Notification types
# ---------------------------------------------------------------------------
NOTIFICATION_TYPES = ("Q1", "Q2", "Q3", "D1", "D2", "D3", "P1", "P2", "P3")

CATEGORY_BY_TYPE: dict[str, str] = {
    "Q1": "CustomerComplaint",
    "Q2": "SupplierComplaint",
    "Q3": "InternalComplaint",
    "D1": "Deviation",
    "D2": "Deviation",
    "D3": "Deviation",
    "P1": "PPAP",
    "P2": "PPAP",
    "P3": "PPAP",
}

# Used when a deviation / PPAP type column carries no recognisable sub-type.
DEFAULT_DEVIATION_TYPE = "D1"
DEFAULT_PPAP_TYPE = "P1"

# P1 is an open PPAP; P2 and P3 are closed out.
PPAP_IN_PROGRESS_TYPES = {"P1"}
PPAP_COMPLETED_TYPES = {"P2", "P3"}

# ---------------------------------------------------------------------------
# Column schemas
# ---------------------------------------------------------------------------
COMPLAINT_COLUMNS: dict[str, dict] = {
    "notification_number": {
        "candidates": [
            "notification number", "notification no", "notification nr",
            "notification", "notif no", "notif number", "notif nr",
            "complaint number", "complaint no",
        ],
        "keywords": ["notif"],
        "exclude": [
            "type", "status", "date", "material", "part", "customer", "supplier",
            "vendor", "order",
        ],
        "required": True,
    },
    "notification_type": {
        "candidates": [
            "notification type", "notif type", "complaint type",
            "type of notification", "notification category", "q type", "type",
        ],
        "exclude": ["status", "material", "order", "deviation"],
        "required": True,
    },
    "plant": {
        "candidates": [
            "plant", "plant code", "plant for material", "plant id",
            "plant number", "werk",
        ],
        "exclude": ["name", "description"],
    },
    "site_code": {
        "candidates": ["site code", "site id", "site number", "site"],
        "exclude": ["name", "description"],
    },
    "site_name": {
        "candidates": ["site name", "plant name", "site description"],
    },
    "created_on": {
        "candidates": [
            "created on", "created date", "creation date", "notification date",
            "notif date", "date created", "erstellt am", "datum", "date",
        ],
        "keywords": ["created", "erstellt"],
        "exclude": ["created by", "changed"],
        "required": True,
    },
    "defective_parts": {
        "candidates": [
            "defective parts", "defective quantity", "defective qty",
            "quantity defective", "qty defective", "def qty", "def parts",
            "defect qty", "fehlmenge", "defective",
        ],
        "exclude": ["internal", "external"],
    },
    "defective_internal": {
        "candidates": [
            "defective internal", "internal defective", "defective int",
            "def int",
        ],
    },
    "defective_external": {
        "candidates": [
            "defective external", "external defective", "defective ext",
            "def ext",
        ],
    },
    "unit_of_measure": {
        "candidates": [
            "unit of measure", "unit of measurement", "measurement unit",
            "uom", "unit",
        ],
        "exclude": ["business", "price"],
    },
    "material_description": {
        "candidates": [
            "material description", "material desc", "material text",
            "material name", "part description",
        ],
    },
    "material_number": {
        "candidates": [
            "material number", "material no", "material nr", "matnr",
            "material code", "part number", "part no", "material",
        ],
        "exclude": ["description", "desc", "text", "name"],
    },
}

DELIVERY_COLUMNS: dict[str, dict] = {
    "plant": {
        "candidates": [
            "plant", "plant code", "plant id", "plant number", "werk",
            "werk code", "plant for material",
        ],
        "exclude": ["name", "description"],
    },
    "site_code": {
        "candidates": ["site code", "site id", "site number", "site"],
        "exclude": ["name", "description"],
    },
    "site_name": {
        "candidates": ["site name", "plant name", "site description"],
    },
    "quantity": {
        "candidates": [
            "quantity", "quantities", "qty", "delivered quantity",
            "delivered qty", "delivery quantity", "delivery qty",
            "outbound quantity", "inbound quantity", "outbound qty",
            "inbound qty", "menge",
        ],
        "keywords": ["quantity", "qty"],
        "exclude": ["unit"],
        "required": True,
    },
    "actual_goods_issue_date": {
        "candidates": [
            "actual goods issue date", "actual goods issue", "actual gi date",
            "actualgidate", "goods issue date", "gi date actual",
        ],
    },
    "actual_goods_receipt_date": {
        "candidates": [
            "actual goods receipt date", "actual goods receipt",
            "actual gr date", "actualgrdate", "goods receipt date",
            "gr date actual",
        ],
    },
    "date": {
        "candidates": [
            "delivery date", "date", "delivered date", "shipment date",
            "ship date", "date delivered", "created on", "datum",
        ],
        "keywords": ["date"],
        "exclude": ["goods issue", "goods receipt", "gi date", "gr date"],
    },
    "kind": {
        "candidates": [
            "customer or supplier", "customer supplier", "c s", "direction",
            "inbound outbound", "in out", "kind",
        ],
    },
}

DEVIATION_COLUMNS: dict[str, dict] = {
    "notification_number": COMPLAINT_COLUMNS["notification_number"],
    "notification_type": {
        "candidates": ["notification type", "notif type", "type"],
        "exclude": ["status", "deviation type"],
    },
    "plant": {
        "candidates": [
            "plant for material", "plant code", "site code", "plant", "site",
            "werk",
        ],
        "exclude": ["name", "description"],
    },
    "site_name": {
        "candidates": ["site name", "plant name", "location", "city", "list name"],
    },
    "created_on": COMPLAINT_COLUMNS["created_on"],
    "deviation_type": {
        "candidates": [
            "deviation type", "code group text", "coding code text",
            "code group",
        ],
    },
    "severity": {
        "candidates": ["priority text", "severity", "priority", "level"],
    },
    "status": {
        "candidates": ["notification status", "system status", "status"],
        "exclude": ["type"],
    },
}

DEVIATION_STATUS_COLUMNS: dict[str, dict] = {
    "notification_number": COMPLAINT_COLUMNS["notification_number"],
    "status": {
        "candidates": ["notification status", "system status", "status"],
        "keywords": ["state", "phase"],
        "exclude": ["type"],
    },
}

PPAP_COLUMNS: dict[str, dict] = {
    "notification_number": COMPLAINT_COLUMNS["notification_number"],
    "notification_type": {
        "candidates": ["notification type", "notif type", "type"],
        "exclude": ["status"],
    },
    "plant": {
        "candidates": [
            "plant for material", "plant code", "site code", "plant", "site",
            "werk",
        ],
        "exclude": ["name", "description"],
    },
    "site_name": {
        "candidates": ["site name", "plant name", "location", "city"],
    },
    "created_on": COMPLAINT_COLUMNS["created_on"],
    "part_number": {
        "candidates": ["part number", "material number", "part", "material"],
        "exclude": ["description", "desc", "text"],
    },
    "status": {
        "candidates": ["notification status", "system status", "status"],
        "keywords": ["state", "phase"],
        "exclude": ["type"],
    },
}

PLANT_COLUMNS: dict[str, dict] = {
    "code": {
        "candidates": [
            "plant code", "site code", "plant id", "site id", "code", "plant",
            "id",
        ],
        "exclude": ["name", "description", "city", "abbreviation"],
        "required": True,
    },
    "name": {
        "candidates": ["plant name", "site name", "name", "description"],
    },
    "erp": {
        "candidates": ["erp", "system", "sap"],
    },
    "city": {
        "candidates": ["city", "plant city", "location"],
    },
    "abbreviation": {
        "candidates": ["abbreviation", "abbr", "short"],
        "exclude": ["plant", "site"],
    },
    "country": {
        "candidates": ["country", "nation"],
    },
}

# ---------------------------------------------------------------------------
# Units of measure
# ---------------------------------------------------------------------------
PIECE_UNITS = {"", "PC", "PCS", "PIECE", "PIECES", "ST", "STK", "EA"}

UNIT_ALIASES: dict[str, str] = {
    "ML": "ML",
    "MILLILITER": "ML",
    "M": "M",
    "METER": "M",
    "METERS": "M",
    "M2": "M2",
    "M²": "M2",
    "SQ M": "M2",
    "SQ M2": "M2",
    "SQM": "M2",
}

# (pattern, scale to SI unit). Tried in order; first positive match wins.
VOLUME_PATTERNS = [
    (r"(\d+(?:\.\d+)?)\s*ML\b", 1.0),
]

LENGTH_PATTERNS = [
    (r"\bL\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"\bLENGTH\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"\bLEN\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"\bL\s*(\d+(?:\.\d+)?)\s*M\b", 1.0),
    (r"\bL\s*(\d{3,})\b", 0.001),
]

AREA_PATTERNS = [
    (r"\bW\s*(\d+(?:\.\d+)?)\s*MM\s*H\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"\bWIDTH\s*(\d+(?:\.\d+)?)\s*MM\s*HEIGHT\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"(\d+(?:\.\d+)?)\s*MM\s*X\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
    (r"(\d+(?:\.\d+)?)\s*X\s*(\d+(?:\.\d+)?)\s*MM\b", 0.001),
]

CONVERSION_DECIMALS = 2

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------
EXCEL_EPOCH = "1899-12-30"

# (regex, group order). Anchored at the start; trailing time text is ignored.
DATE_FORMATS = [
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})", ("year", "month", "day")),
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})", ("month", "day", "year")),
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{4})", ("day", "month", "year")),
    (r"^(\d{4})(\d{2})(\d{2})$", ("year", "month", "day")),
]

# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------
OUTBOUND_MARKER = "outbound"
INBOUND_MARKER = "inbound"

# "Outbound 235_PS4.xlsx" -> 235; second pattern catches "Outbound-PS4-235"
FILENAME_PLANT_PATTERNS = [
    r"(?:outbound|inbound)[\s_-]+(\d+)",
    r"(?:outbound|inbound).*?(\d{3,})",
]

# "Q Cockpit ... PPM - 101.xlsx" -> 101
COMPLAINT_FILENAME_PLANT_PATTERN = r"-\s*(\d{3})\s*\.[A-Za-z]+$"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
PPM_FACTOR = 1_000_000
DEFAULT_SOURCE = "SAP_S4"
SITE_CODE_PATTERN = r"^\d{3}$"
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
