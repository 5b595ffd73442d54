"""
Typed records produced by the loaders and aggregators.

Every record is a frozen dataclass; corrections produce replacement copies
(``dataclasses.replace``) that keep the same ``id``. ``to_dict()`` returns a
JSON-serialisable dict with dates as ISO strings.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, TypeVar

from .config import CATEGORY_BY_TYPE, PIECE_UNITS, UNIT_ALIASES

T = TypeVar("T")

CONVERTIBLE_UNITS = frozenset(UNIT_ALIASES)

CUSTOMER = "Customer"
SUPPLIER = "Supplier"

CONVERTED = "converted"
FAILED = "failed"
NEEDS_ATTENTION = "needs_attention"
NOT_APPLICABLE = "not_applicable"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class _Record:
    def to_dict(self) -> dict:
        return _jsonable(dataclasses.asdict(self))


@dataclass(frozen=True)
class ConversionResult(_Record):
    original_value: float
    original_unit: str
    converted_value: float | None
    was_converted: bool
    unit_size: float | None = None
    material_description: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class Notification(_Record):
    """Base for complaint, deviation and PPAP notifications."""

    id: str
    notification_number: str
    notification_type: str
    plant_code: str
    site_code: str
    created_on: datetime
    site_name: str | None = None
    defective_parts: float = 0.0
    source: str = "SAP_S4"

    @property
    def category(self) -> str:
        return CATEGORY_BY_TYPE[self.notification_type]

    @property
    def month(self) -> str:
        return f"{self.created_on.year:04d}-{self.created_on.month:02d}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["category"] = self.category
        data["month"] = self.month
        return data


@dataclass(frozen=True)
class Complaint(Notification):
    unit_of_measure: str | None = None
    material_description: str | None = None
    material_number: str | None = None
    conversion: ConversionResult | None = None

    @property
    def conversion_status(self) -> str:
        """Review state of the unit conversion for the correction workflow.

        ``not_applicable`` for piece units, ``converted`` when a factor was
        applied, ``needs_attention`` when the unit has no conversion rule at
        all and ``failed`` when the rule found no usable size token.
        """
        if (self.unit_of_measure or "").strip().upper() in PIECE_UNITS:
            return NOT_APPLICABLE
        if self.conversion is None:
            return NEEDS_ATTENTION
        if self.conversion.was_converted:
            return CONVERTED
        if self.conversion.original_unit in CONVERTIBLE_UNITS:
            return FAILED
        return NEEDS_ATTENTION

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conversion_status"] = self.conversion_status
        return data


@dataclass(frozen=True)
class Deviation(Notification):
    deviation_type: str | None = None
    severity: str | None = None
    status: str | None = None
    status_text: str | None = None


@dataclass(frozen=True)
class PPAPNotification(Notification):
    status: str | None = None
    status_text: str | None = None
    part_number: str | None = None


@dataclass(frozen=True)
class DeviationStatus(_Record):
    notification_number: str
    status: str | None = None
    status_text: str | None = None


@dataclass(frozen=True)
class Delivery(_Record):
    id: str
    plant_code: str
    site_code: str
    month: str
    quantity: float
    kind: str
    site_name: str | None = None


@dataclass(frozen=True)
class Plant(_Record):
    code: str
    name: str
    city: str | None = None
    country: str | None = None
    erp: str | None = None
    abbreviation: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class PpapCounts(_Record):
    in_progress: int = 0
    completed: int = 0


@dataclass(frozen=True)
class MonthlySiteKpi(_Record):
    month: str
    site_code: str
    site_name: str | None = None
    customer_complaints_q1: int = 0
    supplier_complaints_q2: int = 0
    internal_complaints_q3: int = 0
    internal_notifications_q3: int = 0
    deviations_d: int = 0
    ppap_p: PpapCounts = field(default_factory=PpapCounts)
    customer_deliveries: float = 0.0
    supplier_deliveries: float = 0.0
    customer_defective_parts: float = 0.0
    supplier_defective_parts: float = 0.0
    internal_defective_parts: float = 0.0
    customer_ppm: float | None = None
    supplier_ppm: float | None = None
    # Optional extras (conversion summaries, manual-entry placeholders).
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.month, self.site_code)


@dataclass(frozen=True)
class GlobalPpm(_Record):
    customer_ppm: float | None
    supplier_ppm: float | None


@dataclass(frozen=True)
class ParseContext:
    """Per-call lookups handed to the parsers.

    plants
        Plant master data keyed by code; fills site names the export lacks.
    column_overrides
        ``{record_kind: {field: header}}`` pinning fields to named headers,
        e.g. ``{"complaints": {"defective_parts": "Menge"}}``.
    """

    plants: dict[str, Plant] = field(default_factory=dict)
    column_overrides: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_plants(cls, plants: list[Plant], **kwargs) -> "ParseContext":
        return cls(plants={p.code: p for p in plants}, **kwargs)

    def site_name(self, code: str) -> str | None:
        plant = self.plants.get(code)
        return plant.name if plant else None

    def overrides_for(self, kind: str) -> dict[str, str]:
        return self.column_overrides.get(kind, {})


@dataclass
class ParseResult(Generic[T]):
    """Outcome of parsing one sheet.

    ``error`` is only set when the sheet could not be used at all (required
    columns missing); row-level problems land in ``warnings``.
    """

    records: list[T] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    file_name: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
