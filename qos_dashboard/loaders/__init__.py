"""Data ingestion loaders for SAP quality and logistics exports."""

from .columns import ColumnMapping, ColumnSpec, build_schema, find_column, resolve_columns
from .complaints import parse_complaints
from .deliveries import parse_deliveries
from .detect import DetectedFile, detect_file_type
from .deviations import apply_deviation_status, parse_deviation_status, parse_deviations
from .plants import parse_plants
from .ppap import parse_ppap
from .units import convert_to_pieces
from .utils import SheetFormatError, frame_to_sheet, parse_date, parse_number, read_workbook

__all__ = [
    "ColumnMapping",
    "ColumnSpec",
    "build_schema",
    "find_column",
    "resolve_columns",
    "parse_complaints",
    "parse_deliveries",
    "DetectedFile",
    "detect_file_type",
    "apply_deviation_status",
    "parse_deviation_status",
    "parse_deviations",
    "parse_plants",
    "parse_ppap",
    "convert_to_pieces",
    "SheetFormatError",
    "frame_to_sheet",
    "parse_date",
    "parse_number",
    "read_workbook",
]
