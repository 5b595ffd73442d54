"""
End-to-end ingestion: a batch of exports in, one KPI dataset out.

Each file is classified by name, decoded, parsed by the matching loader and
reported on. Plant master data is parsed first so the other loaders can
fill site names from it. Parsing may run on a thread pool; results are
gathered only after every file has finished and are combined in input
order, so a concurrent run gives the same dataset as a sequential one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .kpis import calculate_global_ppm, calculate_monthly_site_kpis
from .loaders import detect
from .loaders.complaints import parse_complaints
from .loaders.deliveries import parse_deliveries
from .loaders.deviations import apply_deviation_status, parse_deviation_status, parse_deviations
from .loaders.plants import parse_plants
from .loaders.ppap import parse_ppap
from .loaders.utils import RawSheet, frame_to_sheet, read_workbook
from .models import (
    Complaint,
    Delivery,
    Deviation,
    DeviationStatus,
    GlobalPpm,
    MonthlySiteKpi,
    PPAPNotification,
    ParseContext,
    ParseResult,
    Plant,
)
from .reconcile import apply_corrections
from .transforms import aggregate_deliveries

logger = logging.getLogger(__name__)

_PARSERS = {
    detect.COMPLAINTS: parse_complaints,
    detect.DELIVERIES_OUTBOUND: parse_deliveries,
    detect.DELIVERIES_INBOUND: parse_deliveries,
    detect.DEVIATIONS: parse_deviations,
    detect.DEVIATION_STATUS: parse_deviation_status,
    detect.PPAP: parse_ppap,
    detect.PLANTS: parse_plants,
}


@dataclass
class FileReport:
    file_name: str
    type: str
    plant_code: str | None = None
    records: int = 0
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "type": self.type,
            "plant_code": self.plant_code,
            "records": self.records,
            "warnings": list(self.warnings),
            "error": self.error,
        }


@dataclass
class KpiDataset:
    complaints: list[Complaint] = field(default_factory=list)
    deviations: list[Deviation] = field(default_factory=list)
    ppaps: list[PPAPNotification] = field(default_factory=list)
    deliveries: list[Delivery] = field(default_factory=list)
    plants: list[Plant] = field(default_factory=list)
    kpis: list[MonthlySiteKpi] = field(default_factory=list)
    global_ppm: GlobalPpm = field(default_factory=lambda: GlobalPpm(None, None))
    reports: list[FileReport] = field(default_factory=list)

    @property
    def notifications(self) -> list:
        return [*self.complaints, *self.deviations, *self.ppaps]

    def to_dict(self) -> dict:
        return {
            "complaints": [c.to_dict() for c in self.complaints],
            "deviations": [d.to_dict() for d in self.deviations],
            "ppaps": [p.to_dict() for p in self.ppaps],
            "deliveries": [d.to_dict() for d in self.deliveries],
            "plants": [p.to_dict() for p in self.plants],
            "kpis": [k.to_dict() for k in self.kpis],
            "global_ppm": self.global_ppm.to_dict(),
            "reports": [r.to_dict() for r in self.reports],
        }


def load_sheet(data: Any) -> RawSheet:
    """Accept .xlsx bytes, a DataFrame or an already-decoded RawSheet."""
    if isinstance(data, (bytes, bytearray)):
        return read_workbook(bytes(data))
    if isinstance(data, pd.DataFrame):
        return frame_to_sheet(data)
    return [list(row) for row in data]


def parse_file(
    file_name: str,
    data: Any,
    context: ParseContext | None = None,
) -> tuple[FileReport, ParseResult | None]:
    """Detect, decode and parse one file.

    Never raises: decoding or parsing failures are logged and returned as
    ``FileReport.error``.
    """
    detected = detect.detect_file_type(file_name)
    report = FileReport(file_name=file_name, type=detected.type, plant_code=detected.plant_code)

    parser = _PARSERS.get(detected.type)
    if parser is None:
        report.error = "Unrecognised file type"
        logger.warning("Skipping %s: unrecognised file type", file_name)
        return report, None

    try:
        result = parser(load_sheet(data), file_name=file_name, context=context)
    except Exception as exc:
        logger.exception("Failed to parse %s", file_name)
        report.error = f"{type(exc).__name__}: {exc}"
        return report, None

    report.records = len(result.records)
    report.warnings = list(result.warnings)
    report.error = result.error
    return report, result


def _dedupe_by_id(records: list) -> list:
    """Keep one record per id; a later file replaces an earlier one."""
    by_id = {}
    for rec in records:
        by_id[rec.id] = rec
    if len(by_id) != len(records):
        logger.info("Dropped %d duplicate notifications", len(records) - len(by_id))
    return list(by_id.values())


def build_kpi_dataset(
    files: dict[str, Any],
    corrections: list[Complaint] | None = None,
    context: ParseContext | None = None,
    max_workers: int | None = None,
) -> KpiDataset:
    """Run a batch of exports through the loaders and aggregators.

    Parameters
    ----------
    files : ``{file_name: xlsx bytes | RawSheet | DataFrame}``. The name
        decides the loader (see ``detect.detect_file_type``).
    corrections : corrected complaints, applied by id before aggregation.
    context : column overrides and plant master data; plants found in the
        batch are added to it.
    max_workers : parse on a thread pool of this size when greater than 1.

    Returns
    -------
    KpiDataset with the parsed records, folded deliveries, monthly KPIs,
    global PPM and one FileReport per input file (in input order).
    """
    context = context or ParseContext()
    names = list(files)
    is_plants = {n: detect.detect_file_type(n).type == detect.PLANTS for n in names}

    outcomes: dict[str, tuple[FileReport, ParseResult | None]] = {}
    plants: list[Plant] = []
    for name in names:
        if is_plants[name]:
            outcomes[name] = parse_file(name, files[name], context)
            result = outcomes[name][1]
            if result is not None:
                plants.extend(result.records)

    if plants:
        known = dict(context.plants)
        known.update({p.code: p for p in plants})
        context = ParseContext(plants=known, column_overrides=context.column_overrides)

    pending = [n for n in names if not is_plants[n]]
    if max_workers and max_workers > 1 and len(pending) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {n: pool.submit(parse_file, n, files[n], context) for n in pending}
        # the with-block waits for every future before results are read
        for name in pending:
            outcomes[name] = futures[name].result()
    else:
        for name in pending:
            outcomes[name] = parse_file(name, files[name], context)

    by_type: dict[str, list] = {}
    reports = []
    for name in names:
        report, result = outcomes[name]
        reports.append(report)
        if result is not None and result.ok:
            by_type.setdefault(report.type, []).extend(result.records)

    complaints = _dedupe_by_id(by_type.get(detect.COMPLAINTS, []))
    if corrections:
        complaints = apply_corrections(complaints, corrections)

    statuses: list[DeviationStatus] = by_type.get(detect.DEVIATION_STATUS, [])
    deviations = _dedupe_by_id(by_type.get(detect.DEVIATIONS, []))
    if statuses:
        deviations = apply_deviation_status(deviations, statuses)
    ppaps = _dedupe_by_id(by_type.get(detect.PPAP, []))

    deliveries = aggregate_deliveries(
        by_type.get(detect.DELIVERIES_OUTBOUND, []) + by_type.get(detect.DELIVERIES_INBOUND, [])
    )

    notifications = [*complaints, *deviations, *ppaps]
    kpis = calculate_monthly_site_kpis(notifications, deliveries)
    global_ppm = calculate_global_ppm(complaints, deliveries)

    failed = sum(1 for r in reports if not r.ok)
    logger.info(
        "Built KPI dataset from %d files (%d failed): %d notifications, %d deliveries, %d KPI rows",
        len(names), failed, len(notifications), len(deliveries), len(kpis),
    )
    return KpiDataset(
        complaints=complaints,
        deviations=deviations,
        ppaps=ppaps,
        deliveries=deliveries,
        plants=sorted(plants, key=lambda p: p.code),
        kpis=kpis,
        global_ppm=global_ppm,
        reports=reports,
    )
