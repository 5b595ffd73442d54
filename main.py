"""
QOS Quality Report: end-to-end KPI ingestion pipeline.

Runs every export in DATA_DIR (or a simulated batch when the directory
holds no .xlsx files) through the loaders and aggregators and prints
smoke-test summaries.

Usage:
    python main.py
    QOS_DATA_DIR=/path/to/exports python main.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from qos_dashboard.config import DATA_DIR
from qos_dashboard.dashboard import (
    get_available_sites,
    get_conversion_review,
    get_site_trend,
    get_summary,
)
from qos_dashboard.pipeline import build_kpi_dataset
from qos_dashboard.simulator import generate_batch
from qos_dashboard.transforms import build_fact_monthly_site_kpi

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _load_files() -> dict:
    paths = sorted(DATA_DIR.glob("*.xlsx")) if DATA_DIR.is_dir() else []
    if not paths:
        logger.info("No exports in %s, using simulated batch", DATA_DIR)
        return generate_batch()
    return {p.name: p.read_bytes() for p in paths}


def main() -> None:
    """Run the full ingestion pipeline and print smoke-test outputs."""

    print("=" * 70)
    print("  QOS QUALITY REPORT: KPI Ingestion Engine")
    print("  Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Parse exports
    # ------------------------------------------------------------------
    print("[ 1 ] PARSING EXPORTS")
    print("-" * 40)

    files = _load_files()
    dataset = build_kpi_dataset(files, max_workers=4)

    for report in dataset.reports:
        status = "ERROR " + report.error if report.error else f"{report.records} records"
        print(f"  {report.type:<20} {report.file_name:<40} {status}")
        for warning in report.warnings[:3]:
            print(f"      ! {warning}")
        if len(report.warnings) > 3:
            print(f"      ! ... and {len(report.warnings) - 3} more")

    # ------------------------------------------------------------------
    # 2. Monthly site KPIs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] MONTHLY SITE KPIs")
    print("-" * 40)

    fact_kpi = build_fact_monthly_site_kpi(dataset.kpis)
    print(f"\nfact_monthly_site_kpi: {len(fact_kpi)} rows")
    if not fact_kpi.empty:
        cols = [
            "month", "site_code", "customer_complaints_q1", "supplier_complaints_q2",
            "internal_complaints_q3", "internal_notifications_q3", "customer_ppm", "supplier_ppm",
        ]
        print(fact_kpi[cols].head(15).to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    summary = get_summary(dataset.kpis)
    print("\nSummary:")
    for key, value in summary.items():
        print(f"  {key:<28} {value}")

    print(f"\nGlobal PPM: customer={dataset.global_ppm.customer_ppm} "
          f"supplier={dataset.global_ppm.supplier_ppm}")

    sites = get_available_sites(dataset.kpis)
    if sites:
        trend = get_site_trend(dataset.kpis, sites[0]["site_code"])
        print(f"\nTrend for site {trend['site_code']} ({trend['site_name']}):")
        for month, ppm in zip(trend["months"], trend["customer_ppm"]):
            print(f"  {month}  customer PPM {ppm}")

    review = get_conversion_review(dataset.complaints)
    print(f"\nConversions needing review: {len(review)}")
    for row in review[:5]:
        print(f"  {row['notification_number']}  {row['original_value']} "
              f"{row['unit_of_measure']}  {row['conversion_status']}: {row['reason']}")

    print("\n" + "=" * 70)
    print("  Smoke test complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
