"""
Simulated export generator for the QOS quality dashboard.

Produces raw sheets laid out the way the SAP exports arrive (header row
plus data rows, headers named as in the real extracts), so the whole
loader chain can be exercised without real files. All values are
synthetic; the same seed always gives the same sheets.
"""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from .loaders.utils import RawSheet

# ---------------------------------------------------------------------------
# Synthetic plant parameters
# ---------------------------------------------------------------------------
_PLANTS = [
    # code, name, city, country, erp, monthly outbound, monthly inbound
    ("101", "Lahnstein", "Lahnstein", "Germany", "SAP S4", 180_000, 95_000),
    ("235", "Brno", "Brno", "Czech Republic", "SAP S4", 120_000, 60_000),
    ("410", "Pune", "Pune", "India", "SAP ECC", 75_000, 40_000),
    ("512", "Queretaro", "Queretaro", "Mexico", "SAP S4", 60_000, 30_000),
]

# unit, material description, typical defective quantity
_MATERIALS = [
    ("PC", "HOUSING ASSY 4711", 12),
    ("PC", "GASKET SET 120", 40),
    ("ML", "SEALANT BOTTLE 600ML", 1_800),
    ("M", "HOSE ROLL L6100MM", 24.4),
    ("M2", "PANEL W1000MM H2000MM", 8),
    ("KG", "GRANULATE BULK", 5),
]

_Q_TYPE_WEIGHTS = {"Q1": 0.5, "Q2": 0.3, "Q3": 0.2}


def _months(start_month: str, n_months: int) -> list[pd.Timestamp]:
    return list(pd.date_range(start_month, periods=n_months, freq="MS"))


def _random_day(rng: np.random.Generator, month: pd.Timestamp) -> datetime:
    return month.to_pydatetime() + timedelta(days=int(rng.integers(0, 28)))


def generate_plants() -> RawSheet:
    """Plant master data sheet."""
    sheet: RawSheet = [["Plant Code", "Plant Name", "City", "Country", "ERP"]]
    for code, name, city, country, erp, _, _ in _PLANTS:
        # codes arrive as numbers from Excel
        sheet.append([float(code), name, city, country, erp])
    return sheet


def generate_complaints(
    start_month: str = "2025-01-01",
    n_months: int = 6,
    per_month: int = 8,
    seed: int = 42,
) -> RawSheet:
    """Q Cockpit style complaint export across all plants."""
    rng = np.random.default_rng(seed)
    sheet: RawSheet = [[
        "Notification", "Notification Type", "Plant", "Created On",
        "Defective Parts", "Unit of Measure", "Material Description", "Material",
    ]]
    types = list(_Q_TYPE_WEIGHTS)
    weights = list(_Q_TYPE_WEIGHTS.values())
    number = 200_000_000

    for month in _months(start_month, n_months):
        for _ in range(per_month):
            number += int(rng.integers(1, 50))
            plant = _PLANTS[int(rng.integers(0, len(_PLANTS)))][0]
            unit, description, typical = _MATERIALS[int(rng.integers(0, len(_MATERIALS)))]
            qty = round(max(typical * rng.lognormal(0, 0.5), 1), 1)
            sheet.append([
                number,
                str(rng.choice(types, p=weights)),
                int(plant),
                _random_day(rng, month),
                qty,
                unit,
                description,
                f"M-{int(rng.integers(10_000, 99_999))}",
            ])
    return sheet


def generate_deliveries(
    plant_code: str,
    outbound: bool = True,
    start_month: str = "2025-01-01",
    n_months: int = 6,
    lines_per_month: int = 20,
    seed: int = 42,
) -> tuple[str, RawSheet]:
    """One delivery export for a plant, named the way SAP names it.

    Returns (file name, sheet). About one line in twenty has no actual
    goods issue/receipt date yet and is dropped by the loader.
    """
    params = next(p for p in _PLANTS if p[0] == plant_code)
    monthly = params[5] if outbound else params[6]
    rng = np.random.default_rng(seed + int(plant_code) + (0 if outbound else 1))

    date_header = "Actual Goods Issue Date" if outbound else "Actual Goods Receipt Date"
    prefix = "Outbound" if outbound else "Inbound"
    sheet: RawSheet = [["Delivery", "Plant", "Material", date_header, "Delivered Quantity"]]

    delivery_no = 80_000_000
    for month in _months(start_month, n_months):
        for share in rng.dirichlet(np.ones(lines_per_month)):
            delivery_no += 1
            date = None if rng.random() < 0.05 else _random_day(rng, month)
            sheet.append([
                delivery_no,
                None,
                f"M-{int(rng.integers(10_000, 99_999))}",
                date,
                round(float(monthly * share * rng.normal(1.0, 0.05))),
            ])
    return f"{prefix} {plant_code}_PS4.xlsx", sheet


def generate_deviations(
    start_month: str = "2025-01-01",
    n_months: int = 6,
    seed: int = 42,
) -> RawSheet:
    """D-notification export with SAP system statuses."""
    rng = np.random.default_rng(seed + 7)
    sheet: RawSheet = [[
        "Notification", "Notification Type", "Plant for Material", "Created On",
        "Priority Text", "Notification Status",
    ]]
    number = 300_000_000
    for month in _months(start_month, n_months):
        for _ in range(int(rng.integers(1, 4))):
            number += 1
            sheet.append([
                number,
                str(rng.choice(["D1", "D2", "D3"])),
                _PLANTS[int(rng.integers(0, len(_PLANTS)))][0],
                _random_day(rng, month).strftime("%d.%m.%Y"),
                str(rng.choice(["High", "Medium", "Low"])),
                str(rng.choice(["OSNO", "NOCO", "NOCO ATCO"])),
            ])
    return sheet


def generate_ppap(
    start_month: str = "2025-01-01",
    n_months: int = 6,
    seed: int = 42,
) -> RawSheet:
    """P-notification export."""
    rng = np.random.default_rng(seed + 11)
    sheet: RawSheet = [[
        "Notification", "Notification Type", "Plant for Material", "Created On",
        "Part Number", "Notification Status",
    ]]
    number = 400_000_000
    for month in _months(start_month, n_months):
        for _ in range(int(rng.integers(0, 3))):
            number += 1
            ntype = str(rng.choice(["P1", "P2", "P3"], p=[0.5, 0.3, 0.2]))
            sheet.append([
                number,
                ntype,
                _PLANTS[int(rng.integers(0, len(_PLANTS)))][0],
                _random_day(rng, month),
                f"P-{int(rng.integers(1_000, 9_999))}",
                "OSNO" if ntype == "P1" else "NOCO",
            ])
    return sheet


def generate_batch(
    start_month: str = "2025-01-01",
    n_months: int = 6,
    seed: int = 42,
) -> dict[str, RawSheet]:
    """A full upload batch ``{file_name: sheet}`` for every export type."""
    batch: dict[str, RawSheet] = {
        "Plants.xlsx": generate_plants(),
        "Q Cockpit Complaints PPM.xlsx": generate_complaints(start_month, n_months, seed=seed),
        "Deviations Notifications_PS4.xlsx": generate_deviations(start_month, n_months, seed),
        "PPAP Notifications_PS4.xlsx": generate_ppap(start_month, n_months, seed),
    }
    for code, *_ in _PLANTS:
        for outbound in (True, False):
            name, sheet = generate_deliveries(code, outbound, start_month, n_months, seed=seed)
            batch[name] = sheet
    return batch
