"""
QOS Quality Report: KPI ingestion engine

Turns SAP quality and logistics exports (complaints, deliveries,
deviation and PPAP notifications, plant master data) into a monthly,
per-site KPI dataset with customer and supplier PPM.

To run a whole upload batch:
    Call pipeline.build_kpi_dataset({file_name: xlsx_bytes_or_rows}) and
    read .kpis, .global_ppm and the per-file .reports.

To support a new export layout:
    Add header candidates to the matching *_COLUMNS table in config, or
    pass ParseContext(column_overrides={...}) to pin a field to a header.

To add a unit conversion:
    Add the unit to config.UNIT_ALIASES and its size patterns to the
    matching *_PATTERNS table.
"""
