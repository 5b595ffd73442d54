"""
Header resolution for exports whose column names drift between SAP
layouts, languages and hand-edited copies.

A schema is a ``dict[str, ColumnSpec]``; ``resolve_columns`` turns a header
row into a ``ColumnMapping`` (field -> column index, or None) once per sheet.

Resolution order per field
--------------------------
1. exact match of a normalised candidate against a normalised header
2. candidate contained in a header on word boundaries
3. header containing any ``keywords`` term, or passing ``fallback``

Headers containing an ``exclude`` term are never considered for that field.
"""

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass

from .utils import RawSheet, normalise_header, sheet_headers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnSpec:
    candidates: tuple[str, ...]
    keywords: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    fallback: Callable[[str], bool] | None = None
    required: bool = False

    @classmethod
    def from_config(cls, entry: dict) -> "ColumnSpec":
        return cls(
            candidates=tuple(normalise_header(c) for c in entry.get("candidates", ())),
            keywords=tuple(normalise_header(k) for k in entry.get("keywords", ())),
            exclude=tuple(normalise_header(e) for e in entry.get("exclude", ())),
            fallback=entry.get("fallback"),
            required=entry.get("required", False),
        )

    def excludes(self, header: str) -> bool:
        return any(term in header for term in self.exclude)


def build_schema(columns: dict[str, dict]) -> dict[str, ColumnSpec]:
    """Turn a config column table into ColumnSpecs."""
    return {name: ColumnSpec.from_config(entry) for name, entry in columns.items()}


class ColumnMapping(Mapping):
    """Read-only field -> column index map for one sheet."""

    def __init__(self, indices: dict[str, int | None], headers: list[str], required: Iterable[str] = ()):
        self._indices = dict(indices)
        self._headers = list(headers)
        self._required = tuple(required)

    def __getitem__(self, name: str) -> int | None:
        return self._indices[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def __repr__(self) -> str:
        found = {k: self.header(k) for k, v in self._indices.items() if v is not None}
        return f"ColumnMapping({found})"

    def resolved(self, name: str) -> bool:
        return self._indices.get(name) is not None

    def header(self, name: str) -> str | None:
        idx = self._indices.get(name)
        return None if idx is None else self._headers[idx]

    def missing(self, names: Iterable[str] | None = None) -> list[str]:
        """Unresolved fields among ``names`` (default: the required ones)."""
        names = self._required if names is None else names
        return [n for n in names if not self.resolved(n)]


def find_column(headers: list[str], spec: ColumnSpec) -> int | None:
    """Index of the first header matching ``spec``, or None."""
    normalised = [normalise_header(h) for h in headers]
    usable = [
        (i, h) for i, h in enumerate(normalised)
        if h and not spec.excludes(h)
    ]

    for cand in spec.candidates:
        for i, h in usable:
            if h == cand:
                return i

    for cand in spec.candidates:
        padded = f" {cand} "
        for i, h in usable:
            if padded in f" {h} ":
                return i

    if spec.keywords:
        for i, h in usable:
            if any(term in h for term in spec.keywords):
                return i

    if spec.fallback is not None:
        for i, h in usable:
            if spec.fallback(h):
                return i

    return None


def resolve_columns(
    headers: list[str],
    schema: dict[str, ColumnSpec],
    overrides: dict[str, str] | None = None,
) -> ColumnMapping:
    """Resolve every field of ``schema`` against one header row.

    ``overrides`` pins a field to a header by name; an override naming a
    header the sheet does not have is logged and ignored.
    """
    overrides = overrides or {}
    normalised = [normalise_header(h) for h in headers]
    indices: dict[str, int | None] = {}

    for name, spec in schema.items():
        pinned = overrides.get(name)
        if pinned:
            target = normalise_header(pinned)
            if target in normalised:
                indices[name] = normalised.index(target)
                continue
            logger.warning("Column override '%s' for %s not found in headers", pinned, name)
        indices[name] = find_column(headers, spec)

    required = [name for name, spec in schema.items() if spec.required]
    mapping = ColumnMapping(indices, [str(h) for h in headers], required)
    logger.debug("Resolved columns: %r", mapping)
    return mapping


def map_sheet(
    sheet: RawSheet,
    schema: dict[str, ColumnSpec],
    overrides: dict[str, str] | None = None,
) -> ColumnMapping:
    """Resolve ``schema`` against the header row of ``sheet``.

    Raises SheetFormatError when the sheet has no header row.
    """
    return resolve_columns(sheet_headers(sheet), schema, overrides)


def missing_columns_message(missing: list[str], sheet: RawSheet) -> str:
    headers = ", ".join(h for h in sheet_headers(sheet) if h)
    return f"Required columns not found: {', '.join(missing)}. Available columns: {headers}"
