from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pandas as pd

from sitelog.models import Company, Equipment, Material, Site
from sitelog.services.errors import NotFoundError, ReportInputError
from sitelog.services.keys import catalog_key
from sitelog.utils.validators import clean_str

logger = logging.getLogger(__name__)

KINDS = ("materials", "equipment", "companies")

# Accepted sheet headers -> column names
_COLUMNS = {
    "materials": {
        "Name": "name", "Material": "name", "name": "name",
        "Specification": "specification", "Spec": "specification", "specification": "specification",
        "Unit": "unit", "unit": "unit",
    },
    "equipment": {
        "Name": "name", "Equipment": "name", "name": "name",
        "Specification": "specification", "Spec": "specification", "specification": "specification",
    },
    "companies": {
        "Name": "name", "Company": "name", "name": "name",
        "Trade": "trade", "trade": "trade",
        "Order": "display_order", "display_order": "display_order",
    },
}


def _read_sheet(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in (".xlsx", ".xls"):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str)


def _cell(row, col: str) -> Optional[str]:
    v = row.get(col)
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return None
    s = clean_str(v)
    if s and s.lower() in ("nan", "none"):
        return None
    return s


def import_catalog(session, kind: str, path) -> Tuple[int, int]:
    """
    Load catalog rows from a CSV/XLSX sheet.
    Rows whose (name, specification) already exist are skipped.
    Returns: (inserted_count, skipped_count)
    """
    if kind not in KINDS:
        raise ReportInputError(f"Unknown catalog {kind!r}; expected one of {', '.join(KINDS)}.")
    path = Path(path)
    df = _read_sheet(path).rename(columns=_COLUMNS[kind])
    if "name" not in df.columns:
        raise ReportInputError(f"{path.name}: no name column.")
    if kind == "materials" and "specification" not in df.columns:
        raise ReportInputError(f"{path.name}: materials need a specification column.")
    if kind == "companies" and "trade" not in df.columns:
        raise ReportInputError(f"{path.name}: companies need a trade column.")

    if kind == "materials":
        model, spec_attr = Material, "specification"
    elif kind == "equipment":
        model, spec_attr = Equipment, "specification"
    else:
        model, spec_attr = Company, "trade"

    existing = {
        catalog_key(name, spec)
        for name, spec in session.query(model.name, getattr(model, spec_attr)).all()
    }

    inserted = skipped = 0
    for _, r in df.iterrows():
        name = _cell(r, "name")
        if not name:
            skipped += 1
            continue
        spec = _cell(r, spec_attr)
        if kind in ("materials", "companies") and spec is None:
            # NOT NULL columns; an empty cell means "no spec" rather than a missing row
            spec = ""
        key = catalog_key(name, spec)
        if key in existing:
            skipped += 1
            continue
        existing.add(key)

        if kind == "materials":
            session.add(Material(name=name, specification=spec, unit=_cell(r, "unit") or ""))
        elif kind == "equipment":
            session.add(Equipment(name=name, specification=spec))
        else:
            order = _cell(r, "display_order")
            try:
                display_order = int(float(order)) if order else None
            except ValueError:
                session.rollback()
                raise ReportInputError(f"{path.name}: invalid order {order!r} for {name!r}.") from None
            session.add(Company(name=name, trade=spec, display_order=display_order))
        inserted += 1

    session.commit()
    logger.info("catalog import %s from %s: inserted=%d skipped=%d", kind, path.name, inserted, skipped)
    return inserted, skipped


def set_company_order(session, orders: Iterable[Tuple[int, Optional[int]]]) -> int:
    """Set manpower print positions. `None` clears a position (company sorts last)."""
    pairs = []
    for company_id, order in orders:
        if isinstance(company_id, bool) or not isinstance(company_id, int):
            raise ReportInputError(f"Invalid company id {company_id!r}.")
        if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
            raise ReportInputError(f"Invalid display order {order!r} for company {company_id}.")
        pairs.append((company_id, order))

    for company_id, order in pairs:
        company = session.get(Company, company_id)
        if company is None:
            session.rollback()
            raise NotFoundError(f"Company {company_id} not found.")
        company.display_order = order
    session.commit()
    return len(pairs)


def set_site_name(session, name: str) -> Site:
    """The site shown on every report header. A single row is kept."""
    name = clean_str(name)
    if not name:
        raise ReportInputError("Site name is required.")
    site = session.query(Site).order_by(Site.id).first()
    if site:
        site.name = name
    else:
        site = Site(name=name)
        session.add(site)
    session.commit()
    return site
