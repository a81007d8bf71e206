"""
Previous-day / current-day / cumulative-to-date figures per catalog item.

For a selected date D every catalog item of a domain gets exactly one row, in catalog
sort order, even with no activity: printed sheets have one fixed line per item.
Transactional rows are read once per domain (everything dated <= D) and folded in:

  cumulative += qty                 always
  current    += qty                 if date == D
  previous   += qty                 if date == D - 1

Rows sharing a key and a date are summed (the same equipment used by several
companies on one day, or a company entered twice).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from functools import cached_property
from typing import Callable, Dict, Iterator, List, Tuple

from sitelog.services.errors import ReportInputError
from sitelog.services.keys import catalog_key, catalog_sort_key, company_sort_key
from sitelog.services.stores import CatalogItem, CatalogStore, Quantity, TransactionStore, UsageRow
from sitelog.utils.helpers import QTY_PLACES, previous_day

logger = logging.getLogger(__name__)

PERSONNEL = "personnel"
MATERIAL = "material"
EQUIPMENT = "equipment"
DOMAINS = (PERSONNEL, MATERIAL, EQUIPMENT)


def _json_number(v: Quantity):
    return float(v) if isinstance(v, Decimal) else v


@dataclass
class PeriodFigures:
    previous: Quantity = 0
    current: Quantity = 0
    cumulative: Quantity = 0

    def to_dict(self) -> dict:
        return dict(
            previous=_json_number(self.previous),
            current=_json_number(self.current),
            cumulative=_json_number(self.cumulative),
        )


@dataclass
class AggregateRow:
    key: str
    item: CatalogItem
    figures: PeriodFigures

    def to_dict(self) -> dict:
        return dict(
            id=self.item.id,
            name=self.item.name,
            specification=self.item.specification,
            unit=self.item.unit,
            **self.figures.to_dict(),
        )


@dataclass
class DomainAggregate:
    domain: str
    selected_date: date
    rows: List[AggregateRow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[AggregateRow]:
        return iter(self.rows)

    @cached_property
    def by_key(self) -> Dict[str, AggregateRow]:
        return {r.key: r for r in self.rows}

    def totals(self) -> PeriodFigures:
        zero = _zero(self.domain)
        total = PeriodFigures(zero, zero, zero)
        for r in self.rows:
            total.previous += r.figures.previous
            total.current += r.figures.current
            total.cumulative += r.figures.cumulative
        return total

    def to_dict(self) -> dict:
        return dict(
            domain=self.domain,
            date=self.selected_date.isoformat(),
            rows=[r.to_dict() for r in self.rows],
            totals=self.totals().to_dict(),
        )


def _zero(domain: str) -> Quantity:
    return Decimal("0").quantize(QTY_PLACES) if domain == MATERIAL else 0


def _require_date(value) -> date:
    # Callers parse strings at the edge (parse_report_date); only real dates get here.
    if not isinstance(value, date) or hasattr(value, "hour"):
        raise ReportInputError(f"selected date must be a calendar date, got {value!r}")
    return value


class PeriodAggregator:
    def __init__(self, catalog: CatalogStore, transactions: TransactionStore):
        self.catalog = catalog
        self.transactions = transactions

    def _sources(
        self, domain: str, d: date
    ) -> Tuple[List[CatalogItem], List[UsageRow], Callable[[CatalogItem], tuple]]:
        if domain == PERSONNEL:
            # Completed companies stay on the sheet: their history still counts
            return (
                self.catalog.companies(include_completed=True),
                self.transactions.personnel_until(d),
                lambda i: company_sort_key(i.name, i.specification, i.display_order),
            )
        if domain == MATERIAL:
            return (
                self.catalog.materials(),
                self.transactions.materials_until(d),
                lambda i: catalog_sort_key(i.name, i.specification),
            )
        if domain == EQUIPMENT:
            return (
                self.catalog.equipments(),
                self.transactions.equipment_until(d),
                lambda i: catalog_sort_key(i.name, i.specification),
            )
        raise ReportInputError(f"Unknown aggregation domain {domain!r}")

    def aggregate(self, domain: str, selected_date: date) -> DomainAggregate:
        d = _require_date(selected_date)
        prev = previous_day(d)
        items, rows, sort_key = self._sources(domain, d)
        zero = _zero(domain)

        seeded: Dict[str, AggregateRow] = {}
        collisions = 0
        for item in sorted(items, key=sort_key):
            key = catalog_key(item.name, item.specification)
            if key in seeded:
                # Same (name, spec) twice in the catalog: totals merge under the first row
                collisions += 1
                continue
            seeded[key] = AggregateRow(key, item, PeriodFigures(zero, zero, zero))

        orphans = 0
        for row in rows:
            if row.date > d:
                continue
            entry = seeded.get(catalog_key(row.name, row.specification))
            if entry is None:
                orphans += 1
                continue
            f = entry.figures
            f.cumulative += row.quantity
            if row.date == d:
                f.current += row.quantity
            elif row.date == prev:
                f.previous += row.quantity

        if collisions or orphans:
            logger.debug(
                "aggregate %s %s: %d catalog key collision(s), %d row(s) without catalog entry",
                domain, d.isoformat(), collisions, orphans,
            )
        return DomainAggregate(domain, d, list(seeded.values()))

    def personnel(self, selected_date: date) -> DomainAggregate:
        return self.aggregate(PERSONNEL, selected_date)

    def materials(self, selected_date: date) -> DomainAggregate:
        return self.aggregate(MATERIAL, selected_date)

    def equipment(self, selected_date: date) -> DomainAggregate:
        return self.aggregate(EQUIPMENT, selected_date)

    def all_domains(self, selected_date: date) -> Dict[str, DomainAggregate]:
        return {domain: self.aggregate(domain, selected_date) for domain in DOMAINS}
