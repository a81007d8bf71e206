"""
Read-side store contracts used by the report engine, and their SQLAlchemy
implementations.

The engine receives stores at construction and keeps no state between requests;
tests substitute in-memory stores with the same methods.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Union

from sqlalchemy.orm import Session, scoped_session
from sqlalchemy.sql import func

from sitelog.models import (
    Company,
    DailyMaterial,
    Equipment,
    Material,
    MaxRows,
    Site,
    Weather,
    WorkDetail,
    WorkEquipment,
)
from sitelog.utils.helpers import to_quantity

Quantity = Union[int, Decimal]


@dataclass(frozen=True)
class CatalogItem:
    id: int
    name: str
    specification: Optional[str]
    unit: Optional[str] = None
    display_order: Optional[int] = None
    is_completed: bool = False


@dataclass(frozen=True)
class UsageRow:
    """One transactional row already joined to its catalog item."""
    name: str
    specification: Optional[str]
    date: date
    quantity: Quantity


@dataclass(frozen=True)
class WorkLogEntry:
    id: int
    date: date
    company_id: int
    company_name: str
    trade: str
    personnel_count: int
    description: str

    def to_dict(self) -> dict:
        return dict(
            id=self.id,
            date=self.date.isoformat(),
            company_id=self.company_id,
            company_name=self.company_name,
            trade=self.trade,
            personnel_count=self.personnel_count,
            description=self.description,
        )


@dataclass(frozen=True)
class WeatherSnapshot:
    date: date
    min_temp: str
    max_temp: str
    condition: str

    def to_dict(self) -> dict:
        return dict(
            date=self.date.isoformat(),
            min_temp=self.min_temp,
            max_temp=self.max_temp,
            condition=self.condition,
        )


# ──────────────────────────────────────────────────────────────────────────────
# Contracts
# ──────────────────────────────────────────────────────────────────────────────
class CatalogStore:
    def companies(self, *, include_completed: bool = True) -> List[CatalogItem]:
        raise NotImplementedError

    def materials(self) -> List[CatalogItem]:
        raise NotImplementedError

    def equipments(self) -> List[CatalogItem]:
        raise NotImplementedError

    def site_name(self) -> Optional[str]:
        raise NotImplementedError

    def find_company(self, name: str, trade: str) -> Optional[CatalogItem]:
        raise NotImplementedError

    def find_material(self, name: str, specification: str) -> Optional[CatalogItem]:
        raise NotImplementedError

    def find_equipment(self, name: str, specification: Optional[str]) -> Optional[CatalogItem]:
        raise NotImplementedError


class TransactionStore:
    def personnel_until(self, d: date) -> List[UsageRow]:
        raise NotImplementedError

    def materials_until(self, d: date) -> List[UsageRow]:
        raise NotImplementedError

    def equipment_until(self, d: date) -> List[UsageRow]:
        raise NotImplementedError

    def work_log(self, d: date) -> List[WorkLogEntry]:
        raise NotImplementedError

    @contextmanager
    def read_snapshot(self) -> Iterator[None]:
        yield


class WeatherStore:
    def get(self, d: date) -> Optional[WeatherSnapshot]:
        raise NotImplementedError

    def upsert(self, snapshot: WeatherSnapshot) -> None:
        raise NotImplementedError


class RowLimitStore:
    def get(self, page_name: str) -> Optional[int]:
        raise NotImplementedError

    def set(self, page_name: str, max_rows: int) -> None:
        raise NotImplementedError

    def all(self) -> Dict[str, int]:
        raise NotImplementedError


# ──────────────────────────────────────────────────────────────────────────────
# SQLAlchemy implementations
# ──────────────────────────────────────────────────────────────────────────────
def _company_item(c: Company) -> CatalogItem:
    return CatalogItem(
        id=c.id,
        name=c.name,
        specification=c.trade,
        display_order=c.display_order,
        is_completed=bool(c.is_completed),
    )


def _material_item(m: Material) -> CatalogItem:
    return CatalogItem(id=m.id, name=m.name, specification=m.specification, unit=m.unit)


def _equipment_item(e: Equipment) -> CatalogItem:
    return CatalogItem(id=e.id, name=e.name, specification=e.specification)


def _spec_filter(column, specification):
    return column.is_(None) if specification is None else column == specification


class SqlCatalogStore(CatalogStore):
    def __init__(self, session: Session):
        self.session = session

    def companies(self, *, include_completed: bool = True) -> List[CatalogItem]:
        q = self.session.query(Company)
        if not include_completed:
            q = q.filter(Company.is_completed.is_(False))
        return [_company_item(c) for c in q.order_by(Company.id).all()]

    def materials(self) -> List[CatalogItem]:
        return [_material_item(m) for m in self.session.query(Material).order_by(Material.id).all()]

    def equipments(self) -> List[CatalogItem]:
        return [_equipment_item(e) for e in self.session.query(Equipment).order_by(Equipment.id).all()]

    def site_name(self) -> Optional[str]:
        site = self.session.query(Site).order_by(Site.id).first()
        return site.name if site else None

    def find_company(self, name: str, trade: str) -> Optional[CatalogItem]:
        c = (
            self.session.query(Company)
            .filter(Company.name == name, _spec_filter(Company.trade, trade))
            .order_by(Company.id)
            .first()
        )
        return _company_item(c) if c else None

    def find_material(self, name: str, specification: str) -> Optional[CatalogItem]:
        m = (
            self.session.query(Material)
            .filter(Material.name == name, _spec_filter(Material.specification, specification))
            .order_by(Material.id)
            .first()
        )
        return _material_item(m) if m else None

    def find_equipment(self, name: str, specification: Optional[str]) -> Optional[CatalogItem]:
        e = (
            self.session.query(Equipment)
            .filter(Equipment.name == name, _spec_filter(Equipment.specification, specification))
            .order_by(Equipment.id)
            .first()
        )
        return _equipment_item(e) if e else None


class SqlTransactionStore(TransactionStore):
    def __init__(self, session: Session):
        self.session = session

    def personnel_until(self, d: date) -> List[UsageRow]:
        rows = (
            self.session.query(Company.name, Company.trade, WorkDetail.date, WorkDetail.personnel_count)
            .select_from(WorkDetail)
            .join(WorkDetail.company)
            .filter(WorkDetail.date <= d)
            .order_by(WorkDetail.date, WorkDetail.id)
            .all()
        )
        return [UsageRow(name, trade, day, int(count or 0)) for name, trade, day, count in rows]

    def materials_until(self, d: date) -> List[UsageRow]:
        rows = (
            self.session.query(Material.name, Material.specification, DailyMaterial.date, DailyMaterial.quantity)
            .select_from(DailyMaterial)
            .join(DailyMaterial.material)
            .filter(DailyMaterial.date <= d)
            .order_by(DailyMaterial.date, DailyMaterial.id)
            .all()
        )
        return [UsageRow(name, spec, day, to_quantity(qty)) for name, spec, day, qty in rows]

    def equipment_until(self, d: date) -> List[UsageRow]:
        rows = (
            self.session.query(Equipment.name, Equipment.specification, WorkDetail.date, WorkEquipment.equipment_count)
            .select_from(WorkEquipment)
            .join(WorkEquipment.equipment)
            .join(WorkEquipment.work_detail)
            .filter(WorkDetail.date <= d)
            .order_by(WorkDetail.date, WorkEquipment.id)
            .all()
        )
        return [UsageRow(name, spec, day, int(count or 0)) for name, spec, day, count in rows]

    def work_log(self, d: date) -> List[WorkLogEntry]:
        rows = (
            self.session.query(WorkDetail, Company)
            .join(WorkDetail.company)
            .filter(WorkDetail.date == d)
            .order_by(WorkDetail.id)
            .all()
        )
        return [
            WorkLogEntry(
                id=w.id,
                date=w.date,
                company_id=c.id,
                company_name=c.name,
                trade=c.trade,
                personnel_count=int(w.personnel_count or 0),
                description=w.description or "",
            )
            for w, c in rows
        ]

    @contextmanager
    def read_snapshot(self) -> Iterator[None]:
        """
        Run the enclosed reads in one transaction so the three domains cannot tear.

        An open read-only transaction is closed first so the snapshot starts fresh;
        one with pending writes is left alone and reused.
        """
        session = self.session() if isinstance(self.session, scoped_session) else self.session
        if session.new or session.dirty or session.deleted:
            yield
            return
        if session.in_transaction():
            session.rollback()
        if session.get_bind().dialect.name == "postgresql":
            session.connection(execution_options={"isolation_level": "REPEATABLE READ"})
        try:
            yield
        finally:
            session.rollback()


class SqlWeatherStore(WeatherStore):
    def __init__(self, session: Session):
        self.session = session

    def get(self, d: date) -> Optional[WeatherSnapshot]:
        row = self.session.get(Weather, d, populate_existing=True)
        if not row:
            return None
        return WeatherSnapshot(row.date, row.min_temp, row.max_temp, row.condition)

    def upsert(self, snapshot: WeatherSnapshot) -> None:
        """INSERT … ON CONFLICT (date) DO UPDATE: concurrent writers are last-write-wins."""
        values = dict(
            date=snapshot.date,
            min_temp=snapshot.min_temp,
            max_temp=snapshot.max_temp,
            condition=snapshot.condition,
        )
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            self.session.merge(Weather(**values))
            self.session.commit()
            return

        stmt = insert(Weather).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Weather.date],
            set_={
                "min_temp": stmt.excluded.min_temp,
                "max_temp": stmt.excluded.max_temp,
                "condition": stmt.excluded.condition,
                "fetched_at": func.now(),
            },
        )
        self.session.execute(stmt)
        self.session.commit()


class SqlRowLimitStore(RowLimitStore):
    def __init__(self, session: Session):
        self.session = session

    def get(self, page_name: str) -> Optional[int]:
        row = self.session.query(MaxRows).filter_by(page_name=page_name).one_or_none()
        return row.max_rows if row else None

    def set(self, page_name: str, max_rows: int) -> None:
        row = self.session.query(MaxRows).filter_by(page_name=page_name).one_or_none()
        if row:
            row.max_rows = max_rows
        else:
            self.session.add(MaxRows(page_name=page_name, max_rows=max_rows))
        self.session.commit()

    def all(self) -> Dict[str, int]:
        return {r.page_name: r.max_rows for r in self.session.query(MaxRows).all()}
