import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest
from sitelog import create_app
from sitelog.extensions import db
from sitelog.services.stores import (
    CatalogItem,
    CatalogStore,
    RowLimitStore,
    TransactionStore,
    UsageRow,
    WeatherSnapshot,
    WeatherStore,
    WorkLogEntry,
)


@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config.update(
        TESTING=True,
        APP_ENV="test",
    )
    with app.app_context():
        db.create_all()
        db.session.expire_on_commit = False
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()


# ──────────────────────────────────────────────────────────────────────────────
# In-memory stores for engine tests (no database)
# ──────────────────────────────────────────────────────────────────────────────
class MemoryCatalog(CatalogStore):
    def __init__(self, companies=(), materials=(), equipments=(), site=None):
        self._companies = list(companies)
        self._materials = list(materials)
        self._equipments = list(equipments)
        self._site = site

    def companies(self, *, include_completed=True):
        return [c for c in self._companies if include_completed or not c.is_completed]

    def materials(self):
        return list(self._materials)

    def equipments(self):
        return list(self._equipments)

    def site_name(self):
        return self._site


class MemoryTransactions(TransactionStore):
    def __init__(self, personnel=(), materials=(), equipment=(), logs=()):
        self.personnel = list(personnel)
        self.materials = list(materials)
        self.equipment = list(equipment)
        self.logs = list(logs)
        self.snapshots = 0

    def personnel_until(self, d):
        return [r for r in self.personnel if r.date <= d]

    def materials_until(self, d):
        return [r for r in self.materials if r.date <= d]

    def equipment_until(self, d):
        return [r for r in self.equipment if r.date <= d]

    def work_log(self, d):
        return [e for e in self.logs if e.date == d]

    def read_snapshot(self):
        self.snapshots += 1
        return super().read_snapshot()


class MemoryWeather(WeatherStore):
    def __init__(self):
        self.rows: Dict[date, WeatherSnapshot] = {}
        self.writes = 0

    def get(self, d):
        return self.rows.get(d)

    def upsert(self, snapshot):
        self.writes += 1
        self.rows[snapshot.date] = snapshot


class MemoryRowLimits(RowLimitStore):
    def __init__(self, limits: Optional[Dict[str, int]] = None):
        self.limits = dict(limits or {})

    def get(self, page_name):
        return self.limits.get(page_name)

    def set(self, page_name, max_rows):
        self.limits[page_name] = max_rows

    def all(self):
        return dict(self.limits)


class FakeForecastClient:
    """Stands in for KmaForecastClient; records calls, returns canned items or raises."""

    def __init__(self, items: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.items = items or []
        self.error = error
        self.calls = []

    def fetch(self, base_date, base_time):
        self.calls.append((base_date, base_time))
        if self.error:
            raise self.error
        return list(self.items)


def fixed_clock(dt: datetime):
    """Clock returning a fixed aware UTC datetime."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return lambda: dt


def item(id, name, spec, **kw):
    return CatalogItem(id=id, name=name, specification=spec, **kw)


def usage(name, spec, d, qty):
    return UsageRow(name=name, specification=spec, date=d, quantity=qty)


def log_entry(id, d, company_id, company_name, trade="", personnel=0, description=""):
    return WorkLogEntry(
        id=id,
        date=d,
        company_id=company_id,
        company_name=company_name,
        trade=trade,
        personnel_count=personnel,
        description=description,
    )
