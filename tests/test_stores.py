from datetime import date
from decimal import Decimal

import pytest

from sitelog.extensions import db
from sitelog.models import Company, DailyMaterial, Equipment, Material, Weather, WorkDetail, WorkEquipment
from sitelog.services.aggregation import PeriodAggregator
from sitelog.services.keys import catalog_key
from sitelog.services.stores import (
    SqlCatalogStore,
    SqlRowLimitStore,
    SqlTransactionStore,
    SqlWeatherStore,
    WeatherSnapshot,
)

D = date(2024, 3, 15)
PREV = date(2024, 3, 14)


@pytest.fixture()
def seeded(app):
    with app.app_context():
        alpha = Company(name="Alpha", trade="Steel")
        beta = Company(name="Beta", trade="Paint", is_completed=True)
        cement = Material(name="Cement", specification="40kg", unit="bag")
        crane = Equipment(name="Crane", specification="50t")
        db.session.add_all([alpha, beta, cement, crane])
        db.session.flush()

        w1 = WorkDetail(date=D, company_id=alpha.id, personnel_count=4, description="frame")
        w2 = WorkDetail(date=PREV, company_id=beta.id, personnel_count=3, description="primer")
        db.session.add_all([w1, w2])
        db.session.flush()

        db.session.add_all([
            DailyMaterial(date=PREV, material_id=cement.id, quantity=Decimal("20")),
            DailyMaterial(date=D, material_id=cement.id, quantity=Decimal("15")),
            DailyMaterial(date=date(2024, 3, 10), material_id=cement.id, quantity=Decimal("5")),
            DailyMaterial(date=date(2024, 3, 16), material_id=cement.id, quantity=Decimal("99")),
            WorkEquipment(work_detail_id=w1.id, equipment_id=crane.id, equipment_count=2),
            WorkEquipment(work_detail_id=w2.id, equipment_id=crane.id, equipment_count=1),
        ])
        db.session.commit()
    yield


def test_catalog_store_reads_companies_and_items(app, seeded):
    with app.app_context():
        store = SqlCatalogStore(db.session)
        assert [c.name for c in store.companies()] == ["Alpha", "Beta"]
        assert [c.name for c in store.companies(include_completed=False)] == ["Alpha"]
        assert store.companies()[0].specification == "Steel"
        assert store.materials()[0].unit == "bag"
        assert store.find_material("Cement", "40kg").name == "Cement"
        assert store.find_equipment("Crane", None) is None
        assert store.find_company("Alpha", "Steel").specification == "Steel"
        assert store.find_company("Alpha", "Paint") is None
        assert store.site_name() is None


def test_transaction_store_window_excludes_later_rows(app, seeded):
    with app.app_context():
        tx = SqlTransactionStore(db.session)
        rows = tx.materials_until(D)
        assert sorted(r.quantity for r in rows) == [Decimal("5"), Decimal("15"), Decimal("20")]
        assert all(isinstance(r.quantity, Decimal) for r in rows)

        equipment = tx.equipment_until(D)
        assert sorted((r.date, r.quantity) for r in equipment) == [(PREV, 1), (D, 2)]

        log = tx.work_log(D)
        assert [(e.company_name, e.personnel_count, e.description) for e in log] == [("Alpha", 4, "frame")]


def test_sql_stores_feed_the_aggregator(app, seeded):
    with app.app_context():
        tx = SqlTransactionStore(db.session)
        agg = PeriodAggregator(SqlCatalogStore(db.session), tx)
        with tx.read_snapshot():
            result = agg.all_domains(D)

        cement = result["material"].by_key[catalog_key("Cement", "40kg")].figures
        assert (cement.previous, cement.current, cement.cumulative) == (Decimal("20"), Decimal("15"), Decimal("40"))

        crane = result["equipment"].rows[0].figures
        assert (crane.previous, crane.current, crane.cumulative) == (1, 2, 3)

        people = result["personnel"].totals()
        assert (people.previous, people.current, people.cumulative) == (3, 4, 7)


def test_read_snapshot_leaves_pending_writes_alone(app):
    with app.app_context():
        tx = SqlTransactionStore(db.session)
        db.session.add(Company(name="Pending", trade="Civil"))
        with tx.read_snapshot():
            pass
        db.session.commit()
        assert db.session.query(Company).filter_by(name="Pending").count() == 1


def test_weather_upsert_is_one_row_per_date(app):
    with app.app_context():
        store = SqlWeatherStore(db.session)
        store.upsert(WeatherSnapshot(D, "-", "-", "unknown"))
        store.upsert(WeatherSnapshot(D, "1", "9", "clear"))

        assert db.session.query(Weather).count() == 1
        assert store.get(D) == WeatherSnapshot(D, "1", "9", "clear")
        assert store.get(PREV) is None


def test_row_limit_store_upserts(app):
    with app.app_context():
        store = SqlRowLimitStore(db.session)
        assert store.get("ManpowerFinalPaper") is None
        store.set("ManpowerFinalPaper", 70)
        store.set("ManpowerFinalPaper", 60)
        assert store.all() == {"ManpowerFinalPaper": 60}
