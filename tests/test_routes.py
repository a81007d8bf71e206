from datetime import date
from decimal import Decimal

from sitelog.extensions import db
from sitelog.models import Company, DailyMaterial, Material, MaxRows, Site, Weather, WorkDetail
from sitelog.services.weather import KmaForecastClient, weather_client


def _seed(app):
    with app.app_context():
        db.session.add(Site(name="Suwon Tower"))
        alpha = Company(name="Alpha", trade="Steel")
        beta = Company(name="Beta", trade="Paint")
        cement = Material(name="Cement", specification="40kg", unit="bag")
        db.session.add_all([alpha, beta, cement])
        db.session.flush()
        db.session.add_all([
            WorkDetail(date=date(2024, 3, 15), company_id=alpha.id, personnel_count=4, description="frame"),
            DailyMaterial(date=date(2024, 3, 14), material_id=cement.id, quantity=Decimal("20")),
            DailyMaterial(date=date(2024, 3, 15), material_id=cement.id, quantity=Decimal("15")),
            DailyMaterial(date=date(2024, 3, 10), material_id=cement.id, quantity=Decimal("5")),
            Weather(date=date(2024, 3, 15), min_temp="1", max_temp="9", condition="clear"),
        ])
        db.session.commit()
        return alpha.id, beta.id


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_manpower_json(app, client):
    _seed(app)
    resp = client.get("/reports/manpower.json?date=2024-03-15")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["site_name"] == "Suwon Tower"
    assert data["weather"]["condition"] == "clear"
    assert data["max_rows"] == 88
    assert len(data["materials"]["slots"]) == 88
    cement = data["materials"]["slots"][0]
    assert (cement["previous"], cement["current"], cement["cumulative"]) == (20.0, 15.0, 40.0)
    assert data["personnel_totals"] == {"previous": 0, "current": 4, "cumulative": 4}


def test_work_status_and_combined_json(app, client):
    _seed(app)
    ws = client.get("/reports/work-status.json?date=2024-03-15").get_json()
    assert ws["today"]["slots"][0]["description"] == "frame"
    assert ws["today"]["slots"][1] is None

    combined = client.get("/reports/combined.json?date=2024-03-15").get_json()
    assert combined["max_rows"] == 50
    names = [r["name"] for r in combined["personnel"]["slots"] if r]
    assert names == ["Alpha", "Beta"]


def test_submissions_json(app, client):
    _seed(app)
    data = client.get("/reports/submissions.json?date=2024-03-15").get_json()
    assert [c["name"] for c in data["submitted"]] == ["Alpha"]
    assert [c["name"] for c in data["missing"]] == ["Beta"]


def test_invalid_date_is_400(client):
    for bad in ("2024-13-01", "15/03/2024", "2024-02-30"):
        resp = client.get(f"/reports/manpower.json?date={bad}")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_input"


def test_past_day_without_weather_reports_no_data(app, client, monkeypatch):
    def no_fetch(self, *args):
        raise AssertionError("past days must not be fetched")

    monkeypatch.setattr(KmaForecastClient, "fetch", no_fetch)
    data = client.get("/reports/work-status.json?date=2020-01-01").get_json()
    assert data["weather"]["condition"] == "no data"


def test_max_rows_roundtrip(app, client):
    assert client.get("/admin/max-rows.json").get_json() == {
        "ManpowerFinalPaper": 88, "WorkStatusFinalPaper": 50, "CombinedFinalPaper": 50, "WorkStatusForSmaty": 50,
    }

    resp = client.put("/admin/max-rows.json", json={"pageName": "WorkStatusFinalPaper", "maxRows": 30})
    assert resp.status_code == 200
    assert resp.get_json() == {"pageName": "WorkStatusFinalPaper", "maxRows": 30}

    with app.app_context():
        assert db.session.query(MaxRows).filter_by(page_name="WorkStatusFinalPaper").one().max_rows == 30

    ws = client.get("/reports/work-status.json?date=2024-03-15").get_json()
    assert len(ws["today"]["slots"]) == 30


def test_max_rows_rejects_bad_input(client):
    assert client.put("/admin/max-rows.json", json={"pageName": "Nope", "maxRows": 5}).status_code == 400
    assert client.put("/admin/max-rows.json", json={"pageName": "ManpowerFinalPaper", "maxRows": 0}).status_code == 400
    assert client.put("/admin/max-rows.json", json={"maxRows": 5}).status_code == 400


def test_company_order_changes_manpower_rows(app, client):
    alpha_id, beta_id = _seed(app)
    resp = client.put("/admin/company-order", json={"orders": [{"id": beta_id, "order": 1}, {"id": alpha_id, "order": 2}]})
    assert resp.get_json() == {"updated": 2}

    data = client.get("/reports/manpower.json?date=2024-03-15").get_json()
    assert [r["name"] for r in data["personnel"]["slots"] if r] == ["Beta", "Alpha"]

    assert client.put("/admin/company-order", json={"orders": [{"id": 9999, "order": 1}]}).status_code == 404


def test_weather_sync_route_fetches_once(app, client, monkeypatch):
    calls = []

    def fake_fetch(self, base_date, base_time):
        calls.append((base_date, base_time))
        return [{"category": "SKY", "fcstValue": "1"}]

    monkeypatch.setattr(KmaForecastClient, "fetch", fake_fetch)

    first = client.post("/admin/weather/sync")
    second = client.post("/admin/weather/sync")
    assert first.status_code == 200
    assert first.get_json()["condition"] == "clear"
    assert second.get_json() == first.get_json()
    assert len(calls) == 1

    with app.app_context():
        assert db.session.query(Weather).count() == 1


def test_weather_window_json(client):
    data = client.get("/admin/weather/window.json").get_json()
    assert len(data["base_date"]) == 8
    assert data["base_time"] in {"0200", "0500", "0800", "1100", "1400", "1700", "2000", "2300"}


def test_weather_manual_update(app, client):
    _seed(app)
    resp = client.put("/admin/weather/2024-03-15", json={"condition": "rain"})
    assert resp.status_code == 200
    assert resp.get_json()["condition"] == "rain"

    missing = client.put("/admin/weather/2024-01-01", json={"condition": "rain"})
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "not_found"


def test_unknown_route_is_json_404(client):
    resp = client.get("/reports/nope.json")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_smaty_work_status_json(app, client, monkeypatch):
    _seed(app)

    def no_fetch(self, *args):
        raise AssertionError("the Smaty sheet carries no weather")

    monkeypatch.setattr(KmaForecastClient, "fetch", no_fetch)

    resp = client.put("/admin/max-rows.json", json={"pageName": "WorkStatusForSmaty", "maxRows": 40})
    assert resp.status_code == 200
    assert resp.get_json() == {"pageName": "WorkStatusForSmaty", "maxRows": 40}

    data = client.get("/reports/work-status-smaty.json?date=2024-03-16").get_json()
    assert data["site_name"] == "Suwon Tower"
    assert data["max_rows"] == 40
    assert len(data["today"]["slots"]) == 40
    assert "weather" not in data

    data = client.get("/reports/work-status-smaty.json?date=2024-03-15").get_json()
    assert data["today"]["slots"][0]["description"] == "frame"
    assert data["today"]["slots"][1] is None


def test_forecast_client_is_shared_across_requests(app, client, monkeypatch):
    shared = weather_client(app)

    def no_new_client(self, *args, **kwargs):
        raise AssertionError("forecast client rebuilt per request")

    monkeypatch.setattr(KmaForecastClient, "__init__", no_new_client)

    for _ in range(3):
        assert client.get("/reports/manpower.json?date=2020-01-01").status_code == 200
    assert client.put("/admin/weather/2020-01-01", json={"condition": "rain"}).status_code == 404

    result = app.test_cli_runner().invoke(args=["reports", "show", "work-status", "--date", "2020-01-01"])
    assert result.exit_code == 0, result.output
    assert weather_client(app) is shared
