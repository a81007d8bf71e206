from flask import current_app, jsonify, request

from . import bp
from sitelog.extensions import db, limiter
from sitelog.services.reports import build_weather_sync
from sitelog.services.weather import issuance_window
from sitelog.utils.helpers import utcnow
from sitelog.utils.validators import parse_report_date


@bp.get("/weather/window.json")
def weather_window_json():
    base_date, base_time = issuance_window(utcnow(), current_app.config["REPORT_UTC_OFFSET_HOURS"])
    return jsonify({"base_date": base_date, "base_time": base_time})


@bp.post("/weather/sync")
@limiter.limit("10 per hour")
def weather_sync():
    snapshot = build_weather_sync(db.session, current_app.config).ensure_today()
    return jsonify(snapshot.to_dict())


@bp.put("/weather/<day>")
def weather_update(day):
    d = parse_report_date(day)
    payload = request.get_json(silent=True) or {}
    snapshot = build_weather_sync(db.session, current_app.config).update_condition(d, payload.get("condition"))
    return jsonify(snapshot.to_dict())
