from flask import current_app, jsonify, request

from . import bp
from sitelog.extensions import db
from sitelog.services.reports import build_report_assembler
from sitelog.utils.helpers import local_today
from sitelog.utils.validators import parse_report_date


def _selected_date():
    """?date=YYYY-MM-DD, else today at the site's UTC offset."""
    raw = (request.args.get("date") or "").strip()
    if not raw:
        return local_today(offset_hours=current_app.config["REPORT_UTC_OFFSET_HOURS"])
    return parse_report_date(raw)


def _assembler():
    return build_report_assembler(db.session, current_app.config)


@bp.get("/manpower.json")
def manpower_json():
    report = _assembler().manpower(_selected_date())
    return jsonify(report.to_dict())


@bp.get("/work-status.json")
def work_status_json():
    report = _assembler().work_status(_selected_date())
    return jsonify(report.to_dict())


@bp.get("/combined.json")
def combined_json():
    report = _assembler().combined(_selected_date())
    return jsonify(report.to_dict())


@bp.get("/submissions.json")
def submissions_json():
    status = _assembler().submission_status(_selected_date())
    return jsonify(status.to_dict())


@bp.get("/work-status-smaty.json")
def work_status_smaty_json():
    report = _assembler().work_status_smaty(_selected_date())
    return jsonify(report.to_dict())
