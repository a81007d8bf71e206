from flask import current_app, jsonify, request

from . import bp
from sitelog.extensions import db
from sitelog.services.catalog import set_company_order
from sitelog.services.errors import ReportInputError
from sitelog.services.row_budget import all_row_limits, set_max_rows
from sitelog.services.stores import SqlRowLimitStore


@bp.get("/max-rows.json")
def get_max_rows_json():
    return jsonify(all_row_limits(SqlRowLimitStore(db.session)))


@bp.put("/max-rows.json")
def put_max_rows_json():
    payload = request.get_json(silent=True) or {}
    page_name = payload.get("pageName")
    if not isinstance(page_name, str) or not page_name.strip():
        raise ReportInputError("pageName is required.")

    store = SqlRowLimitStore(db.session)
    n = set_max_rows(store, page_name.strip(), payload.get("maxRows"))
    current_app.logger.info("max rows updated page=%s max_rows=%d", page_name, n)
    return jsonify({"pageName": page_name.strip(), "maxRows": n})


@bp.put("/company-order")
def put_company_order():
    """
    Body: {"orders": [{"id": 3, "order": 1}, ...]}. An order of null moves the company
    after every explicitly ordered one.
    """
    payload = request.get_json(silent=True) or {}
    orders = payload.get("orders")
    if not isinstance(orders, list):
        raise ReportInputError("orders must be a list.")

    pairs = []
    for entry in orders:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ReportInputError("each order entry needs an id.")
        pairs.append((entry.get("id"), entry.get("order")))

    updated = set_company_order(db.session, pairs)
    return jsonify({"updated": updated})
