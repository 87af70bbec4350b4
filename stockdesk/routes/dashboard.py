from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.services.analytics import dashboard_summary

bp = Blueprint("dashboard", __name__)

bp.before_request(blueprint_page_guard("dashboard"))


@bp.get("/")
def home():
    limit = request.args.get("activity", default=10, type=int)
    return jsonify(dashboard_summary(activity_limit=max(limit, 0)))
