from flask import Blueprint, jsonify

from stockdesk.auth import blueprint_page_guard
from stockdesk.services import analytics
from stockdesk.utils.csv_export import export_rows_to_csv, report_filename

bp = Blueprint("analytics", __name__, url_prefix="/analytics")

bp.before_request(blueprint_page_guard("analytics"))


@bp.get("/")
def overview():
    return jsonify(analytics.analytics_overview())


@bp.get("/inventory-report.csv")
def inventory_report():
    return export_rows_to_csv(
        analytics.inventory_report_rows(),
        analytics.INVENTORY_REPORT_COLUMNS,
        report_filename("inventory-report"),
    )
