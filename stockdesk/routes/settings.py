import json

from flask import Blueprint, Response, current_app, jsonify, request

from stockdesk import settings_service
from stockdesk.auth import blueprint_page_guard
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.utils.parsing import request_payload

bp = Blueprint("settings", __name__, url_prefix="/settings")

bp.before_request(blueprint_page_guard("settings"))


@bp.get("/")
def show_settings():
    context = current_session()
    return jsonify(
        {
            "settings": settings_service.get_settings(),
            "choices": {
                "currency": list(settings_service.CURRENCIES),
                "timezone": list(settings_service.TIMEZONES),
                "language": list(settings_service.LANGUAGES),
                "date_format": list(settings_service.DATE_FORMATS),
                "retention_days": list(settings_service.RETENTION_DAYS),
            },
            "can_change": context.can("settings.change"),
        }
    )


@bp.get("/<section>")
def show_section(section: str):
    try:
        values = settings_service.get_section(section)
    except KeyError:
        return jsonify({"error": f"Unknown settings section: {section}"}), 404
    return jsonify(values)


@bp.put("/<section>")
@require_action("settings.change")
def update_section(section: str):
    context = current_session()
    try:
        values = settings_service.update_section(section, request_payload(), context)
    except KeyError:
        return jsonify({"error": f"Unknown settings section: {section}"}), 404
    current_app.logger.info("Settings section %s updated by %s", section, context.email)
    return jsonify(values)


@bp.get("/export")
@require_action("settings.export")
def export_data():
    scope = (request.args.get("scope") or "full").strip().lower()
    try:
        snapshot = settings_service.export_snapshot(scope, current_session())
    except KeyError:
        return jsonify({"error": f"Unknown export scope: {scope}"}), 400

    filename = f"stockdesk-{scope}-{snapshot['exported_at'][:10]}.json"
    response = Response(json.dumps(snapshot, indent=2), mimetype="application/json")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response
