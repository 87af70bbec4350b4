from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from stockdesk.exceptions import (
    ConfirmationRequired,
    ConflictError,
    RecordNotFound,
    ValidationError,
)
from stockdesk.extensions import db

bp = Blueprint("errors", __name__)


@bp.app_errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    db.session.rollback()
    return jsonify({"errors": error.errors}), 400


@bp.app_errorhandler(ConfirmationRequired)
def handle_missing_confirmation(error: ConfirmationRequired):
    return jsonify({"error": str(error), "confirm_required": True}), 400


@bp.app_errorhandler(ConflictError)
def handle_conflict(error: ConflictError):
    db.session.rollback()
    current_app.logger.info("Refused %s %s: %s", request.method, request.path, error)
    return jsonify({"error": str(error)}), 409


@bp.app_errorhandler(RecordNotFound)
def handle_not_found(error: RecordNotFound):
    return jsonify({"error": str(error)}), 404


@bp.app_errorhandler(ValueError)
def handle_value_error(error: ValueError):
    db.session.rollback()
    return jsonify({"error": str(error) or "Invalid request."}), 400


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    if isinstance(error, HTTPException) and error.code != 500:
        return jsonify({"error": error.description or error.name}), error.code

    root_error = getattr(error, "original_exception", None) or error
    current_app.logger.exception("Unhandled exception", exc_info=root_error)
    db.session.rollback()

    return (
        jsonify(
            {
                "error": "Internal Server Error",
                "endpoint": request.endpoint,
                "path": request.path,
            }
        ),
        500,
    )
