"""Flask REST API exposing the expense dashboard services."""

from __future__ import annotations

import io
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from expense_core.exceptions import PersistenceError, ValidationError
from expense_core.exporters import EXPORT_FORMATS
from expense_core.models import CATEGORIES, CURRENCIES, THEMES
from expense_core.services import DashboardService, DashboardStore
from expense_core.storage import JSONStorage


def create_app(
    data_dir: Optional[Path] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("EXPENSE_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("EXPENSE_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    root = data_dir or os.getenv("EXPENSE_TRACKER_DATA_DIR") or "data"
    service = DashboardService(DashboardStore(JSONStorage(Path(root))), clock=clock)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _month() -> Optional[str]:
        return request.args.get("month") or None

    @app.get("/options")
    def options():
        return _success({
            "categories": list(CATEGORIES),
            "currencies": [{"symbol": symbol, "code": code} for symbol, code in CURRENCIES.items()],
            "themes": list(THEMES),
        })

    @app.get("/expenses")
    def list_expenses():
        expenses = service.visible(_month())
        return _success({"items": [expense.to_dict() for expense in expenses]})

    @app.post("/expenses")
    def create_expense():
        payload = _json_body()
        expense = service.add(payload)
        return _success(expense.to_dict(), 201)

    @app.delete("/expenses/<int:expense_id>")
    def delete_expense(expense_id: int):
        service.remove(expense_id)
        return _success({}, 204)

    @app.get("/preferences")
    def get_preferences():
        return _success(service.preferences.to_dict())

    @app.put("/preferences")
    def update_preferences():
        payload = _json_body()
        preferences = service.update_preferences(payload)
        return _success(preferences.to_dict())

    @app.get("/summary")
    def summary():
        return _success(service.summary(_month()).to_dict())

    @app.get("/series/<kind>")
    def series(kind: str):
        return _success(service.chart(kind, _month()).to_dict())

    @app.get("/charts/<kind>.png")
    def chart_png(kind: str):
        image = service.chart_png(kind, _month())
        response = send_file(io.BytesIO(image), mimetype="image/png")
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        return response

    @app.get("/export/<fmt>")
    def export(fmt: str):
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"export format must be one of: {', '.join(EXPORT_FORMATS)}")
        document = service.export(fmt, _month())
        if document is None:
            return _success({}, 204)
        filename, mimetype = EXPORT_FORMATS[fmt]
        return send_file(
            io.BytesIO(document),
            mimetype=mimetype,
            as_attachment=True,
            download_name=filename,
        )

    return app
