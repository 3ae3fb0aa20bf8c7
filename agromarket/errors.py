# agromarket/errors.py

from flask import jsonify, render_template, request
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException


def field_errors(e: ValidationError) -> dict:
    """Flatten pydantic errors into {field: message} for forms and JSON."""
    out = {}
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "form"
        msg = err.get("msg", "invalid")
        # "Value error, Harvest date cannot be in the past." -> the message only
        out[loc] = msg.split(", ", 1)[1] if msg.startswith("Value error, ") else msg
    return out


def result_status(result: dict, ok_status: int = 200) -> int:
    """HTTP status for a service result dict."""
    if result.get("error"):
        return int(result.get("code") or 400)
    return ok_status


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.is_json


def register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def _http_error(e):
        if _wants_json():
            return jsonify(ok=False, error=e.description or e.name), e.code
        return render_template("error.html", code=e.code, message=e.description or e.name), e.code

    @app.errorhandler(PyMongoError)
    def _store_error(e):
        app.logger.error("Unhandled store error on %s: %s", request.path, e)
        msg = "The marketplace store is unavailable. Please try again later."
        if _wants_json():
            return jsonify(ok=False, error=msg), 503
        return render_template("error.html", code=503, message=msg), 503
