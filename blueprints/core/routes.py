from __future__ import annotations
import json, logging
from datetime import datetime, timezone
from uuid import uuid4

from flask import g, jsonify, request
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from errors import AppError
from extensions import db

from . import bp

log = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_LOG_FIELDS = ("event", "path", "method", "status", "duration_ms", "request_id",
               "user_id", "entity", "entity_id")

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _LOG_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _setup_structured_logging(app):
    logger = app.logger
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        # service loggers (blueprints.*) go through the same handler
        pkg_logger = logging.getLogger("blueprints")
        pkg_logger.addHandler(handler)
        pkg_logger.setLevel(logging.INFO)

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

# ---------- request id + access log ----------
@bp.before_app_request
def _start_request():
    g._req_start = datetime.now(timezone.utc)
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex

@bp.after_app_request
def _log_request(response: Response):
    response.headers[REQUEST_ID_HEADER] = getattr(g, "request_id", "")
    started = getattr(g, "_req_start", None)
    duration_ms = int((datetime.now(timezone.utc) - started).total_seconds() * 1000) if started else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": getattr(g, "request_id", None),
    }
    log.info("request handled", extra=extra)
    return response

# ---------- errors → JSON ----------
@bp.app_errorhandler(AppError)
def _app_error(e: AppError):
    if e.status >= 500:
        log.error("application error: %s", e.message, extra={"request_id": getattr(g, "request_id", None)})
    return jsonify(e.to_dict()), e.status

@bp.app_errorhandler(PydanticValidationError)
def _payload_error(e: PydanticValidationError):
    errs = e.errors()
    first = errs[0] if errs else {}
    field = ".".join(str(p) for p in first.get("loc", ())) or None
    body = {"error": "validation_error", "message": first.get("msg", "Invalid payload")}
    if field:
        body["field"] = field
    return jsonify(body), 400

@bp.app_errorhandler(HTTPException)
def _http_error(e: HTTPException):
    code = (e.name or "error").lower().replace(" ", "_")
    return jsonify({"error": code, "message": e.description or e.name}), e.code or 500

@bp.app_errorhandler(Exception)
def _unexpected(e: Exception):
    db.session.rollback()
    log.exception("unhandled error", extra={"request_id": getattr(g, "request_id", None), "path": request.path})
    return jsonify({"error": "internal_error", "message": "Unexpected server error"}), 500

# ---------- liveness ----------
@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "request_id": getattr(g, "request_id", None),
    })
