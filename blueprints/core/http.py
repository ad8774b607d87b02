from __future__ import annotations
from typing import Any, Sequence

from flask import jsonify, request

from errors import ValidationError

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 100

def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def deleted(message: str):
    return jsonify({"message": message}), 200

def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload

def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)

def paginated(items: Sequence[Any]):
    """Slice an already projected list using ?page=&per_page= and wrap it with meta."""
    page = max(1, _int_arg("page", 1))
    per_page = min(MAX_PER_PAGE, max(1, _int_arg("per_page", DEFAULT_PER_PAGE)))
    start = (page - 1) * per_page
    return ok({
        "items": [_dump(i) for i in items[start:start + per_page]],
        "meta": {"page": page, "per_page": per_page, "total": len(items)},
    })

def optional_int_arg(name: str) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)

def match_ids(url_id: int | None, body_id: int | None) -> int:
    """PUT may carry the id in the URL, the body, or both (then they must agree)."""
    if url_id is not None and body_id is not None and url_id != body_id:
        raise ValidationError("ID in URL and body must match", field="id")
    entity_id = url_id if url_id is not None else body_id
    if entity_id is None:
        raise ValidationError("id is required", field="id")
    return entity_id

def _dump(item: Any):
    dump = getattr(item, "model_dump", None)
    return dump(mode="json") if dump else item
