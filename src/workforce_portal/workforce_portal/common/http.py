"""Request parsing, the canonical JSON envelope and the error -> HTTP mapping."""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def success(data: Any = None, status: int = 200, **meta: Any):
    body: dict[str, Any] = {"status": "success"}
    body.update(meta)
    body["data"] = data
    return jsonify(body), status


def paginated(key: str, items: list, *, total: int, page: int, limit: int):
    total_pages = (total + limit - 1) // limit if limit else 0
    return success(
        {key: items},
        results=len(items),
        total=total,
        page=page,
        limit=limit,
        totalPages=total_pages,
    )


def failure(message: str, status: int, *, code: Optional[str] = None):
    body: dict[str, Any] = {"status": "fail" if status < 500 else "error", "message": message}
    if code:
        body["code"] = code
    return jsonify(body), status


def no_content():
    return "", 204


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        return failure(e.message or e.code, e.status_code, code=e.code)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return failure(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        logger.exception("Unhandled error: %s", e)
        return failure("Internal server error", 500)


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
