from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from flask import Flask, current_app, jsonify, request
from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    BusinessLogicError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .pagination import Page, PageRequest
from .validators import require_date, require_int

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 400,
    BusinessLogicError: 422,
}


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


def ok(data: Any = None, message: str = "OK", status: int = 200):
    return jsonify({"success": True, "message": message, "data": to_jsonable(data)}), status


def created(data: Any = None, message: str = "Created"):
    return ok(data, message, 201)


def paginated(page: Page, message: str = "OK"):
    return (
        jsonify(
            {
                "success": True,
                "message": message,
                "data": to_jsonable(list(page.items)),
                "pagination": page.pagination(),
            }
        ),
        200,
    )


def fail(message: str, code: str, status: int, details: Any = None):
    body = {"success": False, "message": message, "code": code}
    if details is not None:
        body["details"] = to_jsonable(details)
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def page_request() -> PageRequest:
    default_limit = int(current_app.config.get("DEFAULT_PAGE_LIMIT", 10))
    return PageRequest(
        page=require_int(request.args.get("page", 1), "page"),
        limit=require_int(request.args.get("limit", default_limit), "limit"),
    )


def arg_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return require_int(value, name)


def arg_date(name: str, *, required: bool = False) -> Optional[date]:
    value = request.args.get(name)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    return require_date(value, name)


def arg_bool(name: str) -> Optional[bool]:
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in {"1", "true", "yes"}


def arg_enum(name: str, enum_cls: Callable[[str], Enum]) -> Optional[Any]:
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid {name}: {value}")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = next((s for cls, s in STATUS_BY_ERROR.items() if isinstance(e, cls)), 400)
        if status >= 422:
            logger.warning("%s: %s", e.code, e.message)
        return fail(e.message, e.code, status, e.details)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        if e.errno == errorcode.ER_DUP_ENTRY:
            logger.warning("Unique constraint violated: %s", e.msg)
            return fail("Record already exists", ConflictError.code, 409)
        logger.error("Integrity error: %s", e.msg)
        return fail("Referenced record is missing or still in use", BusinessLogicError.code, 422)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.name.upper().replace(" ", "_"), e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", "INTERNAL_ERROR", 500)
