"""Flask glue shared by controllers: session -> actor, auth decorators, error mapping."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    ImmutableStateError,
    NotFoundError,
    ValidationError,
)
from ..users.model import Actor

log = logging.getLogger(__name__)

ERROR_STATUS: dict[type, int] = {
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ValidationError: 400,
    ImmutableStateError: 409,
}


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return error_response(str(error), status_for(error))

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error_response(error.description or error.name, error.code or 500)
        log.exception("unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return error_response(f"Internal server error: {error}", 500)
        return error_response("Internal server error", 500)


def current_actor() -> Actor:
    """Actor resolved by :func:`login_required` for the running request."""
    actor: Optional[Actor] = g.get("actor")
    if actor is None:
        raise AuthenticationError("Unauthorized")
    return actor


def login_required(container):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user_id = session.get("user_id")
            if user_id is None:
                return error_response("Unauthorized", 401)
            try:
                g.actor = container.auth_service.resolve_actor(int(user_id))
            except AuthenticationError:
                session.clear()
                return error_response("Unauthorized", 401)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Missing required fields")
    return body


def query_user_id(name: str = "userId") -> Any:
    """``userId`` query param: an int, ``"all"``, or None."""
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    if raw.lower() == "all":
        return "all"
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("Invalid userId")

