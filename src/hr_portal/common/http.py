"""Shared JSON plumbing for the feature controllers."""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from .datetime_utils import parse_iso_date
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def make_manager_required(container):
    """Build the decorator guarding manager-only endpoints.

    The profile is re-read from the store on every call so a demoted or
    deactivated account loses access immediately.
    """

    def manager_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = container.auth_service.load_active_user(session.get("user_id"))
            if user is None:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            if user.role != Role.MANAGER:
                return jsonify({"success": False, "message": "Manager role required"}), 403
            g.current_user = user
            return view(*args, **kwargs)

        return wrapper

    return manager_required


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body is required")
    return data


def current_role() -> Role:
    return g.current_user.role


def date_param(value, field_name: str) -> Optional[date]:
    """Optional YYYY-MM-DD request value (query string or JSON)."""

    if value is None or str(value).strip() == "":
        return None
    try:
        return parse_iso_date(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def register_error_handlers(app: Flask) -> None:
    def _error(message: str, status: int):
        return jsonify({"success": False, "message": message}), status

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if isinstance(e, NotFoundError):
            return _error(str(e), 404)
        if isinstance(e, ValidationError):
            return _error(str(e), 400)
        if isinstance(e, AuthenticationError):
            return _error(str(e), 401)
        if isinstance(e, AuthorizationError):
            return _error(str(e), 403)
        return _error(str(e), 400)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return _error(f"Internal server error: {e}", 500)
        return _error("Internal server error", 500)
