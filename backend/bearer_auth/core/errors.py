"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from bearer_auth.core.logger import ensure_request_id
from bearer_auth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    TokenError,
    TokenExpiredError,
    TokenRevokedError,
)

log = logging.getLogger(__name__)


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """Return a Flask response with the ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    :param message: Human-readable description presented to clients.
    :param status_code: HTTP status code to return. Defaults to ``400``.
    :param code: Machine-readable identifier, typically snake_case.
    :param details: Optional structured payload included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


# Domain conveniences
class NotFound(APIError):
    """404 when resources are missing."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code="not_found")


class Conflict(APIError):
    """422 for uniqueness collisions (e.g. email already registered)."""

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.UNPROCESSABLE_ENTITY, code="conflict")


class Forbidden(APIError):
    """403 when a bearer token is missing or rejected."""

    def __init__(self, message: str = "Forbidden", code: str = "forbidden") -> None:
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, code=code)


def translate_service_error(exc: ServiceError) -> APIError:
    """
    Map a service-level error to its API counterpart.

    :param exc: Error raised within the service layer.
    :returns: API error carrying status and stable code.
    """
    if isinstance(exc, NotFoundError):
        return NotFound(str(exc))
    if isinstance(exc, ConflictError):
        return Conflict(str(exc))
    if isinstance(exc, InvalidCredentialsError):
        return APIError(
            str(exc),
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="invalid_credentials",
        )
    if isinstance(exc, TokenExpiredError):
        return Forbidden(str(exc), code="token_expired")
    if isinstance(exc, TokenRevokedError):
        return Forbidden(str(exc), code="token_revoked")
    if isinstance(exc, TokenError):
        return Forbidden(str(exc), code="token_invalid")
    return APIError(
        "Unexpected error",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        code="internal_server_error",
    )


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s",
            err.code,
            err.status_code,
            err.message,
            extra={"status": err.status_code},
        )
        return _problem_response(problem), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        api_err = translate_service_error(err)
        problem = api_err.to_problem()
        if api_err.status_code >= 500:
            log.error("ServiceError: unmapped %s", type(err).__name__, exc_info=err)
        else:
            log.warning(
                "ServiceError: code=%s status=%s",
                api_err.code,
                api_err.status_code,
                extra={"status": api_err.status_code},
            )
        return _problem_response(problem), api_err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level("HTTPException: code=%s status=%s", error_code, status, extra={"status": status})
        return _problem_response(problem), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError", extra={"status": HTTPStatus.UNPROCESSABLE_ENTITY})
        return _problem_response(problem), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="conflict",
            message="Resource conflict",
        )
        log.error("IntegrityError", exc_info=True)
        return _problem_response(problem), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(OperationalError)
    @app.errorhandler(RedisError)
    def handle_backend_unavailable(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error("%s", type(err).__name__, exc_info=True)
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception", exc_info=True)
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
