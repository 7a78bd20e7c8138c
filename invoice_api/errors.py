"""
Error mapping for the HTTP surface.

Kernel exceptions are translated to status codes by type.  The body is
always ``{"error": message, "code": code}``; validation failures add
``details`` with the per-field errors.  Anything unexpected becomes a 500
with its traceback logged and a generic message returned.
"""

from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, NotFound

from invoice_kernel.exceptions import (
    AllocationExhaustedError,
    InvoiceKernelError,
    InvoiceNotFoundError,
    LifecycleError,
    LineItemError,
    MoneyError,
    RequestValidationError,
    ValidationError,
)
from invoice_kernel.logging_config import get_logger

logger = get_logger("api.errors")

# Checked in order; first match wins.
_STATUS_BY_TYPE: tuple[tuple[type[InvoiceKernelError], int], ...] = (
    (InvoiceNotFoundError, 404),
    (AllocationExhaustedError, 503),
    (ValidationError, 400),
    (MoneyError, 400),
    (LineItemError, 400),
    (LifecycleError, 400),
)


def status_for(exc: InvoiceKernelError) -> int:
    for exc_type, status in _STATUS_BY_TYPE:
        if isinstance(exc, exc_type):
            return status
    return 500


def _handle_kernel_error(exc: InvoiceKernelError):
    status = status_for(exc)
    if status == 500:
        return _handle_unexpected(exc)

    if isinstance(exc, RequestValidationError):
        body = {"error": "Validation failed", "code": exc.code, "details": exc.field_errors}
    else:
        body = {"error": str(exc), "code": exc.code}

    log = logger.warning if status == 503 else logger.info
    log(
        "request_rejected",
        extra={"status_code": status, "error_code": exc.code, "error": str(exc)},
    )
    return jsonify(body), status


def _handle_not_found(exc: NotFound):
    return jsonify({"error": "Route not found"}), 404


def _handle_http_error(exc: HTTPException):
    code = (exc.name or "http_error").upper().replace(" ", "_")
    return jsonify({"error": exc.description or exc.name, "code": code}), exc.code


def _handle_unexpected(exc: Exception):
    logger.error("unhandled_exception", exc_info=exc)
    return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500


def register_error_handlers(app: Flask) -> None:
    app.register_error_handler(InvoiceKernelError, _handle_kernel_error)
    app.register_error_handler(NotFound, _handle_not_found)
    app.register_error_handler(HTTPException, _handle_http_error)
    app.register_error_handler(Exception, _handle_unexpected)
