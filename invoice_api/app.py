"""
Flask application factory.

``create_app()`` wires configuration, logging, persistence and the
blueprints together.  Persistence is a *store scope*: a zero-argument
callable returning a context manager that yields an InvoiceStore for one
unit of work.  The default opens a SQLAlchemy session per request
(``sql_store_scope``); tests pass an in-memory store instead.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from decimal import Decimal
from uuid import uuid4

from flask import Flask, g, request
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS

from invoice_api.errors import register_error_handlers
from invoice_api.routes import health_bp, invoices_bp
from invoice_config import ServiceConfig, get_active_config
from invoice_kernel.db.engine import init_engine_from_url
from invoice_kernel.domain.clock import Clock, SystemClock
from invoice_kernel.logging_config import LogContext, configure_logging, get_logger
from invoice_kernel.services.invoice_service import InvoiceService
from invoice_kernel.store.base import InvoiceStore
from invoice_kernel.store.sql_store import sql_store_scope

logger = get_logger("api")

REQUEST_ID_HEADER = "X-Request-ID"

StoreScope = Callable[[], AbstractContextManager[InvoiceStore]]


class InvoiceJSONProvider(DefaultJSONProvider):
    """Parses JSON numbers with a fraction as Decimal, never float."""

    sort_keys = False

    def loads(self, s, **kwargs):
        kwargs.setdefault("parse_float", Decimal)
        return super().loads(s, **kwargs)


class InvoiceBackend:
    """Per-application state shared by the request handlers."""

    def __init__(
        self,
        store_scope: StoreScope,
        clock: Clock,
        *,
        max_allocation_attempts: int,
        default_page_size: int,
        max_page_size: int,
    ):
        self._store_scope = store_scope
        self.clock = clock
        self.max_allocation_attempts = max_allocation_attempts
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @contextmanager
    def service(self) -> Iterator[InvoiceService]:
        with self._store_scope() as store:
            yield InvoiceService(
                store,
                self.clock,
                max_allocation_attempts=self.max_allocation_attempts,
            )


def _register_request_hooks(app: Flask) -> None:
    @app.before_request
    def _bind_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        g.request_started = time.perf_counter()
        LogContext.set(request_id=g.request_id)

    @app.after_request
    def _log_request(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        started = g.get("request_started")
        logger.info(
            "request_completed",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": (
                    round((time.perf_counter() - started) * 1000, 2)
                    if started is not None
                    else None
                ),
            },
        )
        return response

    @app.teardown_request
    def _clear_request_context(exc):
        LogContext.clear()


def create_app(
    config: ServiceConfig | None = None,
    *,
    store_scope: StoreScope | None = None,
    clock: Clock | None = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Service configuration; loaded with ``get_active_config()``
            when omitted.
        store_scope: Unit-of-work factory.  When omitted the SQL engine is
            initialized from ``config.database`` and every request runs in
            its own session.
        clock: Time source; ``SystemClock`` when omitted.
    """
    config = config or get_active_config()
    configure_logging(level=config.logging.level_number)

    if store_scope is None:
        db = config.database
        init_engine_from_url(
            db.url,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
        )
        store_scope = sql_store_scope

    app = Flask(__name__)
    app.json = InvoiceJSONProvider(app)
    app.config["INVOICE_SERVICE_CONFIG"] = config
    app.extensions["invoice_backend"] = InvoiceBackend(
        store_scope,
        clock or SystemClock(),
        max_allocation_attempts=config.allocator.max_attempts,
        default_page_size=config.api.default_page_size,
        max_page_size=config.api.max_page_size,
    )

    prefix = config.api.prefix.rstrip("/")
    CORS(
        app,
        resources={f"{prefix}/*": {"origins": config.api.cors_origins}},
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.register_blueprint(health_bp, url_prefix=prefix)
    app.register_blueprint(invoices_bp, url_prefix=f"{prefix}/invoices")

    _register_request_hooks(app)
    register_error_handlers(app)

    logger.info(
        "app_created",
        extra={"prefix": prefix, "environment": config.environment},
    )
    return app
