"""
Shared fixtures for the invoice kernel test suite.

Stores:
    memory_store -- thread-safe InMemoryInvoiceStore (fast, default).
    sql_session  -- SQLAlchemy session on an in-memory SQLite database with
                    the schema created; rolled back after each test.
    sql_store    -- SqlInvoiceStore over sql_session.

The HTTP fixtures build the Flask app over memory_store so API tests never
touch a database.
"""

import json
import logging
from contextlib import nullcontext
from io import StringIO

import pytest

from invoice_api import create_app
from invoice_config import ServiceConfig
from invoice_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from invoice_kernel.domain.clock import DeterministicClock
from invoice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoice_kernel.services.invoice_service import InvoiceService
from invoice_kernel.store.memory_store import InMemoryInvoiceStore
from invoice_kernel.store.sql_store import SqlInvoiceStore
from tests.factories import FIXED_NOW, make_draft


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, invoice_service):
            invoice_service.create(...)
            logs = captured_logs()
            assert any(r["message"] == "invoice_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def draft():
    return make_draft()


# =============================================================================
# Store and service fixtures
# =============================================================================


@pytest.fixture
def memory_store():
    return InMemoryInvoiceStore()


@pytest.fixture
def invoice_service(memory_store, clock):
    return InvoiceService(memory_store, clock)


@pytest.fixture
def sql_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_session(sql_engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def sql_store(sql_session):
    return SqlInvoiceStore(sql_session)


# =============================================================================
# HTTP fixtures
# =============================================================================


@pytest.fixture
def app(memory_store, clock):
    application = create_app(
        ServiceConfig(),
        store_scope=lambda: nullcontext(memory_store),
        clock=clock,
    )
    application.config.update(TESTING=True)
    return application


@pytest.fixture
def client(app):
    return app.test_client()
