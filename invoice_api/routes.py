"""
HTTP routes: ``/health`` and the ``/invoices`` resource.

Handlers stay thin.  Each one parses its input with
``invoice_kernel.domain.requests``, runs one InvoiceService call inside a
unit of work and serializes the result.  Errors propagate to
``invoice_api.errors``.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from invoice_api.serialization import invoice_to_json, page_to_json, statistics_to_json
from invoice_kernel.domain.requests import (
    parse_create_request,
    parse_invoice_id,
    parse_list_query,
    parse_status_request,
    parse_update_request,
)

health_bp = Blueprint("health", __name__)
invoices_bp = Blueprint("invoices", __name__)


def _backend():
    return current_app.extensions["invoice_backend"]


def _body():
    # Malformed JSON yields None; the parsers reject it as a non-object body.
    return request.get_json(silent=True)


@health_bp.route("/health", methods=["GET"])
def health():
    return jsonify(
        {"status": "OK", "timestamp": _backend().clock.now_utc().isoformat()}
    )


@invoices_bp.route("", methods=["POST"])
def create_invoice():
    draft = parse_create_request(_body())
    with _backend().service() as service:
        invoice = service.create(draft)
        payload = invoice_to_json(invoice)
    return jsonify({"message": "Invoice created successfully", "invoice": payload}), 201


@invoices_bp.route("", methods=["GET"])
def list_invoices():
    backend = _backend()
    criteria = parse_list_query(
        request.args,
        default_limit=backend.default_page_size,
        max_limit=backend.max_page_size,
    )
    with backend.service() as service:
        page = service.list(criteria)
    return jsonify(page_to_json(page))


@invoices_bp.route("/statistics", methods=["GET"])
def get_statistics():
    with _backend().service() as service:
        stats = service.statistics()
    return jsonify(statistics_to_json(stats))


@invoices_bp.route("/<invoice_id>", methods=["GET"])
def get_invoice(invoice_id):
    parsed_id = parse_invoice_id(invoice_id)
    with _backend().service() as service:
        invoice = service.get(parsed_id)
    return jsonify({"invoice": invoice_to_json(invoice)})


@invoices_bp.route("/<invoice_id>", methods=["PUT"])
def update_invoice(invoice_id):
    parsed_id = parse_invoice_id(invoice_id)
    changes = parse_update_request(_body())
    with _backend().service() as service:
        invoice = service.update(parsed_id, changes)
    return jsonify(
        {"message": "Invoice updated successfully", "invoice": invoice_to_json(invoice)}
    )


@invoices_bp.route("/<invoice_id>/status", methods=["PATCH"])
def update_invoice_status(invoice_id):
    parsed_id = parse_invoice_id(invoice_id)
    status = parse_status_request(_body())
    with _backend().service() as service:
        invoice = service.change_status(parsed_id, status)
    return jsonify(
        {
            "message": "Invoice status updated successfully",
            "invoice": invoice_to_json(invoice),
        }
    )


@invoices_bp.route("/<invoice_id>", methods=["DELETE"])
def delete_invoice(invoice_id):
    parsed_id = parse_invoice_id(invoice_id)
    with _backend().service() as service:
        service.delete(parsed_id)
    return jsonify({"message": "Invoice deleted successfully"})
