"""
HTTP surface tests over the Flask test client.

The app runs on the in-memory store with a DeterministicClock, so every
response is reproducible.
"""

from uuid import uuid4

import pytest

from invoice_api.errors import status_for
from invoice_kernel.exceptions import AllocationExhaustedError, DuplicateKeyError
from tests.factories import make_payload

INVOICES = "/api/invoices"


@pytest.fixture
def created(client):
    response = client.post(INVOICES, json=make_payload())
    assert response.status_code == 201
    return response.get_json()["invoice"]


def _set_status(client, invoice_id, status):
    return client.patch(f"{INVOICES}/{invoice_id}/status", json={"status": status})


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json() == {
            "status": "OK",
            "timestamp": "2024-01-15T12:00:00+00:00",
        }

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Route not found"}

    def test_method_not_allowed(self, client):
        response = client.delete(INVOICES)
        assert response.status_code == 405
        assert response.get_json()["code"] == "METHOD_NOT_ALLOWED"


class TestCreate:
    def test_created(self, client):
        response = client.post(INVOICES, json=make_payload())
        body = response.get_json()

        assert response.status_code == 201
        assert body["message"] == "Invoice created successfully"
        invoice = body["invoice"]
        assert invoice["invoiceNumber"] == "INV-202401-0001"
        assert invoice["clientEmail"] == "john@example.com"
        assert invoice["status"] == "draft"
        assert invoice["items"] == [
            {
                "description": "Web Development",
                "quantity": "10.00",
                "rate": "100.00",
                "amount": "1000.00",
            }
        ]
        assert (invoice["subtotal"], invoice["taxRate"], invoice["taxAmount"], invoice["total"]) == (
            "1000.00",
            "10.00",
            "100.00",
            "1100.00",
        )
        assert invoice["sentAt"] is None
        assert invoice["createdAt"] == "2024-01-15T12:00:00+00:00"

    def test_json_numbers_are_exact(self, client):
        payload = make_payload(
            items=[{"description": "Consulting", "quantity": 3, "rate": 33.33}],
            taxRate=7.25,
        )
        invoice = client.post(INVOICES, json=payload).get_json()["invoice"]
        assert invoice["subtotal"] == "99.99"
        assert invoice["taxAmount"] == "7.25"
        assert invoice["total"] == "107.24"

    def test_create_as_pending(self, client):
        invoice = client.post(INVOICES, json=make_payload(status="pending")).get_json()["invoice"]
        assert invoice["status"] == "pending"
        assert invoice["sentAt"] == "2024-01-15T12:00:00+00:00"

    def test_create_as_paid_rejected(self, client):
        response = client.post(INVOICES, json=make_payload(status="paid"))
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_TRANSITION"

    def test_validation_details(self, client):
        payload = make_payload(
            clientName=" ",
            clientEmail="not-an-email",
            dueDate="2023-12-01",
            items=[{"description": "", "quantity": 0, "rate": -1}],
            taxRate=150,
        )
        response = client.post(INVOICES, json=payload)
        body = response.get_json()

        assert response.status_code == 400
        assert body["error"] == "Validation failed"
        assert body["code"] == "VALIDATION_ERROR"
        fields = {detail["field"] for detail in body["details"]}
        assert {"clientName", "clientEmail", "dueDate", "items[0].description", "taxRate"} <= fields

    def test_malformed_body(self, client):
        response = client.post(INVOICES, data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert response.get_json()["details"] == [
            {"field": "body", "message": "Request body must be a JSON object"}
        ]

    def test_empty_items(self, client):
        response = client.post(INVOICES, json=make_payload(items=[]))
        assert response.status_code == 400
        assert response.get_json()["details"][0]["field"] == "items"


class TestRead:
    def test_get(self, client, created):
        response = client.get(f"{INVOICES}/{created['id']}")
        assert response.status_code == 200
        assert response.get_json()["invoice"] == created

    def test_get_unknown(self, client):
        response = client.get(f"{INVOICES}/{uuid4()}")
        assert response.status_code == 404
        assert response.get_json()["code"] == "INVOICE_NOT_FOUND"

    def test_get_invalid_id(self, client):
        response = client.get(f"{INVOICES}/not-a-uuid")
        assert response.status_code == 400
        assert response.get_json()["details"] == [{"field": "id", "message": "Invalid invoice ID"}]

    def test_list_pagination(self, client):
        for name in ("Alice", "Bob", "Carol"):
            client.post(INVOICES, json=make_payload(clientName=name))

        body = client.get(f"{INVOICES}?page=2&limit=2&sortBy=clientName&order=asc").get_json()

        assert [inv["clientName"] for inv in body["invoices"]] == ["Carol"]
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}

    def test_list_filter_and_search(self, client):
        first = client.post(INVOICES, json=make_payload(clientName="Acme Corp")).get_json()["invoice"]
        client.post(INVOICES, json=make_payload(clientName="Globex"))
        _set_status(client, first["id"], "pending")

        pending = client.get(f"{INVOICES}?status=pending").get_json()
        assert [inv["clientName"] for inv in pending["invoices"]] == ["Acme Corp"]

        found = client.get(f"{INVOICES}?status=all&search=glob").get_json()
        assert [inv["clientName"] for inv in found["invoices"]] == ["Globex"]

    def test_list_empty(self, client):
        body = client.get(INVOICES).get_json()
        assert body == {
            "invoices": [],
            "pagination": {"page": 1, "limit": 10, "total": 0, "pages": 0},
        }

    @pytest.mark.parametrize(
        "query, field",
        [
            ("page=0", "page"),
            ("limit=1000", "limit"),
            ("limit=abc", "limit"),
            ("sortBy=password", "sortBy"),
            ("order=sideways", "order"),
            ("status=void", "status"),
        ],
    )
    def test_list_rejects_bad_query(self, client, query, field):
        response = client.get(f"{INVOICES}?{query}")
        assert response.status_code == 400
        assert response.get_json()["details"][0]["field"] == field

    def test_statistics(self, client, created):
        other = client.post(INVOICES, json=make_payload()).get_json()["invoice"]
        _set_status(client, other["id"], "pending")
        _set_status(client, other["id"], "paid")

        body = client.get(f"{INVOICES}/statistics").get_json()

        assert body == {
            "statistics": {
                "total": 2,
                "draft": 1,
                "pending": 0,
                "paid": 1,
                "revenue": "1100.00",
            }
        }


class TestUpdate:
    def test_update_recomputes_totals(self, client, created):
        response = client.put(
            f"{INVOICES}/{created['id']}",
            json={"items": [{"description": "Design", "quantity": "2", "rate": "50"}], "taxRate": "0"},
        )
        body = response.get_json()

        assert response.status_code == 200
        assert body["message"] == "Invoice updated successfully"
        assert body["invoice"]["total"] == "100.00"
        assert body["invoice"]["invoiceNumber"] == created["invoiceNumber"]

    def test_update_bad_dates(self, client, created):
        response = client.put(f"{INVOICES}/{created['id']}", json={"dueDate": "2023-01-01"})
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_DATE_RANGE"

    def test_update_paid_is_locked(self, client, created):
        _set_status(client, created["id"], "pending")
        _set_status(client, created["id"], "paid")

        response = client.put(f"{INVOICES}/{created['id']}", json={"notes": "late edit"})

        assert response.status_code == 400
        assert response.get_json()["code"] == "INVOICE_LOCKED"

    def test_update_unknown(self, client):
        response = client.put(f"{INVOICES}/{uuid4()}", json={"notes": "x"})
        assert response.status_code == 404


class TestStatus:
    def test_send_then_pay(self, client, created):
        sent = _set_status(client, created["id"], "pending")
        assert sent.status_code == 200
        assert sent.get_json()["message"] == "Invoice status updated successfully"

        paid = _set_status(client, created["id"], "paid").get_json()["invoice"]
        assert paid["status"] == "paid"
        assert paid["sentAt"] is not None
        assert paid["paidAt"] is not None

    def test_draft_to_paid_rejected(self, client, created):
        response = _set_status(client, created["id"], "paid")
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_TRANSITION"

    def test_invalid_status(self, client, created):
        response = _set_status(client, created["id"], "archived")
        assert response.status_code == 400
        assert response.get_json()["details"] == [{"field": "status", "message": "Invalid status"}]


class TestDelete:
    def test_delete(self, client, created):
        response = client.delete(f"{INVOICES}/{created['id']}")
        assert response.status_code == 200
        assert response.get_json() == {"message": "Invoice deleted successfully"}
        assert client.get(f"{INVOICES}/{created['id']}").status_code == 404

    def test_delete_unknown(self, client):
        assert client.delete(f"{INVOICES}/{uuid4()}").status_code == 404


class TestPlumbing:
    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated(self, client):
        assert len(client.get("/api/health").headers["X-Request-ID"]) == 32

    def test_cors_headers(self, client):
        response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_request_logged(self, client, captured_logs):
        client.get("/api/health", headers={"X-Request-ID": "req-1"})
        completed = [r for r in captured_logs() if r["message"] == "request_completed"]
        assert completed[0]["request_id"] == "req-1"
        assert completed[0]["status_code"] == 200

    def test_unexpected_error_is_500(self, app, client, memory_store, monkeypatch):
        def explode(criteria):
            raise RuntimeError("database on fire")

        monkeypatch.setattr(memory_store, "query", explode)
        response = client.get(INVOICES)
        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}

    @pytest.mark.parametrize(
        "exc, status",
        [
            (AllocationExhaustedError("INV-202401-", 5, "collided"), 503),
            (DuplicateKeyError("id", "x"), 500),
        ],
    )
    def test_status_mapping(self, exc, status):
        assert status_for(exc) == status
