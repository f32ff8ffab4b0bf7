"""Tests for POST /api/actions unified mutation endpoint."""

import json
from decimal import Decimal

import responses

API = "https://billing.test.local/api/v1"

LINE_ITEMS = [
    {"serviceTypeId": "svc-1", "description": "Audit", "quantity": 1, "rate": 2000, "taxRate": 18},
    {"serviceTypeId": "svc-2", "description": "Filing", "quantity": 2, "rate": 250, "taxRate": 12},
]

INVOICE = {
    "invoiceNumber": "ACM-INV-001",
    "invoiceDate": "2024-01-10",
    "dueDate": "2024-02-09",
    "customerId": "cust-1",
    "lineItems": LINE_ITEMS,
}

OUTSTANDING = [
    {"id": "inv-a", "invoiceNumber": "ACM-INV-001", "invoiceDate": "2024-01-05", "totalAmount": 25000},
    {"id": "inv-b", "invoiceNumber": "ACM-INV-002", "invoiceDate": "2024-02-01", "totalAmount": 5000},
]


def _action(client, domain, action, data):
    return client.post("/api/actions", json={"domain": domain, "action": action, "data": data})


# =============================================================================
# AUTHENTICATION & VALIDATION
# =============================================================================


class TestActionsAuthentication:

    def test_unauthenticated_returns_401(self, unauthed_client):
        response = _action(unauthed_client, "invoice", "preview", {"lineItems": LINE_ITEMS})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"


class TestActionsValidation:

    def test_missing_domain_returns_422(self, client):
        response = client.post("/api/actions", json={"action": "create", "data": {}})
        assert response.status_code == 422

    def test_unknown_domain_returns_400(self, client):
        response = _action(client, "warehouse", "create", {})

        assert response.status_code == 400
        assert "Unknown domain" in response.json()["error"]["message"]

    def test_disallowed_action_returns_400(self, client):
        response = _action(client, "receipt", "delete", {"id": "rct-1"})

        assert response.status_code == 400
        assert "not allowed" in response.json()["error"]["message"]


# =============================================================================
# INVOICE
# =============================================================================


class TestInvoiceActions:

    def test_preview(self, client):
        response = _action(client, "invoice", "preview", {"lineItems": LINE_ITEMS})

        assert response.status_code == 200
        totals = response.json()["data"]["totals"]
        assert totals == {"subtotal": 2500, "taxTotal": 420, "totalAmount": 2920}

    @responses.activate
    def test_create(self, client):
        responses.add(responses.POST, f"{API}/invoices", status=201, json={
            "id": "inv-1", "invoiceNumber": "ACM-INV-001", "customerId": "cust-1", "totalAmount": 2920,
        })

        response = _action(client, "invoice", "create", INVOICE)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == "inv-1"
        assert json.loads(responses.calls[0].request.body)["totalAmount"] == 2920

    @responses.activate
    def test_create_without_lines_returns_field_errors(self, client):
        response = _action(client, "invoice", "create", {**INVOICE, "lineItems": []})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {"field": "lineItems", "message": "Add at least one line item"} in error["details"]
        assert len(responses.calls) == 0

    @responses.activate
    def test_create_while_in_flight_returns_409(self, client, services):
        with services["invoice"]._guard.submitting():
            response = _action(client, "invoice", "create", INVOICE)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "SUBMISSION_IN_PROGRESS"
        assert len(responses.calls) == 0

    @responses.activate
    def test_backend_rejection_returns_502(self, client):
        responses.add(responses.POST, f"{API}/invoices", status=500, json={"message": "Numbering conflict"})

        response = _action(client, "invoice", "create", INVOICE)

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "Numbering conflict"

    def test_update_requires_id(self, client):
        response = _action(client, "invoice", "update", INVOICE)

        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "id"

    @responses.activate
    def test_delete(self, client):
        responses.add(responses.DELETE, f"{API}/invoices/inv-1", status=204)

        response = _action(client, "invoice", "delete", {"id": "inv-1"})

        assert response.json()["data"] == {"deleted": True}

    @responses.activate
    def test_send_email(self, client):
        responses.add(responses.POST, f"{API}/invoices/inv-1/send-email", json={"sent": True})

        response = _action(client, "invoice", "send_email", {"id": "inv-1", "to": "accounts@acmeindia.com"})

        assert response.json()["data"] == {"sent": True}
        assert json.loads(responses.calls[0].request.body)["to"] == "accounts@acmeindia.com"

    def test_next_number(self, client):
        first = _action(client, "invoice", "next_number", {"companyName": "Acme Ltd"})
        second = _action(client, "invoice", "next_number", {"companyName": "Acme Ltd"})

        assert first.json()["data"] == {"invoiceNumber": "ACM-INV-001"}
        assert second.json()["data"] == {"invoiceNumber": "ACM-INV-002"}


# =============================================================================
# RECEIPT
# =============================================================================


class TestReceiptActions:

    @responses.activate
    def test_allocate(self, client):
        responses.add(responses.GET, f"{API}/invoices", json=OUTSTANDING)

        response = _action(client, "receipt", "allocate", {"customerId": "cust-1", "amountReceived": 27000})

        data = response.json()["data"]
        assigned = {a["invoiceId"]: Decimal(a["amountAllocated"]) for a in data["allocations"]}
        assert assigned == {"inv-a": 25000, "inv-b": 2000}
        assert Decimal(data["unappliedAmount"]) == 0

    @responses.activate
    def test_create_over_allocated_returns_422(self, client):
        responses.add(responses.GET, f"{API}/invoices", json=OUTSTANDING)

        response = _action(client, "receipt", "create", {
            "receiptId": "ACM-RCT-001",
            "customerId": "cust-1",
            "paymentMethod": "UPI",
            "amountReceived": 10000,
            "allocations": [{"invoiceId": "inv-b", "amountAllocated": 6000}],
        })

        assert response.status_code == 422
        fields = {d["field"] for d in response.json()["error"]["details"]}
        assert fields == {"allocations.0.amountAllocated"}
        assert [c.request.method for c in responses.calls] == ["GET"]

    @responses.activate
    def test_create_with_sub_cent_allocations_returns_422(self, client):
        responses.add(responses.GET, f"{API}/invoices", json=OUTSTANDING)

        response = _action(client, "receipt", "create", {
            "receiptId": "ACM-RCT-001",
            "customerId": "cust-1",
            "paymentMethod": "UPI",
            "amountReceived": "66.67",
            "allocations": [
                {"invoiceId": "inv-a", "amountAllocated": "33.335"},
                {"invoiceId": "inv-b", "amountAllocated": "33.335"},
            ],
        })

        assert response.status_code == 422
        assert [c.request.method for c in responses.calls] == ["GET"]

    @responses.activate
    def test_create(self, client):
        responses.add(responses.GET, f"{API}/invoices", json=OUTSTANDING)
        responses.add(responses.POST, f"{API}/receipts", status=201, json={"id": "rct-1", "receiptId": "ACM-RCT-001"})

        response = _action(client, "receipt", "create", {
            "receiptId": "ACM-RCT-001",
            "customerId": "cust-1",
            "paymentMethod": "Cash",
            "amountReceived": 5000,
            "allocations": [{"invoiceId": "inv-b", "amountAllocated": 5000}],
        })

        assert response.status_code == 200
        assert response.json()["data"]["id"] == "rct-1"

    @responses.activate
    def test_outstanding_unavailable_returns_503(self, client):
        responses.add(responses.GET, f"{API}/invoices", status=503)

        response = _action(client, "receipt", "allocate", {"customerId": "cust-1", "amountReceived": 100})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "REFERENCE_DATA_UNAVAILABLE"


# =============================================================================
# CREDIT NOTE
# =============================================================================


class TestCreditNoteActions:

    def test_preview(self, client):
        response = _action(client, "credit_note", "preview", {"amount": 2500, "gstRate": 18})

        data = response.json()["data"]
        assert Decimal(data["gstAmount"]) == 450
        assert Decimal(data["totalCredit"]) == 2950

    def test_preview_rejects_negative_amount(self, client):
        response = _action(client, "credit_note", "preview", {"amount": -1, "gstRate": 18})

        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "amount"

    def test_next_number(self, client):
        response = _action(client, "credit_note", "next_number", {"companyName": "Acme Ltd"})
        assert response.json()["data"] == {"creditNoteId": "ACM-CN-001"}


# =============================================================================
# REFERENCE DATA MANAGEMENT
# =============================================================================

NEW_CUSTOMER = {
    "code": "CUST-ACM1234",
    "name": "Acme Ltd",
    "type": "ct-1",
    "address": "12 Industrial Estate, Pune",
    "email": "accounts@acmeindia.com",
    "whatsapp": "9876543210",
    "phone": "9876543210",
    "contactPerson": "R. Mehta",
    "paymentTerms": 15,
    "accountManager": "am-1",
}


class TestCustomerActions:

    @responses.activate
    def test_create_refreshes_customer_dropdown(self, client):
        responses.add(responses.GET, f"{API}/customers", json=[{"id": "cust-1", "name": "Old Co"}])
        responses.add(responses.POST, f"{API}/customers", status=201, json={"id": "cust-2", **NEW_CUSTOMER})
        client.get("/api/data", params={"type": "customers"})

        response = _action(client, "customer", "create", NEW_CUSTOMER)
        client.get("/api/data", params={"type": "customers"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == "cust-2"
        assert [c.request.method for c in responses.calls] == ["GET", "POST", "GET"]

    def test_create_invalid_returns_field_errors(self, client):
        response = _action(client, "customer", "create", {**NEW_CUSTOMER, "email": "nope", "phone": "123"})

        assert response.status_code == 422
        fields = {d["field"] for d in response.json()["error"]["details"]}
        assert fields == {"email", "phone"}

    @responses.activate
    def test_update(self, client):
        responses.add(responses.PUT, f"{API}/customers/cust-1", json={"id": "cust-1", "name": "Acme India"})

        response = _action(client, "customer", "update", {"id": "cust-1", "name": "Acme India"})

        assert response.json()["data"]["name"] == "Acme India"
        assert json.loads(responses.calls[0].request.body) == {"name": "Acme India"}

    @responses.activate
    def test_delete(self, client):
        responses.add(responses.DELETE, f"{API}/customers/cust-1", status=204)

        response = _action(client, "customer", "delete", {"id": "cust-1"})

        assert response.json()["data"] == {"deleted": True}

    def test_suggest_code(self, client):
        response = _action(client, "customer", "suggest_code", {"name": "Acme Ltd"})
        assert response.json()["data"]["code"].startswith("CUST-ACM")


class TestCatalogActions:

    @responses.activate
    def test_create_service_type(self, client):
        responses.add(
            responses.POST, f"{API}/service-types", status=201,
            json={"id": "svc-9", "code": "AUD", "name": "Audit", "taxRate": 18},
        )

        response = _action(client, "service_type", "create", {"code": "AUD", "name": "Audit", "taxRate": 18})

        assert response.status_code == 200
        assert json.loads(responses.calls[0].request.body)["taxRate"] == "18"

    def test_tax_rate_over_100_rejected(self, client):
        response = _action(client, "service_type", "create", {"code": "AUD", "name": "Audit", "taxRate": 118})

        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "taxRate"

    @responses.activate
    def test_toggle_client_type(self, client):
        responses.add(
            responses.PATCH, f"{API}/client-types/ct-1/toggle",
            json={"id": "ct-1", "name": "Corporate", "isActive": False},
        )

        response = _action(client, "client_type", "toggle", {"id": "ct-1"})

        assert response.json()["data"]["isActive"] is False

    def test_toggle_requires_id(self, client):
        response = _action(client, "client_type", "toggle", {})
        assert response.status_code == 422


class TestGstSettingsActions:

    @responses.activate
    def test_save(self, client):
        responses.add(responses.POST, f"{API}/gst-settings", status=201, json={})

        response = _action(client, "gst_settings", "save", {
            "isGstApplicable": True,
            "gstNumber": "27AAPFU0939F1ZV",
            "effectiveDate": "2024-04-01",
            "defaultRate": 18,
        })

        assert response.status_code == 200
        body = json.loads(responses.calls[0].request.body)
        assert body["gstNumber"] == "27AAPFU0939F1ZV"
        assert body["defaultRate"] == 18

    def test_missing_gstin_rejected(self, client):
        response = _action(client, "gst_settings", "save", {"isGstApplicable": True, "effectiveDate": "2024-04-01"})

        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "gstNumber"
