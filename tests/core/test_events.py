"""Tests for billing domain events."""

import dataclasses
from datetime import datetime

import pytest

from core.events import (
    CreditNoteIssued,
    InvoiceCreated,
    InvoiceDeleted,
    InvoiceEmailed,
    ReceiptCreated,
)
from core.models import CreditNoteRecord, InvoiceRecord, InvoiceStatus, ReceiptRecord


class TestEventConstruction:
    """Factories copy what handlers need out of the record."""

    def test_invoice_created_carries_customer(self):
        event = InvoiceCreated.create(InvoiceRecord(id="inv-1", customer_id="cust-1"))
        assert event.customer_id == "cust-1"
        assert event.invoice.id == "inv-1"

    def test_base_fields_populated(self):
        event = InvoiceDeleted.create("inv-1")
        assert event.event_id
        assert isinstance(event.occurred_at, datetime)
        assert event.occurred_at.tzinfo is not None

    def test_event_ids_unique(self):
        assert InvoiceDeleted.create("a").event_id != InvoiceDeleted.create("a").event_id

    def test_receipt_statuses_are_copied(self):
        statuses = {"inv-1": InvoiceStatus.PAID}
        event = ReceiptCreated.create(ReceiptRecord(id="r"), "cust-1", statuses)
        statuses["inv-2"] = InvoiceStatus.PARTIALLY_PAID

        assert event.invoice_statuses == {"inv-1": InvoiceStatus.PAID}

    def test_credit_note_customer_falls_back_to_record(self):
        record = CreditNoteRecord(id="cn-1", customer_id="cust-2")
        assert CreditNoteIssued.create(record).customer_id == "cust-2"
        assert CreditNoteIssued.create(record, "cust-3").customer_id == "cust-3"

    def test_emailed(self):
        event = InvoiceEmailed.create("inv-1", "billing@example.com")
        assert event.to == "billing@example.com"


class TestImmutability:
    def test_events_are_frozen(self):
        event = InvoiceDeleted.create("inv-1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.invoice_id = "other"
