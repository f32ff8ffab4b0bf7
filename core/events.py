"""
Domain events for the billing console.

Immutable event objects published after the backend has accepted a
submission. Handlers react without the publishing service knowing who is
listening (e.g. refreshing a customer's outstanding invoices).

Event Categories:
- InvoiceEvent: Invoice lifecycle (create, update, delete, email)
- ReceiptEvent: Receipt creation with projected invoice statuses
- CreditNoteEvent: Credit note issue
- ReferenceEvent: Customer, service type and client type changes

Events carry the backend's record so handlers don't need to re-fetch.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class BillingEvent:
    """Base class for all billing domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(BillingEvent):
    """Events related to invoice lifecycle."""
    pass


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """Backend accepted a new invoice."""
    invoice: Any = None  # InvoiceRecord
    customer_id: str = ""

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceCreated":
        return cls(invoice=invoice, customer_id=invoice.customer_id)


@dataclass(frozen=True)
class InvoiceUpdated(InvoiceEvent):
    """Backend accepted changes to an invoice."""
    invoice: Any = None
    customer_id: str = ""

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceUpdated":
        return cls(invoice=invoice, customer_id=invoice.customer_id)


@dataclass(frozen=True)
class InvoiceDeleted(InvoiceEvent):
    """Invoice was deleted on the backend."""
    invoice_id: str = ""

    @classmethod
    def create(cls, invoice_id: str) -> "InvoiceDeleted":
        return cls(invoice_id=invoice_id)


@dataclass(frozen=True)
class InvoiceEmailed(InvoiceEvent):
    """Invoice PDF was dispatched by email."""
    invoice_id: str = ""
    to: str = ""

    @classmethod
    def create(cls, invoice_id: str, to: str) -> "InvoiceEmailed":
        return cls(invoice_id=invoice_id, to=to)


# =============================================================================
# RECEIPT EVENTS
# =============================================================================


@dataclass(frozen=True)
class ReceiptEvent(BillingEvent):
    """Events related to receipts."""
    pass


@dataclass(frozen=True)
class ReceiptCreated(ReceiptEvent):
    """
    Backend recorded a receipt.

    invoice_statuses maps invoice id to the status the allocation moves it
    to (Paid or PartiallyPaid). The backend performs the transition.
    """
    receipt: Any = None  # ReceiptRecord
    customer_id: str = ""
    invoice_statuses: dict = field(default_factory=dict)

    @classmethod
    def create(cls, receipt: Any, customer_id: str, invoice_statuses: dict) -> "ReceiptCreated":
        return cls(receipt=receipt, customer_id=customer_id, invoice_statuses=dict(invoice_statuses))


# =============================================================================
# CREDIT NOTE EVENTS
# =============================================================================


@dataclass(frozen=True)
class CreditNoteEvent(BillingEvent):
    """Events related to credit notes."""
    pass


@dataclass(frozen=True)
class CreditNoteIssued(CreditNoteEvent):
    """Backend recorded a credit note."""
    credit_note: Any = None  # CreditNoteRecord
    customer_id: str = ""

    @classmethod
    def create(cls, credit_note: Any, customer_id: str | None = None) -> "CreditNoteIssued":
        return cls(credit_note=credit_note, customer_id=customer_id or credit_note.customer_id)


# =============================================================================
# REFERENCE DATA EVENTS
# =============================================================================


@dataclass(frozen=True)
class ReferenceEvent(BillingEvent):
    """Events related to reference data managed from the console."""
    pass


@dataclass(frozen=True)
class ReferenceDataChanged(ReferenceEvent):
    """
    Backend accepted a change to a reference list.

    kind is the reference slot name ('customers', 'service_types',
    'client_types'); action is 'create', 'update', 'delete' or 'toggle'.
    """
    kind: str = ""
    action: str = ""
    item_id: str = ""

    @classmethod
    def create(cls, kind: str, action: str, item_id: str) -> "ReferenceDataChanged":
        return cls(kind=kind, action=action, item_id=item_id)
