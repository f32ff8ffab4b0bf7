"""
Receipt and payment allocation models.

A receipt records money received from a customer and how it is spread
across that customer's outstanding invoices.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import Field

from core.models.wire import WireModel


class PaymentMethod(str, Enum):
    """How the payment was received."""

    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    UPI = "UPI"
    CHEQUE = "Cheque"


class Allocation(WireModel):
    """Portion of a received payment applied to one invoice."""

    invoice_id: str
    amount_allocated: Decimal


class AllocationResult(WireModel):
    """Outcome of allocating a received amount."""

    allocations: list[Allocation] = Field(default_factory=list)
    total_allocated: Decimal = Decimal("0")
    unapplied_amount: Decimal = Decimal("0")

    @property
    def has_unapplied(self) -> bool:
        return self.unapplied_amount > 0

    def allocated_to(self, invoice_id: str) -> Decimal:
        """Amount allocated to an invoice, zero if none."""
        return sum(
            (a.amount_allocated for a in self.allocations if a.invoice_id == invoice_id),
            Decimal("0"),
        )


class ReceiptDraft(WireModel):
    """Receipt being edited in a form session."""

    receipt_id: str = Field("", max_length=50)
    receipt_date: date = Field(default_factory=date.today)
    customer_id: str = Field("", max_length=100)
    company_id: str | None = None
    payment_method: PaymentMethod | None = None
    amount_received: Decimal = Decimal("0")
    tds_amount: Decimal = Decimal("0")
    notes: str = Field("", max_length=2000)
    cheque_no: str | None = Field(None, max_length=50)
    bank_name: str | None = Field(None, max_length=100)
    cheque_date: date | None = None
    allocations: list[Allocation] = Field(default_factory=list)

    @property
    def net_payment(self) -> Decimal:
        """Amount actually banked after tax deducted at source."""
        return self.amount_received - self.tds_amount


class ReceiptRecord(WireModel):
    """Receipt as returned by the backend."""

    id: str
    receipt_id: str = ""
    receipt_date: date | None = None
    customer_id: str = ""
    customer_name: str | None = None
    payment_method: str | None = None
    amount_received: Decimal = Decimal("0")
    tds_amount: Decimal = Decimal("0")
    status: str | None = None
    allocations: list[Allocation] = Field(default_factory=list)
