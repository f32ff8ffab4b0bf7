"""Credit note models."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import Field

from core.models.wire import WireModel


class CreditReason(str, Enum):
    """Why a credit is being issued."""

    DISCOUNT = "discount"
    RETURN = "return"
    CORRECTION = "correction"
    CANCELLATION = "cancellation"
    GOODWILL = "goodwill"

    @property
    def label(self) -> str:
        return _REASON_LABELS[self]


_REASON_LABELS = {
    CreditReason.DISCOUNT: "Discount",
    CreditReason.RETURN: "Return of Goods",
    CreditReason.CORRECTION: "Invoice Correction",
    CreditReason.CANCELLATION: "Service Cancellation",
    CreditReason.GOODWILL: "Goodwill Adjustment",
}


class CreditNoteAmounts(WireModel):
    """Computed credit figures. Read-only output of the calculator."""

    amount: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    total_credit: Decimal


class CreditNoteDraft(WireModel):
    """Credit note being edited in a form session."""

    credit_note_id: str = Field("", max_length=50)
    credit_note_date: date = Field(default_factory=date.today)
    customer_id: str = Field("", max_length=100)
    invoice_id: str = Field("", max_length=100)
    reason: CreditReason | None = None
    amount: Decimal = Field(Decimal("0"), ge=0)
    gst_rate: Decimal = Field(Decimal("0"), ge=0)
    notes: str = Field("", max_length=2000)

    @property
    def amounts(self) -> CreditNoteAmounts:
        from core.billing.credit import compute_credit

        return compute_credit(self.amount, self.gst_rate)


class CreditNoteRecord(WireModel):
    """Credit note as returned by the backend."""

    id: str
    credit_note_id: str = ""
    credit_note_date: date | None = None
    customer_id: str = ""
    invoice_id: str = ""
    reason: str | None = None
    amount: Decimal = Decimal("0")
    gst_rate: Decimal = Decimal("0")
    gst_amount: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")
    status: str | None = None
