"""
Invoice domain models.

Amounts are Decimal rupees. Tax rates are percentages (18 = 18%).
Totals on a draft are computed, never stored: InvoiceDraft.totals is a
read-only property over the line items.
"""

from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from pydantic import EmailStr, Field

from core.models.line_item import LineItem
from core.models.wire import WireModel


class TaxMode(str, Enum):
    """How GST is computed for a document."""

    PER_LINE = "per_line"  # each line carries its own tax rate
    DOCUMENT_SPLIT = "document_split"  # one rate on the subtotal


class GstSplit(str, Enum):
    """Presentation of document-level GST."""

    CGST_SGST = "cgst_sgst"  # intra-state: two equal halves
    IGST = "igst"  # inter-state: one figure


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice as the backend reports it."""

    PENDING = "Pending"
    OVERDUE = "Overdue"
    PARTIALLY_PAID = "PartiallyPaid"
    PAID = "Paid"
    DRAFT = "Draft"
    CANCELLED = "Cancelled"

    @classmethod
    def _missing_(cls, value):
        # Backend variants: "Partially Paid", "partially_paid", "PAID"
        if isinstance(value, str):
            normalized = value.replace(" ", "").replace("_", "").lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


ALLOCATABLE_STATUSES = frozenset({
    InvoiceStatus.PENDING,
    InvoiceStatus.OVERDUE,
    InvoiceStatus.PARTIALLY_PAID,
})


class InvoiceTotals(WireModel):
    """Document totals. Split fields are set only in DOCUMENT_SPLIT mode."""

    tax_mode: TaxMode
    subtotal: Decimal
    tax_total: Decimal
    total: Decimal
    cgst: Decimal | None = None
    sgst: Decimal | None = None
    igst: Decimal | None = None


class TaxBreakdown(WireModel):
    """Taxable value and GST for one tax rate across a document."""

    tax_rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal


class InvoiceDraft(WireModel):
    """Invoice being edited in a form session. Owned locally until submitted."""

    invoice_number: str = Field("", max_length=50)
    invoice_date: date = Field(default_factory=date.today)
    due_date: date | None = None
    customer_id: str = Field("", max_length=100)
    reference_number: str = Field("", max_length=100)
    notes: str = Field("", max_length=2000)
    line_items: list[LineItem] = Field(default_factory=list)
    tax_mode: TaxMode = TaxMode.PER_LINE
    gst_split: GstSplit = GstSplit.CGST_SGST
    document_tax_rate: Decimal | None = Field(None, ge=0)

    @property
    def totals(self) -> InvoiceTotals:
        """Totals derived from the current line items."""
        from core.billing.totals import compute_totals

        return compute_totals(
            self.line_items,
            tax_mode=self.tax_mode,
            document_tax_rate=self.document_tax_rate,
            gst_split=self.gst_split,
        )


def default_due_date(invoice_date: date, payment_terms_days: int) -> date:
    """Due date from invoice date plus the customer's payment terms."""
    if payment_terms_days < 0:
        raise ValueError("payment_terms_days must not be negative")
    return invoice_date + timedelta(days=payment_terms_days)


class InvoiceRecord(WireModel):
    """Invoice as returned by the backend."""

    id: str
    invoice_number: str = ""
    customer_id: str = ""
    customer_name: str | None = None
    customer_email: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    reference_number: str | None = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    line_items: list[LineItem] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    tax_total: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    notes: str | None = None


class OutstandingInvoice(WireModel):
    """An invoice that can receive a payment allocation."""

    id: str
    invoice_number: str
    customer_id: str = ""
    invoice_date: date
    due_date: date | None = None
    total_amount: Decimal = Field(..., ge=0)
    amount_paid: Decimal = Field(Decimal("0"), ge=0)
    status: InvoiceStatus = InvoiceStatus.PENDING

    @property
    def outstanding_amount(self) -> Decimal:
        """Total minus what prior receipts already allocated."""
        return max(self.total_amount - self.amount_paid, Decimal("0"))

    @property
    def is_settled(self) -> bool:
        return self.status == InvoiceStatus.PAID or self.outstanding_amount == 0

    @property
    def is_allocatable(self) -> bool:
        """Open for payment: an issued status with a balance left."""
        return self.status in ALLOCATABLE_STATUSES and self.outstanding_amount > 0


class InvoiceEmail(WireModel):
    """Email dispatch request for an invoice PDF."""

    to: EmailStr
    cc: list[EmailStr] = Field(default_factory=list)
    subject: str = Field("Invoice PDF", min_length=1, max_length=200)
    message: str = Field("Please find attached invoice.", max_length=5000)
    include_payment_link: bool = False
