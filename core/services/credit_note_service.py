"""
Credit note service.

A credit note reduces what a customer owes against one paid or partially
paid invoice. The GST rate defaults to the invoice's first line item rate
and stays editable; the credited amount may not exceed the invoice total.
"""

import logging
from decimal import Decimal

from pydantic import ValidationError

from clients.billing_client import BillingAPIClient
from core.billing.credit import default_gst_rate, validate_credit_amount
from core.billing.money import ZERO, non_negative, to_wire
from core.config import BillingConfig
from core.errors import BillingValidationError, FieldError
from core.event_bus import EventBus
from core.events import CreditNoteIssued
from core.models import (
    CreditNoteAmounts,
    CreditNoteDraft,
    CreditNoteRecord,
    InvoiceRecord,
    InvoiceStatus,
)
from core.services.sequence_service import DocumentSequence, company_prefix
from core.services.submission import SubmissionGuard
from utils.timezone import to_wire_date, today_utc

logger = logging.getLogger(__name__)

CREDITABLE_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID)


class CreditNoteForm:
    """
    Selection state for one credit note form.

    Changing the customer clears the selected invoice and resets the GST
    rate to 0. Selecting an invoice sets the GST rate from its first line
    item; set_gst_rate() overrides it.
    """

    def __init__(self, service: "CreditNoteService"):
        self._service = service
        self.customer_id: str = ""
        self.candidates: list[InvoiceRecord] = []
        self.invoice: InvoiceRecord | None = None
        self.gst_rate: Decimal = ZERO
        self.amount: Decimal = ZERO

    def select_customer(self, customer_id: str) -> list[InvoiceRecord]:
        """Switch customer and load the invoices that can be credited."""
        self.customer_id = customer_id
        self.invoice = None
        self.gst_rate = ZERO
        self.candidates = self._service.credit_candidates(customer_id) if customer_id else []
        return self.candidates

    def select_invoice(self, invoice_id: str) -> InvoiceRecord:
        invoice = next((inv for inv in self.candidates if inv.id == invoice_id), None)
        if invoice is None:
            raise BillingValidationError.single(
                "invoiceId", f"Invoice {invoice_id} cannot be credited for this customer"
            )
        if not invoice.line_items:
            # List responses may omit line items
            invoice = self._service.get_invoice(invoice_id)

        self.invoice = invoice
        self.gst_rate = default_gst_rate(invoice.line_items)
        return invoice

    def set_gst_rate(self, rate) -> CreditNoteAmounts:
        self.gst_rate = non_negative(rate, "gstRate")
        return self.amounts

    def set_amount(self, amount) -> CreditNoteAmounts:
        self.amount = non_negative(amount, "amount")
        return self.amounts

    @property
    def amounts(self) -> CreditNoteAmounts:
        return CreditNoteDraft(amount=self.amount, gst_rate=self.gst_rate).amounts

    def to_data(self, **fields) -> dict:
        """Form values merged with the remaining fields (id, date, reason, notes)."""
        return {
            "customerId": self.customer_id,
            "invoiceId": self.invoice.id if self.invoice else "",
            "amount": self.amount,
            "gstRate": self.gst_rate,
            **fields,
        }


class CreditNoteService:
    """Service for credit note forms and records."""

    def __init__(
        self,
        client: BillingAPIClient,
        sequence: DocumentSequence,
        event_bus: EventBus,
        config: BillingConfig,
    ):
        self.client = client
        self.sequence = sequence
        self.event_bus = event_bus
        self.config = config
        self._guard = SubmissionGuard("credit note")

    def open_form(self, customer_id: str = "") -> CreditNoteForm:
        form = CreditNoteForm(self)
        if customer_id:
            form.select_customer(customer_id)
        return form

    def next_credit_note_number(self, company_name: str, company_id: str | None = None) -> str:
        """Next number like 'ACM-CN-001' for the company."""
        return self.sequence.next_number(
            self.config.credit_note_prefix, company_prefix(company_name), scope=company_id
        )

    def get_invoice(self, invoice_id: str) -> InvoiceRecord:
        return InvoiceRecord.model_validate(self.client.get(f"/invoices/{invoice_id}"))

    def credit_candidates(self, customer_id: str) -> list[InvoiceRecord]:
        """A customer's invoices that can be credited (Paid or PartiallyPaid)."""
        rows = self.client.get("/invoices", params={"customerId": customer_id}) or []
        invoices = InvoiceRecord.validate_rows(rows, "/invoices")
        return [
            inv for inv in invoices
            if inv.status in CREDITABLE_STATUSES
            and (not inv.customer_id or inv.customer_id == customer_id)
        ]

    def build_draft(self, data: dict) -> CreditNoteDraft:
        """
        Parse raw form data into a CreditNoteDraft.

        Raises:
            BillingValidationError: Field-by-field parse errors
        """
        try:
            return CreditNoteDraft.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

    def validate(self, draft: CreditNoteDraft, invoice: InvoiceRecord | None) -> CreditNoteAmounts:
        """
        Check a draft against the invoice it credits.

        Raises:
            BillingValidationError: Listing every problem found
        """
        errors: list[FieldError] = []

        if not draft.credit_note_id.strip():
            errors.append(FieldError("creditNoteId", "Credit Note ID is required"))
        if draft.credit_note_date > today_utc():
            errors.append(FieldError("creditNoteDate", "Credit note date cannot be in the future"))
        if not draft.customer_id:
            errors.append(FieldError("customerId", "Customer is required"))
        if not draft.invoice_id:
            errors.append(FieldError("invoiceId", "Invoice reference is required"))
        if draft.reason is None:
            errors.append(FieldError("reason", "Reason is required"))

        if invoice is not None:
            if invoice.customer_id and draft.customer_id and invoice.customer_id != draft.customer_id:
                errors.append(FieldError("invoiceId", "Invoice belongs to a different customer"))
            try:
                validate_credit_amount(draft.amount, invoice.total_amount)
            except BillingValidationError as e:
                errors.extend(e.errors)
        elif draft.amount <= ZERO:
            errors.append(FieldError("amount", "Amount must be greater than 0"))

        if errors:
            raise BillingValidationError(errors)
        return draft.amounts

    def build_payload(self, draft: CreditNoteDraft, amounts: CreditNoteAmounts) -> dict:
        return {
            "creditNoteId": draft.credit_note_id.strip(),
            "creditNoteDate": to_wire_date(draft.credit_note_date),
            "customerId": draft.customer_id,
            "invoiceId": draft.invoice_id,
            "reason": draft.reason.value,
            "amount": to_wire(amounts.amount),
            "gstRate": to_wire(amounts.gst_rate),
            "gstAmount": to_wire(amounts.gst_amount),
            "totalCredit": to_wire(amounts.total_credit),
            "notes": draft.notes,
        }

    def create(self, data: dict, form: CreditNoteForm | None = None) -> CreditNoteRecord:
        """
        Validate and submit a credit note.

        Raises:
            BillingValidationError: Before the credit note is sent, including
                when earlier credit notes already use up the invoice
            SubmissionInProgressError: A create is already in flight
            BillingAPIError: Backend failure; the draft is untouched
        """
        if form is not None:
            data = form.to_data(**data)
        draft = self.build_draft(data)

        invoice = None
        if draft.invoice_id:
            if form is not None and form.invoice is not None and form.invoice.id == draft.invoice_id:
                invoice = form.invoice
            else:
                invoice = self.get_invoice(draft.invoice_id)

        amounts = self.validate(draft, invoice)
        if invoice is not None:
            validate_credit_amount(
                draft.amount, invoice.total_amount, self.credited_amount(invoice.id, draft.customer_id)
            )
        payload = self.build_payload(draft, amounts)

        with self._guard.submitting():
            created = self.client.post("/credit-notes", payload)

        credit_note = CreditNoteRecord.model_validate(created)
        logger.info(
            f"Issued credit note {draft.credit_note_id} against invoice {draft.invoice_id}: "
            f"total credit {payload['totalCredit']}"
        )
        self.event_bus.publish(CreditNoteIssued.create(credit_note, draft.customer_id))
        return credit_note

    def credited_amount(self, invoice_id: str, customer_id: str) -> Decimal:
        """Sum of earlier credit notes against an invoice, ignoring cancelled ones."""
        credited = ZERO
        for note in self.list(customer_id):
            if note.invoice_id == invoice_id and (note.status or "").lower() != "cancelled":
                credited += note.amount
        return credited

    def list(self, customer_id: str | None = None) -> list[CreditNoteRecord]:
        params = {"customerId": customer_id} if customer_id else None
        rows = self.client.get("/credit-notes", params=params) or []
        return CreditNoteRecord.validate_rows(rows, "/credit-notes")
