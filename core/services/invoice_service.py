"""
Invoice service for billing.

Turns invoice form data into a validated draft, previews its totals and
submits it to the backend. Totals are always computed from the line items;
any totals present in the input are ignored.
"""

import logging

from pydantic import ValidationError

from clients.billing_client import BillingAPIClient
from core.billing.money import to_wire
from core.billing.totals import tax_breakdown
from core.config import BillingConfig
from core.errors import BillingValidationError, FieldError, ReferenceDataUnavailableError
from core.event_bus import EventBus
from core.events import InvoiceCreated, InvoiceDeleted, InvoiceEmailed, InvoiceUpdated
from core.models import (
    InvoiceDraft,
    InvoiceEmail,
    InvoiceRecord,
    InvoiceTotals,
    TaxMode,
    default_due_date,
)
from core.services.reference_service import ReferenceDataService
from core.services.sequence_service import DocumentSequence, company_prefix
from core.services.submission import SubmissionGuard
from utils.timezone import to_wire_date

logger = logging.getLogger(__name__)

# Keys a caller may send that are outputs, never inputs
_COMPUTED_KEYS = {
    "subtotal", "taxTotal", "tax_total", "total", "totalAmount", "total_amount",
    "cgst", "sgst", "igst", "totals",
}


def totals_to_wire(totals: InvoiceTotals) -> dict:
    """Rounded JSON numbers for a totals block. Split fields only when set."""
    payload = {
        "subtotal": to_wire(totals.subtotal),
        "taxTotal": to_wire(totals.tax_total),
        "totalAmount": to_wire(totals.total),
    }
    for name in ("cgst", "sgst", "igst"):
        value = getattr(totals, name)
        if value is not None:
            payload[name] = to_wire(value)
    return payload


class InvoiceService:
    """Service for invoice form sessions and invoice records."""

    def __init__(
        self,
        client: BillingAPIClient,
        reference: ReferenceDataService,
        sequence: DocumentSequence,
        event_bus: EventBus,
        config: BillingConfig,
    ):
        self.client = client
        self.reference = reference
        self.sequence = sequence
        self.event_bus = event_bus
        self.config = config
        self._guard = SubmissionGuard("invoice")

    # -------------------------------------------------------------------------
    # Draft handling (no network unless a due date must be defaulted)
    # -------------------------------------------------------------------------

    def _payment_terms(self, customer_id: str) -> int:
        """Customer's payment terms in days, falling back to the configured default."""
        try:
            customer = self.reference.customer(customer_id)
        except ReferenceDataUnavailableError as e:
            logger.warning(f"Using default payment terms for {customer_id}: {e}")
            return self.config.default_payment_terms_days

        if customer is None or customer.payment_terms is None:
            return self.config.default_payment_terms_days
        return customer.payment_terms

    def next_invoice_number(self, company_name: str, company_id: str | None = None) -> str:
        """Next number like 'ACM-INV-001' for the company."""
        return self.sequence.next_number(
            self.config.invoice_prefix, company_prefix(company_name), scope=company_id
        )

    def build_draft(self, data: dict) -> InvoiceDraft:
        """
        Parse raw form data into an InvoiceDraft.

        Tax mode, GST split and document rate fall back to configuration.
        A missing due date is derived from the customer's payment terms.

        Raises:
            BillingValidationError: Field-by-field parse errors
        """
        cleaned = {k: v for k, v in data.items() if k not in _COMPUTED_KEYS}
        try:
            draft = InvoiceDraft.model_validate(cleaned)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

        updates = {}
        if "tax_mode" not in draft.model_fields_set:
            updates["tax_mode"] = self.config.tax_mode
        if "gst_split" not in draft.model_fields_set:
            updates["gst_split"] = self.config.gst_split
        if draft.document_tax_rate is None:
            updates["document_tax_rate"] = self.config.document_tax_rate
        if draft.due_date is None and draft.customer_id:
            updates["due_date"] = default_due_date(
                draft.invoice_date, self._payment_terms(draft.customer_id)
            )
        return draft.model_copy(update=updates) if updates else draft

    def validate(self, draft: InvoiceDraft) -> InvoiceTotals:
        """
        Check a draft is submittable and return its totals.

        Raises:
            BillingValidationError: Listing every problem found
        """
        errors: list[FieldError] = []

        if not draft.invoice_number.strip():
            errors.append(FieldError("invoiceNumber", "Invoice number is required"))
        if not draft.customer_id:
            errors.append(FieldError("customerId", "Customer is required"))
        if draft.due_date is not None and draft.due_date < draft.invoice_date:
            errors.append(FieldError("dueDate", "Due date cannot be before the invoice date"))
        if not draft.line_items:
            errors.append(FieldError("lineItems", "Add at least one line item"))

        for index, item in enumerate(draft.line_items):
            if not item.service_type_id:
                errors.append(FieldError(f"lineItems.{index}.serviceTypeId", "Service is required"))
            if not item.description.strip():
                errors.append(FieldError(f"lineItems.{index}.description", "Description is required"))

        if draft.tax_mode == TaxMode.DOCUMENT_SPLIT and draft.document_tax_rate is None:
            errors.append(FieldError("documentTaxRate", "Tax rate is required"))

        if errors:
            raise BillingValidationError(errors)
        return draft.totals

    def preview(self, data: dict) -> dict:
        """
        Totals and per-rate GST for form data, without validating for submission.

        Returns:
            {"totals": {...}, "taxBreakdown": [...]} with rounded numbers
        """
        draft = self.build_draft(data)
        breakdown = [
            {
                "taxRate": to_wire(row.tax_rate),
                "taxableAmount": to_wire(row.taxable_amount),
                "taxAmount": to_wire(row.tax_amount),
            }
            for row in tax_breakdown(draft.line_items)
        ]
        return {"totals": totals_to_wire(draft.totals), "taxBreakdown": breakdown}

    def build_payload(self, draft: InvoiceDraft) -> dict:
        """Normalized backend body. Client-only line ids are not sent."""
        totals = self.validate(draft)

        payload = {
            "invoiceNumber": draft.invoice_number.strip(),
            "invoiceDate": to_wire_date(draft.invoice_date),
            "dueDate": to_wire_date(draft.due_date) if draft.due_date else None,
            "customerId": draft.customer_id,
            "referenceNumber": draft.reference_number,
            "notes": draft.notes,
            "taxMode": draft.tax_mode.value,
            "lineItems": [
                {
                    "serviceTypeId": item.service_type_id,
                    "description": item.description,
                    "quantity": item.quantity,
                    "rate": to_wire(item.rate),
                    "taxRate": to_wire(item.tax_rate),
                    "amount": to_wire(item.amount),
                    "taxAmount": to_wire(item.tax_amount),
                    "total": to_wire(item.total),
                }
                for item in draft.line_items
            ],
        }
        if draft.tax_mode == TaxMode.DOCUMENT_SPLIT:
            payload["gstSplit"] = draft.gst_split.value
            payload["documentTaxRate"] = to_wire(draft.document_tax_rate)
        payload.update(totals_to_wire(totals))
        return payload

    # -------------------------------------------------------------------------
    # Backend operations
    # -------------------------------------------------------------------------

    def create(self, data: dict) -> InvoiceRecord:
        """
        Validate and submit a new invoice.

        Raises:
            BillingValidationError: Before any request is sent
            SubmissionInProgressError: A create is already in flight
            BillingAPIError: Backend failure; the draft is untouched
        """
        draft = self.build_draft(data)
        payload = self.build_payload(draft)

        with self._guard.submitting():
            created = self.client.post("/invoices", payload)

        invoice = InvoiceRecord.model_validate(created)
        logger.info(f"Created invoice {invoice.invoice_number} ({invoice.id}) total={payload['totalAmount']}")
        self.event_bus.publish(InvoiceCreated.create(invoice))
        return invoice

    def update(self, invoice_id: str, data: dict) -> InvoiceRecord:
        """Validate and submit changes to an existing invoice."""
        if not invoice_id:
            raise BillingValidationError.single("id", "Invoice id is required")

        draft = self.build_draft(data)
        payload = self.build_payload(draft)

        with self._guard.submitting():
            updated = self.client.put(f"/invoices/{invoice_id}", payload)

        invoice = InvoiceRecord.model_validate(updated or {"id": invoice_id, **payload})
        logger.info(f"Updated invoice {invoice.invoice_number} ({invoice_id})")
        self.event_bus.publish(InvoiceUpdated.create(invoice))
        return invoice

    def get(self, invoice_id: str) -> InvoiceRecord:
        return InvoiceRecord.model_validate(self.client.get(f"/invoices/{invoice_id}"))

    def list(self, customer_id: str | None = None, status: str | None = None) -> list[InvoiceRecord]:
        """
        List invoices, optionally filtered.

        Args:
            customer_id: Only this customer's invoices
            status: Only invoices in this status (e.g. 'Pending')
        """
        params = {}
        if customer_id:
            params["customerId"] = customer_id
        if status:
            params["status"] = status

        rows = self.client.get("/invoices", params=params or None) or []
        return InvoiceRecord.validate_rows(rows, "/invoices")

    def delete(self, invoice_id: str) -> None:
        self.client.delete(f"/invoices/{invoice_id}")
        logger.info(f"Deleted invoice {invoice_id}")
        self.event_bus.publish(InvoiceDeleted.create(invoice_id))

    def download_pdf(self, invoice_id: str) -> bytes:
        """Rendered invoice PDF as raw bytes."""
        return self.client.get_bytes(f"/invoices/{invoice_id}/pdf")

    def send_email(self, invoice_id: str, data: dict) -> None:
        """
        Email the invoice PDF.

        Raises:
            BillingValidationError: Missing or invalid recipient
        """
        try:
            email = InvoiceEmail.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

        self.client.post(f"/invoices/{invoice_id}/send-email", email.to_wire())
        logger.info(f"Emailed invoice {invoice_id} to {email.to}")
        self.event_bus.publish(InvoiceEmailed.create(invoice_id, str(email.to)))

