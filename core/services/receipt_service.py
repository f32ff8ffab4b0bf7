"""
Receipt service for recording customer payments.

A ReceiptSession holds the allocation state of one receipt form: the
customer's outstanding invoices, the selected subset, the amount received
and either the automatic oldest-first allocation or the user's manual
amounts. ReceiptService validates and submits the finished receipt.
"""

import logging
from decimal import Decimal
from enum import Enum

from pydantic import ValidationError

from clients.billing_client import BillingAPIClient
from core.billing.allocation import (
    auto_allocate,
    projected_statuses,
    summarize,
    validate_allocations,
)
from core.billing.money import ZERO, cents, has_sub_cent, non_negative, to_wire
from core.config import BillingConfig
from core.errors import BillingValidationError, FieldError
from core.event_bus import EventBus
from core.events import ReceiptCreated
from core.models import (
    Allocation,
    AllocationResult,
    OutstandingInvoice,
    PaymentMethod,
    ReceiptDraft,
    ReceiptRecord,
)
from core.services.reference_service import ReferenceDataService
from core.services.sequence_service import DocumentSequence, company_prefix
from core.services.submission import SubmissionGuard
from utils.timezone import to_wire_date

logger = logging.getLogger(__name__)


class AllocationMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class ReceiptSession:
    """
    Allocation state for one receipt form.

    In AUTO mode the allocation is re-derived whenever the amount received
    or the selected invoices change. Editing an allocation switches to
    MANUAL mode, where the user's amounts are kept as typed and only
    checked at submission. reset_to_auto() switches back.
    """

    def __init__(
        self,
        customer_id: str,
        invoices: list[OutstandingInvoice],
        enforce_received_cap: bool = True,
    ):
        self.customer_id = customer_id
        self.enforce_received_cap = enforce_received_cap
        self._invoices = {inv.id: inv for inv in invoices}
        self._selected: list[str] = []
        self._manual: dict[str, Decimal] = {}
        self._amount_received = ZERO
        self.mode = AllocationMode.AUTO
        self._result = AllocationResult()

    @property
    def invoices(self) -> list[OutstandingInvoice]:
        """Every outstanding invoice the customer has."""
        return list(self._invoices.values())

    @property
    def selected_invoices(self) -> list[OutstandingInvoice]:
        return [self._invoices[i] for i in self._selected]

    @property
    def amount_received(self) -> Decimal:
        return self._amount_received

    @property
    def result(self) -> AllocationResult:
        return self._result

    def set_amount_received(self, amount) -> AllocationResult:
        self._amount_received = cents(non_negative(amount, "amountReceived"), "amountReceived")
        return self._recompute()

    def select(self, invoice_id: str) -> AllocationResult:
        if invoice_id not in self._invoices:
            raise BillingValidationError.single(
                "invoiceId", f"Invoice {invoice_id} is not outstanding for this customer"
            )
        if invoice_id not in self._selected:
            self._selected.append(invoice_id)
        return self._recompute()

    def deselect(self, invoice_id: str) -> AllocationResult:
        if invoice_id in self._selected:
            self._selected.remove(invoice_id)
        self._manual.pop(invoice_id, None)
        return self._recompute()

    def set_allocation(self, invoice_id: str, amount) -> AllocationResult:
        """
        Type an allocation by hand. Switches the session to MANUAL mode.

        A zero amount clears the invoice's allocation. Out-of-range amounts
        are kept as typed and rejected by validate().
        """
        if invoice_id not in self._selected:
            raise BillingValidationError.single("invoiceId", f"Invoice {invoice_id} is not selected")

        value = cents(amount, "amountAllocated")
        if self.mode == AllocationMode.AUTO:
            # Start from what the user was looking at
            self._manual = {a.invoice_id: a.amount_allocated for a in self._result.allocations}
            self.mode = AllocationMode.MANUAL

        if value == ZERO:
            self._manual.pop(invoice_id, None)
        else:
            self._manual[invoice_id] = value
        return self._recompute()

    def reset_to_auto(self) -> AllocationResult:
        self.mode = AllocationMode.AUTO
        self._manual = {}
        return self._recompute()

    def _recompute(self) -> AllocationResult:
        if self.mode == AllocationMode.AUTO:
            self._result = auto_allocate(self._amount_received, self.selected_invoices)
        else:
            allocations = [
                Allocation(invoice_id=i, amount_allocated=self._manual[i])
                for i in self._selected
                if i in self._manual
            ]
            self._result = summarize(self._amount_received, allocations)
        return self._result

    def validate(self) -> AllocationResult:
        """
        Allocation ready for submission.

        Raises:
            BillingValidationError: Manual allocations over an invoice balance
                or over the amount received
        """
        if self.mode == AllocationMode.AUTO:
            return self._result
        return validate_allocations(
            self._amount_received,
            self._result.allocations,
            self.selected_invoices,
            enforce_received_cap=self.enforce_received_cap,
        )


class ReceiptService:
    """Service for receipt form sessions and receipt records."""

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
        self._guard = SubmissionGuard("receipt")

    def open_session(self, customer_id: str) -> ReceiptSession:
        """
        Start a receipt form for a customer with their outstanding invoices.

        Raises:
            ReferenceDataUnavailableError: If the invoices could not be loaded
        """
        if not customer_id:
            raise BillingValidationError.single("customerId", "Customer is required")
        invoices = self.reference.outstanding_invoices(customer_id, refresh=True)
        return ReceiptSession(customer_id, invoices, self.config.enforce_received_cap)

    def allocate(self, customer_id: str, amount_received, invoice_ids: list[str] | None = None) -> AllocationResult:
        """Oldest-first allocation over the given (default: all) outstanding invoices."""
        session = self.open_session(customer_id)
        for invoice_id in invoice_ids if invoice_ids is not None else [i.id for i in session.invoices]:
            session.select(invoice_id)
        return session.set_amount_received(amount_received)

    def next_receipt_number(self, company_name: str, company_id: str | None = None) -> str:
        """Next number like 'ACM-RCT-001' for the company."""
        prefix = company_prefix(company_name)
        return self.sequence.next_number(self.config.receipt_prefix, prefix, scope=company_id)

    def build_draft(self, data: dict) -> ReceiptDraft:
        """
        Parse raw form data into a ReceiptDraft.

        Raises:
            BillingValidationError: Field-by-field parse errors
        """
        try:
            return ReceiptDraft.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

    def validate(self, draft: ReceiptDraft, invoices: list[OutstandingInvoice]) -> AllocationResult:
        """
        Check a draft and its allocations against the customer's invoices.

        Raises:
            BillingValidationError: Listing every problem found
        """
        errors: list[FieldError] = []

        if not draft.receipt_id.strip():
            errors.append(FieldError("receiptId", "Receipt ID is required"))
        if not draft.customer_id:
            errors.append(FieldError("customerId", "Customer is required"))
        if draft.payment_method is None:
            errors.append(FieldError("paymentMethod", "Payment method is required"))
        if draft.amount_received <= ZERO:
            errors.append(FieldError("amountReceived", "Amount must be greater than 0"))
        if draft.tds_amount < ZERO:
            errors.append(FieldError("tdsAmount", "TDS amount must not be negative"))
        elif draft.amount_received > ZERO and draft.tds_amount >= draft.amount_received:
            errors.append(FieldError("tdsAmount", "TDS amount must be less than the amount received"))
        elif has_sub_cent(draft.tds_amount):
            errors.append(FieldError("tdsAmount", "TDS amount must have at most 2 decimal places"))

        if draft.payment_method == PaymentMethod.CHEQUE:
            if not (draft.cheque_no or "").strip():
                errors.append(FieldError("chequeNo", "Cheque number is required"))
            if not (draft.bank_name or "").strip():
                errors.append(FieldError("bankName", "Bank name is required"))

        result = None
        try:
            result = validate_allocations(
                draft.amount_received,
                draft.allocations,
                invoices,
                enforce_received_cap=self.config.enforce_received_cap,
            )
        except BillingValidationError as e:
            errors.extend(e.errors)

        if errors:
            raise BillingValidationError(errors)
        return result

    def build_payload(self, draft: ReceiptDraft, result: AllocationResult) -> dict:
        """Normalized backend body. Cheque details are sent only for cheques."""
        payload = {
            "receiptId": draft.receipt_id.strip(),
            "receiptDate": to_wire_date(draft.receipt_date),
            "customerId": draft.customer_id,
            "companyId": draft.company_id,
            "paymentMethod": draft.payment_method.value,
            "amountReceived": to_wire(draft.amount_received),
            "tdsAmount": to_wire(draft.tds_amount),
            "netPayment": to_wire(draft.net_payment),
            "notes": draft.notes,
            "allocations": [
                {"invoiceId": a.invoice_id, "amountAllocated": to_wire(a.amount_allocated)}
                for a in result.allocations
            ],
            "totalAllocated": to_wire(result.total_allocated),
            "unappliedAmount": to_wire(result.unapplied_amount),
        }
        if draft.payment_method == PaymentMethod.CHEQUE:
            payload["chequeNo"] = draft.cheque_no.strip()
            payload["bankName"] = draft.bank_name.strip()
            payload["chequeDate"] = to_wire_date(draft.cheque_date) if draft.cheque_date else None
        return payload

    def create(self, data: dict, session: ReceiptSession | None = None) -> ReceiptRecord:
        """
        Validate and submit a receipt.

        With a session, the session's customer, amount and allocation are
        used. Without one, allocations come from data and are checked
        against freshly loaded outstanding invoices.

        Raises:
            BillingValidationError: Before any request is sent
            SubmissionInProgressError: A create is already in flight
            ReferenceDataUnavailableError: Outstanding invoices failed to load
            BillingAPIError: Backend failure; the draft is untouched
        """
        draft = self.build_draft(data)

        if session is not None:
            allocation = session.validate()
            draft = draft.model_copy(update={
                "customer_id": session.customer_id,
                "amount_received": session.amount_received,
                "allocations": allocation.allocations,
            })
            invoices = session.invoices
        elif draft.customer_id:
            invoices = self.reference.outstanding_invoices(draft.customer_id, refresh=True)
        else:
            invoices = []

        result = self.validate(draft, invoices)
        payload = self.build_payload(draft, result)

        with self._guard.submitting():
            created = self.client.post("/receipts", payload)

        receipt = ReceiptRecord.model_validate(created)
        statuses = projected_statuses(invoices, result.allocations)
        logger.info(
            f"Created receipt {receipt.receipt_id or draft.receipt_id} for {draft.customer_id}: "
            f"received={payload['amountReceived']} allocated={payload['totalAllocated']} "
            f"across {len(result.allocations)} invoice(s)"
        )
        if result.has_unapplied:
            logger.warning(
                f"Receipt {draft.receipt_id} leaves {payload['unappliedAmount']} unapplied"
            )

        self.event_bus.publish(ReceiptCreated.create(receipt, draft.customer_id, statuses))
        return receipt

    def list(self, customer_id: str | None = None) -> list[ReceiptRecord]:
        params = {"customerId": customer_id} if customer_id else None
        rows = self.client.get("/receipts", params=params) or []
        return [ReceiptRecord.model_validate(row) for row in rows]
