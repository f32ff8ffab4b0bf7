"""
Handler for documents that change what a customer owes.

On any invoice, receipt or credit note change, drops the customer's cached
outstanding invoices so the next receipt form loads fresh balances from the
backend. A deleted invoice carries no customer, so every cached customer is
dropped instead.
"""

import logging
from typing import Callable

from core.events import (
    BillingEvent,
    CreditNoteIssued,
    InvoiceCreated,
    InvoiceDeleted,
    InvoiceUpdated,
    ReceiptCreated,
)

logger = logging.getLogger(__name__)

OUTSTANDING_EVENTS = (InvoiceCreated, InvoiceUpdated, InvoiceDeleted, ReceiptCreated, CreditNoteIssued)


def handle_outstanding_changed(reference_service) -> Callable:
    """
    Factory that returns an outstanding-balance invalidation handler.

    Args:
        reference_service: ReferenceDataService instance

    Returns:
        Handler callable for every event in OUTSTANDING_EVENTS
    """

    def handler(event: BillingEvent):
        if isinstance(event, InvoiceDeleted):
            dropped = reference_service.invalidate_all_outstanding()
            logger.info(f"Invoice {event.invoice_id} deleted; dropped {dropped} cached outstanding list(s)")
            return

        customer_id = getattr(event, "customer_id", "")
        if not customer_id:
            return

        reference_service.invalidate_outstanding(customer_id)

        if isinstance(event, ReceiptCreated) and event.invoice_statuses:
            summary = ", ".join(f"{i}={s.value}" for i, s in event.invoice_statuses.items())
            logger.info(f"Receipt for {customer_id} moves invoices to: {summary}")

    return handler
