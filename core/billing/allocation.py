"""
Payment allocation engine.

Distributes a received payment across a customer's outstanding invoices.

- validate_allocations: the user typed the amounts; reject anything that
  over-allocates. Nothing is clamped.
- auto_allocate: oldest invoice first (invoice_date, then invoice_number),
  each invoice gets min(remaining, outstanding).

Both return an AllocationResult whose unapplied_amount is never negative
while the received-amount cap is enforced.
The backend moves invoice status on receipt creation; projected_statuses
only predicts it.
"""

from collections.abc import Iterable
from decimal import Decimal

from core.billing.money import ZERO, has_sub_cent, non_negative, to_decimal
from core.errors import BillingValidationError, FieldError
from core.models.invoice import InvoiceStatus, OutstandingInvoice
from core.models.receipt import Allocation, AllocationResult


def oldest_first(invoices: Iterable[OutstandingInvoice]) -> list[OutstandingInvoice]:
    """Order invoices oldest first; invoice number breaks date ties."""
    return sorted(invoices, key=lambda inv: (inv.invoice_date, inv.invoice_number))


def _dedupe(invoices: Iterable[OutstandingInvoice]) -> list[OutstandingInvoice]:
    seen = set()
    unique = []
    for inv in invoices:
        if inv.id not in seen:
            seen.add(inv.id)
            unique.append(inv)
    return unique


def summarize(amount_received, allocations: Iterable[Allocation]) -> AllocationResult:
    """Totals for a set of allocations. Performs no validation."""
    received = to_decimal(amount_received, "amountReceived")
    items = list(allocations)
    total = sum((a.amount_allocated for a in items), ZERO)
    return AllocationResult(
        allocations=items,
        total_allocated=total,
        unapplied_amount=received - total,
    )


def auto_allocate(amount_received, invoices: Iterable[OutstandingInvoice]) -> AllocationResult:
    """
    Allocate oldest-first until the amount or the invoices run out.

    Deterministic: the same amount and invoice set always produce the same
    result, whatever order the invoices were selected in.

    Args:
        amount_received: Payment amount (>= 0)
        invoices: Selected invoices; duplicates are ignored

    Returns:
        AllocationResult; leftover money is the unapplied amount

    Raises:
        BillingValidationError: If amount_received is negative or not a number
    """
    remaining = non_negative(amount_received, "amountReceived")
    received = remaining
    allocations = []

    for invoice in oldest_first(_dedupe(invoices)):
        if remaining <= ZERO:
            break
        outstanding = invoice.outstanding_amount
        if outstanding <= ZERO:
            continue
        applied = min(remaining, outstanding)
        allocations.append(Allocation(invoice_id=invoice.id, amount_allocated=applied))
        remaining -= applied

    return AllocationResult(
        allocations=allocations,
        total_allocated=received - remaining,
        unapplied_amount=remaining,
    )


def validate_allocations(
    amount_received,
    allocations: Iterable[Allocation],
    invoices: Iterable[OutstandingInvoice],
    enforce_received_cap: bool = True,
) -> AllocationResult:
    """
    Check user-entered allocations against invoice balances.

    Every violation is collected, so the form can mark each bad row.

    Args:
        amount_received: Payment amount
        allocations: User-entered allocations
        invoices: Invoices the allocations may reference
        enforce_received_cap: Reject a total above amount_received

    Returns:
        AllocationResult for the (valid) allocations

    Raises:
        BillingValidationError: Listing every invalid allocation
    """
    received = to_decimal(amount_received, "amountReceived")
    by_id = {inv.id: inv for inv in invoices}
    items = list(allocations)
    errors: list[FieldError] = []
    seen: set[str] = set()

    if has_sub_cent(received):
        errors.append(FieldError("amountReceived", "Amount must have at most 2 decimal places"))

    for index, allocation in enumerate(items):
        field = f"allocations.{index}.amountAllocated"
        invoice = by_id.get(allocation.invoice_id)

        if invoice is None:
            errors.append(FieldError(
                f"allocations.{index}.invoiceId",
                f"Invoice {allocation.invoice_id} is not an outstanding invoice for this receipt",
            ))
            continue

        if allocation.invoice_id in seen:
            errors.append(FieldError(
                f"allocations.{index}.invoiceId",
                f"Invoice {invoice.invoice_number} is allocated more than once",
            ))
            continue
        seen.add(allocation.invoice_id)

        amount = allocation.amount_allocated
        if not amount.is_finite() or amount <= ZERO:
            errors.append(FieldError(field, "Allocation must be greater than 0"))
        elif amount > invoice.outstanding_amount:
            errors.append(FieldError(
                field,
                f"Allocation {amount} exceeds outstanding balance "
                f"{invoice.outstanding_amount} of invoice {invoice.invoice_number}",
            ))
        elif has_sub_cent(amount):
            errors.append(FieldError(field, "Allocation must have at most 2 decimal places"))

    result = summarize(received, items)
    if enforce_received_cap and result.total_allocated > received:
        errors.append(FieldError(
            "allocations",
            f"Total allocated {result.total_allocated} exceeds amount received {received}",
        ))

    if errors:
        raise BillingValidationError(errors)
    return result


def projected_statuses(
    invoices: Iterable[OutstandingInvoice],
    allocations: Iterable[Allocation],
) -> dict[str, InvoiceStatus]:
    """
    Status each allocated invoice will take once the receipt is recorded.

    Paid when the allocation covers the outstanding balance, PartiallyPaid
    when it covers part of it. Invoices without an allocation are omitted.
    """
    allocated: dict[str, Decimal] = {}
    for a in allocations:
        allocated[a.invoice_id] = allocated.get(a.invoice_id, ZERO) + a.amount_allocated

    statuses = {}
    for invoice in invoices:
        amount = allocated.get(invoice.id, ZERO)
        if amount <= ZERO:
            continue
        if amount >= invoice.outstanding_amount:
            statuses[invoice.id] = InvoiceStatus.PAID
        else:
            statuses[invoice.id] = InvoiceStatus.PARTIALLY_PAID
    return statuses
