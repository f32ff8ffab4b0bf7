"""
Credit note calculator.

gst_amount = amount * gst_rate / 100, total_credit = amount + gst_amount.
The GST rate defaults to the first line item's tax rate of the referenced
invoice and stays editable.
"""

from collections.abc import Sequence
from decimal import Decimal

from core.billing.money import ZERO, line_tax, line_total, non_negative
from core.errors import BillingValidationError
from core.models.credit_note import CreditNoteAmounts
from core.models.line_item import LineItem


def compute_credit(amount, gst_rate) -> CreditNoteAmounts:
    """
    Compute GST and total credit.

    Raises:
        BillingValidationError: If amount or gst_rate is negative or not a number
    """
    base = non_negative(amount, "amount")
    rate = non_negative(gst_rate, "gstRate")
    gst_amount = line_tax(base, rate)
    return CreditNoteAmounts(
        amount=base,
        gst_rate=rate,
        gst_amount=gst_amount,
        total_credit=line_total(base, gst_amount),
    )


def default_gst_rate(line_items: Sequence[LineItem]) -> Decimal:
    """Tax rate of the invoice's first line item, 0 when it has none."""
    if not line_items:
        return ZERO
    return line_items[0].tax_rate


def validate_credit_amount(amount, invoice_total, already_credited=ZERO) -> None:
    """
    Credit must be positive and must not exceed what is left of the invoice.

    already_credited is the sum of earlier credit notes against the same
    invoice; together with this one it may not pass the invoice total.

    Raises:
        BillingValidationError: On a zero, negative or excessive amount
    """
    base = non_negative(amount, "amount")
    limit = non_negative(invoice_total, "invoiceTotal")
    credited = non_negative(already_credited, "alreadyCredited")

    if base <= ZERO:
        raise BillingValidationError.single("amount", "Amount must be greater than 0")
    if base > limit:
        raise BillingValidationError.single(
            "amount",
            f"Credit amount {base} cannot exceed the invoice amount {limit}",
        )
    if base > limit - credited:
        raise BillingValidationError.single(
            "amount",
            f"Credit amount {base} exceeds the {max(limit - credited, ZERO)} left to credit "
            f"on this invoice ({credited} already credited)",
        )
