"""
Invoice totals aggregation.

Two tax modes:
- PER_LINE: every line item carries its own GST rate.
- DOCUMENT_SPLIT: the subtotal is taxed at one document rate, shown either
  as equal CGST/SGST halves or as a single IGST figure.

The caller always picks the mode; nothing here falls back to a hidden rate.
"""

from collections.abc import Iterable
from decimal import Decimal

from core.billing.money import HUNDRED, ZERO, non_negative
from core.models.invoice import GstSplit, InvoiceTotals, TaxBreakdown, TaxMode
from core.models.line_item import LineItem

_TWO = Decimal("2")


def compute_totals(
    line_items: Iterable[LineItem],
    tax_mode: TaxMode = TaxMode.PER_LINE,
    document_tax_rate: Decimal | None = None,
    gst_split: GstSplit = GstSplit.CGST_SGST,
) -> InvoiceTotals:
    """
    Sum line items into subtotal, tax total and grand total.

    Args:
        line_items: Lines to aggregate (may be empty)
        tax_mode: PER_LINE or DOCUMENT_SPLIT
        document_tax_rate: Percent applied to the subtotal in DOCUMENT_SPLIT
        gst_split: CGST_SGST or IGST presentation for DOCUMENT_SPLIT

    Returns:
        InvoiceTotals with unrounded Decimal values

    Raises:
        ValueError: If DOCUMENT_SPLIT is requested without a document rate
    """
    items = list(line_items)
    subtotal = sum((li.amount for li in items), ZERO)

    if tax_mode == TaxMode.PER_LINE:
        tax_total = sum((li.tax_amount for li in items), ZERO)
        return InvoiceTotals(
            tax_mode=tax_mode,
            subtotal=subtotal,
            tax_total=tax_total,
            total=subtotal + tax_total,
        )

    if document_tax_rate is None:
        raise ValueError("document_tax_rate is required for DOCUMENT_SPLIT tax mode")

    rate = non_negative(document_tax_rate, "documentTaxRate")
    tax_total = subtotal * rate / HUNDRED

    if gst_split == GstSplit.CGST_SGST:
        half = tax_total / _TWO
        return InvoiceTotals(
            tax_mode=tax_mode,
            subtotal=subtotal,
            tax_total=tax_total,
            total=subtotal + tax_total,
            cgst=half,
            sgst=half,
        )

    return InvoiceTotals(
        tax_mode=tax_mode,
        subtotal=subtotal,
        tax_total=tax_total,
        total=subtotal + tax_total,
        igst=tax_total,
    )


def tax_breakdown(line_items: Iterable[LineItem]) -> list[TaxBreakdown]:
    """
    Group PER_LINE tax by rate, ascending.

    Lines at the same rate are merged; a 0% rate still appears so exempt
    value is visible on the summary.
    """
    taxable: dict[Decimal, Decimal] = {}
    tax: dict[Decimal, Decimal] = {}

    for li in line_items:
        # 18 and 18.00 hash equal, so they share a bucket
        rate = li.tax_rate
        taxable[rate] = taxable.get(rate, ZERO) + li.amount
        tax[rate] = tax.get(rate, ZERO) + li.tax_amount

    return [
        TaxBreakdown(tax_rate=rate, taxable_amount=taxable[rate], tax_amount=tax[rate])
        for rate in sorted(taxable)
    ]
