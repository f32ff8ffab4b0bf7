"""
Line item models.

Amounts are Decimal rupees. Derived values (amount, tax_amount, total) are
read-only properties recomputed from quantity, rate and tax_rate on every
access; there is no stored copy that could drift.
"""

from decimal import Decimal
from uuid import uuid4

from pydantic import Field

from core.billing.money import line_amount, line_tax, line_total
from core.models.wire import WireModel


class LineItem(WireModel):
    """One billable row on an invoice."""

    id: str = Field(default_factory=lambda: str(uuid4()))  # client-only
    service_type_id: str = Field("", max_length=100)
    description: str = Field("", max_length=500)
    quantity: int = Field(1, ge=1)
    rate: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Decimal = Field(Decimal("0"), ge=0)  # percent: 18 = 18%

    @property
    def amount(self) -> Decimal:
        """quantity * rate"""
        return line_amount(self.quantity, self.rate)

    @property
    def tax_amount(self) -> Decimal:
        return line_tax(self.amount, self.tax_rate)

    @property
    def total(self) -> Decimal:
        return line_total(self.amount, self.tax_amount)
