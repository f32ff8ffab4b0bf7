"""Read-only aggregates computed by the backend for the dashboard."""

from decimal import Decimal

from core.models.wire import WireModel


class DashboardMetrics(WireModel):
    total_receivables: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    average_collection_period: Decimal = Decimal("0")  # days
    pending_invoices: int = 0
    total_credit_notes: Decimal = Decimal("0")
    currency: str = "INR"


class RevenueTrendPoint(WireModel):
    month: str
    revenue: Decimal = Decimal("0")
    previous_year_revenue: Decimal = Decimal("0")


class AgingBucket(WireModel):
    range: str
    amount: Decimal = Decimal("0")


class CustomerRevenue(WireModel):
    type: str
    revenue: Decimal = Decimal("0")
