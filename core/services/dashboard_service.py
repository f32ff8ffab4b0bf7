"""Dashboard aggregates. Read-only; every figure is computed by the backend."""

import logging

from clients.billing_client import BillingAPIClient
from core.models import AgingBucket, CustomerRevenue, DashboardMetrics, RevenueTrendPoint
from utils.timezone import today_utc

logger = logging.getLogger(__name__)


class DashboardService:
    """Fetches receivables, revenue and aging figures for the dashboard."""

    def __init__(self, client: BillingAPIClient):
        self.client = client

    def metrics(self) -> DashboardMetrics:
        return DashboardMetrics.model_validate(self.client.get("/dashboard/metrics") or {})

    def revenue_trend(self, year: int | None = None, months: int = 12) -> list[RevenueTrendPoint]:
        """
        Monthly revenue with the previous year's figure for comparison.

        Args:
            year: Calendar year (defaults to the current year)
            months: Number of months to return (1-12)
        """
        if not 1 <= months <= 12:
            raise ValueError("months must be between 1 and 12")

        params = {"year": year or today_utc().year, "months": months}
        rows = self.client.get("/dashboard/revenue-trend", params=params) or []
        return [RevenueTrendPoint.model_validate(row) for row in rows]

    def aging_analysis(self) -> list[AgingBucket]:
        rows = self.client.get("/dashboard/aging-analysis") or []
        return [AgingBucket.model_validate(row) for row in rows]

    def customer_revenue(self) -> list[CustomerRevenue]:
        rows = self.client.get("/dashboard/customer-revenue") or []
        return [CustomerRevenue.model_validate(row) for row in rows]

