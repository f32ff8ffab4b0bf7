"""Tests for DashboardService."""

import pytest
import responses
from responses import matchers

from core.services.dashboard_service import DashboardService

API = "https://billing.test.local/api/v1"


@pytest.fixture
def service(api_client):
    return DashboardService(api_client)


class TestDashboardService:
    @responses.activate
    def test_metrics(self, service):
        responses.add(responses.GET, f"{API}/dashboard/metrics", json={
            "totalReceivables": 125000.5,
            "totalRevenue": 980000,
            "averageCollectionPeriod": 32,
            "pendingInvoices": 14,
        })

        metrics = service.metrics()

        assert metrics.pending_invoices == 14
        assert str(metrics.total_receivables) == "125000.5"

    @responses.activate
    def test_revenue_trend_params(self, service):
        responses.add(
            responses.GET, f"{API}/dashboard/revenue-trend",
            json=[{"month": "Jan", "revenue": 1000, "previousYearRevenue": 800}],
            match=[matchers.query_param_matcher({"year": "2024", "months": "6"})],
        )

        trend = service.revenue_trend(year=2024, months=6)

        assert trend[0].previous_year_revenue == 800

    def test_revenue_trend_rejects_bad_months(self, service):
        with pytest.raises(ValueError, match="months"):
            service.revenue_trend(months=13)

    @responses.activate
    def test_aging_and_customer_revenue(self, service):
        responses.add(responses.GET, f"{API}/dashboard/aging-analysis", json=[
            {"range": "0-30", "amount": 5000},
            {"range": "90+", "amount": 1200},
        ])
        responses.add(responses.GET, f"{API}/dashboard/customer-revenue", json=[])

        assert [b.range for b in service.aging_analysis()] == ["0-30", "90+"]
        assert service.customer_revenue() == []
