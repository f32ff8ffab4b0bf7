"""Tests for GstSettingsService."""

import json
from decimal import Decimal

import pytest
import responses

from core.errors import BillingValidationError
from core.models import FilingFrequency, GstDisplayFormat
from core.services.gst_settings_service import GstSettingsService

API = "https://billing.test.local/api/v1"

GSTIN = "27AAPFU0939F1ZV"


def _settings(**overrides) -> dict:
    data = {
        "isGstApplicable": True,
        "gstNumber": GSTIN,
        "effectiveDate": "2024-04-01",
        "defaultRate": 18,
        "displayFormat": "Exclusive",
        "filingFrequency": "QUARTERLY",
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(api_client):
    return GstSettingsService(api_client)


class TestGet:

    @responses.activate
    def test_defaults_when_nothing_saved(self, service):
        responses.add(responses.GET, f"{API}/gst-settings", json=[])

        settings = service.get()

        assert settings.is_gst_applicable is False
        assert settings.display_format is GstDisplayFormat.INCLUSIVE
        assert settings.filing_frequency is FilingFrequency.MONTHLY

    @responses.activate
    def test_first_row_of_a_list(self, service):
        responses.add(responses.GET, f"{API}/gst-settings", json=[_settings()])

        settings = service.get()

        assert settings.gst_number == GSTIN
        assert settings.default_rate == Decimal("18")


class TestBuild:

    def test_gstin_required_when_applicable(self, service):
        with pytest.raises(BillingValidationError) as exc_info:
            service.build(_settings(gstNumber="", effectiveDate=None))

        assert exc_info.value.fields() == {"gstNumber", "effectiveDate"}

    def test_malformed_gstin_rejected(self, service):
        with pytest.raises(BillingValidationError) as exc_info:
            service.build(_settings(gstNumber="27AAPFU0939F1Z"))
        assert exc_info.value.fields() == {"gstNumber"}

    def test_gstin_dropped_when_not_applicable(self, service):
        settings = service.build(_settings(isGstApplicable=False))
        assert settings.gst_number is None

    def test_duplicate_rate_rejected(self, service):
        rates = [
            {"category": "Reduced Rate", "rate": 5, "effectiveFrom": "2024-04-01"},
            {"category": "Standard Rate", "rate": 18, "effectiveFrom": "2024-04-01"},
            {"category": "Reduced Rate", "rate": 12, "effectiveFrom": "2024-04-01"},
        ]

        with pytest.raises(BillingValidationError) as exc_info:
            service.build(_settings(taxRates=rates))

        assert exc_info.value.fields() == {"taxRates.2"}

    def test_rate_over_100_rejected(self, service):
        with pytest.raises(BillingValidationError) as exc_info:
            service.build(_settings(defaultRate=118))
        assert exc_info.value.fields() == {"defaultRate"}


class TestSave:

    @responses.activate
    def test_payload(self, service):
        responses.add(responses.POST, f"{API}/gst-settings", status=201, json={})

        service.save(_settings(taxRates=[
            {"category": "Reduced Rate", "rate": "5", "effectiveFrom": "2024-04-01", "description": "Essentials"},
        ]))

        body = json.loads(responses.calls[0].request.body)
        assert body["gstNumber"] == GSTIN
        assert body["defaultRate"] == 18
        assert body["displayFormat"] == "Exclusive"
        assert body["taxRates"] == [{
            "category": "Reduced Rate",
            "rate": 5,
            "effectiveFrom": "2024-04-01",
            "description": "Essentials",
        }]

    @responses.activate
    def test_invalid_settings_send_nothing(self, service):
        with pytest.raises(BillingValidationError):
            service.save(_settings(gstNumber=None))
        assert len(responses.calls) == 0
