"""GST settings: the company's registration, default rate and rate table."""

import logging

from pydantic import ValidationError

from clients.billing_client import BillingAPIClient
from core.billing.money import to_wire
from core.errors import BillingValidationError, FieldError
from core.models import GstSettings
from utils.timezone import to_wire_date

logger = logging.getLogger(__name__)


class GstSettingsService:
    """Reads and saves GST settings on the backend."""

    def __init__(self, client: BillingAPIClient):
        self.client = client

    def get(self) -> GstSettings:
        """Current settings; defaults (GST not applicable) when none are saved."""
        data = self.client.get("/gst-settings")
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            return GstSettings()
        return GstSettings.model_validate(data)

    def build(self, data: dict) -> GstSettings:
        """
        Parse and check a settings form.

        Raises:
            BillingValidationError: Listing every problem found
        """
        try:
            settings = GstSettings.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

        errors: list[FieldError] = []
        if settings.is_gst_applicable:
            if not settings.gst_number:
                errors.append(FieldError("gstNumber", "GST number is required when GST is applicable"))
            if settings.effective_date is None:
                errors.append(FieldError("effectiveDate", "Effective date is required"))

        seen = set()
        for index, entry in enumerate(settings.tax_rates):
            key = (entry.category, entry.effective_from)
            if key in seen:
                errors.append(FieldError(
                    f"taxRates.{index}",
                    f"{entry.category.value} already has a rate from {entry.effective_from}",
                ))
            seen.add(key)

        if errors:
            raise BillingValidationError(errors)
        return settings

    def build_payload(self, settings: GstSettings) -> dict:
        payload = settings.to_wire()
        payload["effectiveDate"] = to_wire_date(settings.effective_date) if settings.effective_date else None
        payload["defaultRate"] = to_wire(settings.default_rate)
        payload["taxRates"] = [
            {
                **entry.to_wire(),
                "rate": to_wire(entry.rate),
                "effectiveFrom": to_wire_date(entry.effective_from),
            }
            for entry in settings.tax_rates
        ]
        return payload

    def save(self, data: dict) -> GstSettings:
        """
        Validate and save GST settings.

        Raises:
            BillingValidationError: Before anything is sent
            BillingAPIError: Backend failure
        """
        settings = self.build(data)
        saved = self.client.post("/gst-settings", self.build_payload(settings))
        logger.info(
            f"Saved GST settings: applicable={settings.is_gst_applicable} "
            f"default_rate={settings.default_rate} rates={len(settings.tax_rates)}"
        )
        return GstSettings.model_validate(saved) if saved else settings
