"""Billing console configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field

from core.models.invoice import GstSplit, TaxMode


class BillingConfig(BaseModel):
    """
    Billing console configuration.

    Secrets (backend URL in production, Valkey URL) come from Vault; see
    clients.vault_client. Everything here has a safe default.
    """

    # Backend
    api_base_url: str = Field(
        default="https://rms-billing-backend.onrender.com",
        description="Billing backend origin, no trailing slash",
    )
    api_prefix: str = Field(
        default="/api/v1",
        description="Path prefix for every backend endpoint",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Per-request timeout; a timeout is reported as a network error",
        ge=1,
        le=120,
    )

    # Tax
    tax_mode: TaxMode = Field(
        default=TaxMode.PER_LINE,
        description="Tax mode for new invoices",
    )
    gst_split: GstSplit = Field(
        default=GstSplit.CGST_SGST,
        description="CGST/SGST halves or a single IGST figure (DOCUMENT_SPLIT only)",
    )
    document_tax_rate: Decimal = Field(
        default=Decimal("18"),
        description="GST percent applied to the subtotal in DOCUMENT_SPLIT mode",
        ge=0,
        le=100,
    )

    # Receipts
    enforce_received_cap: bool = Field(
        default=True,
        description="Reject manual allocations totalling more than the amount received",
    )

    # Invoices
    default_payment_terms_days: int = Field(
        default=30,
        description="Due date offset when the customer has no payment terms",
        ge=0,
        le=365,
    )

    # Document numbering
    invoice_prefix: str = Field(default="INV", min_length=1, max_length=10)
    receipt_prefix: str = Field(default="RCT", min_length=1, max_length=10)
    credit_note_prefix: str = Field(default="CN", min_length=1, max_length=10)

    # Display
    currency_symbol: str = Field(default="₹", max_length=5)

    def endpoint_url(self, path: str) -> str:
        """Absolute URL for a backend path such as '/invoices'."""
        return f"{self.api_base_url.rstrip('/')}{self.api_prefix}{path}"
