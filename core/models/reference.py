"""Reference data: form dropdown entries and the inputs that manage them."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import EmailStr, Field, field_validator, model_validator

from core.models.wire import WireModel


class Customer(WireModel):
    """Billable customer as listed by the backend."""

    id: str
    name: str
    code: str = ""
    type: str = ""
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    contact_person: str | None = None
    gst_number: str | None = None
    pan_number: str | None = None
    payment_terms: int | None = Field(None, ge=0)  # days
    account_manager: str | None = None
    is_active: bool = True


class ServiceType(WireModel):
    """Billable service. Its tax rate seeds new line items."""

    id: str
    code: str = ""
    name: str
    description: str = ""
    tax_rate: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True


class ClientType(WireModel):
    """Customer category with default payment terms."""

    id: str
    code: str = ""
    name: str
    description: str = ""
    payment_terms: int = Field(0, ge=0)
    is_active: bool = True


# =============================================================================
# MANAGEMENT INPUTS
# =============================================================================

GSTIN_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"
PAN_PATTERN = r"^[A-Z]{5}[0-9]{4}[A-Z]{1}$"


class CustomerCreate(WireModel):
    """Data required to create a customer."""

    code: str = Field(..., min_length=2, max_length=50)
    name: str = Field(..., min_length=2, max_length=255)
    type: str = Field(..., min_length=1)  # client type id
    address: str = Field(..., min_length=10, max_length=500)
    email: EmailStr
    whatsapp: str = Field(..., min_length=10, max_length=20)
    phone: str = Field(..., min_length=10, max_length=20)
    contact_person: str = Field(..., min_length=2, max_length=255)
    gst_number: str | None = Field(None, pattern=GSTIN_PATTERN)
    pan_number: str | None = Field(None, pattern=PAN_PATTERN)
    payment_terms: int = Field(30, ge=0)
    account_manager: str = Field(..., min_length=1)  # account manager id
    is_active: bool = True

    @field_validator("gst_number", "pan_number", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            return value or None
        return value


class CustomerUpdate(WireModel):
    """Customer fields editable after creation. All optional."""

    name: str | None = Field(None, min_length=2, max_length=255)
    contact_person: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    is_active: bool | None = None


class ServiceTypeInput(WireModel):
    """Create or replace a billable service."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    is_active: bool = True


class ClientTypeInput(WireModel):
    """Create or replace a customer category."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    payment_terms: int = Field(0, ge=0)
    is_active: bool = True


# =============================================================================
# GST SETTINGS
# =============================================================================


class TaxCategory(str, Enum):
    STANDARD = "Standard Rate"
    ZERO = "Zero Rate"
    EXEMPT = "Exempt"
    REDUCED = "Reduced Rate"
    SPECIAL = "Special Rate"


class GstDisplayFormat(str, Enum):
    INCLUSIVE = "Inclusive"
    EXCLUSIVE = "Exclusive"


class FilingFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


class TaxRateEntry(WireModel):
    """One configured tax rate and the date it applies from."""

    category: TaxCategory
    rate: Decimal = Field(..., ge=0, le=100)
    effective_from: date
    description: str = ""


class GstSettings(WireModel):
    """
    Company GST configuration.

    The GSTIN is kept only when GST applies.
    """

    is_gst_applicable: bool = False
    gst_number: str | None = Field(None, pattern=GSTIN_PATTERN)
    effective_date: date | None = None
    default_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    display_format: GstDisplayFormat = GstDisplayFormat.INCLUSIVE
    filing_frequency: FilingFrequency = FilingFrequency.MONTHLY
    tax_rates: list[TaxRateEntry] = Field(default_factory=list)

    @field_validator("gst_number", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            return value or None
        return value

    @model_validator(mode="after")
    def drop_unused_gstin(self) -> "GstSettings":
        if not self.is_gst_applicable:
            self.gst_number = None
        return self
