"""Shared test fixtures for the billing console test suite."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from auth.token_store import TokenStore
from clients.billing_client import BillingAPIClient
from core.config import BillingConfig
from core.event_bus import EventBus
from core.models import LineItem, OutstandingInvoice


# =============================================================================
# BACKEND CONSTANTS
# =============================================================================

TEST_BACKEND = "https://billing.test.local"
TEST_TOKEN = "test-access-token"


# =============================================================================
# VALKEY TEST DOUBLE
# =============================================================================


class FakeValkey:
    """In-memory stand-in for ValkeyClient with the same method surface."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def ping(self) -> bool:
        return True

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, expire_seconds=None):
        self.data[key] = str(value)

    def delete(self, key) -> bool:
        return self.data.pop(key, None) is not None

    def incr(self, key) -> int:
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    def close(self):
        pass


@pytest.fixture
def valkey():
    return FakeValkey()


# =============================================================================
# CORE FIXTURES
# =============================================================================


@pytest.fixture
def config():
    return BillingConfig(api_base_url=TEST_BACKEND)


@pytest.fixture
def token_store(valkey):
    store = TokenStore(valkey)
    store.set_tokens(TEST_TOKEN)
    return store


@pytest.fixture
def api_client(config, token_store):
    """Backend client pointed at the test URL (mock with `responses`)."""
    return BillingAPIClient(config, token_store)


@pytest.fixture
def event_bus():
    return EventBus()


# =============================================================================
# DATA BUILDERS
# =============================================================================


def _make_line(quantity=1, rate="0", tax_rate="0", **kwargs) -> LineItem:
    kwargs.setdefault("service_type_id", "svc-1")
    kwargs.setdefault("description", "Consulting")
    return LineItem(quantity=quantity, rate=Decimal(rate), tax_rate=Decimal(tax_rate), **kwargs)


def _make_outstanding(
    id: str,
    total: str,
    invoice_date: date,
    invoice_number: str | None = None,
    paid: str = "0",
    customer_id: str = "cust-1",
) -> OutstandingInvoice:
    return OutstandingInvoice(
        id=id,
        invoice_number=invoice_number or f"INV-{id}",
        customer_id=customer_id,
        invoice_date=invoice_date,
        total_amount=Decimal(total),
        amount_paid=Decimal(paid),
    )


@pytest.fixture
def make_line():
    return _make_line


@pytest.fixture
def make_outstanding():
    return _make_outstanding
