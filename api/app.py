"""
Console application wiring.

build_services() assembles the services around one backend client, token
store and event bus. create_app() mounts them on a FastAPI app.
create_default_app() resolves the backend and Valkey URLs from Vault and
is the ASGI factory for deployment.
"""

import logging

import requests
from fastapi import FastAPI

from api.actions import create_actions_router
from api.base import success_response
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.token_store import TokenStore
from clients.billing_client import BillingAPIClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_backend_url, get_valkey_url
from core.config import BillingConfig
from core.event_bus import EventBus
from core.events import ReferenceDataChanged
from core.handlers.outstanding_refresh_handler import OUTSTANDING_EVENTS, handle_outstanding_changed
from core.handlers.reference_refresh_handler import handle_reference_changed
from core.services.catalog_service import client_type_catalog, service_type_catalog
from core.services.credit_note_service import CreditNoteService
from core.services.customer_service import CustomerService
from core.services.dashboard_service import DashboardService
from core.services.gst_settings_service import GstSettingsService
from core.services.invoice_service import InvoiceService
from core.services.receipt_service import ReceiptService
from core.services.reference_service import ReferenceDataService
from core.services.sequence_service import DocumentSequence

logger = logging.getLogger(__name__)


def build_services(
    config: BillingConfig,
    valkey: ValkeyClient,
    session: requests.Session | None = None,
) -> dict:
    """Create every console service and subscribe event handlers."""
    token_store = TokenStore(valkey)
    client = BillingAPIClient(config, token_store, session=session)
    event_bus = EventBus()
    sequence = DocumentSequence(valkey)
    reference = ReferenceDataService(client)

    refresh_outstanding = handle_outstanding_changed(reference)
    for event_type in OUTSTANDING_EVENTS:
        event_bus.subscribe(event_type, refresh_outstanding)
    event_bus.subscribe(ReferenceDataChanged, handle_reference_changed(reference))

    return {
        "token_store": token_store,
        "event_bus": event_bus,
        "auth": AuthService(client, token_store),
        "reference": reference,
        "invoice": InvoiceService(client, reference, sequence, event_bus, config),
        "receipt": ReceiptService(client, reference, sequence, event_bus, config),
        "credit_note": CreditNoteService(client, sequence, event_bus, config),
        "dashboard": DashboardService(client),
        "customer": CustomerService(client, event_bus),
        "service_type": service_type_catalog(client, event_bus),
        "client_type": client_type_catalog(client, event_bus),
        "gst_settings": GstSettingsService(client),
    }


def create_app(services: dict) -> FastAPI:
    """FastAPI app with auth middleware, error handlers, and auth/data/actions routes."""
    app = FastAPI(title="Billing Console")
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, token_store=services["token_store"])
    register_error_handlers(app)

    app.include_router(create_auth_router(services["auth"]), prefix="/api/auth")
    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    return app


def create_default_app() -> FastAPI:
    """App configured from Vault secrets. Fails fast if they are missing."""
    config = BillingConfig(api_base_url=get_backend_url())
    valkey = ValkeyClient(get_valkey_url())
    logger.info(f"Billing console using backend {config.api_base_url}")
    return create_app(build_services(config, valkey))
