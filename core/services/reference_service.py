"""
Reference data loading for form dropdowns.

Customers, service types, client types and each customer's outstanding
invoices are loaded from the backend into slots. Every load is keyed by a
request token: only the most recently issued token may write its slot, so
a slow, stale response can never overwrite a newer one. A failed load
leaves the slot UNAVAILABLE with the reason; it is never presented as an
empty list.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pydantic import ValidationError

from clients.billing_client import BillingAPIClient, BillingAPIError
from core.errors import ReferenceDataUnavailableError
from core.models import ClientType, Customer, OutstandingInvoice, ServiceType, WireModel

logger = logging.getLogger(__name__)


class SlotState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ReferenceSlot:
    """Snapshot of one reference list."""

    state: SlotState = SlotState.IDLE
    items: tuple = ()
    error: str | None = None
    token: int = 0

    @property
    def available(self) -> bool:
        return self.state == SlotState.READY

    def require(self, kind: str) -> list:
        """Items if loaded, otherwise raise with the load failure reason."""
        if self.state != SlotState.READY:
            raise ReferenceDataUnavailableError(kind, self.error or self.state.value)
        return list(self.items)


@dataclass(frozen=True)
class _Source:
    path: str
    model: type[WireModel]
    params: dict = field(default_factory=dict)


_STATIC_SOURCES = {
    "customers": _Source("/customers", Customer),
    "service_types": _Source("/service-types", ServiceType),
    "client_types": _Source("/client-types", ClientType),
}


def _outstanding_key(customer_id: str) -> str:
    return f"outstanding:{customer_id}"


class ReferenceDataService:
    """Loads and holds reference lists with stale-response protection."""

    def __init__(self, client: BillingAPIClient, max_workers: int = 4):
        self.client = client
        self._max_workers = max_workers
        self._slots: dict[str, ReferenceSlot] = {}
        self._counter = 0
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Token bookkeeping
    # -------------------------------------------------------------------------

    def slot(self, key: str) -> ReferenceSlot:
        with self._lock:
            return self._slots.get(key, ReferenceSlot())

    def begin(self, key: str) -> int:
        """Issue a request token and mark the slot LOADING. Previous items stay visible."""
        with self._lock:
            self._counter += 1
            current = self._slots.get(key, ReferenceSlot())
            self._slots[key] = replace(current, state=SlotState.LOADING, token=self._counter)
            return self._counter

    def complete(self, key: str, token: int, items: list) -> bool:
        """Apply a successful load. Returns False (and drops it) if the token is stale."""
        with self._lock:
            current = self._slots.get(key, ReferenceSlot())
            if current.token != token:
                logger.warning(f"Discarding stale {key} response (token {token}, latest {current.token})")
                return False
            self._slots[key] = ReferenceSlot(
                state=SlotState.READY, items=tuple(items), error=None, token=token
            )
            return True

    def fail(self, key: str, token: int, reason: str) -> bool:
        """Mark the slot UNAVAILABLE. Returns False if the token is stale."""
        with self._lock:
            current = self._slots.get(key, ReferenceSlot())
            if current.token != token:
                logger.warning(f"Discarding stale {key} failure (token {token}, latest {current.token})")
                return False
            self._slots[key] = ReferenceSlot(
                state=SlotState.UNAVAILABLE, items=(), error=reason, token=token
            )
            return True

    def invalidate(self, key: str) -> None:
        """Forget a slot so the next access reloads it."""
        with self._lock:
            self._slots.pop(key, None)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _fetch(self, key: str, source: _Source, transform=None) -> ReferenceSlot:
        token = self.begin(key)
        try:
            raw = self.client.get(source.path, params=source.params or None)
            if not isinstance(raw, list):
                raise ValueError(f"expected a list from {source.path}, got {type(raw).__name__}")
            items = source.model.validate_rows(raw, source.path)
            if transform is not None:
                items = transform(items)
        except (BillingAPIError, ValidationError, ValueError) as e:
            logger.error(f"Failed to load {key}: {e}")
            self.fail(key, token, str(e))
        else:
            self.complete(key, token, items)
        return self.slot(key)

    def load(self, kind: str) -> ReferenceSlot:
        """
        Load one static reference list ('customers', 'service_types', 'client_types').

        Returns the slot after the load. Load failures are recorded in the
        slot, not raised.
        """
        source = _STATIC_SOURCES.get(kind)
        if source is None:
            raise ValueError(f"Unknown reference kind '{kind}'. Valid: {', '.join(sorted(_STATIC_SOURCES))}")
        return self._fetch(kind, source)

    def load_all(self) -> dict[str, ReferenceSlot]:
        """Load every static list concurrently."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {kind: pool.submit(self.load, kind) for kind in _STATIC_SOURCES}
            return {kind: future.result() for kind, future in futures.items()}

    def get(self, kind: str) -> list[Any]:
        """
        Items of a static list, loading it on first use.

        Raises:
            ReferenceDataUnavailableError: If the list could not be loaded
        """
        current = self.slot(kind)
        if current.state in (SlotState.IDLE, SlotState.UNAVAILABLE):
            current = self.load(kind)
        return current.require(kind)

    def customer(self, customer_id: str) -> Customer | None:
        return next((c for c in self.get("customers") if c.id == customer_id), None)

    # -------------------------------------------------------------------------
    # Outstanding invoices (per customer)
    # -------------------------------------------------------------------------

    def load_outstanding(self, customer_id: str) -> ReferenceSlot:
        """Fetch a customer's invoices that still have a balance to pay."""
        source = _Source("/invoices", OutstandingInvoice, {"customerId": customer_id})

        def open_for_customer(items: list[OutstandingInvoice]) -> list[OutstandingInvoice]:
            return [
                inv for inv in items
                if (not inv.customer_id or inv.customer_id == customer_id) and inv.is_allocatable
            ]

        return self._fetch(_outstanding_key(customer_id), source, open_for_customer)

    def outstanding_invoices(self, customer_id: str, refresh: bool = False) -> list[OutstandingInvoice]:
        """
        Outstanding invoices for a customer, cached until invalidated.

        Raises:
            ReferenceDataUnavailableError: If the invoices could not be loaded
        """
        key = _outstanding_key(customer_id)
        current = self.slot(key)
        if refresh or current.state in (SlotState.IDLE, SlotState.UNAVAILABLE):
            current = self.load_outstanding(customer_id)
        return current.require("outstanding invoices")

    def invalidate_outstanding(self, customer_id: str) -> None:
        self.invalidate(_outstanding_key(customer_id))

    def invalidate_all_outstanding(self) -> int:
        """Forget every customer's outstanding invoices. Returns how many slots were dropped."""
        prefix = _outstanding_key("")
        with self._lock:
            keys = [key for key in self._slots if key.startswith(prefix)]
            for key in keys:
                del self._slots[key]
        return len(keys)
