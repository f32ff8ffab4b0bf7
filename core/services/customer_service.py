"""
Customer service for managing billable customers.

Create, read, update and delete go straight to the backend. Every accepted
change publishes ReferenceDataChanged so the cached customer dropdown is
reloaded on next use.
"""

import logging
import random

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from clients.billing_client import BillingAPIClient
from core.errors import BillingValidationError
from core.event_bus import EventBus
from core.events import ReferenceDataChanged
from core.models import Customer, CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

# Fields the backend accepts on PUT /customers/{id}
_UPDATABLE_FIELDS = {"name", "contact_person", "email", "is_active"}


def suggest_customer_code(name: str | None = None, rng: random.Random | None = None) -> str:
    """
    Customer code suggestion for a new customer form.

    suggest_customer_code("Acme Ltd") -> "CUST-ACM4821"
    """
    number = (rng or random).randint(1000, 9999)
    letters = "".join(ch for ch in (name or "") if ch.isalnum())[:3].upper()
    if not letters:
        return f"CUST{number}"
    return f"CUST-{letters}{number}"


class CustomerService:
    """Service for customer operations."""

    def __init__(self, client: BillingAPIClient, event_bus: EventBus):
        self.client = client
        self.event_bus = event_bus

    def create(self, data: dict) -> Customer:
        """
        Create a new customer.

        Args:
            data: Raw form data (camelCase or snake_case keys)

        Returns:
            Created customer

        Raises:
            BillingValidationError: Field-by-field problems; nothing was sent
        """
        try:
            draft = CustomerCreate.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

        payload = draft.to_wire()
        # The backend reads both spellings of the two reference fields
        payload["typeId"] = draft.type
        payload["accountManagerId"] = draft.account_manager

        customer = Customer.model_validate(self.client.post("/customers", payload))
        logger.info(f"Created customer {customer.id} ({customer.code or draft.code})")
        self.event_bus.publish(ReferenceDataChanged.create("customers", "create", customer.id))
        return customer

    def get(self, customer_id: str) -> Customer:
        return Customer.model_validate(self.client.get(f"/customers/{customer_id}"))

    def update(self, customer_id: str, data: dict) -> Customer:
        """
        Update customer fields.

        Only name, contact person, email and active flag can change; other
        keys are logged and ignored.

        Raises:
            BillingValidationError: Missing id or invalid field values
        """
        if not customer_id:
            raise BillingValidationError.single("id", "Customer id is required")

        for key in data:
            if to_snake(key) not in _UPDATABLE_FIELDS:
                logger.warning(f"Attempted to update unknown field '{key}' on customer {customer_id}")

        try:
            changes = CustomerUpdate.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

        payload = changes.to_wire(exclude_none=True)
        if not payload:
            return self.get(customer_id)

        updated = self.client.put(f"/customers/{customer_id}", payload)
        customer = Customer.model_validate(updated) if updated else self.get(customer_id)
        logger.info(f"Updated customer {customer_id}: {', '.join(sorted(payload))}")
        self.event_bus.publish(ReferenceDataChanged.create("customers", "update", customer_id))
        return customer

    def delete(self, customer_id: str) -> None:
        if not customer_id:
            raise BillingValidationError.single("id", "Customer id is required")
        self.client.delete(f"/customers/{customer_id}")
        logger.info(f"Deleted customer {customer_id}")
        self.event_bus.publish(ReferenceDataChanged.create("customers", "delete", customer_id))

    def list(self, query: str | None = None, active: bool | None = None) -> list[Customer]:
        """
        List customers, optionally filtered.

        Args:
            query: Case-insensitive match on name, code, GST number or contact person
            active: Only active (True) or inactive (False) customers
        """
        rows = self.client.get("/customers") or []
        customers = Customer.validate_rows(rows, "/customers")

        if active is not None:
            customers = [c for c in customers if c.is_active == active]
        if query:
            needle = query.lower()
            customers = [
                c for c in customers
                if any(needle in (value or "").lower()
                       for value in (c.name, c.code, c.gst_number, c.contact_person))
            ]
        return customers

