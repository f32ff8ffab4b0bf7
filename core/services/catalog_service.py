"""
Catalog service for service types and client types.

Both catalogs share one shape: create, replace, delete and toggle the
active flag. Service types carry the GST rate that seeds new invoice
lines; client types carry default payment terms for their customers.
"""

import logging

from pydantic import ValidationError

from clients.billing_client import BackendResponseError, BillingAPIClient
from core.errors import BillingValidationError
from core.event_bus import EventBus
from core.events import ReferenceDataChanged
from core.models import ClientType, ClientTypeInput, ServiceType, ServiceTypeInput, WireModel

logger = logging.getLogger(__name__)

# Statuses meaning the backend has no /toggle route
_NO_TOGGLE_ROUTE = {404, 405}


class CatalogService:
    """Service for one reference catalog on the backend."""

    def __init__(
        self,
        client: BillingAPIClient,
        event_bus: EventBus,
        kind: str,
        path: str,
        model: type[WireModel],
        input_model: type[WireModel],
    ):
        self.client = client
        self.event_bus = event_bus
        self.kind = kind
        self.path = path
        self.model = model
        self.input_model = input_model

    def _parse(self, data: dict) -> WireModel:
        try:
            return self.input_model.model_validate(data)
        except ValidationError as e:
            raise BillingValidationError.from_pydantic(e)

    def _publish(self, action: str, item_id: str) -> None:
        self.event_bus.publish(ReferenceDataChanged.create(self.kind, action, item_id))

    def create(self, data: dict):
        """
        Create a catalog entry.

        Raises:
            BillingValidationError: Field-by-field problems; nothing was sent
        """
        entry = self._parse(data)
        item = self.model.model_validate(self.client.post(self.path, entry.to_wire()))
        logger.info(f"Created {self.kind} entry {item.id} ({entry.code})")
        self._publish("create", item.id)
        return item

    def get(self, item_id: str):
        return self.model.model_validate(self.client.get(f"{self.path}/{item_id}"))

    def update(self, item_id: str, data: dict):
        """
        Replace a catalog entry. The full entry is sent, as on create.

        Raises:
            BillingValidationError: Missing id or invalid field values
        """
        if not item_id:
            raise BillingValidationError.single("id", "id is required")
        entry = self._parse(data)
        updated = self.client.put(f"{self.path}/{item_id}", entry.to_wire())
        item = self.model.model_validate(updated) if updated else self.get(item_id)
        logger.info(f"Updated {self.kind} entry {item_id}")
        self._publish("update", item_id)
        return item

    def delete(self, item_id: str) -> None:
        if not item_id:
            raise BillingValidationError.single("id", "id is required")
        self.client.delete(f"{self.path}/{item_id}")
        logger.info(f"Deleted {self.kind} entry {item_id}")
        self._publish("delete", item_id)

    def toggle(self, item_id: str):
        """
        Flip an entry's active flag.

        Uses PATCH {path}/{id}/toggle. When the backend has no such route,
        falls back to PUT with the current entry and is_active inverted.

        Returns:
            The entry after the change
        """
        if not item_id:
            raise BillingValidationError.single("id", "id is required")

        try:
            toggled = self.client.patch(f"{self.path}/{item_id}/toggle")
        except BackendResponseError as e:
            if e.status_code not in _NO_TOGGLE_ROUTE:
                raise
            logger.warning(f"No toggle route for {self.kind} (HTTP {e.status_code}); replacing entry instead")
            current = self.get(item_id)
            fields = current.model_dump(include=set(self.input_model.model_fields))
            fields["is_active"] = not current.is_active
            body = self.input_model.model_construct(**fields)
            toggled = self.client.put(f"{self.path}/{item_id}", body.to_wire())

        item = self.model.model_validate(toggled) if toggled else self.get(item_id)
        logger.info(f"Toggled {self.kind} entry {item_id}: active={item.is_active}")
        self._publish("toggle", item_id)
        return item

    def list(self, active: bool | None = None) -> list:
        rows = self.client.get(self.path) or []
        items = self.model.validate_rows(rows, self.path)
        if active is not None:
            items = [item for item in items if item.is_active == active]
        return items


def service_type_catalog(client: BillingAPIClient, event_bus: EventBus) -> CatalogService:
    return CatalogService(client, event_bus, "service_types", "/service-types", ServiceType, ServiceTypeInput)


def client_type_catalog(client: BillingAPIClient, event_bus: EventBus) -> CatalogService:
    return CatalogService(client, event_bus, "client_types", "/client-types", ClientType, ClientTypeInput)
