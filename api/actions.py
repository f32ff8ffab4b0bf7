"""POST /api/actions - unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.billing.credit import compute_credit
from core.errors import BillingValidationError
from core.services.customer_service import suggest_customer_code


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def _require(data: dict, key: str) -> str:
    value = data.pop(key, None)
    if not value:
        raise BillingValidationError.single(key, f"{key} is required")
    return str(value)


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "invoice": InvoiceHandler(services["invoice"]),
        "receipt": ReceiptHandler(services["receipt"]),
        "credit_note": CreditNoteHandler(services["credit_note"]),
        "customer": CustomerHandler(services["customer"]),
        "service_type": CatalogHandler(services["service_type"]),
        "client_type": CatalogHandler(services["client_type"]),
        "gst_settings": GstSettingsHandler(services["gst_settings"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class InvoiceHandler:
    ALLOWED_ACTIONS = {"preview", "create", "update", "delete", "send_email", "next_number"}

    def __init__(self, service):
        self.service = service

    def _handle_preview(self, data: dict):
        return self.service.preview(data)

    def _handle_create(self, data: dict):
        return self.service.create(data).to_wire()

    def _handle_update(self, data: dict):
        invoice_id = _require(data, "id")
        return self.service.update(invoice_id, data).to_wire()

    def _handle_delete(self, data: dict):
        self.service.delete(_require(data, "id"))
        return {"deleted": True}

    def _handle_send_email(self, data: dict):
        invoice_id = _require(data, "id")
        self.service.send_email(invoice_id, data)
        return {"sent": True}

    def _handle_next_number(self, data: dict):
        number = self.service.next_invoice_number(
            _require(data, "companyName"), data.get("companyId")
        )
        return {"invoiceNumber": number}


class ReceiptHandler:
    ALLOWED_ACTIONS = {"allocate", "create", "next_number"}

    def __init__(self, service):
        self.service = service

    def _handle_allocate(self, data: dict):
        """Oldest-first allocation preview for a customer."""
        result = self.service.allocate(
            _require(data, "customerId"),
            data.get("amountReceived", 0),
            data.get("invoiceIds"),
        )
        return result.to_wire()

    def _handle_create(self, data: dict):
        return self.service.create(data).to_wire()

    def _handle_next_number(self, data: dict):
        number = self.service.next_receipt_number(
            _require(data, "companyName"), data.get("companyId")
        )
        return {"receiptId": number}


class CreditNoteHandler:
    ALLOWED_ACTIONS = {"preview", "create", "next_number"}

    def __init__(self, service):
        self.service = service

    def _handle_preview(self, data: dict):
        return compute_credit(data.get("amount", 0), data.get("gstRate", 0)).to_wire()

    def _handle_create(self, data: dict):
        return self.service.create(data).to_wire()

    def _handle_next_number(self, data: dict):
        number = self.service.next_credit_note_number(
            _require(data, "companyName"), data.get("companyId")
        )
        return {"creditNoteId": number}


class CustomerHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete", "suggest_code"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        return self.service.create(data).to_wire()

    def _handle_update(self, data: dict):
        customer_id = _require(data, "id")
        return self.service.update(customer_id, data).to_wire()

    def _handle_delete(self, data: dict):
        self.service.delete(_require(data, "id"))
        return {"deleted": True}

    def _handle_suggest_code(self, data: dict):
        return {"code": suggest_customer_code(data.get("name"))}


class CatalogHandler:
    """Service types and client types share one set of actions."""

    ALLOWED_ACTIONS = {"create", "update", "delete", "toggle"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        return self.service.create(data).to_wire()

    def _handle_update(self, data: dict):
        item_id = _require(data, "id")
        return self.service.update(item_id, data).to_wire()

    def _handle_delete(self, data: dict):
        self.service.delete(_require(data, "id"))
        return {"deleted": True}

    def _handle_toggle(self, data: dict):
        return self.service.toggle(_require(data, "id")).to_wire()


class GstSettingsHandler:
    ALLOWED_ACTIONS = {"save"}

    def __init__(self, service):
        self.service = service

    def _handle_save(self, data: dict):
        return self.service.save(data).to_wire()
