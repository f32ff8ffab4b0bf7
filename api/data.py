"""GET /api/data - unified read endpoint."""

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import success_response

VALID_TYPES = {
    "customers",
    "service_types",
    "client_types",
    "reference_status",
    "invoices",
    "receipts",
    "credit_notes",
    "outstanding",
    "credit_candidates",
    "dashboard",
    "gst_settings",
}


def _dump(items) -> list[dict]:
    return [item.to_wire() for item in items]


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    reference_svc = services["reference"]
    invoice_svc = services["invoice"]
    receipt_svc = services["receipt"]
    credit_note_svc = services["credit_note"]
    dashboard_svc = services["dashboard"]
    customer_svc = services["customer"]
    gst_svc = services["gst_settings"]
    catalogs = {
        "service_types": services["service_type"],
        "client_types": services["client_type"],
    }

    # -------------------------------------------------------------------------
    # Binary documents (registered before the generic /data route)
    # -------------------------------------------------------------------------

    @router.get("/invoices/{invoice_id}/pdf")
    async def invoice_pdf(invoice_id: str):
        pdf = invoice_svc.download_pdf(invoice_id)
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="invoice-{invoice_id}.pdf"'},
        )

    # -------------------------------------------------------------------------
    # Generic data endpoint
    # -------------------------------------------------------------------------

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        customer_id: str | None = Query(None),
        status: str | None = Query(None),
        year: int | None = Query(None),
        months: int = Query(12, ge=1, le=12),
        refresh: bool = Query(False),
        search: str | None = Query(None),
        active: bool | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "customers" and (search or active is not None):
            return success_response(_dump(customer_svc.list(search, active))).model_dump(mode="json")

        if type in catalogs and active is not None:
            return success_response(_dump(catalogs[type].list(active))).model_dump(mode="json")

        if type in ("customers", "service_types", "client_types"):
            return _handle_reference(reference_svc, type, id, refresh)

        if type == "reference_status":
            return _handle_reference_status(reference_svc)

        if type == "invoices":
            if id:
                return success_response(invoice_svc.get(id).to_wire()).model_dump(mode="json")
            return success_response(_dump(invoice_svc.list(customer_id, status))).model_dump(mode="json")

        if type == "receipts":
            return success_response(_dump(receipt_svc.list(customer_id))).model_dump(mode="json")

        if type == "credit_notes":
            return success_response(_dump(credit_note_svc.list(customer_id))).model_dump(mode="json")

        if type == "outstanding":
            if not customer_id:
                raise ValueError("'customer_id' is required for outstanding invoices")
            invoices = reference_svc.outstanding_invoices(customer_id, refresh=refresh)
            data = [
                {**inv.to_wire(), "outstandingAmount": str(inv.outstanding_amount)}
                for inv in invoices
            ]
            return success_response(data).model_dump(mode="json")

        if type == "credit_candidates":
            if not customer_id:
                raise ValueError("'customer_id' is required for credit candidates")
            return success_response(
                _dump(credit_note_svc.credit_candidates(customer_id))
            ).model_dump(mode="json")

        if type == "dashboard":
            return _handle_dashboard(dashboard_svc, year, months)

        if type == "gst_settings":
            return success_response(gst_svc.get().to_wire()).model_dump(mode="json")

    return router


def _handle_reference(reference_svc, kind, id, refresh):
    if refresh:
        reference_svc.load(kind)
    items = reference_svc.get(kind)

    if id:
        match = next((item for item in items if item.id == id), None)
        if match is None:
            raise ValueError(f"{kind} {id} not found")
        return success_response(match.to_wire()).model_dump(mode="json")

    return success_response(_dump(items)).model_dump(mode="json")


def _handle_reference_status(reference_svc):
    data = {}
    for kind in ("customers", "service_types", "client_types"):
        slot = reference_svc.slot(kind)
        data[kind] = {"state": slot.state.value, "count": len(slot.items), "error": slot.error}
    return success_response(data).model_dump(mode="json")


def _handle_dashboard(dashboard_svc, year, months):
    return success_response({
        "metrics": dashboard_svc.metrics().to_wire(),
        "revenueTrend": _dump(dashboard_svc.revenue_trend(year, months)),
        "agingAnalysis": _dump(dashboard_svc.aging_analysis()),
        "customerRevenue": _dump(dashboard_svc.customer_revenue()),
    }).model_dump(mode="json")
