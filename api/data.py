"""GET /api/data: unified read endpoint."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from auth.permissions import FINANCE_ROLES, require_current_role
from core.exceptions import NotFoundError
from core.models import CustomerType, InvoiceStatus, TransactionFilter, TransactionType


VALID_TYPES = {"customers", "interactions", "segments", "invoices", "payments", "transactions"}
FINANCE_TYPES = {"invoices", "payments", "transactions"}


def _page(items, total: int, limit: int, offset: int) -> dict:
    return {
        "items": [i.model_dump(mode="json") for i in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    customer_svc = services["customer"]
    interaction_svc = services["interaction"]
    segment_svc = services["segment"]
    invoice_svc = services["invoice"]
    payment_svc = services["payment"]
    transaction_svc = services["transaction"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: UUID | None = Query(None),
        search: str | None = Query(None),
        customer_id: UUID | None = Query(None),
        invoice_id: UUID | None = Query(None),
        segment_id: UUID | None = Query(None),
        filter: str | None = Query(None),
        category: str | None = Query(None),
        start_date: date | None = Query(None),
        end_date: date | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type in FINANCE_TYPES:
            require_current_role(*FINANCE_ROLES)

        if type == "customers":
            return _handle_customers(customer_svc, id, search, filter, limit, offset)

        if type == "interactions":
            if customer_id is None:
                raise ValueError("'interactions' type requires 'customer_id' parameter")
            items, total = interaction_svc.list_interactions(customer_id, limit, offset)
            return success_response(_page(items, total, limit, offset)).model_dump(mode="json")

        if type == "segments":
            if segment_id is not None:
                items, total = segment_svc.list_segment_customers(segment_id, limit, offset)
            else:
                items, total = segment_svc.list_segments(limit, offset)
            return success_response(_page(items, total, limit, offset)).model_dump(mode="json")

        if type == "invoices":
            return _handle_invoices(invoice_svc, id, customer_id, filter, limit, offset)

        if type == "payments":
            if invoice_id is None:
                raise ValueError("'payments' type requires 'invoice_id' parameter")
            payments = payment_svc.list_payments(invoice_id)
            return success_response(
                [p.model_dump(mode="json") for p in payments]
            ).model_dump(mode="json")

        if type == "transactions":
            filters = TransactionFilter(
                type=TransactionType(filter) if filter else None,
                start_date=start_date,
                end_date=end_date,
                category=category,
            )
            items, total = transaction_svc.list_transactions(filters, limit=limit, offset=offset)
            return success_response(_page(items, total, limit, offset)).model_dump(mode="json")

    return router


def _handle_customers(customer_svc, id, search, filter, limit, offset):
    if id:
        customer = customer_svc.get_by_id(id)
        if customer is None:
            raise NotFoundError(f"Customer {id} not found", operation="get_customer", entity_id=id)
        return success_response(customer.model_dump(mode="json")).model_dump(mode="json")

    customer_type = CustomerType(filter) if filter else None
    customers, total = customer_svc.list_all(customer_type, search, limit, offset)
    return success_response(_page(customers, total, limit, offset)).model_dump(mode="json")


def _handle_invoices(invoice_svc, id, customer_id, filter, limit, offset):
    if id:
        invoice = invoice_svc.get_invoice(id)
        return success_response(invoice.model_dump(mode="json")).model_dump(mode="json")

    status = InvoiceStatus(filter) if filter else None
    invoices = invoice_svc.list_invoices(customer_id, status, limit, offset)
    return success_response(
        [i.model_dump(mode="json") for i in invoices]
    ).model_dump(mode="json")
