"""POST /api/actions: unified mutation endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from auth.permissions import FINANCE_ROLES, require_current_role
from core.exceptions import NotFoundError
from core.models import (
    CustomerCreate, CustomerUpdate,
    InteractionCreate,
    SegmentCreate,
    InvoiceCreate, InvoiceStatusUpdate,
    PaymentCreate,
    TransactionCreate,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "customer": CustomerHandler(services["customer"]),
        "interaction": InteractionHandler(services["interaction"]),
        "segment": SegmentHandler(services["segment"]),
        "invoice": InvoiceHandler(services["invoice"]),
        "payment": PaymentHandler(services["payment"]),
        "transaction": TransactionHandler(services["transaction"]),
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

        if handler.REQUIRED_ROLES:
            require_current_role(*handler.REQUIRED_ROLES)

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        request_id = getattr(request.state, "request_id", None)
        return success_response(result, request_id).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================

class CustomerHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete"}
    REQUIRED_ROLES = ()

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        customer = self.service.create(CustomerCreate(**data))
        return customer.model_dump(mode="json")

    def _handle_update(self, data: dict):
        customer_id = UUID(data.pop("id"))
        customer = self.service.update(customer_id, CustomerUpdate(**data))
        return customer.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        customer_id = UUID(data["id"])
        deleted = self.service.delete(customer_id)
        if not deleted:
            raise NotFoundError(f"Customer {customer_id} not found", operation="delete_customer", entity_id=customer_id)
        return {"deleted": True}


class InteractionHandler:
    ALLOWED_ACTIONS = {"create"}
    REQUIRED_ROLES = ()

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        interaction = self.service.create_interaction(InteractionCreate(**data))
        return interaction.model_dump(mode="json")


class SegmentHandler:
    ALLOWED_ACTIONS = {"create", "add_customer"}
    REQUIRED_ROLES = ()

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        segment = self.service.create_segment(SegmentCreate(**data))
        return segment.model_dump(mode="json")

    def _handle_add_customer(self, data: dict):
        added = self.service.add_to_segment(UUID(data["segment_id"]), UUID(data["customer_id"]))
        return {"added": added}


class InvoiceHandler:
    ALLOWED_ACTIONS = {"create", "update_status"}
    REQUIRED_ROLES = FINANCE_ROLES

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        invoice = self.service.create_invoice(InvoiceCreate(**data))
        return invoice.model_dump(mode="json")

    def _handle_update_status(self, data: dict):
        invoice_id = UUID(data.pop("id"))
        update = InvoiceStatusUpdate(**data)
        invoice = self.service.update_invoice_status(invoice_id, update.status)
        return invoice.model_dump(mode="json")


class PaymentHandler:
    ALLOWED_ACTIONS = {"create"}
    REQUIRED_ROLES = FINANCE_ROLES

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        payment = self.service.create_payment(PaymentCreate(**data))
        return payment.model_dump(mode="json")


class TransactionHandler:
    ALLOWED_ACTIONS = {"create"}
    REQUIRED_ROLES = FINANCE_ROLES

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        transaction = self.service.create_transaction(TransactionCreate(**data))
        return transaction.model_dump(mode="json")
