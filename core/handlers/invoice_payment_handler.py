"""
Handler for InvoicePaid events.

When an invoice is fully paid, records a note in the customer's
interaction history, attributed to whoever recorded the payment.
"""

import logging
from typing import Callable

from core.events import InvoicePaid
from core.models import InteractionCreate, InteractionType

logger = logging.getLogger(__name__)


def handle_invoice_paid(interaction_service) -> Callable:
    """
    Factory that returns an InvoicePaid handler.

    Args:
        interaction_service: InteractionService instance

    Returns:
        Handler callable that logs a payment note on the customer
    """

    def handler(event: InvoicePaid):
        invoice = event.invoice
        payment = event.payment

        interaction_service.create_interaction(
            InteractionCreate(
                customer_id=invoice.customer_id,
                type=InteractionType.NOTE,
                summary=f"Payment received for invoice {invoice.number}",
                details=f"Invoice total {invoice.total} settled; last payment {payment.amount} via {payment.payment_method.value}.",
            ),
            actor_id=payment.created_by,
        )
        logger.debug("Logged payment note for invoice %s", invoice.number)

    return handler
