"""
Application entry point.

Wires clients, services and routers into one FastAPI app:
    uvicorn --factory main:create_app_from_vault
"""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.base import success_response
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.activity_logger import ActivityLogger
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.rate_limiter import RateLimiter
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.tokens import TokenManager
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_jwt_config, get_valkey_url
from core.audit import AuditLogger
from core.event_bus import EventBus
from core.handlers.invoice_payment_handler import handle_invoice_paid
from core.services.customer_service import CustomerService
from core.services.interaction_service import InteractionService
from core.services.invoice_service import InvoiceService
from core.services.ledger_queries import LedgerQueries
from core.services.payment_service import PaymentService
from core.services.segment_service import SegmentService
from core.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


def build_services(postgres: PostgresClient, event_bus: EventBus) -> dict:
    """Construct domain services and subscribe event handlers."""
    audit = AuditLogger(postgres)
    queries = LedgerQueries(postgres)
    interaction = InteractionService(postgres, audit)

    event_bus.subscribe("InvoicePaid", handle_invoice_paid(interaction))

    return {
        "customer": CustomerService(postgres, audit, event_bus),
        "interaction": interaction,
        "segment": SegmentService(postgres, audit),
        "invoice": InvoiceService(postgres, audit, event_bus, queries),
        "payment": PaymentService(postgres, audit, event_bus, queries),
        "transaction": TransactionService(postgres, audit),
    }


def create_app(
    postgres: PostgresClient,
    valkey: ValkeyClient,
    jwt_secrets: dict[str, str],
    auth_config: AuthConfig | None = None,
) -> FastAPI:
    """Build the app from already-connected clients."""
    auth_config = auth_config or AuthConfig()
    event_bus = EventBus()
    services = build_services(postgres, event_bus)

    tokens = TokenManager(jwt_secrets["secret"], jwt_secrets["refresh_secret"], auth_config)
    auth_service = AuthService(
        auth_db=AuthDatabase(postgres),
        tokens=tokens,
        rate_limiter=RateLimiter(valkey, auth_config),
        activity_logger=ActivityLogger(postgres),
    )

    app = FastAPI(title="ERP API")
    app.add_middleware(AuthMiddleware, token_manager=tokens)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_auth_router(auth_service), prefix="/auth")
    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    @app.get("/health")
    async def health():
        postgres.execute_scalar("SELECT 1")
        valkey.ping()
        return success_response({"status": "ok"}).model_dump(mode="json")

    logger.info("Application created")
    return app


def create_app_from_vault() -> FastAPI:
    """Build the app with connection settings from Vault (or their env overrides)."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return create_app(
        PostgresClient(get_database_url()),
        ValkeyClient(get_valkey_url()),
        get_jwt_config(),
    )

