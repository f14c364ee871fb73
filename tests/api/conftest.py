"""API test fixtures - app with mocked services and real bearer tokens."""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.config import AuthConfig
from auth.security_middleware import AuthMiddleware
from auth.tokens import TokenManager
from auth.types import User
from core.services.customer_service import CustomerService
from core.services.interaction_service import InteractionService
from core.services.invoice_service import InvoiceService
from core.services.payment_service import PaymentService
from core.services.segment_service import SegmentService
from core.services.transaction_service import TransactionService


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services():
    """Autospec mocks keyed the way main.build_services() keys the real ones."""
    return {
        "customer": Mock(spec=CustomerService),
        "interaction": Mock(spec=InteractionService),
        "segment": Mock(spec=SegmentService),
        "invoice": Mock(spec=InvoiceService),
        "payment": Mock(spec=PaymentService),
        "transaction": Mock(spec=TransactionService),
    }


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def token_manager():
    return TokenManager(
        "api-test-access-secret-0123456789abcdef012",
        "api-test-refresh-secret-0123456789abcdef01",
        AuthConfig(),
    )


def _access_token(token_manager, rows, user_id, role):
    user = User.model_validate(rows.user(id=user_id, role=role))
    return token_manager.issue_pair(user).access_token


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(token_manager, services):
    """FastAPI app with auth middleware, error handlers, and data/actions routes."""
    from api.data import create_data_router
    from api.actions import create_actions_router

    app = FastAPI()
    app.add_middleware(AuthMiddleware, token_manager=token_manager)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app


@pytest.fixture
def client(app, token_manager, rows, test_user_id):
    """Client authenticated as an admin."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers["Authorization"] = f"Bearer {_access_token(token_manager, rows, test_user_id, 'admin')}"
    return c


@pytest.fixture
def staff_client(app, token_manager, rows, test_user_b_id):
    """Client authenticated as staff (no finance rights)."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers["Authorization"] = f"Bearer {_access_token(token_manager, rows, test_user_b_id, 'staff')}"
    return c


@pytest.fixture
def unauthed_client(app):
    """Client without a bearer token."""
    return TestClient(app, raise_server_exceptions=False)
