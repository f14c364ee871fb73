"""Propagate the acting user's identity and role through the call stack using contextvars."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)
_current_role: ContextVar[str | None] = ContextVar("current_role", default=None)


def get_current_user_id() -> UUID:
    """
    Get current user ID from context.

    Raises RuntimeError if no user context is set.
    Every write records who made it, so reaching a write path without
    an actor is a bug, not a case to default.
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise RuntimeError(
            "No user context set. This usually means you're calling "
            "actor-attributed code outside of an authenticated request."
        )
    return user_id


def get_current_role() -> str | None:
    """Role of the current user, or None outside an authenticated request."""
    return _current_role.get()


def resolve_actor(actor_id: UUID | None) -> UUID:
    """Explicit actor if given, otherwise the user from context."""
    if actor_id is not None:
        return actor_id
    return get_current_user_id()


def set_current_user(user_id: UUID, role: str | None = None) -> None:
    """
    Set current user ID (and role) in context.

    Called by auth middleware after validating the access token.
    """
    _current_user_id.set(user_id)
    _current_role.set(role)


def clear_current_user() -> None:
    """
    Clear user context.

    Called by auth middleware after request completes.
    Must be called in finally block to prevent context leakage.
    """
    _current_user_id.set(None)
    _current_role.set(None)


@contextmanager
def user_context(user_id: UUID, role: str | None = None):
    """
    Context manager for temporarily setting user context.

    Useful for:
    - Tests
    - Scripts acting on behalf of a user

    Example:
        with user_context(admin_id, "admin"):
            invoice = invoice_service.create_invoice(data)
    """
    previous_user = _current_user_id.get()
    previous_role = _current_role.get()
    set_current_user(user_id, role)
    try:
        yield
    finally:
        if previous_user is None:
            clear_current_user()
        else:
            set_current_user(previous_user, previous_role)
