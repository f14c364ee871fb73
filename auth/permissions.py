"""Role checks for routes and action handlers."""

from typing import Iterable

from fastapi import Request

from auth.exceptions import PermissionDeniedError
from auth.types import UserRole
from utils.user_context import get_current_role

# Roles allowed to read and write invoices, payments and transactions.
FINANCE_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


def check_role(role: str | UserRole | None, allowed: Iterable[UserRole]) -> None:
    """
    Raise unless role is one of allowed.

    Raises:
        PermissionDeniedError
    """
    allowed = set(allowed)
    value = role.value if isinstance(role, UserRole) else role
    if value not in {r.value for r in allowed}:
        names = ", ".join(sorted(r.value for r in allowed))
        raise PermissionDeniedError(f"Requires role: {names}")


def require_current_role(*roles: UserRole) -> None:
    """Check the role of the user in the current context."""
    check_role(get_current_role(), roles)


def require_roles(*roles: UserRole):
    """
    FastAPI dependency factory.

    Usage:
        @router.post("/users", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    def dependency(request: Request) -> None:
        check_role(getattr(request.state, "role", None), roles)

    return dependency
