"""HTTP routes for authentication and user administration."""

import ipaddress
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from auth.permissions import check_role, require_roles
from auth.service import AuthService
from auth.types import LoginRequest, RefreshRequest, UserCreate, UserRole, UserUpdate
from api.base import success_response


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])
    admin_only = [Depends(require_roles(UserRole.ADMIN))]

    @router.post("/login")
    async def login(request: Request, body: LoginRequest):
        """Exchange username/email and password for a token pair."""
        result = auth_service.authenticate(
            username_or_email=body.username_or_email,
            password=body.password,
            ip_address=_get_client_ip(request),
        )
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/refresh")
    async def refresh(request: Request, body: RefreshRequest):
        """Exchange a refresh token for a new pair."""
        tokens = auth_service.refresh(body.refresh_token, ip_address=_get_client_ip(request))
        return success_response(tokens.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/me")
    async def get_current_user(request: Request):
        """Get current authenticated user."""
        user = auth_service.get_user(request.state.user_id)
        return success_response(user.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/users", dependencies=admin_only)
    async def list_users(
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        users, total = auth_service.list_users(limit, offset)
        return success_response({
            "items": [u.model_dump(mode="json") for u in users],
            "total": total,
        }).model_dump(mode="json")

    @router.post("/users", dependencies=admin_only)
    async def create_user(request: Request, body: UserCreate):
        user = auth_service.create_user(body, actor_id=request.state.user_id)
        return success_response(user.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/users/{user_id}", dependencies=admin_only)
    async def get_user(user_id: UUID):
        user = auth_service.get_user(user_id)
        return success_response(user.model_dump(mode="json")).model_dump(mode="json")

    @router.patch("/users/{user_id}", dependencies=admin_only)
    async def update_user(request: Request, user_id: UUID, body: UserUpdate):
        user = auth_service.update_user(user_id, body, actor_id=request.state.user_id)
        return success_response(user.model_dump(mode="json")).model_dump(mode="json")

    @router.delete("/users/{user_id}", dependencies=admin_only)
    async def delete_user(request: Request, user_id: UUID):
        auth_service.delete_user(user_id, actor_id=request.state.user_id)
        return success_response({"deleted": True}).model_dump(mode="json")

    @router.get("/users/{user_id}/activities")
    async def list_activities(
        request: Request,
        user_id: UUID,
        limit: int = Query(10, ge=1, le=100),
        offset: int = Query(0, ge=0),
    ):
        """A user's activity log. Users may read their own; admins anyone's."""
        if user_id != request.state.user_id:
            check_role(request.state.role, [UserRole.ADMIN])
        activities = auth_service.list_activities(user_id, limit, offset)
        return success_response(
            [a.model_dump(mode="json") for a in activities]
        ).model_dump(mode="json")

    return router
