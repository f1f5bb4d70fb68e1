"""
api/routes/admin.py -- User management endpoints (admin only).

Routes:
  GET   /api/admin/users        -- list all users, stripped
  PATCH /api/admin/users/{id}   -- change a user's role

Every route declares require_admin. The /admin web page hides these controls
from non-admins, but that is cosmetic; this dependency is what actually stops
a direct request.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import RoleUpdate, UserResponse
from auth.dependencies import require_admin
from auth.models import User
from auth.service import AuthService

router = APIRouter()


@router.get("/admin/users", response_model=list[UserResponse])
def list_users(request: Request, current_user: User = Depends(require_admin)) -> list[UserResponse]:
    """List all user accounts. Admin only."""
    service: AuthService = request.app.state.auth
    return [UserResponse.from_user(u) for u in service.list_users()]


@router.patch("/admin/users/{user_id}", response_model=UserResponse)
def update_user_role(
    request: Request,
    user_id: int,
    body: RoleUpdate,
    current_user: User = Depends(require_admin),
) -> UserResponse:
    """Set a user's role. Admin only.

    400 invalid_role for anything outside admin/researcher/user (the stored
    role is left untouched); 404 not_found for an unknown id.
    """
    service: AuthService = request.app.state.auth
    return UserResponse.from_user(service.update_role(user_id, body.role))
