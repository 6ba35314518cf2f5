"""User profile and admin user management routes."""

from fastapi import APIRouter, Depends, Request, Response, status

from api.dependencies import get_user_repo
from api.models import UpdateMeRequest, UserResponse, UserUpdateRequest, envelope
from api.security import get_current_user_required, restrict_to
from domain.model.user import Role, User
from port.user_repository import UserRepository
from services import user_service
from services.query_translator import parse_query_params

router = APIRouter(prefix="/api/v1/users", tags=["users"])

admin_only = restrict_to(Role.ADMIN)


# ── current user ─────────────────────────────────────────
# Declared before /{user_id} so the literal paths win.


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user_required)):
    return envelope(user=UserResponse.from_domain(current_user))


@router.patch("/update-me")
async def update_me(
    request: UpdateMeRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Update name or email of the caller. Passwords go through /update-my-password."""
    user = user_service.update_me(repo, current_user, request.model_dump(exclude_unset=True))
    return envelope(user=UserResponse.from_domain(user))


@router.delete("/delete-me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Deactivate the caller's account. The record is kept but hidden."""
    user_service.delete_me(repo, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── admin ────────────────────────────────────────────────


@router.get("")
async def list_users(
    request: Request,
    _: User = Depends(admin_only),
    repo: UserRepository = Depends(get_user_repo),
):
    params = parse_query_params(request.query_params.multi_items())
    users = user_service.list_users(repo, params)
    return envelope(results=len(users), users=users)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    _: User = Depends(admin_only),
    repo: UserRepository = Depends(get_user_repo),
):
    user = user_service.get_user(repo, user_id)
    return envelope(user=UserResponse.from_domain(user))


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    _: User = Depends(admin_only),
    repo: UserRepository = Depends(get_user_repo),
):
    user = user_service.update_user(repo, user_id, request.model_dump(exclude_unset=True))
    return envelope(user=UserResponse.from_domain(user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    _: User = Depends(admin_only),
    repo: UserRepository = Depends(get_user_repo),
):
    user_service.delete_user(repo, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
