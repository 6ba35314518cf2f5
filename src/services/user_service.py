"""User account management: self service and admin operations."""

import logging
from collections.abc import Mapping
from typing import Any

from domain.model.errors import NotFoundError, ValidationError
from domain.model.user import PRIVATE_USER_FIELDS, USER_FIELD_TYPES, Role, User
from port.user_repository import UserRepository
from services.query_translator import build_query

logger = logging.getLogger(__name__)

PASSWORD_FIELDS = ('password', 'password_confirm')


def filter_fields(data: Mapping[str, Any], *allowed: str) -> dict[str, Any]:
    """Keep only `allowed` keys whose value was actually provided."""
    return {k: v for k, v in data.items() if k in allowed and v is not None}


def _reject_password_fields(data: Mapping[str, Any]) -> None:
    if any(data.get(name) is not None for name in PASSWORD_FIELDS):
        raise ValidationError(
            "This route is not for password updates. Please use /update-my-password."
        )


def _apply_update(repo: UserRepository, user_id: str, changes: dict[str, Any]) -> User:
    if 'name' in changes:
        changes['name'] = changes['name'].strip()
        if not changes['name']:
            raise ValidationError("Please tell us your name!")

    user = repo.update(user_id, changes)
    if not user:
        raise NotFoundError("No user found with that ID")
    return user


# ── self service ─────────────────────────────────────────


def update_me(repo: UserRepository, user: User, data: Mapping[str, Any]) -> User:
    """Update the caller's own name and email."""
    _reject_password_fields(data)
    updated = _apply_update(repo, user.id, filter_fields(data, 'name', 'email'))
    logger.info("User updated own profile", extra={"userId": user.id})
    return updated


def delete_me(repo: UserRepository, user: User) -> None:
    """Soft delete the caller's account."""
    if not repo.deactivate(user.id):
        raise NotFoundError("No user found with that ID")
    logger.info("User deactivated", extra={"userId": user.id})


# ── admin ────────────────────────────────────────────────


def list_users(repo: UserRepository, params: Mapping[str, Any]) -> list[dict[str, Any]]:
    spec = build_query(params, USER_FIELD_TYPES)
    private = [f.field for f in spec.filters if f.field in PRIVATE_USER_FIELDS]
    private += [k.field for k in spec.sort if k.field in PRIVATE_USER_FIELDS]
    if private:
        raise ValidationError(f"Invalid field: {private[0]}")
    return repo.find(spec)


def get_user(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if not user:
        raise NotFoundError("No user found with that ID")
    return user


def update_user(repo: UserRepository, user_id: str, data: Mapping[str, Any]) -> User:
    """Admin update of name, email and role. Passwords are never set here."""
    _reject_password_fields(data)
    changes = filter_fields(data, 'name', 'email', 'role')
    if 'role' in changes:
        try:
            changes['role'] = Role(changes['role'])
        except ValueError as e:
            raise ValidationError(f"Invalid role: {changes['role']}") from e

    updated = _apply_update(repo, user_id, changes)
    logger.info("User updated by admin", extra={"userId": user_id, "fields": sorted(changes)})
    return updated


def delete_user(repo: UserRepository, user_id: str) -> None:
    if not repo.delete(user_id):
        raise NotFoundError("No user found with that ID")
    logger.info("User deleted by admin", extra={"userId": user_id})
