"""JWT authentication and role authorization dependencies."""

import logging
from collections.abc import Callable
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_user_repo
from domain.model.user import Role, User
from port.user_repository import UserRepository
from services.auth_service import authenticate_token, authorize

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_repo: UserRepository = Depends(get_user_repo),
) -> User:
    """Get current authenticated user (required).

    A missing or non-Bearer Authorization header counts as not logged in.
    Failures raise AuthenticationError, rendered as 401 by the error handlers.
    """
    token = credentials.credentials if credentials else None
    return authenticate_token(user_repo, token)


def restrict_to(*roles: Role | str) -> Callable[..., User]:
    """Build a dependency that admits only users holding one of `roles`.

    Role names are checked against `Role` here, so a typo in a route's
    allow-list fails when the route module is imported.
    """
    if not roles:
        raise ValueError("restrict_to() needs at least one role")
    allowed = frozenset(Role(role) for role in roles)

    def dependency(user: User = Depends(get_current_user_required)) -> User:
        authorize(user, allowed)
        return user

    return dependency
