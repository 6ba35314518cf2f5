from datetime import datetime
from typing import Any, Protocol

from domain.model.query import QuerySpec
from domain.model.user import Role, User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Every lookup excludes deactivated (soft-deleted) users.
    """
    def create(self, name: str, email: str, password_hash: str, role: Role = Role.USER) -> User | None:
        """Create a new user. Return User or None if creation failed.

        Raises DuplicateError when the email is already taken.
        """
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find an active user by ID. Return User or None if not found."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find an active user by email. Return User or None if not found."""
        ...

    def get_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        """Find an active user holding `token_hash` whose reset window is still open."""
        ...

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Execute a list query. Returns public records (no credentials)."""
        ...

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Set profile fields. Return the updated User or None if not found."""
        ...

    def set_password(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        """Store a new password hash, stamp the change and clear any reset token."""
        ...

    def consume_reset_token(
        self, user_id: str, token_hash: str, now: datetime, password_hash: str, changed_at: datetime,
    ) -> bool:
        """Like `set_password`, but only if the user still holds `token_hash` unexpired at `now`.

        Check and write are atomic. False when the token was already used or expired.
        """
        ...

    def set_reset_token(self, user_id: str, token_hash: str, expires_at: datetime) -> bool: ...

    def clear_reset_token(self, user_id: str) -> bool: ...

    def deactivate(self, user_id: str) -> bool:
        """Soft delete: mark the user inactive."""
        ...

    def delete(self, user_id: str) -> bool: ...
