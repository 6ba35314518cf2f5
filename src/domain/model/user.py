from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Roles a user can hold. Single registry for route allow-lists."""
    USER = 'user'
    GUIDE = 'guide'
    LEAD_GUIDE = 'lead-guide'
    ADMIN = 'admin'


# Credentials and soft-delete state; never returned or filterable.
PRIVATE_USER_FIELDS = (
    'active',
    'password_hash',
    'password_changed_at',
    'password_reset_token',
    'password_reset_expires',
)

# Query-string coercion for user list filters.
USER_FIELD_TYPES: dict[str, type] = {
    'name': str,
    'email': str,
    'role': str,
    'created_at': datetime,
    'updated_at': datetime,
}


@dataclass
class User:
    """Domain model representing a user."""
    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
    role: Role = Role.USER
    active: bool = True
    password_hash: str | None = None
    password_changed_at: datetime | None = None
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None

    def changed_password_after(self, issued_at: int) -> bool:
        """True if the password changed after a token issued at `issued_at` (epoch seconds)."""
        if self.password_changed_at is None:
            return False
        changed_timestamp = int(self.password_changed_at.timestamp())
        return issued_at < changed_timestamp

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
