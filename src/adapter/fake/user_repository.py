"""In-memory implementation of UserRepository for testing."""

import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from adapter.fake.query import apply_query
from domain.model.errors import DuplicateError
from domain.model.query import QuerySpec
from domain.model.user import PRIVATE_USER_FIELDS, Role, User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    def _active(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return user if user and user.active else None

    # ── write operations ─────────────────────────────────────

    def create(self, name: str, email: str, password_hash: str, role: Role = Role.USER) -> User | None:
        email = email.lower()
        # Unique index covers inactive users too.
        if any(u.email == email for u in self.store.values()):
            raise DuplicateError(f"Duplicate field value: {email}. Please use another value!")

        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)

        user = User(
            id=user_id,
            name=name,
            email=email,
            created_at=now,
            updated_at=now,
            role=role,
            password_hash=password_hash,
        )
        self.store[user_id] = user
        return user

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        user = self._active(user_id)
        if not user:
            return None

        if 'email' in fields:
            email = fields['email'].lower()
            if any(u.email == email and u.id != user_id for u in self.store.values()):
                raise DuplicateError(f"Duplicate field value: {email}. Please use another value!")
            user.email = email
        if 'name' in fields:
            user.name = fields['name']
        if 'role' in fields:
            user.role = Role(fields['role'])
        user.updated_at = datetime.now(timezone.utc)
        return user

    def set_password(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        user.password_hash = password_hash
        user.password_changed_at = changed_at
        user.password_reset_token = None
        user.password_reset_expires = None
        user.updated_at = datetime.now(timezone.utc)
        return True

    def consume_reset_token(
        self, user_id: str, token_hash: str, now: datetime, password_hash: str, changed_at: datetime,
    ) -> bool:
        user = self._active(user_id)
        if (
            not user
            or user.password_reset_token != token_hash
            or user.password_reset_expires is None
            or user.password_reset_expires <= now
        ):
            return False
        return self.set_password(user_id, password_hash, changed_at)

    def set_reset_token(self, user_id: str, token_hash: str, expires_at: datetime) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        user.password_reset_token = token_hash
        user.password_reset_expires = expires_at
        return True

    def clear_reset_token(self, user_id: str) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        user.password_reset_token = None
        user.password_reset_expires = None
        return True

    def deactivate(self, user_id: str) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        user.active = False
        user.updated_at = datetime.now(timezone.utc)
        return True

    def delete(self, user_id: str) -> bool:
        return self.store.pop(user_id, None) is not None

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User | None:
        return self._active(user_id)

    def get_by_email(self, email: str) -> User | None:
        email = email.lower()
        for user in self.store.values():
            if user.active and user.email == email:
                return user
        return None

    def get_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        for user in self.store.values():
            if (
                user.active
                and user.password_reset_token == token_hash
                and user.password_reset_expires is not None
                and user.password_reset_expires > now
            ):
                return user
        return None

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        records = []
        for user in self.store.values():
            if not user.active:
                continue
            record = asdict(user)
            record['role'] = user.role.value
            for name in PRIVATE_USER_FIELDS:
                record.pop(name)
            records.append(record)
        return apply_query(records, spec)
