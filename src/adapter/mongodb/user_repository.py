"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger
from typing import Any

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from adapter.mongodb.query import to_mongo_filter, to_mongo_projection, to_mongo_sort, to_record
from domain.model.errors import DuplicateError
from domain.model.query import QuerySpec
from domain.model.user import PRIVATE_USER_FIELDS, Role, User

logger = getLogger(__name__)

# Soft-deleted users are invisible to every lookup.
ACTIVE_ONLY = {'active': {'$ne': False}}


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(self.collection, [('password_reset_token', 1)], 'idx_users_reset_token', sparse=True)
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            name=doc['name'],
            email=doc['email'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            role=Role(doc.get('role', Role.USER.value)),
            active=doc.get('active', True),
            password_hash=doc.get('password_hash'),
            password_changed_at=doc.get('password_changed_at'),
            password_reset_token=doc.get('password_reset_token'),
            password_reset_expires=doc.get('password_reset_expires'),
        )

    def _find_one(self, query: dict, context: dict) -> User | None:
        try:
            doc = self.collection.find_one({**query, **ACTIVE_ONLY})
        except PyMongoError as e:
            logger.error("Failed to get user", extra={**context, "error": str(e)})
            raise
        return self._to_domain(doc) if doc else None

    def _update_one(self, user_id: str, update: dict, action: str, condition: dict | None = None) -> bool:
        try:
            result = self.collection.update_one({'_id': user_id, **(condition or {})}, update)
        except PyMongoError as e:
            logger.error(f"Failed to {action}", extra={"userId": user_id, "error": str(e)})
            raise
        if result.matched_count == 0:
            logger.warning(f"User not found to {action}", extra={"userId": user_id})
            return False
        logger.debug(f"User {action} done", extra={"userId": user_id})
        return True

    # ── write operations ─────────────────────────────────────

    def create(self, name: str, email: str, password_hash: str, role: Role = Role.USER) -> User | None:
        """Create a new user and return the User object."""
        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': user_id,
            'name': name,
            'email': email.lower(),
            'role': role.value,
            'active': True,
            'password_hash': password_hash,
            'created_at': now,
            'updated_at': now,
        }
        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            logger.warning("User creation failed: email already exists", extra={"email": email})
            raise DuplicateError(f"Duplicate field value: {email}. Please use another value!") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            raise

        logger.info("User created", extra={"userId": user_id, "email": email})
        return self._to_domain(user_doc)

    def update(self, user_id: str, fields: dict[str, Any]) -> User | None:
        changes = dict(fields)
        if 'email' in changes:
            changes['email'] = changes['email'].lower()
        if isinstance(changes.get('role'), Role):
            changes['role'] = changes['role'].value
        changes['updated_at'] = datetime.now(timezone.utc)

        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id, **ACTIVE_ONLY},
                {'$set': changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateError(
                f"Duplicate field value: {changes.get('email')}. Please use another value!"
            ) from e
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            raise
        return self._to_domain(doc) if doc else None

    def set_password(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        return self._update_one(user_id, {
            '$set': {
                'password_hash': password_hash,
                'password_changed_at': changed_at,
                'updated_at': datetime.now(timezone.utc),
            },
            '$unset': {'password_reset_token': '', 'password_reset_expires': ''},
        }, 'set password')

    def consume_reset_token(
        self, user_id: str, token_hash: str, now: datetime, password_hash: str, changed_at: datetime,
    ) -> bool:
        """Set the new password only while the user still holds the unexpired token.

        Match and write are one update, so a token can be consumed once.
        """
        condition = {
            'password_reset_token': token_hash,
            'password_reset_expires': {'$gt': now},
            **ACTIVE_ONLY,
        }
        return self._update_one(user_id, {
            '$set': {
                'password_hash': password_hash,
                'password_changed_at': changed_at,
                'updated_at': datetime.now(timezone.utc),
            },
            '$unset': {'password_reset_token': '', 'password_reset_expires': ''},
        }, 'consume reset token', condition)

    def set_reset_token(self, user_id: str, token_hash: str, expires_at: datetime) -> bool:
        return self._update_one(user_id, {
            '$set': {'password_reset_token': token_hash, 'password_reset_expires': expires_at},
        }, 'set reset token')

    def clear_reset_token(self, user_id: str) -> bool:
        return self._update_one(user_id, {
            '$unset': {'password_reset_token': '', 'password_reset_expires': ''},
        }, 'clear reset token')

    def deactivate(self, user_id: str) -> bool:
        return self._update_one(user_id, {
            '$set': {'active': False, 'updated_at': datetime.now(timezone.utc)},
        }, 'deactivate')

    def delete(self, user_id: str) -> bool:
        try:
            result = self.collection.delete_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise
        if result.deleted_count > 0:
            logger.info("User deleted", extra={"userId": user_id})
            return True
        return False

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User | None:
        return self._find_one({'_id': user_id}, {"userId": user_id})

    def get_by_email(self, email: str) -> User | None:
        return self._find_one({'email': email.lower()}, {"email": email})

    def get_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        return self._find_one(
            {'password_reset_token': token_hash, 'password_reset_expires': {'$gt': now}},
            {},
        )

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        query = {'$and': [to_mongo_filter(spec), ACTIVE_ONLY]}
        try:
            cursor = (
                self.collection.find(query, to_mongo_projection(spec))
                .sort(to_mongo_sort(spec))
                .skip(spec.skip)
                .limit(spec.limit)
            )
            records = [to_record(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise

        for record in records:
            for name in PRIVATE_USER_FIELDS:
                record.pop(name, None)
        return records
