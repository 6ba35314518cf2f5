from adapter.mongodb.connection import (
    DATABASE_NAME,
    TOURS_COLLECTION_NAME,
    USERS_COLLECTION_NAME,
)

__all__ = ['DATABASE_NAME', 'TOURS_COLLECTION_NAME', 'USERS_COLLECTION_NAME']
