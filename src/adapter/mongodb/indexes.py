"""MongoDB index management for the tours and users collections."""

from logging import getLogger

from pymongo.errors import OperationFailure

logger = getLogger(__name__)

# IndexOptionsConflict, IndexKeySpecsConflict
INDEX_CONFLICT_CODES = frozenset({85, 86})


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create index `name`, replacing an existing index of that name whose definition changed."""
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except OperationFailure as e:
        if e.code not in INDEX_CONFLICT_CODES:
            raise
        logger.warning("Replacing index with changed definition", extra={"index": name})
        collection.drop_index(name)
        collection.create_index(keys, name=name, **kwargs)
        return True


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.tour_repository import MongoTourRepository
    from adapter.mongodb.user_repository import MongoUserRepository

    results = [
        MongoTourRepository(db).ensure_indexes(),
        MongoUserRepository(db).ensure_indexes(),
    ]
    return all(results)
