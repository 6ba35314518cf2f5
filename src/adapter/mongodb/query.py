"""Render a QuerySpec into pymongo filter, sort and projection arguments."""

from typing import Any

from domain.model.query import Operator, QuerySpec

ID_FIELD = 'id'
MONGO_ID_FIELD = '_id'


def to_mongo_field(name: str) -> str:
    return MONGO_ID_FIELD if name == ID_FIELD else name


def to_mongo_filter(spec: QuerySpec) -> dict[str, Any]:
    """`price >= 500` becomes `{'price': {'$gte': 500}}`."""
    query: dict[str, Any] = {}
    for clause in spec.filters:
        field = to_mongo_field(clause.field)
        existing = query.get(field)

        if clause.operator == Operator.EQ:
            if isinstance(existing, dict):
                existing['$eq'] = clause.value
            else:
                query[field] = clause.value
            continue

        if existing is None:
            existing = query[field] = {}
        elif not isinstance(existing, dict):
            existing = query[field] = {'$eq': existing}
        existing[f'${clause.operator.value}'] = clause.value
    return query


def to_mongo_sort(spec: QuerySpec) -> list[tuple[str, int]]:
    return [(to_mongo_field(key.field), -1 if key.descending else 1) for key in spec.sort]


def to_mongo_projection(spec: QuerySpec) -> dict[str, int] | None:
    projection = spec.projection
    if projection.is_inclusive:
        return {to_mongo_field(name): 1 for name in projection.include}
    if projection.exclude:
        return {to_mongo_field(name): 0 for name in projection.exclude}
    return None


def to_record(doc: dict) -> dict[str, Any]:
    """Convert a raw document to an API-facing record (`_id` → `id`)."""
    record = dict(doc)
    if MONGO_ID_FIELD in record:
        record[ID_FIELD] = record.pop(MONGO_ID_FIELD)
    return record
