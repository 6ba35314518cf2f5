"""In-memory evaluation of a QuerySpec, mirroring MongoDB semantics closely enough for tests."""

import operator
from typing import Any

from domain.model.query import FilterClause, Operator, QuerySpec

_COMPARATORS = {
    Operator.EQ: operator.eq,
    Operator.GTE: operator.ge,
    Operator.GT: operator.gt,
    Operator.LTE: operator.le,
    Operator.LT: operator.lt,
}


def _matches(record: dict[str, Any], clause: FilterClause) -> bool:
    value = record.get(clause.field)
    if value is None:
        return clause.operator == Operator.EQ and clause.value is None
    compare = _COMPARATORS[clause.operator]
    # Array fields match when any element matches.
    candidates = value if isinstance(value, list) else [value]
    for candidate in candidates:
        try:
            if compare(candidate, clause.value):
                return True
        except TypeError:
            continue
    return False


def _project(record: dict[str, Any], spec: QuerySpec) -> dict[str, Any]:
    projection = spec.projection
    if projection.is_inclusive:
        projected = {'id': record['id']}
        projected.update({name: record[name] for name in projection.include if name in record})
        return projected
    return {k: v for k, v in record.items() if k not in projection.exclude}


def apply_query(records: list[dict[str, Any]], spec: QuerySpec) -> list[dict[str, Any]]:
    """Filter, sort, paginate and project `records` according to `spec`."""
    results = [r for r in records if all(_matches(r, c) for c in spec.filters)]

    # Stable multi-key sort: apply least significant key first; None sorts first.
    for key in reversed(spec.sort):
        results.sort(
            key=lambda r, f=key.field: (r.get(f) is not None, r.get(f)),
            reverse=key.descending,
        )

    page = results[spec.skip:spec.skip + spec.limit]
    return [_project(r, spec) for r in page]
