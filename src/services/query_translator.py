"""Translate REST query parameters to a structured QuerySpec.

Pure and entity independent. Supported syntax:
- Filtering: `/tours?duration=5&price[gte]=500` (operators gte, gt, lte, lt)
- Sorting: `/tours?sort=-ratings_average,price` (leading `-` = descending)
- Projection: `/tours?fields=name,price` or `/tours?fields=-description`
- Pagination: `/tours?page=2&limit=10`

Each step is a standalone function; `build_query` composes all four.
The translator never touches a store.
"""

import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from domain.model.errors import ValidationError
from domain.model.query import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    MAX_LIMIT,
    MAX_PAGE,
    FilterClause,
    Operator,
    Projection,
    QuerySpec,
    SortKey,
)

RESERVED_KEYS = frozenset({'page', 'sort', 'limit', 'fields'})
COMPARISON_OPERATORS = frozenset({'gte', 'gt', 'lte', 'lt'})

_BRACKET_KEY = re.compile(r'^([^\[\]]+)\[([^\[\]]+)\]$')


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Fold flat query-string pairs into a nested parameter mapping.

    `price[gte]=500` becomes `{'price': {'gte': '500'}}`. For repeated scalar
    keys the last value wins.
    """
    params: dict[str, Any] = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if match:
            name, operator = match.groups()
            nested = params.get(name)
            if not isinstance(nested, dict):
                nested = {}
                params[name] = nested
            nested[operator] = value
        else:
            params[key] = value
    return params


def _check_field_name(name: str) -> str:
    name = name.strip()
    if not name or name.startswith('$') or '.$' in name:
        raise ValidationError(f"Invalid field name: '{name}'")
    return name


def _coerce(field: str, raw: Any, field_types: Mapping[str, type] | None) -> Any:
    """Cast a raw query-string value to the field's declared type."""
    caster = field_types.get(field) if field_types else None
    if caster is None or not isinstance(raw, str):
        return raw
    try:
        if caster is bool:
            lowered = raw.strip().lower()
            if lowered not in ('true', 'false'):
                raise ValueError(raw)
            return lowered == 'true'
        if caster is datetime:
            value = datetime.fromisoformat(raw.strip())
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value
        if caster is float:
            value = float(raw)
            if not math.isfinite(value):
                raise ValueError(raw)
            return value
        return caster(raw.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid {field}: {raw}") from e


# ── steps ────────────────────────────────────────────────


def build_filters(
    params: Mapping[str, Any],
    field_types: Mapping[str, type] | None = None,
) -> tuple[FilterClause, ...]:
    """Filter step: every non-reserved parameter becomes one or more clauses.

    Raises ValidationError for unsupported operators or uncastable values.
    """
    clauses: list[FilterClause] = []
    for key, value in params.items():
        if key in RESERVED_KEYS:
            continue
        name = _check_field_name(key)

        if isinstance(value, Mapping):
            for op, raw in value.items():
                if op not in COMPARISON_OPERATORS:
                    raise ValidationError(
                        f"Unsupported filter operator '{op}' for field '{name}'. "
                        f"Use one of: gte, gt, lte, lt"
                    )
                clauses.append(FilterClause(name, Operator(op), _coerce(name, raw, field_types)))
        else:
            clauses.append(FilterClause(name, Operator.EQ, _coerce(name, value, field_types)))
    return tuple(clauses)


def _split_list(raw: Any) -> list[str]:
    if not isinstance(raw, str):
        return []
    return [part.strip() for part in raw.split(',') if part.strip()]


def parse_sort(params: Mapping[str, Any]) -> tuple[SortKey, ...]:
    """Sort step. Defaults to ascending id so pagination is stable."""
    keys = []
    for part in _split_list(params.get('sort')):
        descending = part.startswith('-')
        keys.append(SortKey(_check_field_name(part.lstrip('-')), descending))
    if not keys:
        return (SortKey('id'),)
    return tuple(keys)


def parse_projection(params: Mapping[str, Any]) -> Projection:
    """Projection step. Defaults to everything except the version field."""
    parts = _split_list(params.get('fields'))
    if not parts:
        return Projection()

    excluded = [p for p in parts if p.startswith('-')]
    if excluded and len(excluded) != len(parts):
        raise ValidationError("Cannot mix field inclusion and exclusion in 'fields'")
    if excluded:
        return Projection(exclude=tuple(_check_field_name(p[1:]) for p in excluded))
    return Projection(include=tuple(_check_field_name(p) for p in parts), exclude=())


def _bounded_int(raw: Any, default: int, maximum: int) -> int:
    if isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if 1 <= value <= maximum else default


def parse_pagination(params: Mapping[str, Any]) -> tuple[int, int]:
    """Pagination step: (page, limit).

    Non-numeric, non-positive or out-of-range input falls back to defaults.
    """
    page = _bounded_int(params.get('page'), DEFAULT_PAGE, MAX_PAGE)
    limit = _bounded_int(params.get('limit'), DEFAULT_LIMIT, MAX_LIMIT)
    return page, limit


def build_query(
    params: Mapping[str, Any],
    field_types: Mapping[str, type] | None = None,
) -> QuerySpec:
    """Compose filter, sort, projection and pagination into a QuerySpec."""
    page, limit = parse_pagination(params)
    return QuerySpec(
        filters=build_filters(params, field_types),
        sort=parse_sort(params),
        projection=parse_projection(params),
        page=page,
        limit=limit,
    )
