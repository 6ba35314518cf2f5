# domain/model/query.py

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
# Upper bounds keep (page - 1) * limit well inside a BSON int64.
MAX_PAGE = 1_000_000
MAX_LIMIT = 1_000

# Store-internal update counter, hidden unless explicitly projected.
VERSION_FIELD = 'version'


class Operator(str, Enum):
    """Comparison operators a filter clause may use."""
    EQ = 'eq'
    GTE = 'gte'
    GT = 'gt'
    LTE = 'lte'
    LT = 'lt'


@dataclass(frozen=True)
class FilterClause:
    """Single `field <operator> value` predicate."""
    field: str
    operator: Operator
    value: object


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """Field projection: an inclusion list, or fields to exclude."""
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = (VERSION_FIELD,)

    @property
    def is_inclusive(self) -> bool:
        return len(self.include) > 0


@dataclass(frozen=True)
class QuerySpec:
    """Structured list query built from REST query parameters.

    Describes the query only; repositories execute it exactly once.
    """
    filters: tuple[FilterClause, ...] = ()
    sort: tuple[SortKey, ...] = (SortKey('id'),)
    projection: Projection = field(default_factory=Projection)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit
