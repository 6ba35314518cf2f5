"""Port definition for TourRepository."""

from typing import Any, Protocol

from domain.model.query import QuerySpec
from domain.model.tour import DifficultyStats, MonthlyPlan, Tour


class TourRepository(Protocol):
    def create(self, tour: Tour) -> Tour | None:
        """Insert a tour. Raises DuplicateError when the name is taken."""
        ...

    def get_by_id(self, tour_id: str) -> Tour | None: ...

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Execute a list query and return projected records."""
        ...

    def update(self, tour_id: str, fields: dict[str, Any]) -> Tour | None:
        """Apply a partial update. Returns the updated Tour or None if not found."""
        ...

    def delete(self, tour_id: str) -> bool: ...

    def stats_by_difficulty(self, min_rating: float = 4.5) -> list[DifficultyStats]: ...

    def monthly_plan(self, year: int) -> list[MonthlyPlan]: ...
