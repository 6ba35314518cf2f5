"""In-memory implementation of TourRepository for testing."""

from collections import defaultdict
from dataclasses import asdict, replace
from typing import Any

from adapter.fake.query import apply_query
from domain.model.errors import DuplicateError
from domain.model.query import VERSION_FIELD, QuerySpec
from domain.model.tour import Difficulty, DifficultyStats, MonthlyPlan, Tour


class FakeTourRepository:
    def __init__(self):
        self.store: dict[str, Tour] = {}
        self.versions: dict[str, int] = {}

    def _to_record(self, tour: Tour) -> dict[str, Any]:
        record = asdict(tour)
        record['difficulty'] = tour.difficulty.value
        record[VERSION_FIELD] = self.versions.get(tour.id, 0)
        return record

    def _check_unique_name(self, name: str, tour_id: str) -> None:
        if any(t.name == name and t.id != tour_id for t in self.store.values()):
            raise DuplicateError(f"Duplicate field value: {name}. Please use another value!")

    # ── write operations ─────────────────────────────────────

    def create(self, tour: Tour) -> Tour | None:
        self._check_unique_name(tour.name, tour.id)
        self.store[tour.id] = tour
        self.versions[tour.id] = 0
        return tour

    def update(self, tour_id: str, fields: dict[str, Any]) -> Tour | None:
        tour = self.store.get(tour_id)
        if not tour:
            return None

        changes = dict(fields)
        if 'name' in changes:
            self._check_unique_name(changes['name'], tour_id)
        if 'difficulty' in changes:
            changes['difficulty'] = Difficulty(changes['difficulty'])

        updated = replace(tour, **changes)
        self.store[tour_id] = updated
        self.versions[tour_id] += 1
        return updated

    def delete(self, tour_id: str) -> bool:
        self.versions.pop(tour_id, None)
        return self.store.pop(tour_id, None) is not None

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, tour_id: str) -> Tour | None:
        return self.store.get(tour_id)

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        return apply_query([self._to_record(t) for t in self.store.values()], spec)

    # ── aggregations ─────────────────────────────────────────

    def stats_by_difficulty(self, min_rating: float = 4.5) -> list[DifficultyStats]:
        groups: dict[str, list[Tour]] = defaultdict(list)
        for tour in self.store.values():
            if tour.ratings_average >= min_rating:
                groups[tour.difficulty.value.upper()].append(tour)

        stats = []
        for difficulty, tours in groups.items():
            prices = [t.price for t in tours]
            stats.append(DifficultyStats(
                difficulty=difficulty,
                num_tours=len(tours),
                num_ratings=sum(t.ratings_quantity for t in tours),
                avg_rating=sum(t.ratings_average for t in tours) / len(tours),
                avg_price=sum(prices) / len(prices),
                min_price=min(prices),
                max_price=max(prices),
            ))
        return sorted(stats, key=lambda s: s.avg_price)

    def monthly_plan(self, year: int) -> list[MonthlyPlan]:
        months: dict[int, list[str]] = defaultdict(list)
        for tour in self.store.values():
            for start in tour.start_dates:
                if start.year == year:
                    months[start.month].append(tour.name)

        plan = [
            MonthlyPlan(month=month, num_tour_starts=len(names), tours=names)
            for month, names in months.items()
        ]
        plan.sort(key=lambda p: (-p.num_tour_starts, p.month))
        return plan[:12]
