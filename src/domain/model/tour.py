# domain/model/tour.py

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Difficulty(str, Enum):
    """Enumeration of supported tour difficulties."""
    EASY = 'easy'
    MEDIUM = 'medium'
    DIFFICULT = 'difficult'


# Query-string coercion per tour field (store-side casting).
TOUR_FIELD_TYPES: dict[str, type] = {
    'name': str,
    'slug': str,
    'duration': int,
    'max_group_size': int,
    'difficulty': str,
    'ratings_average': float,
    'ratings_quantity': int,
    'price': float,
    'price_discount': float,
    'summary': str,
    'description': str,
    'image_cover': str,
    'created_at': datetime,
    'start_dates': datetime,
}


# ── Tour Domain Model ────────────────────────────────────


@dataclass
class Tour:
    """Domain model representing a tour."""
    id: str
    name: str
    slug: str
    duration: int
    max_group_size: int
    difficulty: Difficulty
    price: float
    summary: str
    description: str
    image_cover: str
    created_at: datetime

    ratings_average: float = 1.0
    ratings_quantity: int = 0
    price_discount: float | None = None
    images: list[str] = field(default_factory=list)
    start_dates: list[datetime] = field(default_factory=list)


# ── Aggregation Results ──────────────────────────────────


@dataclass(frozen=True)
class DifficultyStats:
    """Tour statistics for one difficulty bucket."""
    difficulty: str
    num_tours: int
    num_ratings: int
    avg_rating: float
    avg_price: float
    min_price: float
    max_price: float


@dataclass(frozen=True)
class MonthlyPlan:
    """Tour starts scheduled in one month of a year."""
    month: int
    num_tour_starts: int
    tours: list[str]
