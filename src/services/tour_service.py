"""Tour catalogue operations: listing, CRUD and aggregate reports.

Field rules (required fields, enum, ranges, discount below price) are checked
here before the repository is called, and all violations are reported
together in one ValidationError.
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from slugify import slugify

from domain.model.errors import DomainError, NotFoundError, ValidationError
from domain.model.tour import TOUR_FIELD_TYPES, Difficulty, DifficultyStats, MonthlyPlan, Tour
from port.tour_repository import TourRepository
from services.query_translator import build_query

logger = logging.getLogger(__name__)

TOP_CHEAP_PARAMS = {
    'limit': '5',
    'sort': '-ratings_average,price',
    'fields': 'name,price,ratings_average,summary,difficulty',
}

STATS_MIN_RATING = 4.5

MAX_NAME_LENGTH = 40
MIN_RATING = 1
MAX_RATING = 5
MIN_PRICE = 1

REQUIRED_FIELDS = {
    'name': "A tour must have a name",
    'duration': "A tour must have a duration",
    'max_group_size': "A tour must have a group size",
    'difficulty': "A tour must have a difficulty",
    'price': "A tour must have a price",
    'summary': "A tour must have a summary",
    'description': "A tour must have a description",
    'image_cover': "A tour must have a cover image",
}

# Optional fields that fall back to the model default when sent as null.
DEFAULTED_FIELDS = ('ratings_average', 'ratings_quantity', 'images', 'start_dates')

WRITABLE_FIELDS = (*REQUIRED_FIELDS, *DEFAULTED_FIELDS, 'price_discount')

TRIMMED_FIELDS = ('name', 'summary', 'description')


def alias_top_tours(params: Mapping[str, Any]) -> dict[str, Any]:
    """Preset query for the five best rated, cheapest tours."""
    return {**params, **TOP_CHEAP_PARAMS}


def _validate_tour(data: Mapping[str, Any], current: Tour | None = None) -> dict[str, Any]:
    """Return the cleaned writable fields of `data`.

    With `current` the data is a partial update checked against the stored
    tour; without it every required field must be present.
    """
    changes = {k: v for k, v in data.items() if k in WRITABLE_FIELDS}
    for name in DEFAULTED_FIELDS:
        if name in changes and changes[name] is None:
            del changes[name]
    for name in TRIMMED_FIELDS:
        if isinstance(changes.get(name), str):
            changes[name] = changes[name].strip()

    errors = []
    for name, message in REQUIRED_FIELDS.items():
        if (current is None or name in changes) and changes.get(name) in (None, ''):
            errors.append(message)

    name = changes.get('name')
    if name and len(name) > MAX_NAME_LENGTH:
        errors.append(f"A tour name must have at most {MAX_NAME_LENGTH} characters")

    difficulty = changes.get('difficulty')
    if difficulty:
        try:
            changes['difficulty'] = Difficulty(difficulty)
        except ValueError:
            errors.append(f"Difficulty '{difficulty}' is not supported. Use easy, medium or difficult")

    rating = changes.get('ratings_average')
    if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
        errors.append(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

    price = changes.get('price')
    if price is not None and price < MIN_PRICE:
        errors.append(f"Price must be at least {MIN_PRICE}")

    discount = changes.get('price_discount')
    if price is None and current is not None:
        price = current.price
    if discount is not None and price is not None and discount >= price:
        errors.append("Discount price should be below regular price")

    if errors:
        raise ValidationError(f"Invalid input data. {'. '.join(errors)}")
    return changes


# ── queries ──────────────────────────────────────────────


def list_tours(repo: TourRepository, params: Mapping[str, Any]) -> list[dict[str, Any]]:
    return repo.find(build_query(params, TOUR_FIELD_TYPES))


def get_tour(repo: TourRepository, tour_id: str) -> Tour:
    tour = repo.get_by_id(tour_id)
    if not tour:
        raise NotFoundError("No tour found with that ID")
    return tour


def tour_stats(repo: TourRepository) -> list[DifficultyStats]:
    """Per-difficulty statistics over well rated tours, cheapest bucket first."""
    return repo.stats_by_difficulty(min_rating=STATS_MIN_RATING)


def monthly_plan(repo: TourRepository, year: int) -> list[MonthlyPlan]:
    """Busiest months of `year` by number of tour starts."""
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year: {year}")
    return repo.monthly_plan(year)


# ── commands ─────────────────────────────────────────────


def create_tour(repo: TourRepository, data: Mapping[str, Any]) -> Tour:
    fields = _validate_tour(data)
    tour = Tour(
        id=uuid.uuid4().hex,
        slug=slugify(fields['name']),
        created_at=datetime.now(timezone.utc),
        **fields,
    )
    created = repo.create(tour)
    if not created:
        raise DomainError("Failed to create tour")

    logger.info("Tour created", extra={"tourId": created.id, "slug": created.slug})
    return created


def update_tour(repo: TourRepository, tour_id: str, data: Mapping[str, Any]) -> Tour:
    current = get_tour(repo, tour_id)
    changes = _validate_tour(data, current)
    if not changes:
        return current
    if 'name' in changes:
        changes['slug'] = slugify(changes['name'])

    updated = repo.update(tour_id, changes)
    if not updated:
        raise NotFoundError("No tour found with that ID")
    return updated


def delete_tour(repo: TourRepository, tour_id: str) -> None:
    if not repo.delete(tour_id):
        raise NotFoundError("No tour found with that ID")
    logger.info("Tour deleted", extra={"tourId": tour_id})
