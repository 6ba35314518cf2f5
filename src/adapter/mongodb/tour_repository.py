"""MongoDB implementation of TourRepository."""

from datetime import datetime, timezone
from logging import getLogger
from typing import Any

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import TOURS_COLLECTION_NAME
from adapter.mongodb.query import to_mongo_filter, to_mongo_projection, to_mongo_sort, to_record
from domain.model.errors import DuplicateError
from domain.model.query import VERSION_FIELD, QuerySpec
from domain.model.tour import Difficulty, DifficultyStats, MonthlyPlan, Tour

logger = getLogger(__name__)


def _duplicate_error(name: str) -> DuplicateError:
    return DuplicateError(f"Duplicate field value: {name}. Please use another value!")


class MongoTourRepository:
    def __init__(self, db: Database):
        self.collection = db[TOURS_COLLECTION_NAME]

    # ── indexes ──────────────────────────────────────────────

    def ensure_indexes(self) -> bool:
        """Create indexes for tours collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('name', 1)], 'idx_tours_name', unique=True)
            create_index_safe(self.collection, [('slug', 1)], 'idx_tours_slug')
            create_index_safe(self.collection, [
                ('price', 1),
                ('ratings_average', -1),
            ], 'idx_tours_price_rating')
            create_index_safe(self.collection, [('start_dates', 1)], 'idx_tours_start_dates')
            return True
        except Exception as e:
            logger.error("Failed to create tours indexes", extra={"error": str(e)})
            return False

    # ── helpers ──────────────────────────────────────────────

    def _to_domain(self, doc: dict) -> Tour:
        """Convert MongoDB document to Tour domain model."""
        return Tour(
            id=doc['_id'],
            name=doc['name'],
            slug=doc['slug'],
            duration=doc['duration'],
            max_group_size=doc['max_group_size'],
            difficulty=Difficulty(doc['difficulty']),
            price=doc['price'],
            summary=doc['summary'],
            description=doc['description'],
            image_cover=doc['image_cover'],
            created_at=doc['created_at'],
            ratings_average=doc.get('ratings_average', 1.0),
            ratings_quantity=doc.get('ratings_quantity', 0),
            price_discount=doc.get('price_discount'),
            images=doc.get('images', []),
            start_dates=doc.get('start_dates', []),
        )

    def _to_document(self, tour: Tour) -> dict:
        return {
            '_id': tour.id,
            'name': tour.name,
            'slug': tour.slug,
            'duration': tour.duration,
            'max_group_size': tour.max_group_size,
            'difficulty': tour.difficulty.value,
            'ratings_average': tour.ratings_average,
            'ratings_quantity': tour.ratings_quantity,
            'price': tour.price,
            'price_discount': tour.price_discount,
            'summary': tour.summary,
            'description': tour.description,
            'image_cover': tour.image_cover,
            'images': tour.images,
            'start_dates': tour.start_dates,
            'created_at': tour.created_at,
            VERSION_FIELD: 0,
        }

    # ── write operations ─────────────────────────────────────

    def create(self, tour: Tour) -> Tour | None:
        """Insert a new tour."""
        try:
            self.collection.insert_one(self._to_document(tour))
            logger.info("Tour created", extra={"tourId": tour.id, "tourName": tour.name})
            return tour
        except DuplicateKeyError as e:
            logger.warning("Tour creation failed: name already exists", extra={"tourName": tour.name})
            raise _duplicate_error(tour.name) from e
        except PyMongoError as e:
            logger.error("Failed to create tour", extra={"tourName": tour.name, "error": str(e)})
            raise

    def update(self, tour_id: str, fields: dict[str, Any]) -> Tour | None:
        """Apply a partial update and return the updated tour."""
        changes = dict(fields)
        if isinstance(changes.get('difficulty'), Difficulty):
            changes['difficulty'] = changes['difficulty'].value

        try:
            doc = self.collection.find_one_and_update(
                {'_id': tour_id},
                {'$set': changes, '$inc': {VERSION_FIELD: 1}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise _duplicate_error(changes.get('name', '')) from e
        except PyMongoError as e:
            logger.error("Failed to update tour", extra={"tourId": tour_id, "error": str(e)})
            raise

        if doc is None:
            logger.warning("Tour not found for update", extra={"tourId": tour_id})
            return None
        logger.info("Tour updated", extra={"tourId": tour_id, "fields": sorted(changes)})
        return self._to_domain(doc)

    def delete(self, tour_id: str) -> bool:
        """Hard delete a tour."""
        try:
            result = self.collection.delete_one({'_id': tour_id})
        except PyMongoError as e:
            logger.error("Failed to delete tour", extra={"tourId": tour_id, "error": str(e)})
            raise

        if result.deleted_count == 0:
            logger.warning("Tour not found for deletion", extra={"tourId": tour_id})
            return False
        logger.info("Tour deleted", extra={"tourId": tour_id})
        return True

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, tour_id: str) -> Tour | None:
        """Retrieve tour by ID."""
        try:
            doc = self.collection.find_one({'_id': tour_id})
        except PyMongoError as e:
            logger.error("Failed to retrieve tour", extra={"tourId": tour_id, "error": str(e)})
            raise
        return self._to_domain(doc) if doc else None

    def find(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """List tours with filtering, sorting, projection and pagination."""
        try:
            cursor = (
                self.collection.find(to_mongo_filter(spec), to_mongo_projection(spec))
                .sort(to_mongo_sort(spec))
                .skip(spec.skip)
                .limit(spec.limit)
            )
            records = [to_record(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error("Failed to list tours", extra={"error": str(e)})
            raise

        logger.info("Listed tours", extra={"count": len(records), "page": spec.page, "limit": spec.limit})
        return records

    # ── aggregations ─────────────────────────────────────────

    def stats_by_difficulty(self, min_rating: float = 4.5) -> list[DifficultyStats]:
        """Group well-rated tours by difficulty, cheapest bucket first."""
        pipeline = [
            {'$match': {'ratings_average': {'$gte': min_rating}}},
            {'$group': {
                '_id': {'$toUpper': '$difficulty'},
                'num_tours': {'$sum': 1},
                'num_ratings': {'$sum': '$ratings_quantity'},
                'avg_rating': {'$avg': '$ratings_average'},
                'avg_price': {'$avg': '$price'},
                'min_price': {'$min': '$price'},
                'max_price': {'$max': '$price'},
            }},
            {'$sort': {'avg_price': 1}},
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error("Failed to aggregate tour stats", extra={"error": str(e)})
            raise

        return [
            DifficultyStats(
                difficulty=row['_id'],
                num_tours=row['num_tours'],
                num_ratings=row['num_ratings'],
                avg_rating=row['avg_rating'],
                avg_price=row['avg_price'],
                min_price=row['min_price'],
                max_price=row['max_price'],
            )
            for row in rows
        ]

    def monthly_plan(self, year: int) -> list[MonthlyPlan]:
        """Count tour starts per month of `year`, busiest month first."""
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
        pipeline = [
            {'$unwind': '$start_dates'},
            {'$match': {'start_dates': {'$gte': start, '$lte': end}}},
            {'$group': {
                '_id': {'$month': '$start_dates'},
                'num_tour_starts': {'$sum': 1},
                'tours': {'$push': '$name'},
            }},
            {'$addFields': {'month': '$_id'}},
            {'$project': {'_id': 0}},
            {'$sort': {'num_tour_starts': -1, 'month': 1}},
            {'$limit': 12},
        ]
        try:
            rows = list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error("Failed to aggregate monthly plan", extra={"year": year, "error": str(e)})
            raise

        return [
            MonthlyPlan(month=row['month'], num_tour_starts=row['num_tour_starts'], tours=row['tours'])
            for row in rows
        ]
