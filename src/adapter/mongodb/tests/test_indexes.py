"""Tests for index creation against mocked collections."""

import unittest
from unittest.mock import MagicMock

from pymongo.errors import OperationFailure

from adapter.mongodb.indexes import create_index_safe, ensure_all_indexes


class TestCreateIndexSafe(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()

    def test_creates_index(self):
        self.assertTrue(create_index_safe(self.collection, [('name', 1)], 'idx_tours_name', unique=True))
        self.collection.create_index.assert_called_once_with([('name', 1)], name='idx_tours_name', unique=True)

    def test_changed_definition_is_replaced(self):
        self.collection.create_index.side_effect = [OperationFailure("conflict", code=86), 'idx_tours_name']

        self.assertTrue(create_index_safe(self.collection, [('name', 1)], 'idx_tours_name', unique=True))

        self.collection.drop_index.assert_called_once_with('idx_tours_name')
        self.assertEqual(self.collection.create_index.call_count, 2)

    def test_other_failures_propagate(self):
        self.collection.create_index.side_effect = OperationFailure("unauthorized", code=13)

        with self.assertRaises(OperationFailure):
            create_index_safe(self.collection, [('name', 1)], 'idx_tours_name')
        self.collection.drop_index.assert_not_called()


class TestEnsureAllIndexes(unittest.TestCase):

    def test_creates_tour_and_user_indexes(self):
        db = MagicMock()

        self.assertTrue(ensure_all_indexes(db))

        names = {c.kwargs['name'] for c in db.__getitem__.return_value.create_index.call_args_list}
        self.assertIn('idx_tours_name', names)
        self.assertIn('idx_users_email', names)

    def test_reports_failure(self):
        db = MagicMock()
        db.__getitem__.return_value.create_index.side_effect = OperationFailure("unauthorized", code=13)

        self.assertFalse(ensure_all_indexes(db))


if __name__ == '__main__':
    unittest.main()
