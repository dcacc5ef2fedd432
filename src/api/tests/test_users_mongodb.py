"""Tests for MongoUserRepository against a mocked pymongo collection."""

import unittest
from unittest.mock import MagicMock
from datetime import datetime, timezone

from bson.binary import Binary
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from adapter.mongodb.user_repository import EMAIL_INDEX, MongoUserRepository
from domain.model.errors import DuplicateError, PersistenceError
from domain.model.user import SessionToken, User


NOW = datetime(2026, 1, 23, 12, 0, 0, tzinfo=timezone.utc)


def _user_doc(**overrides) -> dict:
    doc = {
        '_id': 'user-123',
        'name': 'Test User',
        'email': 'test@example.com',
        'password_hash': '$2b$12$hashed',
        'age': 30,
        'avatar': None,
        'tokens': [{'token': 'tok-1'}, {'token': 'tok-2'}],
        'created_at': NOW,
        'updated_at': NOW,
    }
    doc.update(overrides)
    return doc


def _user() -> User:
    return User(
        id='user-123',
        name='Test User',
        email='test@example.com',
        created_at=NOW,
        updated_at=NOW,
        password_hash='$2b$12$hashed',
        age=30,
        tokens=[SessionToken('tok-1')],
    )


class MongoUserRepositoryTestCase(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.db = MagicMock()
        self.db.__getitem__.return_value = self.collection
        self.repo = MongoUserRepository(self.db)


class TestReads(MongoUserRepositoryTestCase):

    def test_uses_users_collection(self):
        self.db.__getitem__.assert_called_with(USERS_COLLECTION_NAME)

    def test_get_by_id_maps_document(self):
        self.collection.find_one.return_value = _user_doc(avatar=Binary(b'png'))

        user = self.repo.get_by_id('user-123')

        self.assertEqual(user.id, 'user-123')
        self.assertEqual(user.email, 'test@example.com')
        self.assertEqual(user.age, 30)
        self.assertEqual(user.avatar, b'png')
        self.assertIsInstance(user.avatar, bytes)
        self.assertEqual(user.tokens, [SessionToken('tok-1'), SessionToken('tok-2')])
        self.collection.find_one.assert_called_once_with({'_id': 'user-123'})

    def test_get_by_id_defaults_missing_optional_fields(self):
        doc = _user_doc()
        del doc['age'], doc['avatar'], doc['tokens']
        self.collection.find_one.return_value = doc

        user = self.repo.get_by_id('user-123')

        self.assertEqual(user.age, 0)
        self.assertIsNone(user.avatar)
        self.assertEqual(user.tokens, [])

    def test_get_by_email_not_found(self):
        self.collection.find_one.return_value = None

        self.assertIsNone(self.repo.get_by_email('nobody@example.com'))
        self.collection.find_one.assert_called_once_with({'email': 'nobody@example.com'})

    def test_get_by_token_queries_embedded_tokens(self):
        self.collection.find_one.return_value = _user_doc()

        user = self.repo.get_by_token('user-123', 'tok-2')

        self.assertIsNotNone(user)
        self.collection.find_one.assert_called_once_with({'_id': 'user-123', 'tokens.token': 'tok-2'})

    def test_read_errors_raise_persistence_error(self):
        self.collection.find_one.side_effect = PyMongoError("connection lost")

        for read in [
            lambda: self.repo.get_by_id('user-123'),
            lambda: self.repo.get_by_email('test@example.com'),
            lambda: self.repo.get_by_token('user-123', 'tok-1'),
        ]:
            with self.assertRaises(PersistenceError):
                read()

    def test_naive_timestamps_are_read_as_utc(self):
        naive = datetime(2026, 1, 23, 12, 0, 0)
        self.collection.find_one.return_value = _user_doc(created_at=naive, updated_at=naive)

        user = self.repo.get_by_id('user-123')

        self.assertEqual(user.created_at, NOW)
        self.assertEqual(user.updated_at.tzinfo, timezone.utc)

    def test_aware_timestamps_are_kept(self):
        self.collection.find_one.return_value = _user_doc()

        self.assertEqual(self.repo.get_by_id('user-123').created_at, NOW)


class TestWrites(MongoUserRepositoryTestCase):

    def test_create_inserts_full_document(self):
        user = _user()
        user.avatar = b'png'

        result = self.repo.create(user)

        self.assertIs(result, user)
        doc = self.collection.insert_one.call_args[0][0]
        self.assertEqual(doc['_id'], 'user-123')
        self.assertEqual(doc['password_hash'], '$2b$12$hashed')
        self.assertEqual(doc['tokens'], [{'token': 'tok-1'}])
        self.assertEqual(doc['avatar'], Binary(b'png'))
        self.assertNotIn('new_password', doc)

    def test_create_duplicate_email_raises_duplicate_error(self):
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with self.assertRaises(DuplicateError):
            self.repo.create(_user())

    def test_create_other_failure_raises_persistence_error(self):
        self.collection.insert_one.side_effect = PyMongoError("write concern")

        with self.assertRaises(PersistenceError):
            self.repo.create(_user())

    def test_save_replaces_document(self):
        self.collection.replace_one.return_value.matched_count = 1

        self.repo.save(_user())

        query, doc = self.collection.replace_one.call_args[0]
        self.assertEqual(query, {'_id': 'user-123'})
        self.assertIsNone(doc['avatar'])

    def test_save_missing_document_raises(self):
        self.collection.replace_one.return_value.matched_count = 0

        with self.assertRaises(PersistenceError):
            self.repo.save(_user())

    def test_save_duplicate_email(self):
        self.collection.replace_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with self.assertRaises(DuplicateError):
            self.repo.save(_user())

    def test_delete(self):
        self.collection.delete_one.return_value.deleted_count = 1
        self.assertTrue(self.repo.delete('user-123'))

        self.collection.delete_one.return_value.deleted_count = 0
        self.assertFalse(self.repo.delete('user-123'))

    def test_delete_failure_raises(self):
        self.collection.delete_one.side_effect = PyMongoError("down")

        with self.assertRaises(PersistenceError):
            self.repo.delete('user-123')


class TestEnsureIndexes(MongoUserRepositoryTestCase):

    def test_creates_unique_email_index(self):
        self.assertTrue(self.repo.ensure_indexes())

        self.collection.create_index.assert_any_call([('email', 1)], name=EMAIL_INDEX, unique=True)

    def test_recreates_conflicting_index(self):
        self.collection.create_index.side_effect = [
            OperationFailure("Index already exists with different options", code=85),
            None,
            None,
        ]

        self.assertTrue(self.repo.ensure_indexes())
        self.collection.drop_index.assert_called_once_with(EMAIL_INDEX)

    def test_other_failures_return_false(self):
        self.collection.create_index.side_effect = PyMongoError("down")

        self.assertFalse(self.repo.ensure_indexes())


if __name__ == '__main__':
    unittest.main()
