"""Unit tests for User domain model: constraints, normalization, sessions."""

import unittest

from domain.model.errors import ValidationError
from domain.model.user import (
    PASSWORD_CONSTRAINTS,
    USER_CONSTRAINTS,
    SessionToken,
    User,
    check_constraints,
)


def _make_user(**overrides) -> User:
    defaults = dict(name='Andrew', email='andrew@example.com', password='Red12345!', age=27)
    defaults.update(overrides)
    return User.create(**defaults)


class TestUserCreate(unittest.TestCase):
    """Tests for User.create() and the constraint set it evaluates."""

    def test_create_normalizes_email_and_name(self):
        user = _make_user(email='  Andrew@Example.COM ', name='  Andrew  ')

        self.assertEqual(user.email, 'andrew@example.com')
        self.assertEqual(user.name, 'Andrew')

    def test_create_keeps_password_pending_and_unhashed(self):
        user = _make_user()

        self.assertTrue(user.password_changed)
        self.assertEqual(user.new_password, 'Red12345!')
        self.assertIsNone(user.password_hash)

    def test_create_defaults(self):
        user = User.create(name='Jen', email='jen@example.com', password='secret99')

        self.assertEqual(user.age, 0)
        self.assertIsNone(user.avatar)
        self.assertEqual(user.tokens, [])
        self.assertEqual(len(user.id), 32)

    def test_create_assigns_unique_ids(self):
        self.assertNotEqual(_make_user().id, _make_user(email='other@example.com').id)

    def test_rejects_empty_name(self):
        with self.assertRaises(ValidationError) as ctx:
            _make_user(name='   ')
        self.assertEqual(str(ctx.exception), 'Name is required')

    def test_rejects_malformed_email(self):
        for email in ['not-an-email', 'a@b', '@example.com', 'a b@example.com']:
            with self.subTest(email=email):
                with self.assertRaises(ValidationError):
                    _make_user(email=email)

    def test_rejects_negative_age(self):
        with self.assertRaises(ValidationError) as ctx:
            _make_user(age=-1)
        self.assertEqual(str(ctx.exception), 'Age must be a positive number')

    def test_rejects_boolean_age(self):
        with self.assertRaises(ValidationError):
            _make_user(age=True)

    def test_rejects_short_password(self):
        with self.assertRaises(ValidationError) as ctx:
            _make_user(password='abc12')
        self.assertEqual(str(ctx.exception), 'Password must be at least 7 characters')

    def test_short_password_check_ignores_surrounding_whitespace(self):
        with self.assertRaises(ValidationError):
            _make_user(password='  abc12   ')

    def test_pending_password_is_trimmed(self):
        user = _make_user(password='  abcdefg  ')
        self.assertEqual(user.new_password, 'abcdefg')

    def test_rejects_password_over_72_bytes(self):
        for password in ['x' * 80, 'é' * 40]:
            with self.subTest(length=len(password)):
                with self.assertRaises(ValidationError) as ctx:
                    _make_user(password=password)
                self.assertEqual(str(ctx.exception), 'Password must be at most 72 bytes')

    def test_accepts_72_byte_password(self):
        user = _make_user(password='x' * 72)
        self.assertEqual(len(user.new_password), 72)

    def test_rejects_password_containing_password(self):
        for password in ['password123', 'myPASSWORD!']:
            with self.subTest(password=password):
                with self.assertRaises(ValidationError) as ctx:
                    _make_user(password=password)
                self.assertEqual(str(ctx.exception), 'Password cannot contain "password"')

    def test_accepts_seven_character_password(self):
        user = _make_user(password='abc1234')
        self.assertEqual(user.new_password, 'abc1234')


class TestCheckConstraints(unittest.TestCase):
    """Tests for the declarative constraint evaluation."""

    def test_first_failing_constraint_wins(self):
        with self.assertRaises(ValidationError) as ctx:
            check_constraints({'name': '', 'email': 'bad', 'age': -1}, USER_CONSTRAINTS)
        self.assertEqual(str(ctx.exception), 'Name is required')

    def test_non_string_password_is_rejected_without_type_error(self):
        with self.assertRaises(ValidationError) as ctx:
            check_constraints({'password': 1234567}, PASSWORD_CONSTRAINTS)
        self.assertEqual(str(ctx.exception), 'Password is required')

    def test_valid_values_pass(self):
        check_constraints({'name': 'A', 'email': 'a@b.co', 'age': 0}, USER_CONSTRAINTS)


class TestUserValidate(unittest.TestCase):
    """Tests for validate() on a stored user (no pending password)."""

    def test_stored_user_with_hash_is_valid(self):
        user = _make_user()
        user.password_hash = '$2b$04$hash'
        user.new_password = None

        user.validate()

    def test_user_without_any_password_is_invalid(self):
        user = _make_user()
        user.new_password = None

        with self.assertRaises(ValidationError):
            user.validate()


class TestApplyUpdates(unittest.TestCase):
    """Tests for apply_updates() and copy()."""

    def test_applies_allowed_fields(self):
        user = _make_user()
        user.apply_updates({'name': 'Mike', 'age': 30})

        self.assertEqual(user.name, 'Mike')
        self.assertEqual(user.age, 30)

    def test_password_update_is_pending(self):
        user = _make_user()
        user.password_hash = 'old-hash'
        user.new_password = None

        user.apply_updates({'password': 'new-secret-1'})

        self.assertEqual(user.password_hash, 'old-hash')
        self.assertEqual(user.new_password, 'new-secret-1')

    def test_unknown_key_rejects_whole_update(self):
        user = _make_user()

        with self.assertRaises(ValidationError) as ctx:
            user.apply_updates({'name': 'Mike', 'location': 'Philadelphia'})

        self.assertEqual(str(ctx.exception), 'Invalid updates!')
        self.assertEqual(user.name, 'Andrew')

    def test_copy_is_independent(self):
        user = _make_user()
        user.add_token('t1')

        clone = user.copy()
        clone.name = 'Other'
        clone.add_token('t2')

        self.assertEqual(user.name, 'Andrew')
        self.assertEqual(user.tokens, [SessionToken('t1')])


class TestSessions(unittest.TestCase):
    """Tests for token bookkeeping."""

    def setUp(self):
        self.user = _make_user()
        for token in ['t1', 't2', 't3']:
            self.user.add_token(token)

    def test_add_token_keeps_order(self):
        self.assertEqual([t.token for t in self.user.tokens], ['t1', 't2', 't3'])

    def test_remove_token_removes_only_that_token(self):
        self.user.remove_token('t2')

        self.assertEqual([t.token for t in self.user.tokens], ['t1', 't3'])
        self.assertFalse(self.user.has_token('t2'))
        self.assertTrue(self.user.has_token('t1'))

    def test_clear_tokens(self):
        self.user.clear_tokens()
        self.assertEqual(self.user.tokens, [])


class TestAvatar(unittest.TestCase):

    def test_set_and_clear(self):
        user = _make_user()
        user.set_avatar(b'png')
        self.assertEqual(user.avatar, b'png')

        user.clear_avatar()
        user.clear_avatar()
        self.assertIsNone(user.avatar)


if __name__ == '__main__':
    unittest.main()
