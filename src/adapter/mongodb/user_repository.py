"""MongoDB implementation of UserRepository."""

from datetime import datetime, timezone
from logging import getLogger

from bson.binary import Binary
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateError, PersistenceError
from domain.model.user import SessionToken, User

logger = getLogger(__name__)

EMAIL_INDEX = 'idx_users_email'
# IndexOptionsConflict, IndexKeySpecsConflict
_INDEX_CONFLICT_CODES = (85, 86)


def _as_utc(value: datetime) -> datetime:
    # Documents written without tz_aware come back naive; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection.

        An existing index with the same name but different keys or options is dropped
        and recreated.
        """
        indexes = [
            ([('email', 1)], EMAIL_INDEX, {'unique': True}),
            ([('tokens.token', 1)], 'idx_users_tokens', {}),
        ]
        try:
            for keys, name, options in indexes:
                try:
                    self.collection.create_index(keys, name=name, **options)
                except OperationFailure as e:
                    if e.code not in _INDEX_CONFLICT_CODES:
                        raise
                    logger.warning("Dropping conflicting index", extra={"index": name})
                    self.collection.drop_index(name)
                    self.collection.create_index(keys, name=name, **options)
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    # ── mapping ──────────────────────────────────────────────

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        avatar = doc.get('avatar')
        return User(
            id=doc['_id'],
            name=doc['name'],
            email=doc['email'],
            created_at=_as_utc(doc['created_at']),
            updated_at=_as_utc(doc['updated_at']),
            password_hash=doc.get('password_hash'),
            age=doc.get('age', 0),
            avatar=bytes(avatar) if avatar is not None else None,
            tokens=[SessionToken(token=t['token']) for t in doc.get('tokens', [])],
        )

    def _to_document(self, user: User) -> dict:
        return {
            '_id': user.id,
            'name': user.name,
            'email': user.email,
            'password_hash': user.password_hash,
            'age': user.age,
            'avatar': Binary(user.avatar) if user.avatar is not None else None,
            'tokens': [{'token': t.token} for t in user.tokens],
            'created_at': user.created_at,
            'updated_at': user.updated_at,
        }

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        """Insert a new user document and return the User."""
        try:
            self.collection.insert_one(self._to_document(user))
        except DuplicateKeyError as e:
            logger.warning("User creation failed: email already exists", extra={"email": user.email})
            raise DuplicateError("Email already registered") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": user.email, "error": str(e)})
            raise PersistenceError("Failed to create user") from e

        logger.info("User created", extra={"userId": user.id})
        return user

    def save(self, user: User) -> User:
        """Replace the stored user document with the given state."""
        try:
            result = self.collection.replace_one({'_id': user.id}, self._to_document(user))
        except DuplicateKeyError as e:
            logger.warning("User update failed: email already exists", extra={"userId": user.id})
            raise DuplicateError("Email already registered") from e
        except PyMongoError as e:
            logger.error("Failed to save user", extra={"userId": user.id, "error": str(e)})
            raise PersistenceError("Failed to save user") from e

        if result.matched_count == 0:
            raise PersistenceError("User no longer exists")
        return user

    def delete(self, user_id: str) -> bool:
        """Delete a user document. Return True if it existed."""
        try:
            result = self.collection.delete_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise PersistenceError("Failed to delete user") from e
        return result.deleted_count > 0

    # ── read operations ──────────────────────────────────────

    def _find_one(self, query: dict, context: dict) -> User | None:
        """Return the matching user, or None when no document matches.

        Raises:
            PersistenceError: the read itself failed
        """
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error("Failed to get user", extra={**context, "error": str(e)})
            raise PersistenceError("Failed to read user") from e
        return self._to_domain(doc) if doc else None

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        return self._find_one({'email': email}, {"email": email})

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        return self._find_one({'_id': user_id}, {"userId": user_id})

    def get_by_token(self, user_id: str, token: str) -> User | None:
        """Find a user by ID that still holds `token`."""
        return self._find_one({'_id': user_id, 'tokens.token': token}, {"userId": user_id})
