"""In-memory implementation of UserRepository for testing."""

from domain.model.errors import DuplicateError
from domain.model.user import User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    def _check_email_free(self, user: User) -> None:
        if any(u.email == user.email and u.id != user.id for u in self.store.values()):
            raise DuplicateError("Email already registered")

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        self._check_email_free(user)
        self.store[user.id] = user.copy()
        return user

    def save(self, user: User) -> User:
        self._check_email_free(user)
        self.store[user.id] = user.copy()
        return user

    def delete(self, user_id: str) -> bool:
        return self.store.pop(user_id, None) is not None

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        for user in self.store.values():
            if user.email == email:
                return user.copy()
        return None

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return user.copy() if user else None

    def get_by_token(self, user_id: str, token: str) -> User | None:
        user = self.store.get(user_id)
        if user and user.has_token(token):
            return user.copy()
        return None
