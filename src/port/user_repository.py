from typing import Protocol

from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Write methods raise DuplicateError when the email is already taken. Every
    method raises PersistenceError on any other storage failure; a read that
    finds nothing returns None.
    """
    def create(self, user: User) -> User:
        """Insert a new user document. Return the stored User."""
        ...

    def save(self, user: User) -> User:
        """Replace the stored document for `user.id` with the given state."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by normalized email. Return User or None if not found."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def get_by_token(self, user_id: str, token: str) -> User | None:
        """Find the user with `user_id` whose tokens contain `token`."""
        ...

    def delete(self, user_id: str) -> bool:
        """Delete a user. Return True if a document was removed."""
        ...
