"""Auth service: registration, login, and session management.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

from domain.model.errors import ValidationError
from domain.model.user import User, normalize_email
from port.user_repository import UserRepository
from services.passwords import verify_password
from services.token_service import create_access_token
from services.user_service import prepare_for_save, save_user

LOGIN_FAILED = "Unable to login"


def register(repo: UserRepository, name: str, email: str, password: str, age: int = 0) -> tuple[User, str]:
    """Register a new user and open their first session.

    Returns the created User and its session token.

    Raises:
        ValidationError: a field violates the user constraint set
        DuplicateError: email already registered
        PersistenceError: storage failure
    """
    user = User.create(name=name, email=email, password=password, age=age)
    prepare_for_save(user)
    repo.create(user)
    token = issue_token(repo, user)
    return user, token


def find_by_credentials(repo: UserRepository, email: str, password: str) -> User:
    """Look up a user by email and check the password.

    Raises:
        ValidationError: unknown email or wrong password (same message for both)
    """
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError(LOGIN_FAILED)

    user = repo.get_by_email(normalize_email(email))
    if not user or not verify_password(password, user.password_hash):
        raise ValidationError(LOGIN_FAILED)
    return user


def login(repo: UserRepository, email: str, password: str) -> tuple[User, str]:
    """Authenticate and open a new session. Returns the User and its token."""
    user = find_by_credentials(repo, email, password)
    token = issue_token(repo, user)
    return user, token


def issue_token(repo: UserRepository, user: User) -> str:
    """Sign a new session token, append it to the user's tokens, and persist."""
    token = create_access_token(user.id)
    user.add_token(token)
    save_user(repo, user)
    return token


def logout(repo: UserRepository, user: User, token: str) -> None:
    """End the session identified by `token`; other sessions stay valid."""
    user.remove_token(token)
    save_user(repo, user)


def logout_all(repo: UserRepository, user: User) -> None:
    user.clear_tokens()
    save_user(repo, user)
