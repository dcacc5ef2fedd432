"""User domain model and its validation rules."""

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable

from domain.model.errors import ValidationError


EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 7
# bcrypt only accepts up to 72 bytes of input
MAX_PASSWORD_BYTES = 72
ALLOWED_UPDATES = ('name', 'email', 'password', 'age')


# ── Constraints ──────────────────────────────────────────


@dataclass(frozen=True)
class Constraint:
    """A single rule on one user field. `check` returns True when the value is acceptable."""
    field: str
    check: Callable[[Any], bool]
    message: str


def _is_age(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


USER_CONSTRAINTS: tuple[Constraint, ...] = (
    Constraint('name', lambda v: isinstance(v, str) and bool(v.strip()), 'Name is required'),
    Constraint('email', lambda v: isinstance(v, str) and bool(EMAIL_PATTERN.match(v)), 'Email is invalid'),
    Constraint('age', _is_age, 'Age must be a positive number'),
)

# Evaluated in order; later checks assume earlier ones passed.
# Values are checked after normalize() has trimmed them.
PASSWORD_CONSTRAINTS: tuple[Constraint, ...] = (
    Constraint('password', lambda v: isinstance(v, str), 'Password is required'),
    Constraint(
        'password',
        lambda v: len(v) >= MIN_PASSWORD_LENGTH,
        f'Password must be at least {MIN_PASSWORD_LENGTH} characters',
    ),
    Constraint(
        'password',
        lambda v: len(v.encode('utf-8')) <= MAX_PASSWORD_BYTES,
        f'Password must be at most {MAX_PASSWORD_BYTES} bytes',
    ),
    Constraint('password', lambda v: 'password' not in v.lower(), 'Password cannot contain "password"'),
)


def check_constraints(values: dict[str, Any], constraints: tuple[Constraint, ...]) -> None:
    """Raise ValidationError for the first constraint that `values` violates."""
    for constraint in constraints:
        if not constraint.check(values.get(constraint.field)):
            raise ValidationError(constraint.message)


# ── User Domain Model ────────────────────────────────────


@dataclass(frozen=True)
class SessionToken:
    """A signed session token issued to a user."""
    token: str


@dataclass
class User:
    """Domain model representing a user account.

    `new_password` holds a plaintext password that has been set but not yet
    hashed. It is consumed by the next persist and never stored.
    """
    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
    password_hash: str | None = None
    age: int = 0
    avatar: bytes | None = None
    tokens: list[SessionToken] = field(default_factory=list)
    new_password: str | None = field(default=None, repr=False, compare=False)

    @staticmethod
    def create(name: str, email: str, password: str, age: int = 0) -> 'User':
        """Build a new, validated user with a pending (unhashed) password."""
        now = datetime.now(timezone.utc)
        user = User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            created_at=now,
            updated_at=now,
            age=age,
        )
        user.change_password(password)
        user.validate()
        return user

    # ── validation ───────────────────────────────────────────

    def normalize(self) -> None:
        if isinstance(self.name, str):
            self.name = self.name.strip()
        if isinstance(self.email, str):
            self.email = normalize_email(self.email)
        if isinstance(self.new_password, str):
            self.new_password = self.new_password.strip()

    def validate(self) -> None:
        """Normalize fields and check them against the user constraint set.

        Raises:
            ValidationError: a field violates its constraint
        """
        self.normalize()
        check_constraints(
            {'name': self.name, 'email': self.email, 'age': self.age},
            USER_CONSTRAINTS,
        )
        if self.new_password is not None:
            check_constraints({'password': self.new_password}, PASSWORD_CONSTRAINTS)
        elif not self.password_hash:
            raise ValidationError('Password is required')

    # ── mutation ─────────────────────────────────────────────

    @property
    def password_changed(self) -> bool:
        return self.new_password is not None

    def change_password(self, password: str) -> None:
        self.new_password = password

    def apply_updates(self, updates: dict[str, Any]) -> None:
        """Set each allowed field from `updates`.

        Raises:
            ValidationError: a key outside ALLOWED_UPDATES is present (nothing is applied)
        """
        if not all(key in ALLOWED_UPDATES for key in updates):
            raise ValidationError('Invalid updates!')

        for key, value in updates.items():
            if key == 'password':
                self.change_password(value)
            else:
                setattr(self, key, value)

    def copy(self) -> 'User':
        """Return a copy that can be mutated without touching this instance."""
        return replace(self, tokens=list(self.tokens))

    # ── sessions ─────────────────────────────────────────────

    def add_token(self, token: str) -> None:
        self.tokens.append(SessionToken(token=token))

    def has_token(self, token: str) -> bool:
        return any(t.token == token for t in self.tokens)

    def remove_token(self, token: str) -> None:
        self.tokens = [t for t in self.tokens if t.token != token]

    def clear_tokens(self) -> None:
        self.tokens = []

    # ── avatar ───────────────────────────────────────────────

    def set_avatar(self, png_bytes: bytes) -> None:
        self.avatar = png_bytes

    def clear_avatar(self) -> None:
        self.avatar = None


def normalize_email(email: str) -> str:
    return email.strip().lower()
