"""Pydantic models for API request/response."""

from datetime import datetime
from pydantic import BaseModel, Field

from domain.model.user import User


class RegisterRequest(BaseModel):
    """Request model for user registration."""
    name: str
    email: str
    password: str
    age: int = Field(0, description="Age in years")


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: str
    password: str


class UserResponse(BaseModel):
    """Public representation of a user. Never carries the password hash or tokens."""
    id: str = Field(..., description="User ID")
    name: str
    email: str
    age: int
    has_avatar: bool = Field(False, description="Whether an avatar image is stored")
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    """Response model for registration and login."""
    user: UserResponse
    token: str


def to_user_response(user: User) -> UserResponse:
    """Shape a domain User into its public representation."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        age=user.age,
        has_avatar=user.avatar is not None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
