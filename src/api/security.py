"""Bearer-token authentication gate for protected routes."""

import logging
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_user_repo
from domain.model.errors import PersistenceError
from domain.model.user import User
from port.user_repository import UserRepository
from services.token_service import verify_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """The authenticated user and the exact token presented with the request."""
    user: User
    token: str


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Please authenticate.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_repo: UserRepository = Depends(get_user_repo),
) -> AuthContext:
    """Resolve the request's bearer token to a user. Raises 401 if it cannot.

    The token must carry a valid signature and expiry, and must still be
    listed in the user's tokens (logout removes it from there).
    """
    if not credentials:
        raise _unauthorized()

    token = credentials.credentials
    user_id = verify_token(token)
    if not user_id:
        raise _unauthorized()

    try:
        user = user_repo.get_by_token(user_id, token)
    except PersistenceError as e:
        logger.error("Token lookup failed", extra={"userId": user_id, "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error",
        ) from e
    if not user:
        logger.debug("Token not found for user", extra={"userId": user_id})
        raise _unauthorized()

    return AuthContext(user=user, token=token)
