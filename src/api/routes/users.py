"""User account routes.

Endpoints:
- POST /users: Register
- POST /users/login: Login
- POST /users/logout, /users/logoutAll: End one or all sessions
- GET, PATCH, DELETE /users/me: Read, update, delete own account
- POST, DELETE /users/me/avatar: Upload or remove own avatar
- GET /users/{user_id}/avatar: Fetch any user's avatar (public)
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import get_image_processor, get_user_repo
from api.models import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    to_user_response,
)
from api.security import AuthContext, get_auth_context
from api.uploads import read_avatar_upload
from domain.model.errors import DomainError, NotFoundError, PersistenceError, UploadRejectedError
from port.image_processor import ImageProcessor
from port.user_repository import UserRepository
from services import auth_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _from_domain_error(e: DomainError) -> JSONResponse:
    # Storage failures are never the client's fault
    if isinstance(e, PersistenceError):
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    return _error(status.HTTP_400_BAD_REQUEST, str(e))


@router.post("", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, repo: UserRepository = Depends(get_user_repo)):
    """Register a new user and return it with its first session token."""
    try:
        user, token = auth_service.register(
            repo,
            name=request.name,
            email=request.email,
            password=request.password,
            age=request.age,
        )
    except DomainError as e:
        return _from_domain_error(e)

    logger.info("User registered", extra={"userId": user.id})
    return AuthResponse(user=to_user_response(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, repo: UserRepository = Depends(get_user_repo)):
    """Login and open a new session.

    Unknown email and wrong password produce the same 400 response.
    """
    try:
        user, token = auth_service.login(repo, request.email, request.password)
    except DomainError as e:
        return _from_domain_error(e)

    logger.info("User logged in", extra={"userId": user.id})
    return AuthResponse(user=to_user_response(user), token=token)


@router.post("/logout")
async def logout(
    context: AuthContext = Depends(get_auth_context),
    repo: UserRepository = Depends(get_user_repo),
):
    """Remove the token used for this request."""
    try:
        auth_service.logout(repo, context.user, context.token)
    except DomainError as e:
        logger.error("Logout failed", extra={"userId": context.user.id, "error": str(e)})
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info("User logged out", extra={"userId": context.user.id})
    return Response(status_code=status.HTTP_200_OK)


@router.post("/logoutAll")
async def logout_all(
    context: AuthContext = Depends(get_auth_context),
    repo: UserRepository = Depends(get_user_repo),
):
    """Remove every session token of the current user."""
    try:
        auth_service.logout_all(repo, context.user)
    except DomainError as e:
        logger.error("Logout of all sessions failed", extra={"userId": context.user.id, "error": str(e)})
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info("User logged out of all sessions", extra={"userId": context.user.id})
    return Response(status_code=status.HTTP_200_OK)


@router.get("/me", response_model=UserResponse)
async def read_me(context: AuthContext = Depends(get_auth_context)):
    return to_user_response(context.user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    updates: dict[str, Any] = Body(...),
    context: AuthContext = Depends(get_auth_context),
    repo: UserRepository = Depends(get_user_repo),
):
    """Update name, email, password, and/or age.

    Any other key rejects the whole request with "Invalid updates!".
    """
    try:
        user = user_service.update_profile(repo, context.user, updates)
    except DomainError as e:
        return _from_domain_error(e)

    logger.info("User updated", extra={"userId": user.id, "fields": sorted(updates)})
    return to_user_response(user)


@router.delete("/me", response_model=UserResponse)
async def delete_me(
    context: AuthContext = Depends(get_auth_context),
    repo: UserRepository = Depends(get_user_repo),
):
    """Delete the current user's account and return what was deleted."""
    try:
        user = user_service.delete_account(repo, context.user)
    except DomainError as e:
        logger.error("Account deletion failed", extra={"userId": context.user.id, "error": str(e)})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    logger.info("User deleted", extra={"userId": user.id})
    return to_user_response(user)


@router.post("/me/avatar")
async def upload_avatar(
    context: AuthContext = Depends(get_auth_context),
    data: bytes = Depends(read_avatar_upload),
    repo: UserRepository = Depends(get_user_repo),
    images: ImageProcessor = Depends(get_image_processor),
):
    """Store the uploaded image as a 250x250 PNG avatar."""
    try:
        await user_service.set_avatar(repo, images, context.user, data)
    except UploadRejectedError:
        raise
    except DomainError as e:
        return _from_domain_error(e)

    logger.info("Avatar stored", extra={"userId": context.user.id, "uploadBytes": len(data)})
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/me/avatar")
async def delete_avatar(
    context: AuthContext = Depends(get_auth_context),
    repo: UserRepository = Depends(get_user_repo),
):
    """Remove the current user's avatar. Succeeds when none is set."""
    try:
        user_service.clear_avatar(repo, context.user)
    except DomainError as e:
        logger.error("Avatar removal failed", extra={"userId": context.user.id, "error": str(e)})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return Response(status_code=status.HTTP_200_OK)


@router.get("/{user_id}/avatar")
async def get_avatar(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Serve a user's avatar as image/png."""
    try:
        avatar = user_service.get_avatar(repo, user_id)
    except NotFoundError as e:
        return _error(status.HTTP_404_NOT_FOUND, str(e))
    except PersistenceError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return Response(content=avatar, media_type="image/png")
