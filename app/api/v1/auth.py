"""
Authentication API endpoints.

Registration and login return a bearer token that every /people endpoint
expects in the Authorization header.
"""

from fastapi import APIRouter, status

from app.models.schemas import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    UserResponse,
    MessageResponse
)
from app.core.dependencies import AuthServiceDep, CurrentIdentityDep, CurrentUserDep, PhotoRepositoryDep
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and receive a bearer token"
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
    photo_repository: PhotoRepositoryDep
) -> AuthResponse:
    """
    Register a new user.

    Raises:
        ConflictError: Email already registered (409)
    """
    user, token = await auth_service.register(data)
    photos = await photo_repository.list_by_user(user.id)
    return AuthResponse(user=UserResponse.from_user(user, photos), token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Exchange email and password for a bearer token"
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
    photo_repository: PhotoRepositoryDep
) -> AuthResponse:
    user, token = await auth_service.login(data.email, data.password)
    photos = await photo_repository.list_by_user(user.id)
    return AuthResponse(user=UserResponse.from_user(user, photos), token=token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Revoke the bearer token used for this request"
)
async def logout(
    identity: CurrentIdentityDep,
    auth_service: AuthServiceDep
) -> MessageResponse:
    user, access_token = identity
    await auth_service.logout(access_token)
    logger.info("User logged out", user_id=user.id)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Profile and photos of the authenticated user"
)
async def me(
    current_user: CurrentUserDep,
    photo_repository: PhotoRepositoryDep
) -> UserResponse:
    photos = await photo_repository.list_by_user(current_user.id)
    return UserResponse.from_user(current_user, photos)
