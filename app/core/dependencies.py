"""
Dependency injection configuration for FastAPI.

This module defines dependency functions for FastAPI using the dependency injection
pattern. This enables easy testing and loose coupling between components.

Design Rationale:
- One session per request, shared by every repository in that request
- Plain builder functions so the CLI and scheduler wire services the same way
- Authentication resolved once per request and exposed as typed aliases
"""

from typing import Annotated, Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.config import get_settings
from app.core.exceptions import AuthenticationError
from app.core.logging import bind_log_context
from app.models.database import AccessToken, User
from app.repositories.notification_repository import NotificationRepository
from app.repositories.photo_repository import PhotoRepository
from app.repositories.preference_repository import PreferenceRepository
from app.repositories.token_repository import AccessTokenRepository
from app.repositories.user_repository import UserRepository
from app.services.auth_service import AuthService
from app.services.mailer import Mailer, get_mailer
from app.services.notification_dispatcher import NotificationDispatcher, DispatchingEventSink
from app.services.popularity_watcher import PopularityWatcher
from app.services.preference_service import PreferenceService
from app.services.recommendation_selector import RecommendationSelector


# Type aliases for dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_session)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]

bearer_scheme = HTTPBearer(auto_error=False)


def build_popularity_watcher(session: AsyncSession, mailer: Mailer) -> PopularityWatcher:
    """
    Wire a watcher whose events are dispatched in-process on the same session.

    Args:
        session: Database session
        mailer: Transport for admin alerts

    Returns:
        PopularityWatcher instance
    """
    settings = get_settings()
    dispatcher = NotificationDispatcher(
        session=session,
        mailer=mailer,
        recipient=settings.ADMIN_EMAIL
    )
    return PopularityWatcher(
        preference_repository=PreferenceRepository(session),
        notification_repository=NotificationRepository(session),
        user_repository=UserRepository(session),
        sink=DispatchingEventSink(dispatcher),
        threshold=settings.POPULARITY_THRESHOLD
    )


async def get_user_repository(session: SessionDep) -> UserRepository:
    return UserRepository(session)


async def get_preference_repository(session: SessionDep) -> PreferenceRepository:
    return PreferenceRepository(session)


async def get_token_repository(session: SessionDep) -> AccessTokenRepository:
    return AccessTokenRepository(session)


async def get_photo_repository(session: SessionDep) -> PhotoRepository:
    return PhotoRepository(session)


async def get_popularity_watcher(session: SessionDep, mailer: MailerDep) -> PopularityWatcher:
    return build_popularity_watcher(session, mailer)


async def get_preference_service(
    session: SessionDep,
    preference_repository: Annotated[PreferenceRepository, Depends(get_preference_repository)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
    popularity_watcher: Annotated[PopularityWatcher, Depends(get_popularity_watcher)]
) -> PreferenceService:
    """
    Dependency function to get PreferenceService instance.

    Returns:
        PreferenceService instance
    """
    return PreferenceService(
        session=session,
        preference_repository=preference_repository,
        user_repository=user_repository,
        popularity_watcher=popularity_watcher
    )


async def get_recommendation_selector(
    preference_repository: Annotated[PreferenceRepository, Depends(get_preference_repository)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)]
) -> RecommendationSelector:
    return RecommendationSelector(
        user_repository=user_repository,
        preference_repository=preference_repository,
        max_page_size=get_settings().RECOMMENDATION_MAX_PAGE_SIZE
    )


async def get_auth_service(
    session: SessionDep,
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
    token_repository: Annotated[AccessTokenRepository, Depends(get_token_repository)],
    photo_repository: Annotated[PhotoRepository, Depends(get_photo_repository)]
) -> AuthService:
    return AuthService(
        session=session,
        user_repository=user_repository,
        token_repository=token_repository,
        photo_repository=photo_repository,
        token_name=get_settings().ACCESS_TOKEN_NAME
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


async def get_current_identity(
    auth_service: AuthServiceDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]
) -> Tuple[User, AccessToken]:
    """
    Resolve the bearer token on the request.

    Raises:
        AuthenticationError: No token, unknown token or inactive user
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthenticated")

    user, access_token = await auth_service.authenticate(credentials.credentials)
    bind_log_context(user_id=user.id)
    return user, access_token


CurrentIdentityDep = Annotated[Tuple[User, AccessToken], Depends(get_current_identity)]


async def get_current_user(identity: CurrentIdentityDep) -> User:
    return identity[0]


# Type aliases for repository dependencies
PhotoRepositoryDep = Annotated[PhotoRepository, Depends(get_photo_repository)]

# Type aliases for service dependencies
PreferenceServiceDep = Annotated[PreferenceService, Depends(get_preference_service)]
RecommendationSelectorDep = Annotated[RecommendationSelector, Depends(get_recommendation_selector)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
