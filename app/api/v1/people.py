"""
People API endpoints.

This module defines the REST API endpoints for browsing candidates and
expressing likes and dislikes.
Design Rationale:
- Authenticated actor comes from the bearer token, never from the body
- Domain errors (self-reference, missing target, duplicate) propagate to
  the application's MatchmakingError handler, which maps them to 400/404/409
- Query validation mirrors the registration constraints
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query

from app.core.config import get_settings
from app.core.exceptions import MatchmakingError
from app.models.schemas import (
    CandidatePage,
    CandidateResponse,
    LikedUserResponse,
    LikedUsersPage,
    PageMeta,
    PreferenceResponse
)
from app.core.dependencies import (
    CurrentUserDep,
    PhotoRepositoryDep,
    PreferenceServiceDep,
    RecommendationSelectorDep
)
from app.services.recommendation_selector import CandidateFilters
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["People"])

settings = get_settings()


@router.get(
    "/recommended",
    response_model=CandidatePage,
    summary="Get recommended people",
    description="Random page of active users the requester has not liked or disliked yet"
)
async def get_recommended(
    current_user: CurrentUserDep,
    selector: RecommendationSelectorDep,
    photo_repository: PhotoRepositoryDep,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(
        settings.RECOMMENDATION_DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.RECOMMENDATION_MAX_PAGE_SIZE,
        description="Items per page"
    ),
    gender: Optional[str] = Query(None, pattern="^(male|female|other)$", description="Filter by gender"),
    min_age: Optional[int] = Query(None, ge=18, description="Minimum age"),
    max_age: Optional[int] = Query(None, le=100, description="Maximum age")
) -> CandidatePage:
    """
    Get recommended people for the authenticated user.

    Pages are re-randomized on every call; the metadata counts the whole
    filtered pool.
    """
    if min_age is not None and max_age is not None and min_age > max_age:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"min_age ({min_age}) cannot be greater than max_age ({max_age})"
        )

    try:
        selection = await selector.select_candidates(
            current_user,
            CandidateFilters(gender=gender, min_age=min_age, max_age=max_age),
            page=page,
            page_size=per_page
        )

        photos = await photo_repository.list_by_user_ids([user.id for user in selection.users])

        return CandidatePage(
            data=[CandidateResponse.from_user(user, photos.get(user.id, [])) for user in selection.users],
            meta=selection.meta
        )

    except MatchmakingError:
        raise
    except Exception as e:
        logger.error("Error selecting candidates", user_id=current_user.id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve recommended users"
        )


@router.post(
    "/{target_id}/like",
    response_model=PreferenceResponse,
    summary="Like a user",
    description="Record a like; replaces an earlier dislike of the same user",
    responses={400: {"description": "Cannot like yourself"},
               404: {"description": "User not found"},
               409: {"description": "Already liked this user"}}
)
async def like_user(
    target_id: int,
    current_user: CurrentUserDep,
    preference_service: PreferenceServiceDep
) -> PreferenceResponse:
    preference = await preference_service.like(current_user.id, target_id)
    return PreferenceResponse.model_validate(preference)


@router.post(
    "/{target_id}/dislike",
    response_model=PreferenceResponse,
    summary="Dislike a user",
    description="Record a dislike; replaces an earlier like of the same user",
    responses={400: {"description": "Cannot dislike yourself"},
               404: {"description": "User not found"},
               409: {"description": "Already disliked this user"}}
)
async def dislike_user(
    target_id: int,
    current_user: CurrentUserDep,
    preference_service: PreferenceServiceDep
) -> PreferenceResponse:
    preference = await preference_service.dislike(current_user.id, target_id)
    return PreferenceResponse.model_validate(preference)


@router.get(
    "/liked",
    response_model=LikedUsersPage,
    summary="Get liked users",
    description="Users the requester has liked, most recent first"
)
async def get_liked(
    current_user: CurrentUserDep,
    preference_service: PreferenceServiceDep,
    photo_repository: PhotoRepositoryDep,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(
        settings.RECOMMENDATION_DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.RECOMMENDATION_MAX_PAGE_SIZE,
        description="Items per page"
    )
) -> LikedUsersPage:
    rows, total = await preference_service.get_liked_users(current_user.id, page=page, per_page=per_page)
    photos = await photo_repository.list_by_user_ids([user.id for user, _ in rows])

    data = [
        LikedUserResponse(
            **CandidateResponse.from_user(user, photos.get(user.id, [])).model_dump(),
            liked_at=liked_at
        )
        for user, liked_at in rows
    ]

    return LikedUsersPage(data=data, meta=PageMeta.build(page, per_page, total))
