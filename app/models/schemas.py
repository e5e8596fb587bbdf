"""
API request/response schemas using Pydantic.

This module defines the API contract models, separate from database models.
Design patterns demonstrated:
- Separate API models from database models for flexibility
- Request/response validation with Pydantic
- Public profile shape that never exposes email or password data
"""

import math
from datetime import datetime
from typing import Iterable, List, Optional, Dict

from pydantic import BaseModel, Field, validator

from app.models.database import Photo, Polarity, User

MAX_PHOTOS = 10


class RegisterRequest(BaseModel):
    """
    Request schema for account registration.

    Only adults can register; coordinates are optional and used for display.
    Photos are URLs in display order, the first one becoming the primary photo.
    """
    name: str = Field(..., min_length=1, max_length=100, description="User's display name")
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", description="Login email")
    password: str = Field(..., min_length=8, max_length=128, description="Plaintext password")
    age: int = Field(..., ge=18, le=100, description="User's age")
    gender: str = Field(..., pattern="^(male|female|other)$", description="User's gender")
    bio: Optional[str] = Field(None, max_length=1000, description="User's biography")
    location: Optional[str] = Field(None, max_length=200, description="User's location")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    photos: List[str] = Field(default_factory=list, max_length=MAX_PHOTOS, description="Photo URLs")

    @validator('email')
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @validator('photos')
    def validate_photo_urls(cls, v: List[str]) -> List[str]:
        for url in v:
            if not url.startswith(("http://", "https://")) or len(url) > 500:
                raise ValueError(f"Invalid photo URL: {url[:50]}")
        return v


class LoginRequest(BaseModel):
    """Request schema for login."""
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @validator('email')
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class PhotoResponse(BaseModel):
    id: int
    url: str
    display_order: int
    is_primary: bool

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Private profile returned to the account owner."""
    id: int = Field(..., description="User's unique identifier")
    name: str = Field(..., description="User's display name")
    email: str = Field(..., description="Login email")
    age: int = Field(..., description="User's age")
    gender: str = Field(..., description="User's gender")
    bio: Optional[str] = Field(None, description="User's biography")
    location: Optional[str] = Field(None, description="User's location")
    latitude: Optional[float] = Field(None)
    longitude: Optional[float] = Field(None)
    is_active: bool = Field(..., description="Whether the profile is visible to others")
    created_at: datetime = Field(..., description="Account creation timestamp")
    photos: List[PhotoResponse] = Field(default_factory=list, description="Photos in display order")

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user: User, photos: Iterable[Photo] = ()) -> "UserResponse":
        return cls.model_validate(user).model_copy(
            update={"photos": [PhotoResponse.model_validate(p) for p in photos]}
        )


class AuthResponse(BaseModel):
    """Profile plus a freshly issued bearer token."""
    user: UserResponse
    token: str = Field(..., description="Plaintext bearer token, shown once")
    token_type: str = Field(default="bearer")


class CandidateResponse(BaseModel):
    """Public profile shown to other users."""
    id: int = Field(..., description="User's unique identifier")
    name: str = Field(..., description="User's display name")
    age: int = Field(..., description="User's age")
    gender: str = Field(..., description="User's gender")
    bio: Optional[str] = Field(None, description="User's biography")
    location: Optional[str] = Field(None, description="User's location")
    photos: List[PhotoResponse] = Field(default_factory=list, description="Photos in display order")

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user: User, photos: Iterable[Photo] = ()) -> "CandidateResponse":
        return cls.model_validate(user).model_copy(
            update={"photos": [PhotoResponse.model_validate(p) for p in photos]}
        )


class LikedUserResponse(CandidateResponse):
    """Public profile plus the time the requester liked it."""
    liked_at: datetime = Field(..., description="When the like was recorded")


class PageMeta(BaseModel):
    """Pagination metadata computed over the full filtered pool."""
    current_page: int
    per_page: int
    total: int
    last_page: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "PageMeta":
        return cls(
            current_page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
        )


class CandidatePage(BaseModel):
    """Response schema for recommended people."""
    data: List[CandidateResponse]
    meta: PageMeta


class LikedUsersPage(BaseModel):
    """Response schema for the users a requester has liked."""
    data: List[LikedUserResponse]
    meta: PageMeta


class PreferenceResponse(BaseModel):
    """Response schema for a recorded like or dislike."""
    actor_id: int = Field(..., description="User who expressed the preference")
    target_id: int = Field(..., description="User the preference is about")
    polarity: Polarity = Field(..., description="like or dislike")
    created_at: datetime = Field(..., description="When the preference was recorded")

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class HealthCheckResponse(BaseModel):
    """Response schema for health check endpoint."""
    status: str = Field(..., description="Overall system status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    checks: Dict[str, str] = Field(..., description="Individual component health statuses")


class ErrorResponse(BaseModel):
    """Standard error response schema."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    request_id: Optional[str] = Field(None, description="Request ID for debugging")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
