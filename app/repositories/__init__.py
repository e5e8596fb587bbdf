"""
Repository module initialization.

This module exports repository implementations.
Design Rationale:
- Centralized repository exports
- Clean module interface

Note: request-scoped construction lives in app/core/dependencies.py.
"""

from app.repositories.base import SQLModelRepository
from app.repositories.user_repository import UserRepository
from app.repositories.preference_repository import PreferenceRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.token_repository import AccessTokenRepository
from app.repositories.photo_repository import PhotoRepository


__all__ = [
    "SQLModelRepository",
    "UserRepository",
    "PreferenceRepository",
    "NotificationRepository",
    "AccessTokenRepository",
    "PhotoRepository",
]
