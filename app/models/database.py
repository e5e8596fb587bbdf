"""
Database models using SQLModel ORM.

This module defines the core data models for the matchmaking backend.
Design patterns demonstrated:
- Separate domain models from API models
- Type-safe database schemas with SQLModel
- Storage-level invariants as indexes and constraints
- Timestamp tracking for all entities
"""

from datetime import datetime
from typing import Optional
from enum import Enum

from sqlalchemy import Column, Integer, DateTime, Text, Index, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlmodel import Field, SQLModel


class Polarity(str, Enum):
    """Direction of a preference; LIKE and DISLIKE exclude each other per pair."""
    LIKE = "like"
    DISLIKE = "dislike"

    @property
    def opposite(self) -> "Polarity":
        return Polarity.DISLIKE if self is Polarity.LIKE else Polarity.LIKE


def _user_fk(unique: bool = False) -> Column:
    return Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=unique,
    )


class User(SQLModel, table=True):
    """
    User entity representing a person in the matchmaking system.

    Users are deactivated rather than deleted; preferences, notifications
    and tokens cascade if a row is ever removed at the storage layer.
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    password_hash: str = Field(max_length=255)
    age: int = Field()
    gender: str = Field(max_length=20)
    bio: Optional[str] = Field(default=None, sa_column=Column(Text))
    location: Optional[str] = Field(default=None, max_length=200)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, server_default=func.now())
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, onupdate=func.now())
    )

    __table_args__ = (
        Index("idx_user_email", "email", unique=True),
        Index("idx_user_age", "age"),
        Index("idx_user_gender", "gender"),
        Index("idx_user_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name}, age={self.age})>"


class Preference(SQLModel, table=True):
    """
    A like or dislike from one user (actor) to another (target).

    The unique pair index guarantees a single row per (actor, target)
    whatever its polarity. Reversing a decision deletes the row and inserts
    a new one, so created_at always reflects the current polarity.
    """
    __tablename__ = "preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    actor_id: int = Field(sa_column=_user_fk())
    target_id: int = Field(sa_column=_user_fk())
    polarity: Polarity
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_preference_pair", "actor_id", "target_id", unique=True),
        Index("idx_preference_actor_polarity", "actor_id", "polarity"),
        Index("idx_preference_target_polarity", "target_id", "polarity"),
        CheckConstraint("actor_id <> target_id", name="ck_preference_not_self"),
    )

    def __repr__(self) -> str:
        return (
            f"<Preference(actor_id={self.actor_id}, target_id={self.target_id}, "
            f"polarity={self.polarity})>"
        )


class Photo(SQLModel, table=True):
    """
    Profile photo URL owned by a user.

    display_order starts at 1; the first photo supplied is the primary one.
    """
    __tablename__ = "photos"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk())
    url: str = Field(max_length=500)
    display_order: int = Field(default=1)
    is_primary: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, server_default=func.now())
    )

    __table_args__ = (
        Index("idx_photo_user_order", "user_id", "display_order"),
    )

    def __repr__(self) -> str:
        return f"<Photo(user_id={self.user_id}, display_order={self.display_order})>"


class PopularityNotification(SQLModel, table=True):
    """
    Record of the admin alert sent for a popular user.

    Its existence is the guard against repeat alerts; the unique user_id
    settles concurrent dispatches.
    """
    __tablename__ = "popularity_notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk(unique=True))
    like_count: int = Field()
    recipient: str = Field(max_length=255)
    sent_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, server_default=func.now(), nullable=False)
    )

    def __repr__(self) -> str:
        return f"<PopularityNotification(user_id={self.user_id}, like_count={self.like_count})>"


class AccessToken(SQLModel, table=True):
    """Bearer token issued at register/login; only its SHA-256 digest is stored."""
    __tablename__ = "access_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=_user_fk())
    name: str = Field(max_length=100)
    token_hash: str = Field(max_length=64)
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, server_default=func.now())
    )
    last_used_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True)
    )

    __table_args__ = (
        Index("idx_access_token_hash", "token_hash", unique=True),
        Index("idx_access_token_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<AccessToken(user_id={self.user_id}, name={self.name})>"
