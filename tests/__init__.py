"""
Test module initialization.

This module exports test utilities shared by unit and integration tests.
"""

from typing import Dict, Any, List, Optional

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_token
from app.models.database import AccessToken, User, Preference, Polarity

TEST_PASSWORD = "correct-horse-battery"

# Low cost factor keeps fixtures fast; verify_password reads rounds from the hash.
TEST_PASSWORD_HASH = bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


def generate_test_users(count: int, start: int = 0) -> List[Dict[str, Any]]:
    """Generate test user data."""
    return [
        {
            "name": f"Test User {i}",
            "email": f"user{i}@example.com",
            "password_hash": TEST_PASSWORD_HASH,
            "age": 20 + (i % 40),
            "gender": "female" if i % 2 == 0 else "male",
            "location": "San Francisco",
            "bio": f"Test bio for user {i}",
        }
        for i in range(start, start + count)
    ]


async def create_users(session: AsyncSession, count: int, start: int = 0, **overrides: Any) -> List[User]:
    """Insert `count` users and commit."""
    users = [User(**{**data, **overrides}) for data in generate_test_users(count, start)]
    session.add_all(users)
    await session.commit()
    for user in users:
        await session.refresh(user)
    return users


async def create_user(session: AsyncSession, index: int, **overrides: Any) -> User:
    users = await create_users(session, 1, start=index, **overrides)
    return users[0]


async def add_preferences(
    session: AsyncSession,
    actor_ids: List[int],
    target_id: int,
    polarity: Polarity = Polarity.LIKE
) -> None:
    """Insert preferences directly, bypassing the service."""
    session.add_all([
        Preference(actor_id=actor_id, target_id=target_id, polarity=polarity)
        for actor_id in actor_ids
    ])
    await session.commit()


async def issue_token(session: AsyncSession, user: User, token: Optional[str] = None) -> str:
    """Store a bearer token for the user and return its plaintext."""
    token = token or f"token-for-user-{user.id}"
    session.add(AccessToken(user_id=user.id, name="test", token_hash=hash_token(token)))
    await session.commit()
    return token


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def assert_valid_candidate(candidate: Dict[str, Any]) -> None:
    """Validate a public profile in a response."""
    required_fields = ["id", "name", "age", "gender"]
    for field in required_fields:
        assert field in candidate, f"Missing required field: {field}"

    assert "email" not in candidate
    assert "password_hash" not in candidate
    assert isinstance(candidate["id"], int)
    assert candidate["gender"] in ["male", "female", "other"]
