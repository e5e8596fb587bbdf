"""
Demo data for local development.

Creates a known login (test@example.com / "password"), a crowd of users with
3-5 photos each, random likes and dislikes, and a few users past the
popularity threshold so the alert path and the batch scan have something to
find. Pairs are tracked so a pair never holds both a like and a dislike.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Set, Tuple

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.core.logging import get_logger
from app.core.security import hash_password
from app.models.database import Photo, Polarity, Preference, User
from app.repositories.user_repository import UserRepository

logger = get_logger(__name__)

DEMO_EMAIL = "test@example.com"
DEMO_PASSWORD = "password"


@dataclass
class SeedSummary:
    users: int = 0
    photos: int = 0
    likes: int = 0
    dislikes: int = 0
    popular_user_ids: List[int] = field(default_factory=list)


class DemoSeeder:
    """Fills an empty database with reproducible demo data."""

    def __init__(
        self,
        session: AsyncSession,
        seed: Optional[int] = None,
        popular_users: int = 3,
        popular_likes: int = 55
    ):
        self.session = session
        self.rng = random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)
        self.popular_users = popular_users
        self.popular_likes = popular_likes
        self._pairs: Set[Tuple[int, int]] = set()

    async def run(self, user_count: int = 100) -> SeedSummary:
        """
        Seed users, photos and preferences in one transaction.

        Args:
            user_count: Random users to create besides the demo login

        Returns:
            Counts of what was created

        Raises:
            ConflictError: The demo login already exists
        """
        if await UserRepository(self.session).get_by_email(DEMO_EMAIL):
            raise ConflictError("Demo data already seeded", detail=DEMO_EMAIL)

        summary = SeedSummary()
        password_hash = hash_password(DEMO_PASSWORD)

        users = [
            User(
                name="Test User",
                email=DEMO_EMAIL,
                password_hash=password_hash,
                age=28,
                gender="female",
                bio="Demo account",
                location=self.fake.city(),
            )
        ]
        users.extend(self._fake_user(i, password_hash) for i in range(user_count))
        self.session.add_all(users)
        await self.session.flush()
        summary.users = len(users)

        photos = [photo for user in users for photo in self._fake_photos(user.id)]
        self.session.add_all(photos)
        summary.photos = len(photos)

        ids = [user.id for user in users]
        preferences: List[Preference] = []

        for actor_id in ids:
            for target_id in self._sample_others(ids, actor_id, self.rng.randint(0, 20)):
                preferences.extend(self._preference(actor_id, target_id, Polarity.LIKE))

        popular = self.rng.sample(ids, min(self.popular_users, len(ids)))
        for target_id in popular:
            for actor_id in self._sample_others(ids, target_id, self.popular_likes):
                preferences.extend(self._preference(actor_id, target_id, Polarity.LIKE))
        summary.popular_user_ids = sorted(popular)

        for actor_id in self.rng.sample(ids, min(30, len(ids))):
            for target_id in self._sample_others(ids, actor_id, self.rng.randint(0, 10)):
                preferences.extend(self._preference(actor_id, target_id, Polarity.DISLIKE))

        summary.likes = sum(1 for p in preferences if p.polarity is Polarity.LIKE)
        summary.dislikes = len(preferences) - summary.likes

        self.session.add_all(preferences)
        await self.session.commit()

        logger.info(
            "Demo data seeded",
            users=summary.users,
            photos=summary.photos,
            likes=summary.likes,
            dislikes=summary.dislikes,
            popular_user_ids=summary.popular_user_ids
        )

        return summary

    def _fake_user(self, index: int, password_hash: str) -> User:
        return User(
            name=self.fake.name(),
            email=f"{self.fake.user_name()}.{index}@example.com",
            password_hash=password_hash,
            age=self.rng.randint(18, 60),
            gender=self.rng.choice(["male", "female", "other"]),
            bio=self.fake.sentence(nb_words=12),
            location=self.fake.city(),
            latitude=float(self.fake.latitude()),
            longitude=float(self.fake.longitude()),
        )

    def _fake_photos(self, user_id: int) -> List[Photo]:
        return [
            Photo(
                user_id=user_id,
                url=f"https://picsum.photos/400/600?random={self.rng.randint(1, 10000)}",
                display_order=order,
                is_primary=order == 1,
            )
            for order in range(1, self.rng.randint(3, 5) + 1)
        ]

    def _sample_others(self, ids: List[int], exclude: int, count: int) -> List[int]:
        others = [i for i in ids if i != exclude]
        return self.rng.sample(others, min(count, len(others)))

    def _preference(self, actor_id: int, target_id: int, polarity: Polarity) -> List[Preference]:
        """The new preference, or nothing if the pair is already taken."""
        if (actor_id, target_id) in self._pairs:
            return []
        self._pairs.add((actor_id, target_id))
        return [
            Preference(
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                created_at=datetime.utcnow() - timedelta(days=self.rng.randint(0, 30)),
            )
        ]
