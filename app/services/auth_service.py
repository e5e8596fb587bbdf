"""
Authentication service: registration, login and bearer tokens.

Passwords are hashed with bcrypt; tokens are random strings handed to the
client once and stored as SHA-256 digests.
"""

from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, ConflictError
from app.core.logging import get_logger
from app.core.security import hash_password, verify_password, generate_token, hash_token
from app.models.database import AccessToken, User
from app.models.schemas import RegisterRequest
from app.repositories.photo_repository import PhotoRepository
from app.repositories.token_repository import AccessTokenRepository
from app.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class AuthService:
    """Issues and checks bearer tokens for users."""

    def __init__(
        self,
        session: AsyncSession,
        user_repository: UserRepository,
        token_repository: AccessTokenRepository,
        photo_repository: PhotoRepository,
        token_name: str = "auth-token"
    ):
        self.session = session
        self.user_repository = user_repository
        self.token_repository = token_repository
        self.photo_repository = photo_repository
        self.token_name = token_name

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """
        Create an account, its photos and its first token in one transaction.

        Raises:
            ConflictError: The email is already registered
        """
        if await self.user_repository.get_by_email(data.email):
            raise ConflictError("The email has already been taken")

        fields = data.model_dump(exclude={"password", "photos"})
        user = User(**fields, password_hash=hash_password(data.password))

        try:
            user = await self.user_repository.create(user, commit=False)
            await self.photo_repository.create_many(user.id, data.photos)
            token = await self._issue_token(user)
        except IntegrityError as e:
            raise ConflictError("The email has already been taken") from e

        logger.info("User registered", user_id=user.id, photos=len(data.photos))
        return user, token

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a new token.

        Raises:
            AuthenticationError: Unknown email or wrong password
        """
        user = await self.user_repository.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login failed", email=email)
            raise AuthenticationError("Invalid credentials")

        token = await self._issue_token(user)
        logger.info("User logged in", user_id=user.id)
        return user, token

    async def authenticate(self, token: str) -> Tuple[User, AccessToken]:
        """
        Resolve a plaintext bearer token to its active user.

        Raises:
            AuthenticationError: Unknown token or inactive user
        """
        access_token = await self.token_repository.get_by_hash(hash_token(token))
        if access_token is None:
            raise AuthenticationError("Unauthenticated")

        user = await self.user_repository.get_active(access_token.user_id)
        if user is None:
            raise AuthenticationError("Unauthenticated")

        await self.token_repository.touch(access_token.id)
        return user, access_token

    async def logout(self, access_token: AccessToken) -> None:
        """Revoke the token used for the current request."""
        await self.token_repository.revoke(access_token.id)

    async def _issue_token(self, user: User) -> str:
        token = generate_token()
        await self.token_repository.create(
            AccessToken(user_id=user.id, name=self.token_name, token_hash=hash_token(token))
        )
        return token
