"""Password hashing with bcrypt and opaque bearer tokens."""

import hashlib
import secrets

import bcrypt


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def generate_token() -> str:
    """Return a new plaintext bearer token."""
    return secrets.token_urlsafe(40)


def hash_token(token: str) -> str:
    """Tokens are stored as SHA-256 digests, never in plaintext."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
