"""Security utilities: invitation tokens and admin JWT sessions."""

import secrets
from datetime import datetime, timedelta, timezone

import jwt

from evite.config import settings

TOKEN_BYTES = 16


# --- Invitation Tokens ---

def generate_token() -> str:
    """Generate a random 32-character hex token for an RSVP link.

    Uses the OS CSPRNG; any failure there propagates to the caller.
    """
    return secrets.token_hex(TOKEN_BYTES)


# --- Admin JWT ---

def create_admin_token(email: str, name: str = "") -> str:
    """Issue an admin session token once the OAuth provider has vouched for `email`."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.admin_token_expire_minutes)
    payload = {
        "sub": email.strip().lower(),
        "name": name,
        "exp": expire,
        "type": "admin",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
