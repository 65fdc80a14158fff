"""
Password hashing (bcrypt) and signed bearer tokens (JWT).

Tokens are only half of the authentication story: every protected request
also resolves the token's ``sid`` claim to a live server-side session, so a
token that is still cryptographically valid stops working as soon as its
session is revoked.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.hash import bcrypt as bcrypt_handler

from app.core.config import settings
from app.core.exceptions import InternalError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def hash_password(plain: str) -> tuple[str, str]:
    """Return ``(digest, salt)`` for *plain*.

    bcrypt embeds the salt in the digest; it is returned separately so it can
    be stored alongside the hash.
    """
    try:
        digest = pwd_context.hash(plain)
        salt = bcrypt_handler.from_string(digest).salt
    except (TypeError, ValueError) as exc:
        raise InternalError("Password hashing failed") from exc
    return digest, salt


def verify_password(plain: str, digest: str) -> bool:
    """Check *plain* against a stored digest. A malformed digest never matches."""
    try:
        return pwd_context.verify(plain, digest)
    except (TypeError, ValueError):
        return False


# ── Opaque tokens ───────────────────────────────────────────────────
def generate_token() -> str:
    """Random URL-safe identifier for sessions and reset tokens."""
    return secrets.token_urlsafe(32)


def hash_token(raw: str) -> str:
    """SHA-256 of a reset token; only the hash is persisted."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


# ── JWT tokens ──────────────────────────────────────────────────────
def create_access_token(claims: dict[str, Any], expires_at: datetime) -> str:
    payload = {
        **claims,
        "iat": datetime.now(timezone.utc),
        "exp": expires_at,
        "type": "access",
    }
    return jwt.encode(payload, _SECRET, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``.

    Bad signature, expiry, wrong type and malformed input are not told apart.
    """
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    if not payload.get("sub") or not payload.get("sid"):
        return None
    return payload
