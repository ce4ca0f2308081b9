"""
Dashboard auth and MCP access tokens.

Passwords: scrypt, stored as "<hex digest>.<hex salt>".
Dashboard sessions: HS256 JWT (sub = user id) carried as a cookie or a Bearer header.
Access tokens: opaque 32-char hex values looked up in the store.
"""
import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from mcp_console.config import Settings
from mcp_console.core.errors import Unauthorized
from mcp_console.services.storage import AccessTokenRecord, Store, UserRecord, utcnow

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
_SCRYPT_N = 16384
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_KEY_LEN = 64


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode(), salt=salt.encode(), n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P, dklen=_SCRYPT_KEY_LEN
    )


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    hashed, sep, salt = stored.partition(".")
    if not sep or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(expected, _scrypt(supplied, salt))


def authenticate(store: Store, username: str, password: str) -> UserRecord:
    user = store.get_user_by_username(username)
    if user is None or not verify_password(password, user.password):
        raise Unauthorized("Invalid username or password")
    return user


def ensure_admin_user(store: Store, settings: Settings) -> UserRecord:
    """Create the admin user from settings if it does not exist yet."""
    existing = store.get_user_by_username(settings.admin_username)
    if existing:
        logger.info("Admin user %s already exists", settings.admin_username)
        return existing
    user = store.create_user(settings.admin_username, hash_password(settings.admin_password))
    logger.info("Admin user %s created", settings.admin_username)
    return user


# --- Dashboard session (JWT) ---


def create_session_token(user: UserRecord, settings: Settings, *, now: datetime | None = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "iat": issued,
        "exp": issued + timedelta(days=settings.session_ttl_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> int:
    """Return the user id in a valid session token. Raises Unauthorized otherwise."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
        return int(payload["sub"])
    except jwt.ExpiredSignatureError as e:
        raise Unauthorized("Session expired") from e
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        raise Unauthorized("Invalid session") from e


# --- MCP access tokens ---


def generate_token_value() -> str:
    return uuid.uuid4().hex


def token_expiry(days: int | None, *, now: datetime | None = None) -> datetime | None:
    if not days or days <= 0:
        return None
    return (now or utcnow()) + timedelta(days=days)


def _is_expired(token: AccessTokenRecord, now: datetime) -> bool:
    if token.expires_at is None:
        return False
    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


def validate_access_token(store: Store, value: str) -> AccessTokenRecord | None:
    """
    Look up an MCP access token. Unknown, revoked and expired tokens return None.
    On success last_used is stamped and the updated record returned.
    """
    if not value:
        return None
    token = store.get_token(value)
    if token is None:
        return None
    now = utcnow()
    if token.revoked:
        logger.info("Rejected revoked access token %s", token.id)
        return None
    if _is_expired(token, now):
        logger.info("Rejected expired access token %s", token.id)
        return None
    return store.update_token(token.id, last_used=now) or token
