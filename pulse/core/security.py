from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 260_000
PASSWORD_SALT_SIZE = 16
REQUIRED_CLAIMS = ["sub", "email", "role", "exp", "iat"]
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    user_id: UUID
    email: str
    role: str
    user_name: str
    expires_at: datetime


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(raw: str) -> bytes:
    padded = raw + ("=" * (-len(raw) % 4))
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty.")

    salt = secrets.token_bytes(PASSWORD_SALT_SIZE)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        PBKDF2_ITERATIONS,
    )
    return (
        f"{PBKDF2_ALGORITHM}$"
        f"{PBKDF2_ITERATIONS}$"
        f"{_b64url_encode(salt)}$"
        f"{_b64url_encode(digest)}"
    )


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    try:
        algorithm, raw_iterations, raw_salt, raw_digest = stored_hash.split("$", 3)
    except ValueError:
        return False

    if algorithm != PBKDF2_ALGORITHM:
        return False

    try:
        iterations = int(raw_iterations)
        salt = _b64url_decode(raw_salt)
        expected_digest = _b64url_decode(raw_digest)
    except (ValueError, TypeError):
        return False

    candidate_digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
    )
    return hmac.compare_digest(candidate_digest, expected_digest)


def create_access_token(
    *,
    user_id: UUID,
    email: str,
    role: str,
    user_name: str,
    secret: str,
    ttl_minutes: int,
    algorithm: str = "HS256",
) -> tuple[str, datetime]:
    now = datetime.now(UTC)
    expires_at = now + timedelta(minutes=ttl_minutes)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "name": user_name,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, secret, algorithm=algorithm)
    return token, expires_at


def decode_access_token(
    token: str, secret: str, algorithm: str = "HS256"
) -> AccessTokenClaims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Token expired") from exc
    except jwt.InvalidSignatureError as exc:
        raise ValueError("Invalid token signature") from exc
    except jwt.PyJWTError as exc:
        raise ValueError("Malformed token") from exc

    try:
        user_id = UUID(str(payload["sub"]))
        expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
    except (KeyError, ValueError, TypeError) as exc:
        raise ValueError("Malformed token payload") from exc

    email = str(payload["email"])
    return AccessTokenClaims(
        user_id=user_id,
        email=email,
        role=str(payload["role"]),
        user_name=str(payload.get("name") or email),
        expires_at=expires_at,
    )


def create_refresh_token(
    *,
    user_id: UUID,
    secret: str,
    ttl_days: int,
    algorithm: str = "HS256",
) -> tuple[str, datetime]:
    now = datetime.now(UTC)
    expires_at = now + timedelta(days=ttl_days)
    payload = {
        "sub": str(user_id),
        "typ": REFRESH_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, secret, algorithm=algorithm)
    return token, expires_at


def decode_refresh_token(token: str, secret: str, algorithm: str = "HS256") -> UUID:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "typ", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise ValueError("Malformed token") from exc

    if payload["typ"] != REFRESH_TOKEN_TYPE:
        raise ValueError("Not a refresh token")
    try:
        return UUID(str(payload["sub"]))
    except ValueError as exc:
        raise ValueError("Malformed token payload") from exc


def fingerprint_token(token: str) -> str:
    """Digest stored in place of a refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
