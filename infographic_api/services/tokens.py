"""Token service: session JWTs and one-time secret hashing."""

import hashlib
import secrets
from calendar import timegm
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from infographic_api.config import Settings
from infographic_api.errors import InvalidTokenError, TokenExpiredError

RESET_TOKEN_LIFETIME = timedelta(minutes=10)
VERIFICATION_TOKEN_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a session token."""

    subject: str
    issued_at: int


def hash_one_time_secret(raw: str) -> str:
    """Deterministic one-way digest stored in place of a reset/verification token."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_one_time_secret() -> tuple[str, str]:
    """Return ``(raw, hashed)``. Only the hash is ever persisted."""
    raw = secrets.token_hex(32)
    return raw, hash_one_time_secret(raw)


class TokenService:
    """Handles JWT token creation and validation."""

    def __init__(self, settings: Settings) -> None:
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def issue(self, user_id: int, now: datetime | None = None) -> str:
        """Create a signed token for the given user."""
        issued = now or datetime.now(timezone.utc)
        issued_at = timegm(issued.utctimetuple())
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.expire_minutes * 60,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token.

        Raises TokenExpiredError when the expiry has passed and
        InvalidTokenError for any other failure.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTError as exc:
            raise InvalidTokenError() from exc

        subject = payload.get("sub")
        issued_at = payload.get("iat")
        if not subject or not isinstance(issued_at, int):
            raise InvalidTokenError()
        return TokenClaims(subject=subject, issued_at=issued_at)
