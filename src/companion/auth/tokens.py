"""JWT token codec.

JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (1 day), sent with every API call
- Refresh token: long-lived (7 days), only exchanged for a new pair

Each kind is signed with its own secret, and the payload is
{sub, type, iat, exp}. Nothing is stored server-side, so a token
cannot be revoked before it expires.

verify() never raises for a bad token: it returns TokenOk or TokenErr,
and the caller decides which HTTP status that becomes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Optional, Union

import jwt

from companion.config import Settings, settings


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, Enum):
    EXPIRED = "expired"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class TokenOk:
    subject_id: int
    kind: TokenKind
    expires_at: datetime

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class TokenErr:
    reason: TokenFailure
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


TokenResult = Union[TokenOk, TokenErr]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int  # access token lifetime, seconds


class TokenCodec:
    """Signs and verifies session tokens. Holds only immutable config."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(days=1),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self.algorithm = algorithm
        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: access_ttl,
            TokenKind.REFRESH: refresh_ttl,
        }

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenCodec":
        return cls(
            access_secret=config.jwt_secret,
            refresh_secret=config.jwt_refresh_secret,
            algorithm=config.jwt_algorithm,
            access_ttl=timedelta(minutes=config.access_token_expire_minutes),
            refresh_ttl=timedelta(days=config.refresh_token_expire_days),
        )

    def ttl(self, kind: TokenKind) -> timedelta:
        return self._ttls[kind]

    def issue(
        self,
        subject_id: int,
        kind: TokenKind = TokenKind.ACCESS,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token for subject_id."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),  # RFC 7519: sub is a string
            "type": kind.value,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self._ttls[kind]),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def issue_pair(self, subject_id: int) -> TokenPair:
        return TokenPair(
            access_token=self.issue(subject_id, TokenKind.ACCESS),
            refresh_token=self.issue(subject_id, TokenKind.REFRESH),
            expires_in=int(self._ttls[TokenKind.ACCESS].total_seconds()),
        )

    def verify(self, token: str, kind: TokenKind = TokenKind.ACCESS) -> TokenResult:
        """Decode a token of the given kind."""
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenErr(TokenFailure.EXPIRED, "Token has expired")
        except jwt.InvalidSignatureError:
            return TokenErr(TokenFailure.BAD_SIGNATURE, "Token signature is invalid")
        except jwt.InvalidTokenError as e:
            return TokenErr(TokenFailure.MALFORMED, f"Invalid token: {e}")

        if payload.get("type") != kind.value:
            return TokenErr(TokenFailure.MALFORMED, f"Expected a {kind.value} token")

        try:
            subject_id = int(payload["sub"])
        except (TypeError, ValueError):
            return TokenErr(TokenFailure.MALFORMED, "Invalid token subject")

        return TokenOk(
            subject_id=subject_id,
            kind=kind,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


@lru_cache
def get_token_codec() -> TokenCodec:
    """FastAPI dependency — the process-wide codec built from settings."""
    return TokenCodec.from_settings(settings)
