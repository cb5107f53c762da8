"""FastAPI auth dependencies — the request gate.

These are used as Depends() in routers to turn an incoming request into
an authenticated identity:

    Unauthenticated → TokenExtracted → TokenVerified → Authenticated

Any step can short-circuit:
- no x-access-token and no Authorization header → NoTokenError (403)
- token expired / malformed / badly signed → UnauthorizedError (401)

The gate only decodes the token; it does not touch the database.
Loading the user record is the policy layer's job.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header

from companion.auth.tokens import TokenCodec, TokenErr, TokenKind, get_token_codec
from companion.errors import NoTokenError, UnauthorizedError

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


class CurrentIdentity:
    """The authenticated subject making the request.

    Deliberately thin: just the id from the token. Handlers that need
    role or status ask the policy layer for the stored User.
    """

    def __init__(self, user_id: int):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id})"


def extract_token(
    x_access_token: Optional[str], authorization: Optional[str]
) -> str:
    """Pick the bearer string out of the request headers.

    x-access-token wins when both are present. A "Bearer " prefix is
    stripped; any other Authorization value is passed through as-is and
    will fail verification.
    """
    token = x_access_token or authorization
    if token and token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):].strip()
    if not token:
        raise NoTokenError()
    return token


def authenticate_token(token: str, codec: TokenCodec) -> CurrentIdentity:
    result = codec.verify(token, TokenKind.ACCESS)
    if isinstance(result, TokenErr):
        logger.info("auth.token_rejected", reason=result.reason.value)
        raise UnauthorizedError()
    return CurrentIdentity(user_id=result.subject_id)


async def get_current_user(
    x_access_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
) -> CurrentIdentity:
    """Extract and verify the caller's token (required on protected routes)."""
    token = extract_token(x_access_token, authorization)
    identity = authenticate_token(token, codec)
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity
