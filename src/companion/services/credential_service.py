"""Credential verifier — signup, signin and token refresh.

Learn: Passwords are stored only as bcrypt hashes. bcrypt is deliberately
slow, so hashing and checking run in Starlette's threadpool instead of
blocking the event loop.

Signin looks the user up by whichever field the client sent: email when
present, username otherwise. Unknown identity → NotFoundError (404),
wrong password → InvalidCredentialError (401).

The duplicate check before signup is only a fast path. Two concurrent
signups can both pass it; the unique constraints decide, and the losing
commit is reported as the same DuplicateIdentityError.
"""

from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from companion.auth.password import hash_password, verify_password
from companion.auth.tokens import TokenCodec, TokenErr, TokenKind, TokenPair
from companion.db.models import User, utcnow
from companion.errors import (
    DuplicateIdentityError,
    InvalidCredentialError,
    NotFoundError,
    UnauthorizedError,
)

logger = structlog.get_logger()


class CredentialService:
    def __init__(self, db: AsyncSession, codec: TokenCodec):
        self.db = db
        self.codec = codec

    async def _existing_identity(self, username: str, email: str) -> None:
        result = await self.db.execute(
            select(User).where(or_(User.username == username, User.email == email))
        )
        existing = result.scalars().first()
        if existing is not None:
            if existing.username == username:
                raise DuplicateIdentityError("Failed! Username is already in use!")
            raise DuplicateIdentityError("Failed! Email is already in use!")

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> User:
        """Create a user with role=user, status=active."""
        email = email.lower()
        await self._existing_identity(username, email)

        password_hash = await run_in_threadpool(hash_password, password)
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            full_name=full_name,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.signup_conflict", username=username)
            # Re-check to name the field; fall back to the generic message.
            await self._existing_identity(username, email)
            raise DuplicateIdentityError()
        await self.db.refresh(user)
        logger.info("auth.signup", user_id=user.id, username=username)
        return user

    async def find(
        self, email: Optional[str] = None, username: Optional[str] = None
    ) -> Optional[User]:
        if email:
            condition = User.email == email.lower()
        elif username:
            condition = User.username == username
        else:
            return None
        result = await self.db.execute(select(User).where(condition))
        return result.scalars().first()

    async def authenticate(
        self,
        password: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> tuple[User, TokenPair]:
        user = await self.find(email=email, username=username)
        if user is None:
            logger.info("auth.signin_failed", reason="unknown_user")
            raise NotFoundError("User not found!")

        ok = await run_in_threadpool(verify_password, password, user.password_hash)
        if not ok:
            logger.info("auth.signin_failed", reason="bad_password", user_id=user.id)
            raise InvalidCredentialError()

        user.last_login = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("auth.signin", user_id=user.id)
        return user, self.codec.issue_pair(user.id)

    async def refresh(self, refresh_token: str) -> tuple[User, TokenPair]:
        """Trade a valid refresh token for a new pair."""
        result = self.codec.verify(refresh_token, TokenKind.REFRESH)
        if isinstance(result, TokenErr):
            logger.info("auth.refresh_rejected", reason=result.reason.value)
            raise UnauthorizedError("Invalid or expired refresh token")

        user = await self.db.get(User, result.subject_id)
        if user is None:
            raise NotFoundError("User not found!")
        return user, self.codec.issue_pair(user.id)
