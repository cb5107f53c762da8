"""Authorization policy — role, status and ownership checks.

Each check is an independent dependency. Routes list them in order,
e.g. `dependencies=[Depends(require_admin)]`; FastAPI runs them in
sequence and the first raised error becomes the response, so later
checks never run.

get_current_subject is shared by every check in a request, and FastAPI
caches it per request, so the user row is loaded at most once.

Failure modes are kept apart:
- user row gone → NotFoundError (404)
- rule denied → ForbiddenError (403)
- database error while loading → ServerError (500)
"""

from dataclasses import dataclass

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.dependencies import CurrentIdentity, get_current_user
from companion.db.engine import get_db
from companion.db.models import User
from companion.errors import ForbiddenError, NotFoundError, ServerError

ADMIN_ROLE = "admin"
ACTIVE_STATUS = "active"


# ─── Pure predicates ────────────────────────────────────


def is_admin(user: User) -> bool:
    return user.role == ADMIN_ROLE


def is_active(user: User) -> bool:
    return user.status == ACTIVE_STATUS


def can_act_on_user(user: User, target_user_id: int) -> bool:
    """Admin-or-same-user rule."""
    return is_admin(user) or user.id == target_user_id


@dataclass(frozen=True)
class OwnerScope:
    """Who is asking, as seen by the resource services."""

    user_id: int
    is_admin: bool = False


# ─── Dependencies ───────────────────────────────────────


async def get_current_subject(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the stored user behind the token."""
    try:
        user = await db.get(User, identity.user_id)
    except SQLAlchemyError as e:
        raise ServerError("Error verifying permissions!") from e
    if user is None:
        raise NotFoundError("User not found!")
    return user


async def require_admin(subject: User = Depends(get_current_subject)) -> User:
    if not is_admin(subject):
        raise ForbiddenError("Admin role required!")
    return subject


async def require_active(subject: User = Depends(get_current_subject)) -> User:
    if not is_active(subject):
        raise ForbiddenError("Account is inactive or suspended!")
    return subject


async def require_admin_or_same_user(
    user_id: int,
    subject: User = Depends(get_current_subject),
) -> User:
    """Gate for /users/{user_id} routes."""
    if not can_act_on_user(subject, user_id):
        raise ForbiddenError("Access to another user's resources denied!")
    return subject


async def get_owner_scope(
    subject: User = Depends(get_current_subject),
) -> OwnerScope:
    return OwnerScope(user_id=subject.id, is_admin=is_admin(subject))
