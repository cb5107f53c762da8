"""User service — profiles, preferences, admin management and avatars.

Learn: Profile extras (phone, school, grade, bio) and the notification,
privacy and appearance switches live in one UserPreference row per
user. The row is created lazily on the first write; until then readers
get the column defaults.

Avatar files live in one directory. A replaced avatar file is removed
after the new one is committed; a failed commit removes the new file.

Who may call what is decided by the router's policy dependencies
(require_admin, require_admin_or_same_user). This service trusts its
caller, except for role/status changes, which need `as_admin=True`.
"""

import re
import time
from pathlib import Path
from typing import Optional

import structlog
from fastapi import UploadFile
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from companion.config import settings
from companion.db.models import OWNED_MODELS, User, UserPreference
from companion.errors import NotFoundError, ValidationError
from companion.schemas.user import (
    AppearanceSettings,
    NotificationSettings,
    PrivacySettings,
    ProfileRead,
    ProfileUpdate,
)
from companion.services.base import changes_from

logger = structlog.get_logger()

AVATAR_SUBDIR = "avatars"
PROFILE_FIELDS = ("phone", "school", "grade", "bio")
USER_FIELDS = ("full_name", "avatar")
ADMIN_FIELDS = ("role", "status")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def avatar_dir() -> Path:
    return Path(settings.upload_dir) / AVATAR_SUBDIR


def safe_filename(original: Optional[str]) -> str:
    name = Path(original or "").name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "avatar"


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lookup ──────────────────────────────────────────

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found!")
        return user

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def _preferences(self, user_id: int) -> Optional[UserPreference]:
        result = await self.db.execute(
            select(UserPreference).where(UserPreference.user_id == user_id)
        )
        return result.scalars().first()

    async def _preferences_for_write(self, user_id: int) -> UserPreference:
        prefs = await self._preferences(user_id)
        if prefs is None:
            prefs = UserPreference(user_id=user_id)
            self.db.add(prefs)
        return prefs

    # ─── Profile ─────────────────────────────────────────

    async def profile(self, user: User) -> ProfileRead:
        """The user row merged with the profile part of its preferences."""
        prefs = await self._preferences(user.id)
        extras = {
            field: (getattr(prefs, field, None) or "") if prefs else ""
            for field in PROFILE_FIELDS
        }
        return ProfileRead.model_validate(user).model_copy(update=extras)

    async def update_profile(
        self, user: User, body: ProfileUpdate, as_admin: bool = False
    ) -> ProfileRead:
        changes = changes_from(body)

        for field in USER_FIELDS:
            if field in changes:
                setattr(user, field, changes[field])
        if as_admin:
            for field in ADMIN_FIELDS:
                if field in changes:
                    setattr(user, field, changes[field])

        profile_changes = {f: changes[f] for f in PROFILE_FIELDS if f in changes}
        if profile_changes:
            prefs = await self._preferences_for_write(user.id)
            for field, value in profile_changes.items():
                setattr(prefs, field, value)

        await self.db.commit()
        await self.db.refresh(user)
        return await self.profile(user)

    # ─── Notification / privacy / appearance ───────────

    async def notifications(self, user_id: int) -> NotificationSettings:
        prefs = await self._preferences(user_id)
        if prefs is None:
            return NotificationSettings()
        return NotificationSettings.model_validate(prefs)

    async def privacy(self, user_id: int) -> PrivacySettings:
        prefs = await self._preferences(user_id)
        if prefs is None:
            return PrivacySettings()
        return PrivacySettings.model_validate(prefs)

    async def _update_switches(self, user_id: int, body: BaseModel) -> UserPreference:
        prefs = await self._preferences_for_write(user_id)
        for field, value in changes_from(body).items():
            setattr(prefs, field, value)
        await self.db.commit()
        await self.db.refresh(prefs)
        return prefs

    async def update_notifications(
        self, user_id: int, body: BaseModel
    ) -> NotificationSettings:
        prefs = await self._update_switches(user_id, body)
        return NotificationSettings.model_validate(prefs)

    async def update_privacy(self, user_id: int, body: BaseModel) -> PrivacySettings:
        prefs = await self._update_switches(user_id, body)
        return PrivacySettings.model_validate(prefs)

    async def appearance(self, user_id: int) -> AppearanceSettings:
        prefs = await self._preferences(user_id)
        if prefs is None:
            return AppearanceSettings()
        return AppearanceSettings.model_validate(prefs)

    async def update_appearance(
        self, user_id: int, body: BaseModel
    ) -> AppearanceSettings:
        prefs = await self._update_switches(user_id, body)
        return AppearanceSettings.model_validate(prefs)

    # ─── Delete ──────────────────────────────────────────

    async def delete_user(self, user_id: int) -> None:
        """Remove a user and every row they own."""
        user = await self.get_user(user_id)
        for model in OWNED_MODELS:
            await self.db.execute(delete(model).where(model.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()
        logger.info("users.deleted", target_user_id=user_id)

    # ─── Avatar ──────────────────────────────────────────

    async def save_avatar(self, user: User, upload: UploadFile) -> str:
        """Store an uploaded image and point the user's avatar at it.

        Returns the stored filename, served under /static/images/avatar/.
        """
        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError("Only image files are allowed!")

        data = await upload.read(settings.avatar_max_bytes + 1)
        if not data:
            raise ValidationError("No file uploaded!")
        if len(data) > settings.avatar_max_bytes:
            limit_mb = settings.avatar_max_bytes // (1024 * 1024)
            raise ValidationError(f"File too large! Maximum size is {limit_mb}MB.")

        filename = f"{int(time.time() * 1000)}-{safe_filename(upload.filename)}"
        target = avatar_dir() / filename
        await run_in_threadpool(_write_file, target, data)

        previous = user.avatar
        user.avatar = filename
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            await run_in_threadpool(_remove_file, target)
            raise

        # Only files this service stored are removed, never arbitrary paths.
        if previous and previous != filename and safe_filename(previous) == previous:
            await run_in_threadpool(_remove_file, avatar_dir() / previous)

        logger.info("users.avatar_uploaded", target_user_id=user.id, bytes=len(data))
        return filename


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def _remove_file(path: Path) -> None:
    path.unlink(missing_ok=True)
