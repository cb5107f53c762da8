"""User API routes — own profile, preferences and admin management.

Learn: Policy checks are composed per route as dependencies:
- /users/me*            → any authenticated user, acting on themself
- GET /users            → require_admin
- /users/{user_id}*     → require_admin_or_same_user

The check dependency returns the caller (the subject); the target is
loaded separately, so an admin editing someone else changes the target,
not themself.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import (
    get_current_subject,
    is_admin,
    require_admin,
    require_admin_or_same_user,
)
from companion.db.engine import get_db
from companion.db.models import User
from companion.schemas.user import (
    AppearanceSettings,
    AppearanceSettingsUpdate,
    AvatarResponse,
    NotificationSettings,
    NotificationSettingsUpdate,
    PrivacySettings,
    PrivacySettingsUpdate,
    ProfileRead,
    ProfileUpdate,
    UserRead,
)
from companion.services.user_service import UserService

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ═══════════════════════════════════════════════════════════
# Current user
# ═══════════════════════════════════════════════════════════


@router.get("/me", response_model=ProfileRead)
async def get_me(
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    """The caller's account merged with their profile details."""
    return await svc.profile(subject)


@router.put("/me", response_model=ProfileRead)
async def update_me(
    body: ProfileUpdate,
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.update_profile(subject, body, as_admin=is_admin(subject))


@router.get("/me/notifications", response_model=NotificationSettings)
async def get_notifications(
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.notifications(subject.id)


@router.put("/me/notifications", response_model=NotificationSettings)
async def update_notifications(
    body: NotificationSettingsUpdate,
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.update_notifications(subject.id, body)


@router.get("/me/privacy", response_model=PrivacySettings)
async def get_privacy(
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.privacy(subject.id)


@router.put("/me/privacy", response_model=PrivacySettings)
async def update_privacy(
    body: PrivacySettingsUpdate,
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.update_privacy(subject.id, body)


@router.get("/me/appearance", response_model=AppearanceSettings)
async def get_appearance(
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.appearance(subject.id)


@router.put("/me/appearance", response_model=AppearanceSettings)
async def update_appearance(
    body: AppearanceSettingsUpdate,
    subject: User = Depends(get_current_subject),
    svc: UserService = Depends(_user_svc),
):
    return await svc.update_appearance(subject.id, body)


# ═══════════════════════════════════════════════════════════
# Admin / same-user
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=list[UserRead], dependencies=[Depends(require_admin)])
async def list_users(svc: UserService = Depends(_user_svc)):
    return await svc.list_users()


@router.get(
    "/{user_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin_or_same_user)],
)
async def get_user(
    user_id: int,
    svc: UserService = Depends(_user_svc),
):
    target = await svc.get_user(user_id)
    return await svc.profile(target)


@router.put("/{user_id}", response_model=ProfileRead)
async def update_user(
    user_id: int,
    body: ProfileUpdate,
    subject: User = Depends(require_admin_or_same_user),
    svc: UserService = Depends(_user_svc),
):
    """Partial profile update. role/status are applied for admins only."""
    target = await svc.get_user(user_id)
    return await svc.update_profile(target, body, as_admin=is_admin(subject))


@router.delete("/{user_id}", dependencies=[Depends(require_admin_or_same_user)])
async def delete_user(user_id: int, svc: UserService = Depends(_user_svc)):
    """Delete the account and everything it owns."""
    await svc.delete_user(user_id)
    return {"message": "User deleted successfully"}


@router.post(
    "/{user_id}/avatar",
    response_model=AvatarResponse,
    dependencies=[Depends(require_admin_or_same_user)],
)
async def upload_avatar(
    user_id: int,
    avatar: UploadFile = File(...),
    svc: UserService = Depends(_user_svc),
):
    """Multipart upload, field name `avatar`; images only, up to COMPANION_AVATAR_MAX_BYTES."""
    target = await svc.get_user(user_id)
    filename = await svc.save_avatar(target, avatar)
    return AvatarResponse(avatar=filename)
