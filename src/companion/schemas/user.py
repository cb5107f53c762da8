"""Pydantic schemas for users, profile and preferences."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "admin"]
Status = Literal["active", "inactive", "suspended"]


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    status: str
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileRead(UserRead):
    """A user merged with the profile part of their preferences."""

    phone: str = ""
    school: str = ""
    grade: str = ""
    bio: str = ""


class ProfileUpdate(BaseModel):
    """Partial update — only fields present in the body are applied.

    role and status are honored for admins only.
    """

    full_name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    school: Optional[str] = Field(None, max_length=100)
    grade: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Status] = None


class NotificationSettings(BaseModel):
    email_reminders: bool = True
    task_notifications: bool = True
    health_reminders: bool = True
    emotional_support_messages: bool = True

    model_config = {"from_attributes": True}


class NotificationSettingsUpdate(BaseModel):
    email_reminders: Optional[bool] = None
    task_notifications: Optional[bool] = None
    health_reminders: Optional[bool] = None
    emotional_support_messages: Optional[bool] = None


class PrivacySettings(BaseModel):
    share_health_data: bool = False
    share_emotional_data: bool = False
    allow_parent_access: bool = False
    allow_school_access: bool = False

    model_config = {"from_attributes": True}


class PrivacySettingsUpdate(BaseModel):
    share_health_data: Optional[bool] = None
    share_emotional_data: Optional[bool] = None
    allow_parent_access: Optional[bool] = None
    allow_school_access: Optional[bool] = None


class AppearanceSettings(BaseModel):
    dark_mode: bool = False
    color_theme: str = "blue"

    model_config = {"from_attributes": True}


class AppearanceSettingsUpdate(BaseModel):
    dark_mode: Optional[bool] = None
    color_theme: Optional[str] = Field(None, min_length=1, max_length=20)


class AvatarResponse(BaseModel):
    message: str = "Avatar updated successfully"
    avatar: str
