"""Pydantic schemas for tasks and task categories.

- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT to modify a task (all optional, partial)
- TaskRead: what the API returns

There is no user_id on the input schemas: the owner always comes from
the token, and unknown body fields are ignored.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from companion.schemas import UtcDatetime

Priority = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "in_progress", "completed", "canceled"]


# ─── Tasks ───────────────────────────────────────────────

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    due_date: Optional[UtcDatetime] = None
    priority: Priority = "medium"
    status: TaskStatus = "pending"
    category_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[UtcDatetime] = None
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None
    category_id: Optional[int] = None


class TaskRead(BaseModel):
    id: int
    user_id: int
    category_id: Optional[int]
    title: str
    description: str
    due_date: Optional[datetime]
    priority: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskStats(BaseModel):
    by_status: dict[str, int]
    by_priority: dict[str, int]
    upcoming: int  # due within 7 days, not completed
    overdue: int  # past due, not completed


# ─── Categories ──────────────────────────────────────────

class TaskCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#4CAF50", max_length=20)
    icon: str = Field(default="list", max_length=50)


class TaskCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)


class TaskCategoryRead(BaseModel):
    id: int
    user_id: int
    name: str
    color: str
    icon: str
    created_at: datetime

    model_config = {"from_attributes": True}
