"""Pydantic schemas for mood logs."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from companion.schemas import UtcDatetime


class MoodLogCreate(BaseModel):
    mood_score: int = Field(..., ge=1, le=10)
    notes: str = ""
    factors: list[str] = Field(default_factory=list)
    date_time: Optional[UtcDatetime] = None


class MoodLogUpdate(BaseModel):
    mood_score: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = None
    factors: Optional[list[str]] = None
    date_time: Optional[UtcDatetime] = None


class MoodLogRead(BaseModel):
    id: int
    user_id: int
    mood_score: int
    notes: str
    factors: list[str]
    date_time: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
