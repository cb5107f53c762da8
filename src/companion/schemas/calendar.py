"""Pydantic schemas for calendar events and categories."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from companion.schemas import UtcDatetime


class CalendarEventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    location: str = Field(default="", max_length=255)
    start_time: UtcDatetime
    end_time: UtcDatetime
    all_day: bool = False
    category_id: Optional[int] = None
    reminder: Optional[int] = Field(None, ge=0, description="Minutes before start")

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class CalendarEventUpdate(BaseModel):
    """Partial update; the merged start/end order is checked by the service."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    all_day: Optional[bool] = None
    category_id: Optional[int] = None
    reminder: Optional[int] = Field(None, ge=0)


class CalendarEventRead(BaseModel):
    id: int
    user_id: int
    category_id: Optional[int]
    title: str
    description: str
    location: str
    start_time: datetime
    end_time: datetime
    all_day: bool
    reminder: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CalendarCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#2196F3", max_length=20)


class CalendarCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class CalendarCategoryRead(BaseModel):
    id: int
    user_id: int
    name: str
    color: str
    created_at: datetime

    model_config = {"from_attributes": True}
