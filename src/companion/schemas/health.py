"""Pydantic schemas for health metrics and health-calendar events."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from companion.schemas import UtcDatetime

MetricType = Literal[
    "weight",
    "height",
    "bloodPressure",
    "heartRate",
    "bloodSugar",
    "sleep",
    "exercise",
    "water",
    "diet",
    "medication",
    "other",
]

HealthEventCategory = Literal[
    "medication", "appointment", "exercise", "diet", "measurement", "other"
]
Recurrence = Literal["none", "daily", "weekly", "monthly"]
ReminderType = Literal["notification", "email", "sms"]


# ─── Metrics ─────────────────────────────────────────────

class HealthMetricCreate(BaseModel):
    type: MetricType
    value: float
    unit: str = Field(default="", max_length=20)
    date: Optional[UtcDatetime] = None
    notes: str = ""


class HealthMetricUpdate(BaseModel):
    """Type is fixed at creation; everything else may change."""
    value: Optional[float] = None
    unit: Optional[str] = Field(None, max_length=20)
    date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class HealthMetricRead(BaseModel):
    id: int
    user_id: int
    type: str
    value: float
    unit: str
    date: datetime
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class HealthMetricPage(BaseModel):
    total: int
    metrics: list[HealthMetricRead]
    current_page: int
    total_pages: int


class MetricPoint(BaseModel):
    date: datetime
    value: float
    notes: str


class HealthMetricStats(BaseModel):
    average: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    count: int = 0
    trend: Optional[float] = None  # percent change, first → last
    data: list[MetricPoint] = Field(default_factory=list)


class LatestValue(BaseModel):
    value: float
    unit: str
    date: datetime


class AverageValue(BaseModel):
    value: float
    unit: str


class HealthSummary(BaseModel):
    latest: dict[str, LatestValue]
    averages: dict[str, AverageValue]


# ─── Health calendar ─────────────────────────────────────

class HealthEventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    start_time: UtcDatetime
    end_time: UtcDatetime
    category: HealthEventCategory = "other"
    color: str = Field(default="#3788d8", max_length=20)
    all_day: bool = False
    metric_value: Optional[float] = None
    recurrence_frequency: Recurrence = "none"
    recurrence_interval: int = Field(default=1, ge=1)
    recurrence_end_date: Optional[UtcDatetime] = None
    reminder_time: Optional[int] = Field(None, ge=0)
    reminder_type: ReminderType = "notification"

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class HealthEventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    category: Optional[HealthEventCategory] = None
    color: Optional[str] = Field(None, max_length=20)
    all_day: Optional[bool] = None
    metric_value: Optional[float] = None
    recurrence_frequency: Optional[Recurrence] = None
    recurrence_interval: Optional[int] = Field(None, ge=1)
    recurrence_end_date: Optional[UtcDatetime] = None
    reminder_time: Optional[int] = Field(None, ge=0)
    reminder_type: Optional[ReminderType] = None


class HealthEventRead(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    category: str
    color: str
    all_day: bool
    health_metric_id: Optional[int]
    metric_value: Optional[float]
    recurrence_frequency: str
    recurrence_interval: int
    recurrence_end_date: Optional[datetime]
    reminder_time: Optional[int]
    reminder_type: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
