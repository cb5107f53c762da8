"""Health service — metrics, their statistics, and the health calendar.

Learn: A metric and a health-calendar event can point at each other
through HealthCalendarEvent.health_metric_id:

  record metric                → book a 30-minute event for it (best effort)
  book event with a value      → record the matching metric (same transaction)
  change the event's value     → update the linked metric
  delete the event             → delete the linked metric
  delete the metric            → events keep existing, link cleared

The metric → event direction is best effort: if booking the event fails,
the failure is logged and the metric is still saved. It runs inside a
SAVEPOINT (begin_nested) so a failed insert does not poison the outer
transaction.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from companion.db.models import HealthCalendarEvent, HealthMetric, utcnow
from companion.errors import ValidationError
from companion.schemas import as_utc
from companion.schemas.health import (
    AverageValue,
    HealthEventCreate,
    HealthEventUpdate,
    HealthMetricCreate,
    HealthMetricPage,
    HealthMetricRead,
    HealthMetricStats,
    HealthMetricUpdate,
    HealthSummary,
    LatestValue,
    MetricPoint,
)
from companion.services.base import OwnedService, changes_from
from companion.services.calendar_service import month_bounds

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 100
SUMMARY_WINDOW = timedelta(days=7)
LINKED_EVENT_DURATION = timedelta(minutes=30)
LINKED_EVENT_COLOR = "#3788d8"

# metric type → health-calendar category
METRIC_CATEGORIES = {
    "weight": "measurement",
    "height": "measurement",
    "bloodPressure": "measurement",
    "heartRate": "measurement",
    "bloodSugar": "measurement",
    "exercise": "exercise",
    "water": "diet",
    "diet": "diet",
    "medication": "medication",
}

# Unit shown in the event title when the metric has none.
DEFAULT_UNITS = {
    "weight": "kg",
    "sleep": "hours",
    "exercise": "minutes",
    "water": "ml",
    "bloodPressure": "mmHg",
    "heartRate": "bpm",
}

EVENT_TITLES = {
    "weight": "Weight record",
    "height": "Height record",
    "bloodPressure": "Blood pressure record",
    "heartRate": "Heart rate record",
    "bloodSugar": "Blood sugar record",
    "sleep": "Sleep record",
    "exercise": "Exercise record",
    "water": "Water intake record",
    "diet": "Diet record",
    "medication": "Medication record",
}


def category_for_metric(metric_type: str) -> str:
    return METRIC_CATEGORIES.get(metric_type, "other")


def linked_event_title(metric_type: str, value: float, unit: str) -> str:
    """e.g. "Weight record: 70kg"."""
    label = EVENT_TITLES.get(metric_type, f"{metric_type} record")
    return f"{label}: {value:g}{unit or DEFAULT_UNITS.get(metric_type, '')}"


def metric_type_for_event(category: str, title: str) -> str:
    """Which metric a health-calendar event with a value records."""
    if category == "measurement":
        lowered = title.lower()
        if "weight" in lowered:
            return "weight"
        if "blood pressure" in lowered:
            return "bloodPressure"
        if "heart" in lowered:
            return "heartRate"
        return "other"
    if category == "appointment":
        return "other"
    return category


def percent_trend(values: list[float]) -> Optional[float]:
    """Percent change from the first to the last value."""
    if len(values) < 2 or values[0] == 0:
        return None
    return (values[-1] - values[0]) / values[0] * 100


# ═══════════════════════════════════════════════════════════
# Metrics
# ═══════════════════════════════════════════════════════════


class HealthMetricService(OwnedService[HealthMetric]):
    model = HealthMetric
    not_found_message = "Health metric not found"

    # ─── Queries ─────────────────────────────────────────

    async def page(
        self,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        metric_type: Optional[str] = None,
    ) -> HealthMetricPage:
        """Newest first, with offset-based page numbers."""
        query = self.owned()
        if metric_type:
            query = query.where(HealthMetric.type == metric_type)

        total = await self.db.scalar(
            select(func.count()).select_from(query.subquery())
        ) or 0
        metrics = await self.fetch(
            query.order_by(HealthMetric.date.desc(), HealthMetric.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return HealthMetricPage(
            total=total,
            metrics=[HealthMetricRead.model_validate(m) for m in metrics],
            current_page=offset // limit + 1,
            total_pages=math.ceil(total / limit),
        )

    async def in_range(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        metric_type: Optional[str] = None,
    ) -> list[HealthMetric]:
        query = self.owned()
        if start_date:
            query = query.where(HealthMetric.date >= start_date)
        if end_date:
            query = query.where(HealthMetric.date <= end_date)
        if metric_type:
            query = query.where(HealthMetric.type == metric_type)
        return await self.fetch(
            query.order_by(HealthMetric.date.desc(), HealthMetric.id.desc())
        )

    async def stats(
        self,
        metric_type: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> HealthMetricStats:
        query = self.owned().where(HealthMetric.type == metric_type)
        if start_date:
            query = query.where(HealthMetric.date >= start_date)
        if end_date:
            query = query.where(HealthMetric.date <= end_date)
        metrics = await self.fetch(
            query.order_by(HealthMetric.date.asc(), HealthMetric.id.asc())
        )
        if not metrics:
            return HealthMetricStats()

        values = [m.value for m in metrics]
        return HealthMetricStats(
            average=sum(values) / len(values),
            min=min(values),
            max=max(values),
            count=len(values),
            trend=percent_trend(values),
            data=[MetricPoint(date=m.date, value=m.value, notes=m.notes) for m in metrics],
        )

    async def summary(self) -> HealthSummary:
        """Latest value and 7-day average for every type recorded this week."""
        since = utcnow() - SUMMARY_WINDOW
        metrics = await self.fetch(
            self.owned()
            .where(HealthMetric.date >= since)
            .order_by(HealthMetric.date.desc(), HealthMetric.id.desc())
        )

        latest: dict[str, LatestValue] = {}
        values: dict[str, list[float]] = {}
        for metric in metrics:
            if metric.type not in latest:
                latest[metric.type] = LatestValue(
                    value=metric.value, unit=metric.unit, date=metric.date
                )
            values.setdefault(metric.type, []).append(metric.value)

        averages = {
            metric_type: AverageValue(
                value=round(sum(vals) / len(vals), 1),
                unit=latest[metric_type].unit,
            )
            for metric_type, vals in values.items()
        }
        return HealthSummary(latest=latest, averages=averages)

    # ─── Mutations ───────────────────────────────────────

    async def create(self, body: HealthMetricCreate) -> HealthMetric:
        fields = body.model_dump(exclude_none=True)
        metric = HealthMetric(user_id=self.scope.user_id, **fields)
        self.db.add(metric)
        await self.db.flush()  # need metric.id for the event link

        await self._book_linked_event(metric)

        await self.db.commit()
        await self.db.refresh(metric)
        logger.info("health.metric_recorded", metric_id=metric.id, type=metric.type)
        return metric

    async def _book_linked_event(self, metric: HealthMetric) -> None:
        now = utcnow()
        try:
            async with self.db.begin_nested():
                self.db.add(
                    HealthCalendarEvent(
                        user_id=metric.user_id,
                        title=linked_event_title(metric.type, metric.value, metric.unit),
                        description=metric.notes or f"{metric.type} record",
                        start_time=now,
                        end_time=now + LINKED_EVENT_DURATION,
                        all_day=False,
                        category=category_for_metric(metric.type),
                        color=LINKED_EVENT_COLOR,
                        health_metric_id=metric.id,
                        metric_value=metric.value,
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(
                "health.calendar_link_failed", metric_id=metric.id, error=str(e)
            )

    async def update(self, metric_id: int, body: HealthMetricUpdate) -> HealthMetric:
        metric = await self.get(metric_id)
        return await self.apply(metric, changes_from(body))

    async def delete(self, metric_id: int) -> None:
        metric = await self.get(metric_id)
        await self.db.execute(
            update(HealthCalendarEvent)
            .where(HealthCalendarEvent.health_metric_id == metric.id)
            .values(health_metric_id=None)
        )
        await self.db.delete(metric)
        await self.db.commit()


# ═══════════════════════════════════════════════════════════
# Health calendar
# ═══════════════════════════════════════════════════════════


class HealthCalendarService(OwnedService[HealthCalendarEvent]):
    model = HealthCalendarEvent
    not_found_message = "Health event not found"

    def _ordered(self, query):
        return query.order_by(HealthCalendarEvent.start_time, HealthCalendarEvent.id)

    async def list_events(self) -> list[HealthCalendarEvent]:
        return await self.fetch(self._ordered(self.owned()))

    async def list_month(self, year: int, month: int) -> list[HealthCalendarEvent]:
        """Events starting, ending, or running through the month."""
        first, after = month_bounds(year, month)
        start, end = HealthCalendarEvent.start_time, HealthCalendarEvent.end_time
        query = self.owned().where(
            or_(
                and_(start >= first, start < after),
                and_(end >= first, end < after),
                and_(start <= first, end >= after),
            )
        )
        return await self.fetch(self._ordered(query))

    async def list_for_metric(self, metric_id: int) -> list[HealthCalendarEvent]:
        query = self.owned().where(HealthCalendarEvent.health_metric_id == metric_id)
        return await self.fetch(self._ordered(query))

    async def list_for_category(self, category: str) -> list[HealthCalendarEvent]:
        query = self.owned().where(HealthCalendarEvent.category == category)
        return await self.fetch(self._ordered(query))

    async def create(self, body: HealthEventCreate) -> HealthCalendarEvent:
        """Book an event; with a value and a specific category, record it too."""
        event = HealthCalendarEvent(user_id=self.scope.user_id, **body.model_dump())
        self.db.add(event)

        if body.metric_value is not None and body.category != "other":
            metric = HealthMetric(
                user_id=self.scope.user_id,
                type=metric_type_for_event(body.category, body.title),
                value=body.metric_value,
                date=body.start_time,
                notes=body.description or f"Added from health calendar: {body.title}",
            )
            self.db.add(metric)
            await self.db.flush()
            event.health_metric_id = metric.id

        await self.db.commit()
        await self.db.refresh(event)
        return event

    async def update(self, event_id: int, body: HealthEventUpdate) -> HealthCalendarEvent:
        event = await self.get(event_id)
        changes = changes_from(
            body, nullable=("metric_value", "recurrence_end_date", "reminder_time")
        )

        start = as_utc(changes.get("start_time", event.start_time))
        end = as_utc(changes.get("end_time", event.end_time))
        if end < start:
            raise ValidationError("end_time must not be before start_time")

        for field, value in changes.items():
            setattr(event, field, value)

        if event.health_metric_id and changes.get("metric_value") is not None:
            metric = await self.db.get(HealthMetric, event.health_metric_id)
            if metric is not None:
                metric.value = event.metric_value
                metric.date = event.start_time
                if event.description:
                    metric.notes = event.description

        await self.db.commit()
        await self.db.refresh(event)
        return event

    async def delete(self, event_id: int) -> None:
        event = await self.get(event_id)
        metric_id = event.health_metric_id
        await self.db.delete(event)
        if metric_id is not None:
            metric = await self.db.get(HealthMetric, metric_id)
            if metric is not None:
                await self.db.delete(metric)
        await self.db.commit()
