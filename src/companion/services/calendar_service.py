"""Calendar service — owner-scoped events and calendar categories."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, or_, select

from companion.db.models import CalendarCategory, CalendarEvent
from companion.errors import ValidationError
from companion.schemas import as_utc
from companion.schemas.calendar import (
    CalendarCategoryCreate,
    CalendarCategoryUpdate,
    CalendarEventCreate,
    CalendarEventUpdate,
)
from companion.services.base import OwnedService, changes_from


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """[first instant of month, first instant of next month) in UTC."""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1 <= year <= 9998:
        raise ValidationError("Invalid year")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


class CalendarCategoryService(OwnedService[CalendarCategory]):
    model = CalendarCategory
    not_found_message = "Category not found"

    async def list_categories(self) -> list[CalendarCategory]:
        return await self.fetch(self.owned().order_by(CalendarCategory.name))

    async def create(self, body: CalendarCategoryCreate) -> CalendarCategory:
        return await self.add(**body.model_dump())

    async def update(
        self, category_id: int, body: CalendarCategoryUpdate
    ) -> CalendarCategory:
        category = await self.get(category_id)
        return await self.apply(category, changes_from(body))

    async def delete(self, category_id: int) -> None:
        """Only unused categories can be removed."""
        category = await self.get(category_id)
        in_use = await self.db.scalar(
            select(CalendarEvent.id)
            .where(CalendarEvent.category_id == category.id)
            .limit(1)
        )
        if in_use is not None:
            raise ValidationError(
                "Cannot delete category that is in use by events"
            )
        await self.db.delete(category)
        await self.db.commit()


class CalendarService(OwnedService[CalendarEvent]):
    model = CalendarEvent
    not_found_message = "Event not found"

    async def _check_category(self, category_id: Optional[int], owner_id: int) -> None:
        if category_id is None:
            return
        found = await self.db.scalar(
            select(CalendarCategory.id).where(
                CalendarCategory.id == category_id,
                CalendarCategory.user_id == owner_id,
            )
        )
        if found is None:
            raise ValidationError("Invalid calendar category")

    async def list_events(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category_id: Optional[int] = None,
    ) -> list[CalendarEvent]:
        query = self.owned()
        if start:
            query = query.where(CalendarEvent.end_time >= start)
        if end:
            query = query.where(CalendarEvent.start_time <= end)
        if category_id is not None:
            query = query.where(CalendarEvent.category_id == category_id)
        return await self.fetch(query.order_by(CalendarEvent.start_time, CalendarEvent.id))

    async def list_month(self, year: int, month: int) -> list[CalendarEvent]:
        """Events that start or end inside the month."""
        first, after = month_bounds(year, month)
        query = self.owned().where(
            or_(
                and_(CalendarEvent.start_time >= first, CalendarEvent.start_time < after),
                and_(CalendarEvent.end_time >= first, CalendarEvent.end_time < after),
            )
        )
        return await self.fetch(query.order_by(CalendarEvent.start_time, CalendarEvent.id))

    async def create(self, body: CalendarEventCreate) -> CalendarEvent:
        await self._check_category(body.category_id, self.scope.user_id)
        return await self.add(**body.model_dump())

    async def update(self, event_id: int, body: CalendarEventUpdate) -> CalendarEvent:
        event = await self.get(event_id)
        changes = changes_from(body, nullable=("category_id", "reminder"))
        if changes.get("category_id") is not None:
            await self._check_category(changes["category_id"], event.user_id)

        start = as_utc(changes.get("start_time", event.start_time))
        end = as_utc(changes.get("end_time", event.end_time))
        if end < start:
            raise ValidationError("end_time must not be before start_time")
        return await self.apply(event, changes)
