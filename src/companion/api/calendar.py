"""Calendar API routes — events and calendar categories.

Event paths live under /calendar/events, categories under
/calendar/categories. /events/month/{year}/{month} is declared before
/events/{event_id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope, get_owner_scope
from companion.db.engine import get_db
from companion.schemas import UtcDatetime
from companion.schemas.calendar import (
    CalendarCategoryCreate,
    CalendarCategoryRead,
    CalendarCategoryUpdate,
    CalendarEventCreate,
    CalendarEventRead,
    CalendarEventUpdate,
)
from companion.services.calendar_service import CalendarCategoryService, CalendarService

router = APIRouter(prefix="/calendar")


def _event_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> CalendarService:
    return CalendarService(db, scope)


def _category_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> CalendarCategoryService:
    return CalendarCategoryService(db, scope)


# ═══════════════════════════════════════════════════════════
# Events
# ═══════════════════════════════════════════════════════════


@router.get("/events", response_model=list[CalendarEventRead])
async def list_events(
    start: Optional[UtcDatetime] = Query(None, description="Events ending on or after"),
    end: Optional[UtcDatetime] = Query(None, description="Events starting on or before"),
    category_id: Optional[int] = Query(None),
    svc: CalendarService = Depends(_event_svc),
):
    return await svc.list_events(start=start, end=end, category_id=category_id)


@router.get("/events/month/{year}/{month}", response_model=list[CalendarEventRead])
async def list_month(year: int, month: int, svc: CalendarService = Depends(_event_svc)):
    """Events that start or end within the given month (UTC)."""
    return await svc.list_month(year, month)


@router.post("/events", response_model=CalendarEventRead, status_code=201)
async def create_event(
    body: CalendarEventCreate, svc: CalendarService = Depends(_event_svc)
):
    return await svc.create(body)


@router.get("/events/{event_id}", response_model=CalendarEventRead)
async def get_event(event_id: int, svc: CalendarService = Depends(_event_svc)):
    return await svc.get(event_id)


@router.put("/events/{event_id}", response_model=CalendarEventRead)
async def update_event(
    event_id: int,
    body: CalendarEventUpdate,
    svc: CalendarService = Depends(_event_svc),
):
    return await svc.update(event_id, body)


@router.delete("/events/{event_id}")
async def delete_event(event_id: int, svc: CalendarService = Depends(_event_svc)):
    await svc.delete(event_id)
    return {"message": "Event deleted successfully"}


# ═══════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════


@router.get("/categories", response_model=list[CalendarCategoryRead])
async def list_categories(svc: CalendarCategoryService = Depends(_category_svc)):
    return await svc.list_categories()


@router.post("/categories", response_model=CalendarCategoryRead, status_code=201)
async def create_category(
    body: CalendarCategoryCreate,
    svc: CalendarCategoryService = Depends(_category_svc),
):
    return await svc.create(body)


@router.get("/categories/{category_id}", response_model=CalendarCategoryRead)
async def get_category(
    category_id: int, svc: CalendarCategoryService = Depends(_category_svc)
):
    return await svc.get(category_id)


@router.put("/categories/{category_id}", response_model=CalendarCategoryRead)
async def update_category(
    category_id: int,
    body: CalendarCategoryUpdate,
    svc: CalendarCategoryService = Depends(_category_svc),
):
    return await svc.update(category_id, body)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int, svc: CalendarCategoryService = Depends(_category_svc)
):
    """Fails with 400 while any event still uses the category."""
    await svc.delete(category_id)
    return {"message": "Category deleted successfully"}
