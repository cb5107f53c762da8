"""Health calendar API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope, get_owner_scope
from companion.db.engine import get_db
from companion.schemas.health import (
    HealthEventCategory,
    HealthEventCreate,
    HealthEventRead,
    HealthEventUpdate,
)
from companion.services.health_service import HealthCalendarService

router = APIRouter(prefix="/health-calendar")


def _event_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> HealthCalendarService:
    return HealthCalendarService(db, scope)


@router.get("", response_model=list[HealthEventRead])
async def list_events(svc: HealthCalendarService = Depends(_event_svc)):
    return await svc.list_events()


@router.get("/month/{year}/{month}", response_model=list[HealthEventRead])
async def list_month(
    year: int, month: int, svc: HealthCalendarService = Depends(_event_svc)
):
    """Events starting, ending, or running through the month."""
    return await svc.list_month(year, month)


@router.get("/metric/{metric_id}", response_model=list[HealthEventRead])
async def list_for_metric(
    metric_id: int, svc: HealthCalendarService = Depends(_event_svc)
):
    return await svc.list_for_metric(metric_id)


@router.get("/category/{category}", response_model=list[HealthEventRead])
async def list_for_category(
    category: HealthEventCategory, svc: HealthCalendarService = Depends(_event_svc)
):
    return await svc.list_for_category(category)


@router.post("", response_model=HealthEventRead, status_code=201)
async def create_event(
    body: HealthEventCreate, svc: HealthCalendarService = Depends(_event_svc)
):
    """Book an event. With a metric_value and a category other than
    "other", the value is also recorded as a health metric."""
    return await svc.create(body)


@router.get("/{event_id}", response_model=HealthEventRead)
async def get_event(event_id: int, svc: HealthCalendarService = Depends(_event_svc)):
    return await svc.get(event_id)


@router.put("/{event_id}", response_model=HealthEventRead)
async def update_event(
    event_id: int,
    body: HealthEventUpdate,
    svc: HealthCalendarService = Depends(_event_svc),
):
    return await svc.update(event_id, body)


@router.delete("/{event_id}")
async def delete_event(event_id: int, svc: HealthCalendarService = Depends(_event_svc)):
    """Delete the event and the metric it recorded, if any."""
    await svc.delete(event_id)
    return {"message": "Health event deleted successfully"}
