"""Mood log API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope, get_owner_scope
from companion.db.engine import get_db
from companion.schemas import UtcDatetime
from companion.schemas.mood import MoodLogCreate, MoodLogRead, MoodLogUpdate
from companion.services.mood_service import MoodService

router = APIRouter(prefix="/mood")


def _mood_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> MoodService:
    return MoodService(db, scope)


@router.get("", response_model=list[MoodLogRead])
async def list_logs(
    start_date: Optional[UtcDatetime] = Query(None),
    end_date: Optional[UtcDatetime] = Query(None),
    svc: MoodService = Depends(_mood_svc),
):
    """The caller's mood logs, newest first."""
    return await svc.list_logs(start_date=start_date, end_date=end_date)


@router.post("", response_model=MoodLogRead, status_code=201)
async def create_log(body: MoodLogCreate, svc: MoodService = Depends(_mood_svc)):
    return await svc.create(body)


@router.get("/{log_id}", response_model=MoodLogRead)
async def get_log(log_id: int, svc: MoodService = Depends(_mood_svc)):
    return await svc.get(log_id)


@router.put("/{log_id}", response_model=MoodLogRead)
async def update_log(
    log_id: int, body: MoodLogUpdate, svc: MoodService = Depends(_mood_svc)
):
    return await svc.update(log_id, body)


@router.delete("/{log_id}")
async def delete_log(log_id: int, svc: MoodService = Depends(_mood_svc)):
    await svc.delete(log_id)
    return {"message": "Mood log deleted successfully"}
