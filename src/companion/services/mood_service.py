"""Mood log service."""

from datetime import datetime
from typing import Optional

from companion.db.models import MoodLog
from companion.schemas.mood import MoodLogCreate, MoodLogUpdate
from companion.services.base import OwnedService, changes_from


class MoodService(OwnedService[MoodLog]):
    model = MoodLog
    not_found_message = "Mood log not found"

    async def list_logs(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[MoodLog]:
        """Newest first."""
        query = self.owned()
        if start_date:
            query = query.where(MoodLog.date_time >= start_date)
        if end_date:
            query = query.where(MoodLog.date_time <= end_date)
        return await self.fetch(query.order_by(MoodLog.date_time.desc(), MoodLog.id.desc()))

    async def create(self, body: MoodLogCreate) -> MoodLog:
        return await self.add(**body.model_dump(exclude_none=True))

    async def update(self, log_id: int, body: MoodLogUpdate) -> MoodLog:
        log = await self.get(log_id)
        return await self.apply(log, changes_from(body))
