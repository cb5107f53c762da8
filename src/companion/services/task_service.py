"""Task service — owner-scoped tasks and task categories.

Learn: Task status is free-form (any status may follow any other), so
there is no state machine here. The interesting rules are about
ownership:
1. Every query is filtered on the caller's user_id (see OwnedService)
2. A category_id in the body must point at one of the caller's own
   categories, otherwise the request fails as NotFound
3. Stats are computed in SQL so large task lists never leave the database
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_, select, update

from companion.db.models import Task, TaskCategory, utcnow
from companion.errors import NotFoundError
from companion.schemas.task import (
    TaskCategoryCreate,
    TaskCategoryUpdate,
    TaskCreate,
    TaskStats,
    TaskUpdate,
)
from companion.services.base import OwnedService, changes_from

UPCOMING_WINDOW = timedelta(days=7)


# ═══════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════


class TaskCategoryService(OwnedService[TaskCategory]):
    model = TaskCategory
    not_found_message = "Category not found"

    async def list_categories(self) -> list[TaskCategory]:
        return await self.fetch(self.owned().order_by(TaskCategory.name))

    async def create(self, body: TaskCategoryCreate) -> TaskCategory:
        return await self.add(**body.model_dump())

    async def update(self, category_id: int, body: TaskCategoryUpdate) -> TaskCategory:
        category = await self.get(category_id)
        return await self.apply(category, changes_from(body))

    async def delete(self, category_id: int) -> None:
        """Remove a category; the owner's tasks in it become uncategorized."""
        category = await self.get(category_id)
        await self.db.execute(
            update(Task)
            .where(Task.category_id == category.id)
            .values(category_id=None)
        )
        await self.db.delete(category)
        await self.db.commit()


# ═══════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════


class TaskService(OwnedService[Task]):
    model = Task
    not_found_message = "Task not found"

    async def _check_category(self, category_id: Optional[int], owner_id: int) -> None:
        if category_id is None:
            return
        result = await self.db.execute(
            select(TaskCategory.id).where(
                TaskCategory.id == category_id,
                TaskCategory.user_id == owner_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Category not found")

    # ─── Queries ─────────────────────────────────────────

    async def list_tasks(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> list[Task]:
        query = self.owned()
        if status:
            query = query.where(Task.status == status)
        if priority:
            query = query.where(Task.priority == priority)
        if category_id is not None:
            query = query.where(Task.category_id == category_id)
        if from_date:
            query = query.where(Task.due_date >= from_date)
        if to_date:
            query = query.where(Task.due_date <= to_date)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
            )
        query = query.order_by(Task.due_date.asc().nulls_last(), Task.id)
        return await self.fetch(query)

    async def stats(self) -> TaskStats:
        mine = Task.user_id == self.scope.user_id

        by_status = await self.db.execute(
            select(Task.status, func.count()).where(mine).group_by(Task.status)
        )
        by_priority = await self.db.execute(
            select(Task.priority, func.count()).where(mine).group_by(Task.priority)
        )

        now = utcnow()
        open_with_due = (mine, Task.status != "completed", Task.due_date.is_not(None))
        upcoming = await self.db.scalar(
            select(func.count()).where(
                *open_with_due,
                Task.due_date >= now,
                Task.due_date <= now + UPCOMING_WINDOW,
            )
        )
        overdue = await self.db.scalar(
            select(func.count()).where(*open_with_due, Task.due_date < now)
        )

        return TaskStats(
            by_status={status: count for status, count in by_status.all()},
            by_priority={priority: count for priority, count in by_priority.all()},
            upcoming=upcoming or 0,
            overdue=overdue or 0,
        )

    # ─── Mutations ───────────────────────────────────────

    async def create(self, body: TaskCreate) -> Task:
        await self._check_category(body.category_id, self.scope.user_id)
        return await self.add(**body.model_dump())

    async def update(self, task_id: int, body: TaskUpdate) -> Task:
        task = await self.get(task_id)
        changes = changes_from(body, nullable=("due_date", "category_id"))
        if changes.get("category_id") is not None:
            await self._check_category(changes["category_id"], task.user_id)
        return await self.apply(task, changes)
