"""Task and task-category API routes.

Learn: These routes are the HTTP interface to TaskService. Ownership is
not checked here: the service only ever sees rows of the OwnerScope it
was built with, so someone else's task is simply "not found".

Route order matters: /tasks/stats and /tasks/categories are declared
before /tasks/{task_id} so they are not parsed as task ids.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope, get_owner_scope
from companion.db.engine import get_db
from companion.schemas import UtcDatetime
from companion.schemas.task import (
    Priority,
    TaskCategoryCreate,
    TaskCategoryRead,
    TaskCategoryUpdate,
    TaskCreate,
    TaskRead,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from companion.services.task_service import TaskCategoryService, TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> TaskService:
    return TaskService(db, scope)


def _category_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> TaskCategoryService:
    return TaskCategoryService(db, scope)


# ═══════════════════════════════════════════════════════════
# Stats
# ═══════════════════════════════════════════════════════════


@router.get("/stats", response_model=TaskStats)
async def task_stats(svc: TaskService = Depends(_task_svc)):
    """Counts by status and priority, plus upcoming and overdue totals."""
    return await svc.stats()


# ═══════════════════════════════════════════════════════════
# Categories
# ═══════════════════════════════════════════════════════════


@router.get("/categories", response_model=list[TaskCategoryRead])
async def list_categories(svc: TaskCategoryService = Depends(_category_svc)):
    return await svc.list_categories()


@router.post("/categories", response_model=TaskCategoryRead, status_code=201)
async def create_category(
    body: TaskCategoryCreate, svc: TaskCategoryService = Depends(_category_svc)
):
    return await svc.create(body)


@router.get("/categories/{category_id}", response_model=TaskCategoryRead)
async def get_category(
    category_id: int, svc: TaskCategoryService = Depends(_category_svc)
):
    return await svc.get(category_id)


@router.put("/categories/{category_id}", response_model=TaskCategoryRead)
async def update_category(
    category_id: int,
    body: TaskCategoryUpdate,
    svc: TaskCategoryService = Depends(_category_svc),
):
    return await svc.update(category_id, body)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int, svc: TaskCategoryService = Depends(_category_svc)
):
    """Delete a category. Tasks in it are kept, uncategorized."""
    await svc.delete(category_id)
    return {"message": "Category deleted successfully"}


# ═══════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    category_id: Optional[int] = Query(None),
    from_date: Optional[UtcDatetime] = Query(None, description="Due on or after"),
    to_date: Optional[UtcDatetime] = Query(None, description="Due on or before"),
    search: Optional[str] = Query(None, description="Title/description substring"),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks, soonest due first (undated last)."""
    return await svc.list_tasks(
        status=status,
        priority=priority,
        category_id=category_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(body: TaskCreate, svc: TaskService = Depends(_task_svc)):
    """Create a task owned by the caller."""
    return await svc.create(body)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task_id: int, svc: TaskService = Depends(_task_svc)):
    return await svc.get(task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int, body: TaskUpdate, svc: TaskService = Depends(_task_svc)
):
    """Partial update — only fields present in the body change."""
    return await svc.update(task_id, body)


@router.delete("/{task_id}")
async def delete_task(task_id: int, svc: TaskService = Depends(_task_svc)):
    await svc.delete(task_id)
    return {"message": "Task deleted successfully"}
