"""Owner-scoped persistence shared by every resource service.

Service layer separates business logic from HTTP routing. API routes
call services, services call the database.

Every query built here carries `user_id == scope.user_id`, so a row
owned by someone else is indistinguishable from a missing row: both are
NotFoundError. Admins skip the filter for single-row get/update/delete
only; listings always stay on the caller's own rows.
"""

from typing import Any, ClassVar, Generic, Iterable, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope
from companion.db.models import Base
from companion.errors import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


def changes_from(body: BaseModel, nullable: Iterable[str] = ()) -> dict[str, Any]:
    """Fields the client actually sent, minus nulls on required columns."""
    keep_null = set(nullable)
    data = body.model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None or k in keep_null}


class OwnedService(Generic[ModelT]):
    """CRUD over one owned table."""

    model: ClassVar[type]
    not_found_message: ClassVar[str] = "Not found"

    def __init__(self, db: AsyncSession, scope: OwnerScope):
        self.db = db
        self.scope = scope

    def owned(self) -> Select:
        """SELECT restricted to the caller's own rows."""
        return select(self.model).where(self.model.user_id == self.scope.user_id)

    async def get(self, item_id: int) -> ModelT:
        query = select(self.model).where(self.model.id == item_id)
        if not self.scope.is_admin:
            query = query.where(self.model.user_id == self.scope.user_id)
        result = await self.db.execute(query)
        obj = result.scalars().first()
        if obj is None:
            raise NotFoundError(self.not_found_message)
        return obj

    async def fetch(self, query: Select) -> list[ModelT]:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add(self, **fields: Any) -> ModelT:
        """Insert a row owned by the caller. A user_id in fields is ignored."""
        fields.pop("user_id", None)
        obj = self.model(user_id=self.scope.user_id, **fields)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def apply(self, obj: ModelT, changes: dict[str, Any]) -> ModelT:
        changes.pop("user_id", None)
        for field, value in changes.items():
            setattr(obj, field, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, item_id: int) -> None:
        obj = await self.get(item_id)
        await self.db.delete(obj)
        await self.db.commit()
