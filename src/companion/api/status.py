"""Status endpoint — liveness plus a database round trip.

Open to everyone. Redis is reported but never makes the service
"degraded": it only backs rate limiting.
"""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from companion import __version__
from companion.db.engine import get_db
from companion.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter()


@router.get("/status")
async def status(db: AsyncSession = Depends(get_db)):
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.warning("status.database_unreachable", error=str(e))
        checks["database"] = "error"

    checks["redis"] = "ok" if get_redis() is not None else "disabled"

    overall = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": overall, **checks}
