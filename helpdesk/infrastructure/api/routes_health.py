"""Health check endpoint."""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.database import get_session
from helpdesk.adapters.redis_queue.client import get_redis

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check API, database and rotation queue store connectivity."""
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = f"error: {e}"

    try:
        await get_redis().ping()
        redis_status = "connected"
    except (RedisError, OSError) as e:
        redis_status = f"error: {e}"

    healthy = db_status == "connected" and redis_status == "connected"
    return {
        "status": "ok" if healthy else "degraded",
        "database": db_status,
        "redis": redis_status,
        "service": "helpdesk ticket dispatch",
    }
