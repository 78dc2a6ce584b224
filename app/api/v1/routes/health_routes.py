from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.services.alert_dispatcher import pending_dispatch_count
from app.core.logger import get_logger

logger = get_logger("health_routes")

router = APIRouter()


@router.get("/health", tags=["Health"], summary="Health Check")
async def health_check(db: AsyncSession = Depends(get_db)):
    database = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "pending_dispatches": pending_dispatch_count(),
    }
