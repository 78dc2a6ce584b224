from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.errors import PersistenceError
from app.core.logger import get_logger

logger = get_logger("persistence")


async def commit_or_rollback(db: AsyncSession, context: str) -> None:
    """Commit the unit of work; on storage failure roll everything back and raise PersistenceError."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Commit failed during {context}: {e}")
        raise PersistenceError(f"Could not save {context}, no changes were applied") from e


async def rollback_quietly(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        logger.error(f"Rollback failed: {e}")
