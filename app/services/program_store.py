import asyncio
import weakref
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logger import get_logger
from app.enums import STAGE_NAMES, ProgramStatus, StageStatus
from app.exceptions.errors import NotFoundError, PersistenceError, ValidationError
from app.models import AcceleratorProgram, AcceleratorStage
from app.utils.persistence import commit_or_rollback

logger = get_logger("program_store")

# program_id -> lock; entries vanish once no coroutine holds the lock
_program_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


class ProgramStore:
    """Persistence boundary for Program and Stage aggregates."""

    @staticmethod
    def program_lock(program_id: str) -> asyncio.Lock:
        """In-process critical section for read-all-stages / compute / write-program."""
        lock = _program_locks.get(program_id)
        if lock is None:
            lock = asyncio.Lock()
            _program_locks[program_id] = lock
        return lock

    @staticmethod
    async def get_program(
        db: AsyncSession, program_id: str, for_update: bool = False
    ) -> AcceleratorProgram:
        stmt = select(AcceleratorProgram).where(AcceleratorProgram.id == program_id)
        if for_update:
            stmt = stmt.with_for_update()
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading program {program_id}: {e}")
            raise PersistenceError() from e

        program = result.scalar_one_or_none()
        if not program:
            raise NotFoundError("Program", program_id)
        return program

    @staticmethod
    async def get_program_by_subscription(
        db: AsyncSession, subscription_id: str
    ) -> Optional[AcceleratorProgram]:
        try:
            result = await db.execute(
                select(AcceleratorProgram).where(AcceleratorProgram.subscription_id == subscription_id)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading program for subscription {subscription_id}: {e}")
            raise PersistenceError() from e
        return result.scalar_one_or_none()

    @staticmethod
    async def list_stages(
        db: AsyncSession, program_id: str, for_update: bool = False
    ) -> List[AcceleratorStage]:
        """All stages of a program, freshly read, ordered by stage number."""
        stmt = (
            select(AcceleratorStage)
            .where(AcceleratorStage.program_id == program_id)
            .order_by(AcceleratorStage.stage_number)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading stages for program {program_id}: {e}")
            raise PersistenceError() from e
        return list(result.scalars().all())

    @staticmethod
    async def get_stage(
        db: AsyncSession, stage_id: str, for_update: bool = False
    ) -> AcceleratorStage:
        stmt = select(AcceleratorStage).where(AcceleratorStage.id == stage_id)
        if for_update:
            stmt = stmt.with_for_update()
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading stage {stage_id}: {e}")
            raise PersistenceError() from e

        stage = result.scalar_one_or_none()
        if not stage:
            raise NotFoundError("Stage", stage_id)
        return stage

    @staticmethod
    async def create_program(
        db: AsyncSession,
        subscription_id: str,
        client_id: str,
        start_date: date
    ) -> AcceleratorProgram:
        """
        Create a program and its four stages together.

        Stage n covers [start + (n-1)*STAGE_LENGTH, start + n*STAGE_LENGTH].
        Called by subscription intake when a subscription joins the Accelerator plan.
        """
        if not subscription_id or not client_id:
            raise ValidationError("subscription_id and client_id are required")

        existing = await ProgramStore.get_program_by_subscription(db, subscription_id)
        if existing:
            raise ValidationError(
                f"Subscription {subscription_id} already has an Accelerator program",
                field="subscription_id"
            )

        program = AcceleratorProgram(
            subscription_id=subscription_id,
            client_id=client_id,
            program_start_date=start_date,
            program_end_date=start_date + timedelta(days=settings.PROGRAM_LENGTH_DAYS),
            current_stage=1,
            status=ProgramStatus.ACTIVE.value,
        )
        db.add(program)

        stage_length = settings.STAGE_LENGTH_DAYS
        for number, name in STAGE_NAMES.items():
            program.stages.append(AcceleratorStage(
                subscription_id=subscription_id,
                stage_number=number,
                stage_name=name,
                start_date=start_date + timedelta(days=stage_length * (number - 1)),
                end_date=start_date + timedelta(days=stage_length * number),
                status=StageStatus.PENDING.value,
                is_activated=False,
            ))

        await commit_or_rollback(db, "program creation")

        logger.info(f"Created Accelerator program {program.id} for subscription {subscription_id}")
        return program
