from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.enums import OnboardingFlag
from app.exceptions.errors import (
    ApplicationException, IncompletePrerequisites, NotFoundError,
    OnboardingAlreadyFinalized, PersistenceError, ValidationError
)
from app.models import OnboardingChecklist
from app.utils.persistence import commit_or_rollback, rollback_quietly

logger = get_logger("onboarding_gate_service")

ONBOARDING_FLAGS = [flag.value for flag in OnboardingFlag]


def outstanding_flags(checklist: OnboardingChecklist) -> List[str]:
    return [flag for flag in ONBOARDING_FLAGS if not getattr(checklist, flag)]


class OnboardingGateService:
    """The fixed six-step onboarding gate; finalized once, never reopened."""

    @staticmethod
    async def get_checklist(
        db: AsyncSession, checklist_id: str, for_update: bool = False
    ) -> OnboardingChecklist:
        stmt = select(OnboardingChecklist).where(OnboardingChecklist.id == checklist_id)
        if for_update:
            stmt = stmt.with_for_update()
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading onboarding checklist {checklist_id}: {e}")
            raise PersistenceError() from e

        checklist = result.scalar_one_or_none()
        if not checklist:
            raise NotFoundError("Onboarding checklist", checklist_id)
        return checklist

    @staticmethod
    async def get_or_create_checklist(
        db: AsyncSession, subscription_id: str, client_id: str
    ) -> OnboardingChecklist:
        """Checklist for a subscription, created on first request."""
        try:
            result = await db.execute(
                select(OnboardingChecklist).where(OnboardingChecklist.subscription_id == subscription_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceError() from e

        checklist = result.scalar_one_or_none()
        if checklist:
            return checklist

        checklist = OnboardingChecklist(subscription_id=subscription_id, client_id=client_id)
        db.add(checklist)
        try:
            await db.flush()
        except IntegrityError:
            # Created by a concurrent request; use theirs
            await rollback_quietly(db)
            result = await db.execute(
                select(OnboardingChecklist).where(OnboardingChecklist.subscription_id == subscription_id)
            )
            return result.scalar_one()

        await commit_or_rollback(db, "onboarding checklist")
        logger.info(f"Created onboarding checklist {checklist.id} for subscription {subscription_id}")
        return checklist

    @staticmethod
    async def set_flag(
        db: AsyncSession,
        checklist_id: str,
        flag_name: str,
        value: bool,
        actor: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> OnboardingChecklist:
        """Set one step flag; its _at/_by shadows are stamped on set and cleared on unset."""
        if flag_name not in ONBOARDING_FLAGS:
            raise ValidationError(
                f"Unknown onboarding step '{flag_name}'. Expected one of: {', '.join(ONBOARDING_FLAGS)}",
                field="flag_name"
            )

        try:
            checklist = await OnboardingGateService.get_checklist(db, checklist_id, for_update=True)
            if checklist.is_completed:
                raise OnboardingAlreadyFinalized(checklist_id)

            setattr(checklist, flag_name, value)
            if value:
                setattr(checklist, f"{flag_name}_at", now or datetime.utcnow())
                setattr(checklist, f"{flag_name}_by", actor)
            else:
                setattr(checklist, f"{flag_name}_at", None)
                setattr(checklist, f"{flag_name}_by", None)

            await commit_or_rollback(db, "onboarding step")
        except ApplicationException:
            await rollback_quietly(db)
            raise

        logger.info(f"Onboarding {checklist_id}: {flag_name}={value} by {actor}")
        return checklist

    @staticmethod
    async def finalize(
        db: AsyncSession,
        checklist_id: str,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> OnboardingChecklist:
        """Close the gate. Requires all six steps; cannot be undone."""
        try:
            checklist = await OnboardingGateService.get_checklist(db, checklist_id, for_update=True)
            if checklist.is_completed:
                raise OnboardingAlreadyFinalized(checklist_id)

            missing = outstanding_flags(checklist)
            if missing:
                raise IncompletePrerequisites(missing)

            checklist.is_completed = True
            checklist.completed_at = now or datetime.utcnow()
            checklist.notes = notes
            await commit_or_rollback(db, "onboarding completion")
        except ApplicationException:
            await rollback_quietly(db)
            raise

        logger.info(f"Onboarding checklist {checklist_id} finalized for subscription {checklist.subscription_id}")
        return checklist
