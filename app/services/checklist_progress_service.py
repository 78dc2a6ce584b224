from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logger import get_logger
from app.exceptions.errors import (
    ConcurrentEditRejected, NotFoundError, PersistenceError, ValidationError
)
from app.models import ChecklistEditLease, ChecklistProgress, ChecklistTemplateItem
from app.services.progress_calculator import checklist_progress
from app.services.template_registry import TemplateRegistry, validate_stage_number
from app.utils.persistence import commit_or_rollback, rollback_quietly

logger = get_logger("checklist_progress_service")


def _lease_is_live(lease: Optional[ChecklistEditLease], now: datetime) -> bool:
    return lease is not None and lease.expires_at > now


def _lease_to_dict(lease: ChecklistEditLease) -> Dict:
    return {
        "lease_id": lease.id,
        "subscription_id": lease.subscription_id,
        "stage_number": lease.stage_number,
        "template_id": lease.template_id,
        "actor": lease.actor,
        "expires_at": lease.expires_at,
    }


class ChecklistProgressService:
    """
    Per-subscription, per-stage checklist completion.

    Completion is a two-phase gesture: begin_completion takes the single edit
    lease of the (subscription, stage) pair, confirm_completion writes the row
    and releases the lease, cancel_completion only releases it. While a lease
    is live no other item of that pair can be completed.
    """

    @staticmethod
    async def get_progress(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        now: Optional[datetime] = None
    ) -> Dict:
        """Active template items left-joined with this subscription's progress rows."""
        if not subscription_id:
            raise ValidationError("subscription_id is required", field="subscription_id")
        now = now or datetime.utcnow()

        templates = await TemplateRegistry.list_items(db, stage_number)
        rows = await ChecklistProgressService._progress_rows(db, subscription_id, stage_number)
        lease = await ChecklistProgressService._get_lease(db, subscription_id, stage_number)

        items: List[Dict] = []
        for template in templates:
            row = rows.get(template.id)
            completed = bool(row and row.is_completed)
            items.append({
                "template_id": template.id,
                "item_name": template.item_name,
                "item_description": template.item_description,
                "is_required": template.is_required,
                "is_completed": completed,
                "completed_at": row.completed_at if completed else None,
                "completed_by": row.completed_by if completed else None,
                "notes": row.notes if completed else None,
                "item_order": template.item_order,
                "version": row.version if row else 0,
            })

        completed_count = sum(1 for item in items if item["is_completed"])
        total_count = len(items)

        return {
            "subscription_id": subscription_id,
            "stage_number": stage_number,
            "items": items,
            "completed_count": completed_count,
            "total_count": total_count,
            "percentage": checklist_progress(completed_count, total_count),
            "pending_edit": _lease_to_dict(lease) if _lease_is_live(lease, now) else None,
        }

    @staticmethod
    async def set_item(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        item_id: Optional[str],
        completed: bool,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Optional[ChecklistProgress]:
        """
        Complete (upsert) or uncomplete (delete) one item.
        Returns the stored row, or None after an uncomplete.
        """
        now = now or datetime.utcnow()
        row = await ChecklistProgressService._apply_item_state(
            db, subscription_id, stage_number, item_id, completed,
            notes=notes, actor=actor, expected_version=expected_version, now=now
        )
        await ChecklistProgressService._commit(db)

        logger.info(
            f"Checklist item {item_id} for subscription {subscription_id} stage {stage_number} "
            f"{'completed' if completed else 'cleared'} by {actor}"
        )
        return row

    @staticmethod
    async def begin_completion(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        item_id: Optional[str],
        actor: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ChecklistEditLease:
        """Mark intent to complete an item; nothing is written to progress yet."""
        now = now or datetime.utcnow()
        template = await ChecklistProgressService._validated_template(
            db, subscription_id, stage_number, item_id, for_completion=True
        )

        lease = await ChecklistProgressService._get_lease(db, subscription_id, stage_number, for_update=True)
        if _lease_is_live(lease, now):
            if lease.template_id == template.id:
                return lease
            raise ConcurrentEditRejected(
                "Another checklist item is awaiting confirmation; confirm or cancel it first",
                pending_item_id=lease.template_id,
                lease_id=lease.id
            )

        rows = await ChecklistProgressService._progress_rows(db, subscription_id, stage_number)
        existing = rows.get(template.id)
        if existing and existing.is_completed:
            raise ValidationError(f"Checklist item {template.id} is already completed", field="item_id")

        if lease is not None:
            logger.info(f"Replacing expired checklist lease {lease.id} for subscription {subscription_id}")
            await db.delete(lease)
            await db.flush()

        lease = ChecklistEditLease(
            subscription_id=subscription_id,
            stage_number=stage_number,
            template_id=template.id,
            actor=actor,
            expires_at=now + timedelta(seconds=settings.CHECKLIST_EDIT_LEASE_SECONDS),
        )
        db.add(lease)
        await ChecklistProgressService._commit(db)

        logger.info(f"Opened checklist lease {lease.id} on item {template.id} for {actor}")
        return lease

    @staticmethod
    async def confirm_completion(
        db: AsyncSession,
        lease_id: str,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> ChecklistProgress:
        """Commit the pending completion with its notes and release the lease atomically."""
        now = now or datetime.utcnow()
        lease = await ChecklistProgressService._get_lease_by_id(db, lease_id)

        if not _lease_is_live(lease, now):
            await db.delete(lease)
            await ChecklistProgressService._commit(db)
            raise ConcurrentEditRejected(
                "The pending completion expired; open the item again",
                pending_item_id=lease.template_id
            )

        row = await ChecklistProgressService._apply_item_state(
            db, lease.subscription_id, lease.stage_number, lease.template_id, True,
            notes=notes, actor=actor or lease.actor, now=now, lease_id=lease.id
        )
        await db.delete(lease)
        await ChecklistProgressService._commit(db)

        logger.info(f"Confirmed checklist lease {lease_id} (item {lease.template_id})")
        return row

    @staticmethod
    async def cancel_completion(db: AsyncSession, lease_id: str) -> None:
        """Drop the pending completion; the item keeps whatever state it had."""
        lease = await ChecklistProgressService._get_lease_by_id(db, lease_id)
        await db.delete(lease)
        await ChecklistProgressService._commit(db)
        logger.info(f"Cancelled checklist lease {lease_id} (item {lease.template_id})")

    # -- internals -------------------------------------------------------------

    @staticmethod
    async def _apply_item_state(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        item_id: Optional[str],
        completed: bool,
        notes: Optional[str],
        actor: Optional[str],
        now: datetime,
        expected_version: Optional[int] = None,
        lease_id: Optional[str] = None
    ) -> Optional[ChecklistProgress]:
        """Stage the write in the session without committing."""
        template = await ChecklistProgressService._validated_template(
            db, subscription_id, stage_number, item_id, for_completion=completed
        )

        resolved_lease = None
        if completed:
            lease = await ChecklistProgressService._get_lease(db, subscription_id, stage_number, for_update=True)
            if _lease_is_live(lease, now) and lease.id != lease_id:
                if lease.template_id != template.id:
                    raise ConcurrentEditRejected(
                        "Another checklist item is awaiting confirmation; confirm or cancel it first",
                        pending_item_id=lease.template_id,
                        lease_id=lease.id
                    )
                resolved_lease = lease

        row = await ChecklistProgressService._get_row(db, subscription_id, stage_number, template.id)
        current_version = row.version if row else 0
        if expected_version is not None and expected_version != current_version:
            raise ConcurrentEditRejected(
                f"Checklist item {template.id} changed since it was read "
                f"(expected version {expected_version}, found {current_version})",
                pending_item_id=template.id
            )

        # Nothing is staged in the session until every check above has passed
        if resolved_lease is not None:
            # Completing the leased item directly resolves its pending dialog
            await db.delete(resolved_lease)

        if not completed:
            if row is not None:
                await db.delete(row)
            return None

        if row is None:
            row = ChecklistProgress(
                subscription_id=subscription_id,
                stage_number=stage_number,
                template_id=template.id,
                version=1,
            )
            db.add(row)
        else:
            row.version = current_version + 1

        row.is_completed = True
        row.completed_at = now
        row.completed_by = actor
        row.notes = notes or None
        return row

    @staticmethod
    async def _validated_template(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        item_id: Optional[str],
        for_completion: bool
    ) -> ChecklistTemplateItem:
        if not subscription_id:
            raise ValidationError("subscription_id is required", field="subscription_id")
        if not item_id:
            raise ValidationError("item_id is required", field="item_id")
        validate_stage_number(stage_number)

        template = await TemplateRegistry.get_item(db, item_id)
        if template.stage_number != stage_number:
            raise ValidationError(
                f"Checklist item {item_id} belongs to stage {template.stage_number}, not {stage_number}",
                field="item_id"
            )
        if for_completion and not template.is_active:
            raise ValidationError(f"Checklist item {item_id} is no longer active", field="item_id")
        return template

    @staticmethod
    async def _progress_rows(
        db: AsyncSession, subscription_id: str, stage_number: int
    ) -> Dict[str, ChecklistProgress]:
        try:
            result = await db.execute(
                select(ChecklistProgress)
                .where(ChecklistProgress.subscription_id == subscription_id)
                .where(ChecklistProgress.stage_number == stage_number)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading checklist progress for {subscription_id}: {e}")
            raise PersistenceError() from e
        return {row.template_id: row for row in result.scalars().all()}

    @staticmethod
    async def _get_row(
        db: AsyncSession, subscription_id: str, stage_number: int, template_id: str
    ) -> Optional[ChecklistProgress]:
        try:
            result = await db.execute(
                select(ChecklistProgress)
                .where(ChecklistProgress.subscription_id == subscription_id)
                .where(ChecklistProgress.stage_number == stage_number)
                .where(ChecklistProgress.template_id == template_id)
                .with_for_update()
            )
        except SQLAlchemyError as e:
            raise PersistenceError() from e
        return result.scalar_one_or_none()

    @staticmethod
    async def _get_lease(
        db: AsyncSession, subscription_id: str, stage_number: int, for_update: bool = False
    ) -> Optional[ChecklistEditLease]:
        stmt = (
            select(ChecklistEditLease)
            .where(ChecklistEditLease.subscription_id == subscription_id)
            .where(ChecklistEditLease.stage_number == stage_number)
        )
        if for_update:
            stmt = stmt.with_for_update()
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError() from e
        return result.scalar_one_or_none()

    @staticmethod
    async def _get_lease_by_id(db: AsyncSession, lease_id: str) -> ChecklistEditLease:
        try:
            result = await db.execute(
                select(ChecklistEditLease).where(ChecklistEditLease.id == lease_id).with_for_update()
            )
        except SQLAlchemyError as e:
            raise PersistenceError() from e
        lease = result.scalar_one_or_none()
        if not lease:
            raise NotFoundError("Checklist edit", lease_id)
        return lease

    @staticmethod
    async def _commit(db: AsyncSession) -> None:
        """Commit; a unique-key race on progress or lease rows means a concurrent edit won."""
        try:
            await db.flush()
        except IntegrityError as e:
            await rollback_quietly(db)
            raise ConcurrentEditRejected("A concurrent edit on this checklist was saved first") from e
        except SQLAlchemyError as e:
            await rollback_quietly(db)
            logger.error(f"Flush failed while saving checklist progress: {e}")
            raise PersistenceError("Could not save checklist progress, no changes were applied") from e
        await commit_or_rollback(db, "checklist progress")
