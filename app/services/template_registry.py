from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.enums import STAGE_NUMBERS
from app.exceptions.errors import NotFoundError, PersistenceError, ValidationError
from app.models import ChecklistTemplateItem
from app.schemas.checklist_schemas import TemplateItemCreate, TemplateItemUpdate
from app.utils.persistence import commit_or_rollback, rollback_quietly

logger = get_logger("template_registry")


def validate_stage_number(stage_number: int) -> None:
    if stage_number not in STAGE_NUMBERS:
        raise ValidationError(
            f"stage_number must be between 1 and 4, got {stage_number}",
            field="stage_number"
        )


class TemplateRegistry:
    """Catalog of checklist items per stage number, shared by all programs."""

    @staticmethod
    async def list_items(
        db: AsyncSession, stage_number: int, include_inactive: bool = False
    ) -> List[ChecklistTemplateItem]:
        """Items of one stage ordered by item_order, ties broken by id."""
        validate_stage_number(stage_number)

        stmt = select(ChecklistTemplateItem).where(ChecklistTemplateItem.stage_number == stage_number)
        if not include_inactive:
            stmt = stmt.where(ChecklistTemplateItem.is_active.is_(True))
        stmt = stmt.order_by(ChecklistTemplateItem.item_order, ChecklistTemplateItem.id)

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error listing templates for stage {stage_number}: {e}")
            raise PersistenceError() from e
        return list(result.scalars().all())

    @staticmethod
    async def list_all(db: AsyncSession, include_inactive: bool = True) -> List[ChecklistTemplateItem]:
        stmt = select(ChecklistTemplateItem)
        if not include_inactive:
            stmt = stmt.where(ChecklistTemplateItem.is_active.is_(True))
        stmt = stmt.order_by(
            ChecklistTemplateItem.stage_number,
            ChecklistTemplateItem.item_order,
            ChecklistTemplateItem.id
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error listing templates: {e}")
            raise PersistenceError() from e
        return list(result.scalars().all())

    @staticmethod
    async def get_item(db: AsyncSession, item_id: str) -> ChecklistTemplateItem:
        try:
            result = await db.execute(
                select(ChecklistTemplateItem).where(ChecklistTemplateItem.id == item_id)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading template {item_id}: {e}")
            raise PersistenceError() from e

        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Checklist template item", item_id)
        return item

    @staticmethod
    async def next_item_order(db: AsyncSession, stage_number: int) -> int:
        """max(existing item_order for the stage) + 1, counting inactive items too."""
        try:
            result = await db.execute(
                select(func.max(ChecklistTemplateItem.item_order))
                .where(ChecklistTemplateItem.stage_number == stage_number)
            )
        except SQLAlchemyError as e:
            raise PersistenceError() from e
        current_max = result.scalar()
        return (current_max or 0) + 1

    @staticmethod
    async def _commit(db: AsyncSession) -> None:
        """Flush first so a taken (stage_number, item_order) slot surfaces as bad input."""
        try:
            await db.flush()
        except IntegrityError as e:
            await rollback_quietly(db)
            raise ValidationError(
                "Another item of this stage already uses that item_order", field="item_order"
            ) from e
        except SQLAlchemyError as e:
            await rollback_quietly(db)
            logger.error(f"Flush failed while saving checklist template: {e}")
            raise PersistenceError("Could not save checklist template, no changes were applied") from e
        await commit_or_rollback(db, "checklist template")

    @staticmethod
    async def upsert_item(
        db: AsyncSession,
        item_data: TemplateItemCreate | TemplateItemUpdate,
        item_id: Optional[str] = None
    ) -> ChecklistTemplateItem:
        """Create a template item, or patch the supplied fields of an existing one."""
        if item_id is None:
            if not isinstance(item_data, TemplateItemCreate):
                raise ValidationError("stage_number and item_name are required to create an item")
            validate_stage_number(item_data.stage_number)

            item_order = item_data.item_order
            if item_order is None:
                item_order = await TemplateRegistry.next_item_order(db, item_data.stage_number)

            item = ChecklistTemplateItem(
                stage_number=item_data.stage_number,
                item_order=item_order,
                item_name=item_data.item_name,
                item_description=item_data.item_description,
                is_required=item_data.is_required,
                is_active=item_data.is_active,
            )
            db.add(item)
            await TemplateRegistry._commit(db)
            logger.info(f"Created template item {item.id} (stage {item.stage_number}, order {item.item_order})")
            return item

        item = await TemplateRegistry.get_item(db, item_id)
        update_data = item_data.dict(exclude_unset=True)
        if update_data.get("stage_number") is not None:
            validate_stage_number(update_data["stage_number"])

        for field, value in update_data.items():
            if value is None and field in ("stage_number", "item_name", "item_order", "is_required", "is_active"):
                continue
            setattr(item, field, value)

        await TemplateRegistry._commit(db)
        logger.info(f"Updated template item {item.id}: {sorted(update_data.keys())}")
        return item

    @staticmethod
    async def deactivate_item(db: AsyncSession, item_id: str) -> ChecklistTemplateItem:
        """Hide an item from checklists without deleting it."""
        item = await TemplateRegistry.get_item(db, item_id)
        if item.is_active:
            item.is_active = False
            await commit_or_rollback(db, "checklist template")
            logger.info(f"Deactivated template item {item_id}")
        return item
