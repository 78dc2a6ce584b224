"""
Checklist Controller
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ChecklistEditLease
from app.schemas.checklist_schemas import (
    TemplateItemCreate, TemplateItemUpdate, TemplateItemResponse,
    ChecklistItemUpdate, ChecklistProgressResponse, EditLeaseResponse
)
from app.services.checklist_progress_service import ChecklistProgressService
from app.services.template_registry import TemplateRegistry
from app.core.logger import get_logger

logger = get_logger("checklist_controller")


def _lease_response(lease: ChecklistEditLease) -> EditLeaseResponse:
    return EditLeaseResponse(
        lease_id=lease.id,
        subscription_id=lease.subscription_id,
        stage_number=lease.stage_number,
        template_id=lease.template_id,
        actor=lease.actor,
        expires_at=lease.expires_at
    )


class ChecklistController:
    """Controller for stage checklist progress and templates."""

    @staticmethod
    async def get_progress(
        db: AsyncSession, subscription_id: str, stage_number: int
    ) -> ChecklistProgressResponse:
        progress = await ChecklistProgressService.get_progress(db, subscription_id, stage_number)
        return ChecklistProgressResponse(**progress)

    @staticmethod
    async def set_item(
        db: AsyncSession,
        subscription_id: str,
        stage_number: int,
        item_id: str,
        update: ChecklistItemUpdate,
        actor: str
    ) -> ChecklistProgressResponse:
        await ChecklistProgressService.set_item(
            db,
            subscription_id,
            stage_number,
            item_id,
            update.completed,
            notes=update.notes,
            actor=actor,
            expected_version=update.expected_version
        )
        return await ChecklistController.get_progress(db, subscription_id, stage_number)

    @staticmethod
    async def begin_completion(
        db: AsyncSession, subscription_id: str, stage_number: int, item_id: str, actor: str
    ) -> EditLeaseResponse:
        lease = await ChecklistProgressService.begin_completion(
            db, subscription_id, stage_number, item_id, actor=actor
        )
        return _lease_response(lease)

    @staticmethod
    async def confirm_completion(
        db: AsyncSession, lease_id: str, notes: str, actor: str
    ) -> ChecklistProgressResponse:
        row = await ChecklistProgressService.confirm_completion(db, lease_id, notes=notes, actor=actor)
        return await ChecklistController.get_progress(db, row.subscription_id, row.stage_number)

    @staticmethod
    async def cancel_completion(db: AsyncSession, lease_id: str) -> dict:
        await ChecklistProgressService.cancel_completion(db, lease_id)
        return {"status": "cancelled", "lease_id": lease_id}

    # Templates

    @staticmethod
    async def list_templates(db: AsyncSession, include_inactive: bool) -> List[TemplateItemResponse]:
        items = await TemplateRegistry.list_all(db, include_inactive=include_inactive)
        return [TemplateItemResponse.model_validate(item) for item in items]

    @staticmethod
    async def list_stage_templates(
        db: AsyncSession, stage_number: int, include_inactive: bool
    ) -> List[TemplateItemResponse]:
        items = await TemplateRegistry.list_items(db, stage_number, include_inactive=include_inactive)
        return [TemplateItemResponse.model_validate(item) for item in items]

    @staticmethod
    async def create_template(db: AsyncSession, data: TemplateItemCreate) -> TemplateItemResponse:
        item = await TemplateRegistry.upsert_item(db, data)
        return TemplateItemResponse.model_validate(item)

    @staticmethod
    async def update_template(db: AsyncSession, item_id: str, data: TemplateItemUpdate) -> TemplateItemResponse:
        item = await TemplateRegistry.upsert_item(db, data, item_id=item_id)
        return TemplateItemResponse.model_validate(item)

    @staticmethod
    async def deactivate_template(db: AsyncSession, item_id: str) -> TemplateItemResponse:
        item = await TemplateRegistry.deactivate_item(db, item_id)
        return TemplateItemResponse.model_validate(item)
