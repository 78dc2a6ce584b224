"""
Checklist Routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.middlewares.actor_context import get_actor
from app.api.v1.controllers.checklist_controller import ChecklistController
from app.schemas.checklist_schemas import (
    TemplateItemCreate, TemplateItemUpdate, TemplateItemResponse,
    ChecklistItemUpdate, ConfirmCompletionRequest,
    ChecklistProgressResponse, EditLeaseResponse
)

router = APIRouter(prefix="/accelerator", tags=["Accelerator Checklists"])


@router.get(
    "/checklists/{subscription_id}/stages/{stage_number}",
    response_model=ChecklistProgressResponse,
    summary="Get Stage Checklist Progress"
)
async def get_checklist_progress(
    subscription_id: str,
    stage_number: int,
    db: AsyncSession = Depends(get_db)
):
    return await ChecklistController.get_progress(db, subscription_id, stage_number)


@router.put(
    "/checklists/{subscription_id}/stages/{stage_number}/items/{item_id}",
    response_model=ChecklistProgressResponse,
    summary="Set Checklist Item",
    description="Complete or uncomplete an item directly. Uncompleting discards the notes. "
                "Pass expected_version to reject the write if someone else changed the item."
)
async def set_checklist_item(
    subscription_id: str,
    stage_number: int,
    item_id: str,
    body: ChecklistItemUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor)
):
    return await ChecklistController.set_item(db, subscription_id, stage_number, item_id, body, actor)


@router.post(
    "/checklists/{subscription_id}/stages/{stage_number}/items/{item_id}/begin",
    response_model=EditLeaseResponse,
    summary="Begin Item Completion",
    description="Open the completion of an item. Only one item per subscription and stage can be pending."
)
async def begin_item_completion(
    subscription_id: str,
    stage_number: int,
    item_id: str,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor)
):
    return await ChecklistController.begin_completion(db, subscription_id, stage_number, item_id, actor)


@router.post(
    "/checklists/leases/{lease_id}/confirm",
    response_model=ChecklistProgressResponse,
    summary="Confirm Item Completion"
)
async def confirm_item_completion(
    lease_id: str,
    body: Optional[ConfirmCompletionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor)
):
    return await ChecklistController.confirm_completion(db, lease_id, body.notes if body else None, actor)


@router.post(
    "/checklists/leases/{lease_id}/cancel",
    summary="Cancel Item Completion"
)
async def cancel_item_completion(lease_id: str, db: AsyncSession = Depends(get_db)):
    return await ChecklistController.cancel_completion(db, lease_id)


@router.get(
    "/templates",
    response_model=List[TemplateItemResponse],
    summary="List Checklist Templates"
)
async def list_templates(
    include_inactive: bool = Query(True),
    db: AsyncSession = Depends(get_db)
):
    return await ChecklistController.list_templates(db, include_inactive)


@router.get(
    "/templates/stages/{stage_number}",
    response_model=List[TemplateItemResponse],
    summary="List Stage Templates"
)
async def list_stage_templates(
    stage_number: int,
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    return await ChecklistController.list_stage_templates(db, stage_number, include_inactive)


@router.post(
    "/templates",
    response_model=TemplateItemResponse,
    status_code=201,
    summary="Create Checklist Template Item"
)
async def create_template(body: TemplateItemCreate, db: AsyncSession = Depends(get_db)):
    return await ChecklistController.create_template(db, body)


@router.put(
    "/templates/{item_id}",
    response_model=TemplateItemResponse,
    summary="Update Checklist Template Item"
)
async def update_template(item_id: str, body: TemplateItemUpdate, db: AsyncSession = Depends(get_db)):
    return await ChecklistController.update_template(db, item_id, body)


@router.delete(
    "/templates/{item_id}",
    response_model=TemplateItemResponse,
    summary="Deactivate Checklist Template Item",
    description="Soft delete: the item is hidden from checklists, completed progress keeps its reference."
)
async def deactivate_template(item_id: str, db: AsyncSession = Depends(get_db)):
    return await ChecklistController.deactivate_template(db, item_id)
