"""
Accelerator Program Routes
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.api.v1.controllers.accelerator_controller import AcceleratorController
from app.schemas.accelerator_schemas import (
    ProgramResponse, StageResponse, ProgramOverviewResponse,
    StageActivationRequest, StageActivationResponse, DeadlineExtensionRequest
)
from app.services.notification_gateway import NotificationGateway, get_notification_gateway

router = APIRouter(prefix="/accelerator", tags=["Accelerator"])


@router.get(
    "/programs/{program_id}",
    response_model=ProgramOverviewResponse,
    summary="Get Program Overview",
    description="Program with its four stages, time progress, days remaining and checklist completion per stage."
)
async def get_program_overview(program_id: str, db: AsyncSession = Depends(get_db)):
    return await AcceleratorController.get_program_overview(db, program_id)


@router.post(
    "/programs/{program_id}/stages/{stage_number}/activation",
    response_model=StageActivationResponse,
    summary="Activate / Deactivate Stage",
    description="Toggle a stage's activation flag and recompute the program's current stage. "
                "A stage change notification is sent in the background."
)
async def set_stage_activation(
    program_id: str,
    stage_number: int,
    body: StageActivationRequest,
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway)
):
    return await AcceleratorController.set_stage_activation(
        db, program_id, stage_number, body.activate, gateway
    )


@router.post(
    "/programs/{program_id}/goal-reached",
    response_model=ProgramResponse,
    summary="Mark Goal Reached"
)
async def mark_goal_reached(program_id: str, db: AsyncSession = Depends(get_db)):
    return await AcceleratorController.mark_goal_reached(db, program_id)


@router.post(
    "/stages/{stage_id}/extend-deadline",
    response_model=StageResponse,
    summary="Extend Stage Deadline",
    description="Add days (default 7) to the stage end date."
)
async def extend_deadline(
    stage_id: str,
    body: Optional[DeadlineExtensionRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    days = body.days if body else DeadlineExtensionRequest().days
    return await AcceleratorController.extend_deadline(db, stage_id, days)


@router.post(
    "/stages/{stage_id}/complete",
    response_model=StageResponse,
    summary="Complete Stage",
    description="Mark the stage completed. Does not activate the next stage."
)
async def complete_stage(stage_id: str, db: AsyncSession = Depends(get_db)):
    return await AcceleratorController.complete_stage(db, stage_id)
