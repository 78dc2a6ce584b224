from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.middlewares.actor_context import get_actor
from app.api.v1.controllers.onboarding_controller import OnboardingController
from app.schemas.onboarding_schemas import (
    OnboardingChecklistCreate, OnboardingFlagUpdate, OnboardingFinalizeRequest,
    OnboardingChecklistResponse
)
from app.core.logger import get_logger

logger = get_logger("onboarding_routes")

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])


@router.get(
    "/health",
    summary="Health Check",
    description="Simple health check for onboarding service."
)
async def onboarding_health():
    return {
        "status": "healthy",
        "service": "onboarding",
    }


@router.post(
    "/checklists",
    response_model=OnboardingChecklistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Onboarding Checklist",
    description="Create the subscription's onboarding checklist, or return the existing one."
)
async def create_onboarding_checklist(
    body: OnboardingChecklistCreate,
    db: AsyncSession = Depends(get_db)
):
    return await OnboardingController.create_checklist(db, body)


@router.get(
    "/checklists/{checklist_id}",
    response_model=OnboardingChecklistResponse,
    summary="Get Onboarding Checklist"
)
async def get_onboarding_checklist(checklist_id: str, db: AsyncSession = Depends(get_db)):
    return await OnboardingController.get_checklist(db, checklist_id)


@router.put(
    "/checklists/{checklist_id}/flags/{flag_name}",
    response_model=OnboardingChecklistResponse,
    summary="Set Onboarding Step"
)
async def set_onboarding_flag(
    checklist_id: str,
    flag_name: str,
    body: OnboardingFlagUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor)
):
    logger.info(f"PUT onboarding flag {flag_name}={body.value} on {checklist_id} by {actor}")
    return await OnboardingController.set_flag(db, checklist_id, flag_name, body.value, actor)


@router.post(
    "/checklists/{checklist_id}/finalize",
    response_model=OnboardingChecklistResponse,
    summary="Finalize Onboarding",
    description="Requires all six steps. One-way: a finalized checklist cannot be reopened."
)
async def finalize_onboarding(
    checklist_id: str,
    body: Optional[OnboardingFinalizeRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    return await OnboardingController.finalize(db, checklist_id, body.notes if body else None)
