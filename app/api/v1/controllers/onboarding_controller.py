from sqlalchemy.ext.asyncio import AsyncSession

from app.models import OnboardingChecklist
from app.schemas.onboarding_schemas import OnboardingChecklistCreate, OnboardingChecklistResponse
from app.services.onboarding_gate_service import OnboardingGateService, outstanding_flags
from app.core.logger import get_logger

logger = get_logger("onboarding_controller")


def _checklist_response(checklist: OnboardingChecklist) -> OnboardingChecklistResponse:
    response = OnboardingChecklistResponse.model_validate(checklist)
    response.outstanding = outstanding_flags(checklist)
    return response


class OnboardingController:
    """Controller for the onboarding checklist gate."""

    @staticmethod
    async def create_checklist(
        db: AsyncSession, data: OnboardingChecklistCreate
    ) -> OnboardingChecklistResponse:
        checklist = await OnboardingGateService.get_or_create_checklist(
            db, data.subscription_id, data.client_id
        )
        return _checklist_response(checklist)

    @staticmethod
    async def get_checklist(db: AsyncSession, checklist_id: str) -> OnboardingChecklistResponse:
        checklist = await OnboardingGateService.get_checklist(db, checklist_id)
        return _checklist_response(checklist)

    @staticmethod
    async def set_flag(
        db: AsyncSession, checklist_id: str, flag_name: str, value: bool, actor: str
    ) -> OnboardingChecklistResponse:
        checklist = await OnboardingGateService.set_flag(db, checklist_id, flag_name, value, actor=actor)
        return _checklist_response(checklist)

    @staticmethod
    async def finalize(db: AsyncSession, checklist_id: str, notes: str) -> OnboardingChecklistResponse:
        checklist = await OnboardingGateService.finalize(db, checklist_id, notes=notes)
        return _checklist_response(checklist)
