"""
Accelerator Program Controller
"""
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.accelerator_schemas import (
    ProgramResponse, StageResponse, StageOverview, ProgramOverviewResponse,
    StageActivationResponse
)
from app.services.notification_gateway import NotificationGateway
from app.services.stage_activation_service import StageActivationService
from app.core.logger import get_logger

logger = get_logger("accelerator_controller")


class AcceleratorController:
    """Controller for program and stage operations."""

    @staticmethod
    async def get_program_overview(db: AsyncSession, program_id: str) -> ProgramOverviewResponse:
        overview = await StageActivationService.get_program_overview(db, program_id)

        stages = []
        for view in overview["stages"]:
            base = StageResponse.model_validate(view["stage"]).dict()
            stages.append(StageOverview(
                **base,
                time_progress=view["time_progress"],
                days_remaining=view["days_remaining"],
                checklist_completed=view["checklist_completed"],
                checklist_total=view["checklist_total"],
                checklist_percentage=view["checklist_percentage"],
            ))

        return ProgramOverviewResponse(
            program=ProgramResponse.model_validate(overview["program"]),
            program_day=overview["program_day"],
            program_progress=overview["program_progress"],
            stages=stages
        )

    @staticmethod
    async def set_stage_activation(
        db: AsyncSession,
        program_id: str,
        stage_number: int,
        activate: bool,
        gateway: NotificationGateway
    ) -> StageActivationResponse:
        result = await StageActivationService.set_activation(
            db, program_id, stage_number, activate, gateway=gateway
        )
        return StageActivationResponse(**result)

    @staticmethod
    async def extend_deadline(db: AsyncSession, stage_id: str, days: int) -> StageResponse:
        stage = await StageActivationService.extend_deadline(db, stage_id, days)
        return StageResponse.model_validate(stage)

    @staticmethod
    async def complete_stage(db: AsyncSession, stage_id: str) -> StageResponse:
        stage = await StageActivationService.complete_stage(db, stage_id)
        return StageResponse.model_validate(stage)

    @staticmethod
    async def mark_goal_reached(db: AsyncSession, program_id: str) -> ProgramResponse:
        program = await StageActivationService.mark_goal_reached(db, program_id)
        return ProgramResponse.model_validate(program)
