from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.enums import AlertStatus, AlertType, StageStatus
from app.exceptions.errors import ApplicationException, NotFoundError
from app.models import AcceleratorProgram, AcceleratorStage, Alert
from app.services import progress_calculator
from app.services.alert_dispatcher import schedule_dispatch
from app.services.checklist_progress_service import ChecklistProgressService
from app.services.discord_channel_resolver import resolve_discord_channel
from app.services.notification_gateway import NotificationGateway
from app.services.program_store import ProgramStore
from app.services.template_registry import validate_stage_number
from app.utils.persistence import commit_or_rollback, rollback_quietly

logger = get_logger("stage_activation_service")

DEFAULT_EXTENSION_DAYS = 7


def compute_current_stage(stages: Iterable[AcceleratorStage]) -> int:
    """Highest activated stage number, floored at 1."""
    activated = [stage.stage_number for stage in stages if stage.is_activated]
    return max(1, max(activated, default=1))


def _stage_change_alert(
    program: AcceleratorProgram,
    stage: AcceleratorStage,
    activate: bool,
    discord_channel: str,
    now: datetime
) -> Alert:
    verb = "activated" if activate else "deactivated"
    return Alert(
        alert_type=AlertType.STAGE_CHANGE.value,
        title=f"Stage {stage.stage_number} {verb}: {stage.stage_name}",
        message=(
            f"Stage {stage.stage_number} ({stage.stage_name}) was {verb} for subscription "
            f"{program.subscription_id}. Current stage is now {program.current_stage}."
        ),
        client_id=program.client_id,
        subscription_id=program.subscription_id,
        alert_metadata={
            "program_id": program.id,
            "stage_number": stage.stage_number,
            "stage_name": stage.stage_name,
            "start_date": stage.start_date.isoformat(),
            "end_date": stage.end_date.isoformat(),
            # Counted from the program start, not the stage start
            "program_day": progress_calculator.program_day(program.program_start_date, now),
            "discord_channel": discord_channel,
            "activate": activate,
        },
        status=AlertStatus.PENDING.value,
        created_at=now,
    )


class StageActivationService:
    """Stage activation, deadline and completion mutations for Accelerator programs."""

    @staticmethod
    async def set_activation(
        db: AsyncSession,
        program_id: str,
        stage_number: int,
        activate: bool,
        gateway: Optional[NotificationGateway] = None,
        now: Optional[datetime] = None,
        session_factory=None
    ) -> Dict:
        """
        Toggle a stage's activation and re-derive the program's current stage.

        Stage flag, program current_stage and the outbox alert commit in one
        transaction under the per-program lock. The webhook goes out afterwards
        on a background task and cannot undo the change.
        """
        validate_stage_number(stage_number)
        now = now or datetime.utcnow()

        async with ProgramStore.program_lock(program_id):
            try:
                program = await ProgramStore.get_program(db, program_id, for_update=True)
                stages = await ProgramStore.list_stages(db, program_id, for_update=True)

                target = next((s for s in stages if s.stage_number == stage_number), None)
                if target is None:
                    raise NotFoundError("Stage", f"{program_id}/{stage_number}")

                target.is_activated = activate
                program.current_stage = compute_current_stage(stages)

                discord_channel = await resolve_discord_channel(db, program.subscription_id, stage_number)
                alert = _stage_change_alert(program, target, activate, discord_channel, now)
                db.add(alert)

                await commit_or_rollback(db, "stage activation")
            except ApplicationException:
                await rollback_quietly(db)
                raise

            current_stage = program.current_stage
            alert_id = alert.id

        logger.info(
            f"Stage {stage_number} of program {program_id} {'activated' if activate else 'deactivated'}; "
            f"current stage {current_stage}"
        )

        if gateway is not None:
            schedule_dispatch(alert_id, gateway, session_factory)

        return {
            "program_id": program_id,
            "stage_number": stage_number,
            "is_activated": activate,
            "current_stage": current_stage,
            "alert_id": alert_id,
        }

    @staticmethod
    async def extend_deadline(
        db: AsyncSession, stage_id: str, days: Optional[int] = DEFAULT_EXTENSION_DAYS
    ) -> AcceleratorStage:
        """Push the stage end date by `days`. No guard on status or range."""
        if days is None:
            days = DEFAULT_EXTENSION_DAYS

        try:
            stage = await ProgramStore.get_stage(db, stage_id, for_update=True)
            previous_end = stage.end_date
            stage.end_date = previous_end + timedelta(days=days)
            await commit_or_rollback(db, "deadline extension")
        except ApplicationException:
            await rollback_quietly(db)
            raise

        logger.info(f"Extended stage {stage_id} deadline by {days} days: {previous_end} -> {stage.end_date}")
        return stage

    @staticmethod
    async def complete_stage(
        db: AsyncSession, stage_id: str, now: Optional[datetime] = None
    ) -> AcceleratorStage:
        """Mark a stage completed. The next stage is not activated automatically."""
        try:
            stage = await ProgramStore.get_stage(db, stage_id, for_update=True)
            stage.status = StageStatus.COMPLETED.value
            stage.completed_at = now or datetime.utcnow()
            await commit_or_rollback(db, "stage completion")
        except ApplicationException:
            await rollback_quietly(db)
            raise

        logger.info(f"Stage {stage_id} ({stage.stage_name}) marked completed")
        return stage

    @staticmethod
    async def mark_goal_reached(
        db: AsyncSession, program_id: str, today: Optional[date] = None
    ) -> AcceleratorProgram:
        try:
            program = await ProgramStore.get_program(db, program_id, for_update=True)
            program.goal_reached = True
            program.goal_reached_date = today or datetime.utcnow().date()
            await commit_or_rollback(db, "goal update")
        except ApplicationException:
            await rollback_quietly(db)
            raise

        logger.info(f"Program {program_id} reached its goal on {program.goal_reached_date}")
        return program

    @staticmethod
    async def get_program_overview(
        db: AsyncSession, program_id: str, now: Optional[datetime] = None
    ) -> Dict:
        """Program, its four stages, and the progress values derived for display."""
        now = now or datetime.utcnow()
        program = await ProgramStore.get_program(db, program_id)
        stages = await ProgramStore.list_stages(db, program_id)

        stage_views = []
        for stage in stages:
            checklist = await ChecklistProgressService.get_progress(
                db, program.subscription_id, stage.stage_number, now=now
            )
            stage_views.append({
                "stage": stage,
                "time_progress": progress_calculator.time_progress(stage.start_date, stage.end_date, now),
                "days_remaining": progress_calculator.days_remaining(stage.end_date, now),
                "checklist_completed": checklist["completed_count"],
                "checklist_total": checklist["total_count"],
                "checklist_percentage": checklist["percentage"],
            })

        return {
            "program": program,
            "program_day": progress_calculator.program_day(program.program_start_date, now),
            "program_progress": progress_calculator.time_progress(
                program.program_start_date, program.program_end_date, now
            ),
            "stages": stage_views,
        }
