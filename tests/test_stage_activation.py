"""
Tests for stage activation, current stage derivation and the stage change outbox.
"""
import asyncio
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.database import AsyncSessionLocal
from app.exceptions.errors import NotFoundError, PersistenceError, ValidationError
from app.models import AcceleratorProgram, Alert
from app.services.alert_dispatcher import drain_background_dispatches
from app.services.program_store import ProgramStore
from app.services.stage_activation_service import StageActivationService, compute_current_stage

from tests.conftest import RecordingWebhook, make_gateway

NOW = datetime(2024, 2, 16, 10, 0)


async def _program(db, program_id):
    return await db.get(AcceleratorProgram, program_id, populate_existing=True)


async def _alerts(db):
    result = await db.execute(select(Alert).order_by(Alert.created_at).execution_options(populate_existing=True))
    return list(result.scalars().all())


async def test_new_program_has_four_inactive_stages(db, program, stages):
    assert [s.stage_number for s in stages] == [1, 2, 3, 4]
    assert [s.stage_name for s in stages] == [
        "Nicho y Oferta", "Infraestructura", "Validación y ventas", "Entrega de Servicio"
    ]
    assert not any(s.is_activated for s in stages)
    assert stages[1].start_date == date(2024, 1, 31)
    assert stages[1].end_date == date(2024, 3, 1)
    assert program.current_stage == 1
    assert program.program_end_date == date(2024, 4, 30)


async def test_one_program_per_subscription(db, program):
    with pytest.raises(ValidationError):
        await ProgramStore.create_program(db, "sub_001", "client_001", date(2024, 3, 1))


async def test_current_stage_tracks_highest_activated_stage(db, program):
    program_id = program.id
    steps = [(2, True), (4, True), (3, True), (4, False), (2, False), (3, False), (1, True), (1, False)]

    for stage_number, activate in steps:
        await StageActivationService.set_activation(db, program_id, stage_number, activate, now=NOW)
        stages = await ProgramStore.list_stages(db, program_id)
        activated = [s.stage_number for s in stages if s.is_activated]
        expected = max([1] + activated)
        assert (await _program(db, program_id)).current_stage == expected


async def test_deactivating_only_active_stage_returns_to_one(db, program):
    await StageActivationService.set_activation(db, program.id, 3, True, now=NOW)
    result = await StageActivationService.set_activation(db, program.id, 3, False, now=NOW)

    assert result["current_stage"] == 1
    assert (await _program(db, program.id)).current_stage == 1


def test_compute_current_stage_floors_at_one():
    class Stage:
        def __init__(self, number, activated):
            self.stage_number = number
            self.is_activated = activated

    assert compute_current_stage([]) == 1
    assert compute_current_stage([Stage(1, False), Stage(2, False)]) == 1
    assert compute_current_stage([Stage(2, True), Stage(3, False), Stage(4, True)]) == 4


async def test_activation_writes_pending_alert_in_same_commit(db, program):
    result = await StageActivationService.set_activation(db, program.id, 2, True, now=NOW)

    alerts = await _alerts(db)
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.id == result["alert_id"]
    assert alert.status == "pending"
    assert alert.alert_type == "stage_change"
    assert alert.alert_metadata["stage_number"] == 2
    assert alert.alert_metadata["program_day"] == 47
    assert alert.alert_metadata["discord_channel"] == "#aceleradora"


async def test_failed_commit_persists_nothing(db, program, monkeypatch):
    program_id = program.id

    async def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(PersistenceError):
        await StageActivationService.set_activation(db, program_id, 3, True, now=NOW)
    monkeypatch.undo()

    stages = await ProgramStore.list_stages(db, program_id)
    assert not any(s.is_activated for s in stages)
    assert (await _program(db, program_id)).current_stage == 1
    assert await _alerts(db) == []


async def test_unknown_program_and_stage(db, program):
    program_id = program.id
    with pytest.raises(NotFoundError):
        await StageActivationService.set_activation(db, "missing", 1, True)
    with pytest.raises(ValidationError):
        await StageActivationService.set_activation(db, program_id, 5, True)


class TestStageChangeNotification:

    async def test_webhook_receives_stage_payload(self, db, program, discord_service):
        webhook = RecordingWebhook()
        result = await StageActivationService.set_activation(
            db, program.id, 2, True, gateway=make_gateway(webhook), now=NOW
        )
        await drain_background_dispatches(timeout=5)

        assert len(webhook.payloads) == 1
        payload = webhook.payloads[0]
        assert payload["alert_id"] == result["alert_id"]
        assert payload["client_id"] == "client_001"
        assert payload["user_id"] == "client_001"
        assert payload["subscription_id"] == "sub_001"
        assert payload["stage_number"] == 2
        assert payload["phase"] == 2
        assert payload["stage_name"] == "Infraestructura"
        assert payload["start_date"] == "2024-01-31"
        assert payload["end_date"] == "2024-03-01"
        assert payload["program_day"] == 47
        assert payload["discord_channel"] == "#sub-001-infra"
        assert payload["activate"] is True
        assert payload["timestamp"] == NOW.isoformat()

        alert = (await _alerts(db))[0]
        assert alert.status == "sent"
        assert alert.sent_at is not None

    async def test_deactivation_payload(self, db, program):
        webhook = RecordingWebhook()
        gateway = make_gateway(webhook)
        program_id = program.id
        await StageActivationService.set_activation(db, program_id, 1, True, gateway=gateway, now=NOW)
        await drain_background_dispatches(timeout=5)
        await StageActivationService.set_activation(db, program_id, 1, False, gateway=gateway, now=NOW)
        await drain_background_dispatches(timeout=5)

        assert [p["activate"] for p in webhook.payloads] == [True, False]

    async def test_stage_without_child_channel_uses_default(self, db, program, discord_service):
        webhook = RecordingWebhook()
        await StageActivationService.set_activation(db, program.id, 4, True, gateway=make_gateway(webhook), now=NOW)
        await drain_background_dispatches(timeout=5)

        assert webhook.payloads[0]["discord_channel"] == "#aceleradora"

    async def test_webhook_error_status_keeps_activation(self, db, program):
        program_id = program.id
        webhook = RecordingWebhook(status_code=500)

        result = await StageActivationService.set_activation(
            db, program_id, 2, True, gateway=make_gateway(webhook), now=NOW
        )
        await drain_background_dispatches(timeout=5)

        assert result["is_activated"] is True
        stages = await ProgramStore.list_stages(db, program_id)
        assert stages[1].is_activated is True
        assert (await _program(db, program_id)).current_stage == 2

        alert = (await _alerts(db))[0]
        assert alert.status == "failed"
        assert "500" in alert.error_message

    async def test_unreachable_webhook_keeps_activation(self, db, program):
        import httpx

        program_id = program.id
        webhook = RecordingWebhook(error=httpx.ConnectError("connection refused"))

        await StageActivationService.set_activation(
            db, program_id, 3, True, gateway=make_gateway(webhook), now=NOW
        )
        await drain_background_dispatches(timeout=5)

        stages = await ProgramStore.list_stages(db, program_id)
        assert stages[2].is_activated is True
        assert (await _alerts(db))[0].status == "failed"

    async def test_unconfigured_webhook_leaves_alert_pending(self, db, program):
        gateway = make_gateway(RecordingWebhook(), url="")

        await StageActivationService.set_activation(db, program.id, 2, True, gateway=gateway, now=NOW)
        await drain_background_dispatches(timeout=5)

        assert (await _alerts(db))[0].status == "pending"


async def test_extend_deadline_moves_only_end_date(db, program, stages):
    program_id = program.id
    before = {s.stage_number: (s.start_date, s.end_date, s.status) for s in stages}

    stage = await StageActivationService.extend_deadline(db, stages[1].id, 7)

    assert stage.end_date == before[2][1] + timedelta(days=7)
    after = await ProgramStore.list_stages(db, program_id)
    for s in after:
        start, end, status = before[s.stage_number]
        assert s.start_date == start
        assert s.status == status
        if s.stage_number != 2:
            assert s.end_date == end


async def test_extend_deadline_defaults_to_seven_days(db, stages):
    original_end = stages[0].end_date

    stage = await StageActivationService.extend_deadline(db, stages[0].id)

    assert stage.end_date == original_end + timedelta(days=7)


async def test_extend_unknown_stage(db):
    with pytest.raises(NotFoundError):
        await StageActivationService.extend_deadline(db, "missing", 7)


async def test_complete_stage_does_not_advance(db, program, stages):
    program_id = program.id

    stage = await StageActivationService.complete_stage(db, stages[0].id, now=NOW)

    assert stage.status == "completed"
    assert stage.completed_at == NOW
    after = await ProgramStore.list_stages(db, program_id)
    assert not any(s.is_activated for s in after)
    assert (await _program(db, program_id)).current_stage == 1


async def test_mark_goal_reached(db, program):
    updated = await StageActivationService.mark_goal_reached(db, program.id, today=date(2024, 3, 10))

    assert updated.goal_reached is True
    assert updated.goal_reached_date == date(2024, 3, 10)


async def test_program_overview(db, program, stage1_items):
    from app.services.checklist_progress_service import ChecklistProgressService

    for item in stage1_items[:4]:
        await ChecklistProgressService.set_item(db, "sub_001", 1, item.id, True)

    overview = await StageActivationService.get_program_overview(db, program.id, now=datetime(2024, 2, 15))

    assert overview["program_day"] == 46
    by_number = {view["stage"].stage_number: view for view in overview["stages"]}
    assert by_number[1]["time_progress"] == 100
    assert by_number[1]["checklist_percentage"] == 67
    assert by_number[2]["time_progress"] == 50
    assert by_number[2]["days_remaining"] == 15
    assert by_number[3]["time_progress"] == 0
    assert by_number[4]["checklist_total"] == 0


async def test_concurrent_activations_keep_highest_stage(db, program):
    program_id = program.id

    async def activate(stage_number):
        async with AsyncSessionLocal() as session:
            return await StageActivationService.set_activation(session, program_id, stage_number, True, now=NOW)

    results = await asyncio.gather(*(activate(n) for n in (2, 3, 4, 1)))

    assert all(r["is_activated"] for r in results)
    assert results[-1]["current_stage"] == 4
    assert (await _program(db, program_id)).current_stage == 4
    assert all(s.is_activated for s in await ProgramStore.list_stages(db, program_id))
    assert len(await _alerts(db)) == 4
