"""
Tests for the six-step onboarding gate.
"""
from datetime import datetime
from itertools import combinations

import pytest
import pytest_asyncio

from app.exceptions.errors import (
    IncompletePrerequisites, NotFoundError, OnboardingAlreadyFinalized, ValidationError
)
from app.services.onboarding_gate_service import ONBOARDING_FLAGS, OnboardingGateService, outstanding_flags


@pytest_asyncio.fixture
async def checklist(db):
    return await OnboardingGateService.get_or_create_checklist(db, "sub_001", "client_001")


async def _set_flags(db, checklist_id, flags, value=True):
    for flag in flags:
        await OnboardingGateService.set_flag(db, checklist_id, flag, value, actor="ana")


async def test_get_or_create_is_idempotent(db, checklist):
    again = await OnboardingGateService.get_or_create_checklist(db, "sub_001", "client_001")

    assert again.id == checklist.id
    assert outstanding_flags(again) == ONBOARDING_FLAGS


async def test_set_flag_stamps_and_clears_audit_fields(db, checklist):
    now = datetime(2024, 1, 2, 15, 0)

    updated = await OnboardingGateService.set_flag(db, checklist.id, "contract_sent", True, actor="ana", now=now)
    assert updated.contract_sent is True
    assert updated.contract_sent_at == now
    assert updated.contract_sent_by == "ana"

    cleared = await OnboardingGateService.set_flag(db, checklist.id, "contract_sent", False, actor="ana")
    assert cleared.contract_sent is False
    assert cleared.contract_sent_at is None
    assert cleared.contract_sent_by is None


async def test_unknown_flag_is_rejected(db, checklist):
    with pytest.raises(ValidationError):
        await OnboardingGateService.set_flag(db, checklist.id, "coffee_sent", True)


@pytest.mark.parametrize("done", [0, 1, 3, 5])
async def test_finalize_requires_every_flag(db, checklist, done):
    checklist_id = checklist.id
    for flags in combinations(ONBOARDING_FLAGS, done):
        fresh = await OnboardingGateService.get_checklist(db, checklist_id)
        for flag in ONBOARDING_FLAGS:
            await OnboardingGateService.set_flag(db, fresh.id, flag, flag in flags)

        with pytest.raises(IncompletePrerequisites) as exc_info:
            await OnboardingGateService.finalize(db, checklist_id)

        assert sorted(exc_info.value.outstanding) == sorted(set(ONBOARDING_FLAGS) - set(flags))
        assert (await OnboardingGateService.get_checklist(db, checklist_id)).is_completed is False


async def test_finalize_succeeds_with_all_flags(db, checklist):
    checklist_id = checklist.id
    await _set_flags(db, checklist_id, ONBOARDING_FLAGS)
    now = datetime(2024, 1, 3, 9, 0)

    finalized = await OnboardingGateService.finalize(db, checklist_id, notes="Ready", now=now)

    assert finalized.is_completed is True
    assert finalized.completed_at == now
    assert finalized.notes == "Ready"


async def test_finalized_checklist_is_locked(db, checklist):
    checklist_id = checklist.id
    await _set_flags(db, checklist_id, ONBOARDING_FLAGS)
    await OnboardingGateService.finalize(db, checklist_id)

    with pytest.raises(OnboardingAlreadyFinalized):
        await OnboardingGateService.set_flag(db, checklist_id, "document_sent", False)
    with pytest.raises(OnboardingAlreadyFinalized):
        await OnboardingGateService.finalize(db, checklist_id)

    reloaded = await OnboardingGateService.get_checklist(db, checklist_id)
    assert reloaded.is_completed is True
    assert reloaded.document_sent is True


async def test_missing_checklist(db):
    with pytest.raises(NotFoundError):
        await OnboardingGateService.finalize(db, "missing")
