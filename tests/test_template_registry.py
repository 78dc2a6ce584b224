"""
Tests for the checklist template catalog.
"""
import pytest

from app.exceptions.errors import NotFoundError, ValidationError
from app.schemas.checklist_schemas import TemplateItemCreate, TemplateItemUpdate
from app.services.template_registry import TemplateRegistry


async def test_list_items_ordered_by_item_order(db):
    await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=2, item_name="Second", item_order=2))
    await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=2, item_name="First", item_order=1))
    await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=3, item_name="Other stage", item_order=1))

    items = await TemplateRegistry.list_items(db, 2)

    assert [item.item_name for item in items] == ["First", "Second"]


async def test_item_order_defaults_to_next_position(db):
    await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="A", item_order=5))
    item = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="B"))

    assert item.item_order == 6


async def test_next_item_order_counts_inactive_items(db):
    first = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="A"))
    await TemplateRegistry.deactivate_item(db, first.id)

    item = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="B"))

    assert first.item_order == 1
    assert item.item_order == 2


async def test_deactivated_items_are_hidden_but_kept(db):
    item = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="Retired"))

    deactivated = await TemplateRegistry.deactivate_item(db, item.id)

    assert deactivated.is_active is False
    assert await TemplateRegistry.list_items(db, 1) == []
    assert [i.id for i in await TemplateRegistry.list_items(db, 1, include_inactive=True)] == [item.id]


async def test_update_patches_only_supplied_fields(db):
    item = await TemplateRegistry.upsert_item(
        db, TemplateItemCreate(stage_number=1, item_name="Old", item_description="keep me")
    )

    updated = await TemplateRegistry.upsert_item(db, TemplateItemUpdate(item_name="New"), item_id=item.id)

    assert updated.item_name == "New"
    assert updated.item_description == "keep me"
    assert updated.is_required is True


async def test_create_on_taken_item_order_is_rejected(db):
    await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="A", item_order=1))

    with pytest.raises(ValidationError) as exc_info:
        await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="B", item_order=1))

    assert exc_info.value.field == "item_order"
    assert [i.item_name for i in await TemplateRegistry.list_items(db, 1, include_inactive=True)] == ["A"]


async def test_moving_item_onto_taken_slot_is_rejected(db):
    first = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=1, item_name="A", item_order=1))
    second = await TemplateRegistry.upsert_item(db, TemplateItemCreate(stage_number=2, item_name="B", item_order=1))
    first_id, second_id = first.id, second.id

    with pytest.raises(ValidationError) as order_clash:
        await TemplateRegistry.upsert_item(
            db, TemplateItemUpdate(stage_number=2), item_id=first_id
        )
    with pytest.raises(ValidationError):
        await TemplateRegistry.upsert_item(
            db, TemplateItemUpdate(stage_number=1, item_order=1), item_id=second_id
        )

    assert order_clash.value.field == "item_order"
    assert [i.id for i in await TemplateRegistry.list_items(db, 1)] == [first_id]
    assert [i.id for i in await TemplateRegistry.list_items(db, 2)] == [second_id]


@pytest.mark.parametrize("stage_number", [0, 5, -1])
async def test_list_items_rejects_unknown_stage(db, stage_number):
    with pytest.raises(ValidationError):
        await TemplateRegistry.list_items(db, stage_number)


async def test_update_unknown_item(db):
    with pytest.raises(NotFoundError):
        await TemplateRegistry.upsert_item(db, TemplateItemUpdate(item_name="x"), item_id="missing")
