"""
Pytest configuration and fixtures

Every test gets a fresh in-memory SQLite database: tables are created before
the test and the engine is disposed afterwards, which drops the database.
"""
import json
import os
from datetime import date

# Must be set before anything under app/ is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

import httpx
import pytest
import pytest_asyncio

from app.database import Base, engine, AsyncSessionLocal
from app.main import app as fastapi_app
from app.models import ProvisionedService
from app.schemas.checklist_schemas import TemplateItemCreate
from app.services.alert_dispatcher import drain_background_dispatches
from app.services.notification_gateway import NotificationGateway, get_notification_gateway
from app.services.program_store import ProgramStore
from app.services.template_registry import TemplateRegistry

WEBHOOK_URL = "https://hooks.example.test/stage-change"


class RecordingWebhook:
    """httpx.MockTransport handler that records every JSON body it receives."""

    def __init__(self, status_code: int = 200, error: Exception = None):
        self.status_code = status_code
        self.error = error
        self.payloads = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.error is not None:
            raise self.error
        self.payloads.append(json.loads(request.content))
        return httpx.Response(self.status_code, json={"received": True})


def make_gateway(webhook: RecordingWebhook, url: str = WEBHOOK_URL) -> NotificationGateway:
    return NotificationGateway(webhook_url=url, timeout=1, transport=httpx.MockTransport(webhook))


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session

    await drain_background_dispatches(timeout=5)
    await engine.dispose()


@pytest.fixture
def webhook():
    return RecordingWebhook()


@pytest.fixture
def gateway(webhook):
    return make_gateway(webhook)


@pytest_asyncio.fixture
async def program(db):
    """Program starting 2024-01-01 with its four 30-day stages."""
    return await ProgramStore.create_program(db, "sub_001", "client_001", date(2024, 1, 1))


@pytest_asyncio.fixture
async def stages(db, program):
    return await ProgramStore.list_stages(db, program.id)


@pytest_asyncio.fixture
async def stage1_items(db):
    """Six required, active items for stage 1."""
    items = []
    for n in range(1, 7):
        items.append(await TemplateRegistry.upsert_item(
            db, TemplateItemCreate(stage_number=1, item_name=f"Task {n}", item_order=n)
        ))
    return items


@pytest_asyncio.fixture
async def discord_service(db):
    service = ProvisionedService(
        subscription_id="sub_001",
        service_type="discord_channel",
        access_details={
            "first_child": "#sub-001-nicho",
            "second_child": "#sub-001-infra",
            "third_child": "#sub-001-ventas",
        },
        is_active=True,
    )
    db.add(service)
    await db.commit()
    return service


@pytest_asyncio.fixture
async def client(db, gateway):
    fastapi_app.dependency_overrides[get_notification_gateway] = lambda: gateway
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
