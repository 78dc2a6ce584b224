# app/services/alert_dispatcher.py

import asyncio
from datetime import datetime
from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger
from app.database.connection import async_session
from app.enums import AlertStatus, AlertType
from app.exceptions.errors import NotificationError, PersistenceError
from app.models import Alert
from app.services.notification_gateway import NotificationGateway, build_stage_change_payload
from app.utils.persistence import rollback_quietly

logger = get_logger("alert_dispatcher")

# Strong references to in-flight dispatch tasks until they finish
_background_tasks: Set[asyncio.Task] = set()
# Alert ids owned by those tasks; the pending sweep leaves them alone
_in_flight_alerts: Set[str] = set()

STAGE_ALERT_TYPES = (AlertType.STAGE_CHANGE.value, AlertType.STAGE_OVERDUE.value)


async def deliver_alert(db: AsyncSession, alert: Alert, gateway: NotificationGateway) -> str:
    """
    Send one outbox alert and record the outcome on the row.
    Returns the resulting status; notification failures never propagate.
    """
    if not gateway.enabled:
        logger.warning(f"Notification webhook not configured; alert {alert.id} stays pending")
        return alert.status

    alert_id = alert.id
    payload = build_stage_change_payload(alert)
    try:
        await gateway.send(payload)
    except NotificationError as e:
        logger.error(f"Failed to deliver alert {alert_id}: {e.message}")
        status = AlertStatus.FAILED.value
        alert.status = status
        alert.error_message = e.message
    else:
        status = AlertStatus.SENT.value
        alert.status = status
        alert.sent_at = datetime.utcnow()
        alert.error_message = None
        logger.info(f"Alert {alert_id} sent for stage {payload.get('stage_number')} of {alert.subscription_id}")

    alert.webhook_url = gateway.webhook_url
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_quietly(db)
        logger.error(f"Could not record delivery status for alert {alert_id}: {e}")
    return status


async def dispatch_alert(alert_id: str, gateway: NotificationGateway, session_factory=None) -> Optional[str]:
    """Background entry point: own session, never raises."""
    try:
        async with async_session(session_factory) as db:
            result = await db.execute(select(Alert).where(Alert.id == alert_id))
            alert = result.scalar_one_or_none()
            if not alert:
                logger.error(f"Alert {alert_id} vanished before dispatch")
                return None
            return await deliver_alert(db, alert, gateway)
    except Exception as e:
        logger.error(f"Unexpected error dispatching alert {alert_id}: {e!r}")
        return None


def schedule_dispatch(alert_id: str, gateway: NotificationGateway, session_factory=None) -> asyncio.Task:
    """Fire-and-forget dispatch on its own task so the request never waits on the webhook."""
    task = asyncio.create_task(dispatch_alert(alert_id, gateway, session_factory))
    _background_tasks.add(task)
    _in_flight_alerts.add(alert_id)

    def _release(finished: asyncio.Task) -> None:
        _background_tasks.discard(finished)
        _in_flight_alerts.discard(alert_id)

    task.add_done_callback(_release)
    return task


async def drain_background_dispatches(timeout: Optional[float] = None) -> None:
    """Wait for in-flight dispatches (shutdown, tests); cancel what outlives the timeout."""
    if not _background_tasks:
        return
    pending = list(_background_tasks)
    done, still_running = await asyncio.wait(pending, timeout=timeout)
    for task in still_running:
        task.cancel()
    if still_running:
        logger.warning(f"Cancelled {len(still_running)} alert dispatches still running at shutdown")


def pending_dispatch_count() -> int:
    return len(_background_tasks)


async def dispatch_pending_alerts(db: AsyncSession, gateway: NotificationGateway) -> dict:
    """
    Re-send stage alerts left pending or failed, oldest first.
    Alerts a background dispatch is still delivering are skipped.
    """
    query = (
        select(Alert)
        .where(Alert.status.in_([AlertStatus.PENDING.value, AlertStatus.FAILED.value]))
        .where(Alert.alert_type.in_(STAGE_ALERT_TYPES))
        .order_by(Alert.created_at)
    )
    if _in_flight_alerts:
        query = query.where(Alert.id.not_in(list(_in_flight_alerts)))
    try:
        result = await db.execute(query)
        alerts = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error(f"Error fetching pending alerts: {e}")
        raise PersistenceError() from e

    logger.info(f"Found {len(alerts)} pending alerts to send")

    alert_ids = [alert.id for alert in alerts]
    sent = failed = 0
    for alert in alerts:
        status = await deliver_alert(db, alert, gateway)
        if status == AlertStatus.SENT.value:
            sent += 1
        elif status == AlertStatus.FAILED.value:
            failed += 1

    return {
        "processed": len(alerts),
        "sent": sent,
        "failed": failed,
        "alert_ids": alert_ids,
    }
