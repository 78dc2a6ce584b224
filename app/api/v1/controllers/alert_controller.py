from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.alert_schemas import DispatchSummary
from app.services.alert_dispatcher import dispatch_pending_alerts
from app.services.notification_gateway import NotificationGateway
from app.core.logger import get_logger

logger = get_logger("alert_controller")


class AlertController:

    @staticmethod
    async def dispatch_pending(db: AsyncSession, gateway: NotificationGateway) -> DispatchSummary:
        summary = await dispatch_pending_alerts(db, gateway)
        logger.info(
            f"Dispatched pending alerts: {summary['sent']} sent, {summary['failed']} failed "
            f"of {summary['processed']}"
        )
        return DispatchSummary(**summary)
