from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.api.v1.controllers.alert_controller import AlertController
from app.schemas.alert_schemas import DispatchSummary
from app.services.notification_gateway import NotificationGateway, get_notification_gateway

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.post(
    "/dispatch-pending",
    response_model=DispatchSummary,
    summary="Dispatch Pending Alerts",
    description="Re-send stage alerts that are still pending or previously failed."
)
async def dispatch_pending(
    db: AsyncSession = Depends(get_db),
    gateway: NotificationGateway = Depends(get_notification_gateway)
):
    return await AlertController.dispatch_pending(db, gateway)
