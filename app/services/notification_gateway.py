from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.logger import get_logger
from app.exceptions.errors import NotificationError
from app.models import Alert

logger = get_logger("notification_gateway")


def build_stage_change_payload(alert: Alert) -> Dict[str, Any]:
    """StageActivationChanged webhook body, built from the outbox row."""
    metadata = alert.alert_metadata or {}
    created_at: Optional[datetime] = alert.created_at
    return {
        "alert_id": alert.id,
        "client_id": alert.client_id,
        "subscription_id": alert.subscription_id,
        "stage_number": metadata.get("stage_number"),
        "stage_name": metadata.get("stage_name"),
        "start_date": metadata.get("start_date"),
        "end_date": metadata.get("end_date"),
        "program_day": metadata.get("program_day"),
        "discord_channel": metadata.get("discord_channel") or settings.DEFAULT_DISCORD_CHANNEL,
        "timestamp": created_at.isoformat() if created_at else None,
        # Legacy aliases still read by the n8n flow
        "phase": metadata.get("stage_number"),
        "user_id": alert.client_id,
        "activate": bool(metadata.get("activate", True)),
    }


class NotificationGateway:
    """Best-effort HTTP POST to the stage change webhook."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFICATION_WEBHOOK_URL
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send(self, payload: Dict[str, Any]) -> None:
        """POST the payload; any transport error or non-2xx status raises NotificationError."""
        if not self.enabled:
            raise NotificationError("No notification webhook configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook request failed: {e!r}") from e

        if not response.is_success:
            raise NotificationError(
                f"Webhook responded with status {response.status_code}",
                status_code=response.status_code
            )

        logger.debug(f"Webhook accepted alert {payload.get('alert_id')} ({response.status_code})")


def get_notification_gateway() -> NotificationGateway:
    """FastAPI dependency; overridden in tests."""
    return NotificationGateway()
