from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logger import get_logger
from app.enums import STAGE_CHANNEL_KEYS, ServiceType
from app.exceptions.errors import PersistenceError
from app.models import ProvisionedService

logger = get_logger("discord_channel_resolver")


async def resolve_discord_channel(db: AsyncSession, subscription_id: str, stage_number: int) -> str:
    """
    Channel a stage announcement goes to.

    Looks for the stage's child channel on the subscription's active
    discord_channel service and falls back to the default channel.
    """
    key = STAGE_CHANNEL_KEYS.get(stage_number)
    if key is None:
        return settings.DEFAULT_DISCORD_CHANNEL

    try:
        result = await db.execute(
            select(ProvisionedService)
            .where(ProvisionedService.subscription_id == subscription_id)
            .where(ProvisionedService.service_type == ServiceType.DISCORD_CHANNEL.value)
            .where(ProvisionedService.is_active.is_(True))
            .order_by(ProvisionedService.provisioned_at.desc())
        )
    except SQLAlchemyError as e:
        logger.error(f"Discord channel lookup failed for {subscription_id}: {e}")
        raise PersistenceError() from e

    for service in result.scalars().all():
        details = service.access_details or {}
        channel = details.get(key) if isinstance(details, dict) else None
        if channel:
            return str(channel)

    return settings.DEFAULT_DISCORD_CHANNEL
