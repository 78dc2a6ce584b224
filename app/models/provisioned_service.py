from sqlalchemy import Column, String, DateTime, Boolean, JSON, Index
from datetime import datetime
from app.database.base import Base
import cuid


class ProvisionedService(Base):
    """
    External service provisioned for a subscription (Discord channels, CRM sub-accounts...).
    Managed elsewhere; read here only to resolve stage Discord channels.
    """
    __tablename__ = "provisioned_services"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    subscription_id = Column(String(64), nullable=False, index=True)
    service_type = Column(String(40), nullable=False)
    access_details = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    provisioned_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_provisioned_sub_type", "subscription_id", "service_type"),
    )
