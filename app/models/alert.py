from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from datetime import datetime
from app.database.base import Base
import cuid


class Alert(Base):
    """
    Outbox row for outbound notifications.
    Written in the same transaction as the state change it describes; the id
    doubles as the webhook's idempotency token.
    """
    __tablename__ = "alerts"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    alert_type = Column(String(40), nullable=False)  # stage_change|stage_overdue
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    client_id = Column(String(64), nullable=True, index=True)
    subscription_id = Column(String(64), nullable=True, index=True)
    alert_metadata = Column("metadata", JSON, nullable=True)

    status = Column(String(20), nullable=False, default="pending")  # pending|sent|failed
    webhook_url = Column(String(500), nullable=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_alerts_status_created", "status", "created_at"),
    )
