from sqlalchemy import Column, String, DateTime, Boolean, Text
from datetime import datetime
from app.database.base import Base
import cuid


class OnboardingChecklist(Base):
    """One-time onboarding gate, created with the subscription and finalized once."""

    __tablename__ = "accelerator_onboarding_checklist"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    subscription_id = Column(String(64), nullable=False, unique=True, index=True)
    client_id = Column(String(64), nullable=False, index=True)

    document_sent = Column(Boolean, nullable=False, default=False)
    document_sent_at = Column(DateTime, nullable=True)
    document_sent_by = Column(String(255), nullable=True)

    academy_access_granted = Column(Boolean, nullable=False, default=False)
    academy_access_granted_at = Column(DateTime, nullable=True)
    academy_access_granted_by = Column(String(255), nullable=True)

    contract_sent = Column(Boolean, nullable=False, default=False)
    contract_sent_at = Column(DateTime, nullable=True)
    contract_sent_by = Column(String(255), nullable=True)

    highlevel_subaccount_created = Column(Boolean, nullable=False, default=False)
    highlevel_subaccount_created_at = Column(DateTime, nullable=True)
    highlevel_subaccount_created_by = Column(String(255), nullable=True)

    discord_groups_created = Column(Boolean, nullable=False, default=False)
    discord_groups_created_at = Column(DateTime, nullable=True)
    discord_groups_created_by = Column(String(255), nullable=True)

    onboarding_meeting_scheduled = Column(Boolean, nullable=False, default=False)
    onboarding_meeting_scheduled_at = Column(DateTime, nullable=True)
    onboarding_meeting_scheduled_by = Column(String(255), nullable=True)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
