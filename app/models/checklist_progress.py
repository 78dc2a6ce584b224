from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Boolean, Text, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class ChecklistProgress(Base):
    """
    Completion record for one template item of one subscription.
    A missing row means "not completed"; uncompleting deletes the row.
    """

    __tablename__ = "accelerator_checklist_progress"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    subscription_id = Column(String(64), nullable=False, index=True)
    stage_number = Column(Integer, nullable=False)
    template_id = Column(String(25), ForeignKey("accelerator_stage_templates.id"), nullable=False, index=True)

    is_completed = Column(Boolean, nullable=False, default=True)
    completed_at = Column(DateTime, nullable=False)
    completed_by = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Bumped on every write; callers may pass it back for compare-and-swap
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    template = relationship("ChecklistTemplateItem")

    __table_args__ = (
        UniqueConstraint("subscription_id", "stage_number", "template_id", name="uq_progress_sub_stage_template"),
        Index("ix_progress_sub_stage", "subscription_id", "stage_number"),
    )


class ChecklistEditLease(Base):
    """
    Server-held lease for the single pending completion per subscription and stage.
    """

    __tablename__ = "accelerator_checklist_edit_leases"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    subscription_id = Column(String(64), nullable=False)
    stage_number = Column(Integer, nullable=False)
    template_id = Column(String(25), ForeignKey("accelerator_stage_templates.id"), nullable=False)
    actor = Column(String(255), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("subscription_id", "stage_number", name="uq_lease_sub_stage"),
    )
