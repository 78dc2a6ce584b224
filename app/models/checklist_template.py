from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, UniqueConstraint, Index
from datetime import datetime
from app.database.base import Base
import cuid


class ChecklistTemplateItem(Base):
    """
    A checklist task for a stage number, shared by every program.
    Deactivated items stay in the table so completed progress rows keep their reference.
    """

    __tablename__ = "accelerator_stage_templates"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    stage_number = Column(Integer, nullable=False)
    item_order = Column(Integer, nullable=False)
    item_name = Column(String(255), nullable=False)
    item_description = Column(Text, nullable=True)
    is_required = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("stage_number", "item_order", name="uq_template_stage_order"),
        Index("ix_template_stage_active", "stage_number", "is_active"),
    )
