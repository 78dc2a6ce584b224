from sqlalchemy import Column, String, ForeignKey, Date, DateTime, Integer, Boolean, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class AcceleratorStage(Base):
    """One of the four fixed phases of a program."""

    __tablename__ = "accelerator_stages"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    program_id = Column(String(25), ForeignKey("accelerator_programs.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_id = Column(String(64), nullable=False, index=True)

    stage_number = Column(Integer, nullable=False)
    stage_name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Status is re-evaluated against end_date by an external job
    status = Column(String(20), nullable=False, default="pending")  # pending|in_progress|completed|overdue
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    is_activated = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    program = relationship("AcceleratorProgram", back_populates="stages")

    __table_args__ = (
        UniqueConstraint("program_id", "stage_number", name="uq_stage_program_number"),
        CheckConstraint("stage_number BETWEEN 1 AND 4", name="ck_stage_number_range"),
    )
