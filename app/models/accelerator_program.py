from sqlalchemy import Column, String, Date, DateTime, Integer, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database.base import Base
import cuid


class AcceleratorProgram(Base):
    """
    The 120-day Accelerator enrollment, one per subscription.

    current_stage is derived: the highest activated stage number, floored at 1.
    Only the stage activation service writes it.
    """

    __tablename__ = "accelerator_programs"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    subscription_id = Column(String(64), nullable=False, unique=True, index=True)
    client_id = Column(String(64), nullable=False, index=True)

    program_start_date = Column(Date, nullable=False)
    program_end_date = Column(Date, nullable=False)
    current_stage = Column(Integer, nullable=False, default=1)

    goal_reached = Column(Boolean, nullable=False, default=False)
    goal_reached_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active|completed|cancelled

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    stages = relationship(
        "AcceleratorStage",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="AcceleratorStage.stage_number"
    )

    __table_args__ = (
        Index("ix_accelerator_programs_status", "status"),
    )
