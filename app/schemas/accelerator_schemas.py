"""
Accelerator Program API Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime


# Request schemas
class StageActivationRequest(BaseModel):
    activate: bool = Field(..., description="True to activate the stage, False to deactivate it")


class DeadlineExtensionRequest(BaseModel):
    days: int = Field(7, description="Days to add to the stage end date")


# Response schemas
class StageResponse(BaseModel):
    id: str
    program_id: str
    subscription_id: str
    stage_number: int
    stage_name: str
    start_date: date
    end_date: date
    status: str
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_activated: bool

    class Config:
        from_attributes = True


class ProgramResponse(BaseModel):
    id: str
    subscription_id: str
    client_id: str
    program_start_date: date
    program_end_date: date
    current_stage: int
    goal_reached: bool
    goal_reached_date: Optional[date] = None
    status: str

    class Config:
        from_attributes = True


class StageOverview(StageResponse):
    """Stage plus display values derived at read time"""
    time_progress: int
    days_remaining: int
    checklist_completed: int
    checklist_total: int
    checklist_percentage: int


class ProgramOverviewResponse(BaseModel):
    program: ProgramResponse
    program_day: int
    program_progress: int
    stages: List[StageOverview]


class StageActivationResponse(BaseModel):
    program_id: str
    stage_number: int
    is_activated: bool
    current_stage: int
    alert_id: str
