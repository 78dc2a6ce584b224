"""
Onboarding checklist schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class OnboardingChecklistCreate(BaseModel):
    subscription_id: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)


class OnboardingFlagUpdate(BaseModel):
    value: bool


class OnboardingFinalizeRequest(BaseModel):
    notes: Optional[str] = None


class OnboardingChecklistResponse(BaseModel):
    id: str
    subscription_id: str
    client_id: str

    document_sent: bool
    document_sent_at: Optional[datetime] = None
    document_sent_by: Optional[str] = None
    academy_access_granted: bool
    academy_access_granted_at: Optional[datetime] = None
    academy_access_granted_by: Optional[str] = None
    contract_sent: bool
    contract_sent_at: Optional[datetime] = None
    contract_sent_by: Optional[str] = None
    highlevel_subaccount_created: bool
    highlevel_subaccount_created_at: Optional[datetime] = None
    highlevel_subaccount_created_by: Optional[str] = None
    discord_groups_created: bool
    discord_groups_created_at: Optional[datetime] = None
    discord_groups_created_by: Optional[str] = None
    onboarding_meeting_scheduled: bool
    onboarding_meeting_scheduled_at: Optional[datetime] = None
    onboarding_meeting_scheduled_by: Optional[str] = None

    is_completed: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    outstanding: List[str] = []

    class Config:
        from_attributes = True
