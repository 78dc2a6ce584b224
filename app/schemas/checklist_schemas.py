"""
Checklist template and progress schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# Template requests
class TemplateItemCreate(BaseModel):
    stage_number: int = Field(..., ge=1, le=4)
    item_name: str = Field(..., min_length=1, max_length=255)
    item_description: Optional[str] = None
    item_order: Optional[int] = Field(None, ge=1, description="Defaults to the next free position in the stage")
    is_required: bool = True
    is_active: bool = True


class TemplateItemUpdate(BaseModel):
    stage_number: Optional[int] = Field(None, ge=1, le=4)
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    item_description: Optional[str] = None
    item_order: Optional[int] = Field(None, ge=1)
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None


class TemplateItemResponse(BaseModel):
    id: str
    stage_number: int
    item_order: int
    item_name: str
    item_description: Optional[str] = None
    is_required: bool
    is_active: bool

    class Config:
        from_attributes = True


# Progress requests
class ChecklistItemUpdate(BaseModel):
    completed: bool
    notes: Optional[str] = None
    expected_version: Optional[int] = Field(
        None, ge=0, description="Version last read by the caller; 0 means 'not completed yet'"
    )


class ConfirmCompletionRequest(BaseModel):
    notes: Optional[str] = None


# Progress responses
class ChecklistItemProgress(BaseModel):
    template_id: str
    item_name: str
    item_description: Optional[str] = None
    is_required: bool
    is_completed: bool
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    notes: Optional[str] = None
    item_order: int
    version: int = 0


class EditLeaseResponse(BaseModel):
    lease_id: str
    subscription_id: str
    stage_number: int
    template_id: str
    actor: Optional[str] = None
    expires_at: datetime


class ChecklistProgressResponse(BaseModel):
    subscription_id: str
    stage_number: int
    items: List[ChecklistItemProgress]
    completed_count: int
    total_count: int
    percentage: int
    pending_edit: Optional[EditLeaseResponse] = None
