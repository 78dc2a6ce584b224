"""
Notification outbox schemas
"""
from pydantic import BaseModel
from typing import List


class DispatchSummary(BaseModel):
    processed: int
    sent: int
    failed: int
    alert_ids: List[str]
