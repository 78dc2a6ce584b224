from typing import Any, Dict, List, Optional

from fastapi import status
from fastapi.responses import JSONResponse


class ApplicationException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message, **self.details}
        )


class ValidationError(ApplicationException):
    """Missing or malformed input, rejected before any write."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)
        self.field = field


class NotFoundError(ApplicationException):
    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            f"{resource} {resource_id} not found",
            status.HTTP_404_NOT_FOUND,
            {"resource": resource, "resource_id": str(resource_id)}
        )


class ConcurrentEditRejected(ApplicationException):
    """Another checklist completion is in flight, or the row changed underneath."""

    def __init__(
        self,
        message: str,
        pending_item_id: Optional[str] = None,
        lease_id: Optional[str] = None
    ):
        details = {}
        if pending_item_id:
            details["pending_item_id"] = pending_item_id
        if lease_id:
            details["lease_id"] = lease_id
        super().__init__(message, status.HTTP_409_CONFLICT, details)
        self.pending_item_id = pending_item_id
        self.lease_id = lease_id


class IncompletePrerequisites(ApplicationException):
    def __init__(self, outstanding: List[str]):
        super().__init__(
            "All onboarding steps must be completed before finalizing",
            status.HTTP_409_CONFLICT,
            {"outstanding": list(outstanding)}
        )
        self.outstanding = list(outstanding)


class OnboardingAlreadyFinalized(ApplicationException):
    def __init__(self, checklist_id: str):
        super().__init__(
            f"Onboarding checklist {checklist_id} is already finalized",
            status.HTTP_409_CONFLICT,
            {"checklist_id": checklist_id}
        )


class PersistenceError(ApplicationException):
    def __init__(self, message: str = "Storage is unavailable, nothing was saved"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class NotificationError(Exception):
    """Webhook unreachable or non-2xx. Never surfaced to API callers."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
