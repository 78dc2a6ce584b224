"""
Shared enums for the application.
"""

from .accelerator_enums import (
    ProgramStatus,
    StageStatus,
    AlertType,
    AlertStatus,
    OnboardingFlag,
    ServiceType,
    STAGE_NAMES,
    STAGE_CHANNEL_KEYS,
    STAGE_NUMBERS,
)

__all__ = [
    "ProgramStatus",
    "StageStatus",
    "AlertType",
    "AlertStatus",
    "OnboardingFlag",
    "ServiceType",
    "STAGE_NAMES",
    "STAGE_CHANNEL_KEYS",
    "STAGE_NUMBERS",
]
