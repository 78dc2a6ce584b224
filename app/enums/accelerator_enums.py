"""
Accelerator program enums.
"""

from enum import Enum


class ProgramStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StageStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class AlertType(str, Enum):
    STAGE_CHANGE = "stage_change"
    STAGE_OVERDUE = "stage_overdue"


class AlertStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class OnboardingFlag(str, Enum):
    DOCUMENT_SENT = "document_sent"
    ACADEMY_ACCESS_GRANTED = "academy_access_granted"
    CONTRACT_SENT = "contract_sent"
    HIGHLEVEL_SUBACCOUNT_CREATED = "highlevel_subaccount_created"
    DISCORD_GROUPS_CREATED = "discord_groups_created"
    ONBOARDING_MEETING_SCHEDULED = "onboarding_meeting_scheduled"


class ServiceType(str, Enum):
    DISCORD_CHANNEL = "discord_channel"


# Stage number -> display name, fixed for every program
STAGE_NAMES = {
    1: "Nicho y Oferta",
    2: "Infraestructura",
    3: "Validación y ventas",
    4: "Entrega de Servicio",
}

# Stage number -> key holding that stage's channel in a discord_channel service
STAGE_CHANNEL_KEYS = {
    1: "first_child",
    2: "second_child",
    3: "third_child",
    4: "fourth_child",
}

STAGE_NUMBERS = tuple(STAGE_NAMES.keys())
