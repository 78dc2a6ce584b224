"""
Models package for the application.
"""

from .accelerator_program import AcceleratorProgram
from .accelerator_stage import AcceleratorStage
from .checklist_template import ChecklistTemplateItem
from .checklist_progress import ChecklistProgress, ChecklistEditLease
from .onboarding_checklist import OnboardingChecklist
from .alert import Alert
from .provisioned_service import ProvisionedService

__all__ = [
    "AcceleratorProgram",
    "AcceleratorStage",
    "ChecklistTemplateItem",
    "ChecklistProgress",
    "ChecklistEditLease",
    "OnboardingChecklist",
    "Alert",
    "ProvisionedService",
]
