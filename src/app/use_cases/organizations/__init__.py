"""
Organization Lifecycle Use Cases
"""

from .create_organization_use_case import CreateOrganizationUseCase
from .dtos import OrganizationView, SetOrganizationStatusResponse
from .set_organization_status_use_case import SetOrganizationStatusUseCase

__all__ = [
    "CreateOrganizationUseCase",
    "SetOrganizationStatusUseCase",
    "OrganizationView",
    "SetOrganizationStatusResponse",
]
