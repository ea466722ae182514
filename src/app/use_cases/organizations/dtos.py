"""
Organization Lifecycle DTOs
"""

from pydantic import BaseModel


class OrganizationView(BaseModel):
    """Organization with the limits implied by its plan"""

    organization_id: str
    name: str
    slug: str
    subscription_plan: str
    active: bool
    max_users: int
    max_apis: int


class SetOrganizationStatusResponse(BaseModel):
    """Response for activate/deactivate; changed is False when already in that state"""

    organization: OrganizationView
    changed: bool
