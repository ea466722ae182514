"""
Role Management Use Cases
"""

from .dtos import GrantRoleResponse, RevokeRoleResponse, RoleAssignmentView
from .grant_role_use_case import GrantRoleUseCase
from .revoke_role_use_case import RevokeRoleUseCase

__all__ = [
    "GrantRoleUseCase",
    "RevokeRoleUseCase",
    "GrantRoleResponse",
    "RevokeRoleResponse",
    "RoleAssignmentView",
]
