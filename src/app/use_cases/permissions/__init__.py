"""
Permission Query Use Cases
"""

from .check_permission_use_case import CheckPermissionUseCase
from .dtos import CheckPermissionResponse, PermissionsResponse, RoleSummary
from .get_permissions_use_case import GetPermissionsUseCase

__all__ = [
    "GetPermissionsUseCase",
    "CheckPermissionUseCase",
    "PermissionsResponse",
    "CheckPermissionResponse",
    "RoleSummary",
]
