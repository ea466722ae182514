from uuid import UUID

from fastapi import status
from libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


# Use case error codes that are the caller's fault, by HTTP status
CLIENT_ERROR_STATUS = {
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "ORGANIZATION_INACTIVE": status.HTTP_403_FORBIDDEN,
    "EMAIL_MISMATCH": status.HTTP_403_FORBIDDEN,
    "CANNOT_REVOKE_SELF": status.HTTP_403_FORBIDDEN,
    "ORGANIZATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_TOKEN": status.HTTP_404_NOT_FOUND,
    "INVITATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ASSIGNMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PRINCIPAL_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVITATION_ALREADY_PROCESSED": status.HTTP_409_CONFLICT,
    "ALREADY_MEMBER": status.HTTP_409_CONFLICT,
    "USER_LIMIT_REACHED": status.HTTP_409_CONFLICT,
    "SLUG_TAKEN": status.HTTP_409_CONFLICT,
    "ASSIGNMENT_CHANGED": status.HTTP_409_CONFLICT,
    "INVITATION_EXPIRED": status.HTTP_410_GONE,
    "INVALID_ROLE": status.HTTP_400_BAD_REQUEST,
    "INVALID_SCOPE": status.HTTP_400_BAD_REQUEST,
    "INVALID_PERMISSION": status.HTTP_400_BAD_REQUEST,
    "INVALID_EXPIRY": status.HTTP_400_BAD_REQUEST,
    "INVALID_SLUG": status.HTTP_400_BAD_REQUEST,
    "INVALID_NAME": status.HTTP_400_BAD_REQUEST,
    "INVALID_PLAN": status.HTTP_400_BAD_REQUEST,
    "INVALID_ORGANIZATION_ID": status.HTTP_400_BAD_REQUEST,
    "INVALID_PRINCIPAL_ID": status.HTTP_400_BAD_REQUEST,
}

UNAVAILABLE_CODES = ("STORE_UNAVAILABLE", "TRANSIENT_LOOKUP_FAILURE")


def raise_for_error(error: Error):
    """Raise the HTTP exception matching a use case error code"""
    if error.code in CLIENT_ERROR_STATUS:
        raise ClientError(error, status_code=CLIENT_ERROR_STATUS[error.code])
    if error.code in UNAVAILABLE_CODES:
        raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    raise ServerError(error)


def parse_uuid(value: str, code: str, label: str) -> UUID:
    """Parse an ID path/query parameter or raise 400"""
    try:
        return UUID(value)
    except ValueError:
        raise ClientError(
            Error(code, f"Invalid {label} format"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
