from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive or deleted",
        status.HTTP_403_FORBIDDEN,
    )
    PERMISSION_DENIED = ErrorDefinition(
        "PERMISSION_DENIED",
        "Permission denied",
        status.HTTP_403_FORBIDDEN,
    )
    ROLE_ID_REQUIRED = ErrorDefinition(
        "ROLE_ID_REQUIRED",
        "Role id is required",
        status.HTTP_400_BAD_REQUEST,
    )
    ROLE_NOT_FOUND = ErrorDefinition(
        "ROLE_NOT_FOUND",
        "Role not found",
        status.HTTP_404_NOT_FOUND,
    )
    MODULE_NOT_FOUND = ErrorDefinition(
        "MODULE_NOT_FOUND",
        "Module not found",
        status.HTTP_404_NOT_FOUND,
    )
    FIELD_NOT_FOUND = ErrorDefinition(
        "FIELD_NOT_FOUND",
        "Field not found for module",
        status.HTTP_404_NOT_FOUND,
    )
    SYSTEM_ROLE_PROTECTED = ErrorDefinition(
        "SYSTEM_ROLE_PROTECTED",
        "System roles cannot be deleted or have their code changed",
        status.HTTP_409_CONFLICT,
    )
    ROLE_IN_USE = ErrorDefinition(
        "ROLE_IN_USE",
        "Role is assigned to users",
        status.HTTP_409_CONFLICT,
    )
    ROLE_CODE_CONFLICT = ErrorDefinition(
        "ROLE_CODE_CONFLICT",
        "Role code already exists",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    STORE_FAILURE = ErrorDefinition(
        "STORE_FAILURE",
        "Permission store failure",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
