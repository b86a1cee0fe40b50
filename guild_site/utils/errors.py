"""
Error handling utilities and custom exceptions
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorType(Enum):
    """Error type enumeration"""
    API_RATE_LIMIT = "api_rate_limit"
    API_AUTHENTICATION = "api_authentication"
    DATA_NOT_FOUND = "data_not_found"
    NETWORK_ERROR = "network_error"
    DATABASE_ERROR = "database_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_ERROR = "unknown_error"


class GuildSiteError(Exception):
    """Base exception for the guild site"""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_type = error_type
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class APIError(GuildSiteError):
    """HTTP API errors, raised for non-2xx responses and network failures"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        body: Optional[str] = None
    ):
        if status_code == 429:
            error_type = ErrorType.API_RATE_LIMIT
        elif status_code in (401, 403):
            error_type = ErrorType.API_AUTHENTICATION
        elif status_code == 404:
            error_type = ErrorType.DATA_NOT_FOUND
        else:
            error_type = ErrorType.NETWORK_ERROR
        super().__init__(
            error_type=error_type,
            message=message,
            details={"status_code": status_code, "endpoint": endpoint}
        )
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body


class ValidationError(GuildSiteError):
    """Data validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        super().__init__(
            error_type=ErrorType.VALIDATION_ERROR,
            message=message,
            details={"field": field, "value": value}
        )
        self.field = field
        self.value = value


class DataNotFoundError(GuildSiteError):
    """Data not found errors"""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            error_type=ErrorType.DATA_NOT_FOUND,
            message=f"{resource} not found: {identifier}",
            details={"resource": resource, "identifier": identifier}
        )
        self.resource = resource
        self.identifier = identifier


def describe_error(exc: Exception) -> str:
    """Short human readable description used in operation log entries"""
    if isinstance(exc, GuildSiteError):
        return exc.message
    return str(exc) or exc.__class__.__name__
