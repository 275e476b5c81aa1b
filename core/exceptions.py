"""
Academy Custom Exceptions

This module provides the exception classes shared by the academy backend and
its integrations (Stripe, Webflow, email). The exceptions follow a
hierarchical structure so that callers can handle errors by category
(validation, not found, external service) and views can turn them into
consistent HTTP responses.

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Optional, Dict, Any


class AcademyException(Exception):
    """
    Base exception class for all academy related errors.

    Attributes:
        message (str): Human-readable error message
        status_code (Optional[int]): HTTP status code if applicable
        error_code (Optional[str]): Short machine readable error code
        details (Optional[Dict[str, Any]]): Additional error details

    Example:
        >>> try:
        ...     allocate_class_id("")
        ... except AcademyException as e:
        ...     logger.error(f"Academy error: {e.message}")
    """

    default_message = "An unexpected error occurred"
    default_status_code = 500
    default_error_code = "InternalError"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status_code
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "message": self.message,
            "status_code": self.status_code,
            "error_code": self.error_code,
            "details": self.details,
            "exception_type": self.__class__.__name__,
        }


class ValidationException(AcademyException):
    """
    Raised when input is missing or malformed.
    """

    default_message = "Invalid request data"
    default_status_code = 400
    default_error_code = "ValidationError"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        validation_errors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.field = field
        details = {}
        if field:
            details["field"] = field
        if validation_errors:
            details["validation_errors"] = validation_errors
        super().__init__(message=message, details=details)


class AuthenticationException(AcademyException):
    """
    Raised when credentials for an external service are missing or rejected.
    """

    default_message = "Authentication with the external service failed"
    default_status_code = 401
    default_error_code = "Unauthorized"


class PermissionException(AcademyException):
    default_message = "Access to the requested resource was denied"
    default_status_code = 403
    default_error_code = "Forbidden"


class NotFoundException(AcademyException):
    """
    Raised when a requested record does not exist.

    Attributes:
        resource (Optional[str]): The type of the missing resource
    """

    default_message = "We couldn't find what you're looking for."
    default_status_code = 404
    default_error_code = "NotFound"

    def __init__(
        self, message: Optional[str] = None, resource: Optional[str] = None
    ) -> None:
        self.resource = resource
        details = {}
        if resource:
            details["resource"] = resource
        super().__init__(message=message, details=details)


class ConflictException(AcademyException):
    default_message = "The record conflicts with an existing record"
    default_status_code = 409
    default_error_code = "Conflict"


class RateLimitException(AcademyException):
    """
    Raised when an external API reports too many requests.
    """

    default_message = "Rate limit exceeded"
    default_status_code = 429
    default_error_code = "TooManyRequests"

    def __init__(
        self, message: Optional[str] = None, retry_after: Optional[int] = None
    ) -> None:
        self.retry_after = retry_after
        details = {}
        if retry_after:
            details["retry_after"] = retry_after
        super().__init__(message=message, details=details)


class ExternalServiceException(AcademyException):
    """
    Raised when Stripe, Webflow or the email provider fails.

    Attributes:
        service (Optional[str]): Name of the failing service
    """

    default_message = "An external service request failed"
    default_status_code = 502
    default_error_code = "ExternalServiceError"

    def __init__(
        self,
        message: Optional[str] = None,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.service = service
        details = {}
        if service:
            details["service"] = service
        super().__init__(message=message, status_code=status_code, details=details)


class ServiceUnavailableException(AcademyException):
    default_message = "Service temporarily unavailable"
    default_status_code = 503
    default_error_code = "ServiceUnavailable"


class ConfigurationException(AcademyException):
    """
    Raised when a required setting (API key, collection id) is missing.
    """

    default_message = "Service configuration is incomplete"
    default_status_code = 500
    default_error_code = "ConfigurationError"


# Exception mapping for HTTP status codes
EXCEPTION_MAPPING = {
    400: ValidationException,
    401: AuthenticationException,
    403: PermissionException,
    404: NotFoundException,
    409: ConflictException,
    429: RateLimitException,
    503: ServiceUnavailableException,
}


def create_exception_from_response(
    status_code: int,
    message: str,
    service: Optional[str] = None,
) -> AcademyException:
    """
    Factory function to create the appropriate exception for an HTTP status
    code returned by an external API.

    Args:
        status_code: HTTP status code from the response
        message: Error message from the response
        service: Name of the external service

    Returns:
        Appropriate exception instance based on the status code

    Example:
        >>> exc = create_exception_from_response(404, "Item not found", "webflow")
        >>> isinstance(exc, NotFoundException)
        True
    """
    exception_class = EXCEPTION_MAPPING.get(status_code)
    if exception_class is None:
        return ExternalServiceException(
            message=message, service=service, status_code=status_code
        )
    exc = exception_class(message)
    if service:
        exc.details["service"] = service
    return exc


NOT_FOUND_MESSAGES = {
    "class": "This class doesn't exist or may have been removed.",
    "course": "This course doesn't exist or may have been removed.",
}


def map_database_error(resource: Optional[str] = None) -> str:
    """
    Return the user facing message for a missing record instead of the raw
    database error text.
    """
    return NOT_FOUND_MESSAGES.get(resource or "", NotFoundException.default_message)
