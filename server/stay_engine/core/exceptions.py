"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..schemas.common import Problem, Violation


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, if any."""
        return self.problem_details.get("code")

    @property
    def retryable(self) -> bool:
        """Whether repeating the same request can succeed."""
        return bool(self.problem_details.get("retryable", False))


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://example.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for invalid customer credentials."""

    def __init__(
        self,
        detail: str = "Authentication credentials are invalid",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri="https://example.com/problems/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


# Engine exceptions

class PackageNotFoundError(ProblemDetailsException):
    """Exception when a package reference matches nothing in the property's catalog."""

    def __init__(self, package_ref: str, property_id: str):
        super().__init__(
            status_code=400,
            title="Package Unavailable",
            detail=f"Package '{package_ref}' is not available for property {property_id}",
            type_uri="https://example.com/problems/package-unavailable",
            extensions={
                "code": "PACKAGE_NOT_FOUND",
                "retryable": False,
                "package_ref": package_ref,
                "property_id": property_id,
            },
        )


class DateRangeInvalidError(ProblemDetailsException):
    """Exception when a stay's date range is empty, inverted or has the wrong length."""

    def __init__(self, from_date: date, to_date: date, reason: Optional[str] = None):
        detail = reason or f"Stay must end after it starts ({from_date.isoformat()} to {to_date.isoformat()})"
        super().__init__(
            status_code=400,
            title="Invalid Date Range",
            detail=detail,
            type_uri="https://example.com/problems/date-range-invalid",
            extensions={
                "code": "DATE_RANGE_INVALID",
                "retryable": False,
                "from_date": from_date.isoformat(),
                "to_date": to_date.isoformat(),
            },
        )


class AvailabilityConflictError(ProblemDetailsException):
    """Exception when the requested dates overlap an existing booking."""

    def __init__(
        self,
        property_id: str,
        from_date: date,
        to_date: date,
        conflicting_bookings: Optional[list[Dict[str, Any]]] = None,
        suggestions: Optional[list[Dict[str, Any]]] = None,
    ):
        super().__init__(
            status_code=409,
            title="Dates Unavailable",
            detail=(
                f"Property {property_id} is already booked between "
                f"{from_date.isoformat()} and {to_date.isoformat()}"
            ),
            type_uri="https://example.com/problems/availability-conflict",
            extensions={
                "code": "AVAILABILITY_CONFLICT",
                "retryable": False,
                "property_id": property_id,
                "conflicting_bookings": conflicting_bookings or [],
                "suggestions": suggestions or [],
            },
        )


class CatalogUnavailableError(ProblemDetailsException):
    """Exception when the external product catalog cannot be reached."""

    def __init__(self, detail: str = "The external product catalog is unavailable"):
        super().__init__(
            status_code=503,
            title="Catalog Unavailable",
            detail=detail,
            type_uri="https://example.com/problems/catalog-unavailable",
            extensions={
                "code": "CATALOG_UNAVAILABLE",
                "retryable": True,
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Exception handler rendering request validation failures as Problem Details.

    Each pydantic error becomes a violation with a dotted path to the field.
    """
    violations = [
        Violation(
            path=".".join(str(part) for part in error["loc"] if part != "body"),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    problem = Problem(
        type="https://example.com/problems/validation-error",
        title="Validation Error",
        status=422,
        detail="The request body failed validation",
        instance=str(request.url),
        code="VALIDATION_FAILED",
        retryable=False,
        violations=violations,
    )
    return JSONResponse(
        status_code=422,
        content=problem.model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": str(uuid.uuid4()),
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )
