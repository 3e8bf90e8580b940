"""
Centralized Error Handling for FarmStaff

This module provides:
- Custom exception hierarchy for staff, leave, attendance and payroll rules
- Standardized error responses in the API envelope format
- Error logging for FastAPI exception handlers
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from farmstaff.utils.dates import utcnow

# Configure logging
logger = logging.getLogger("farmstaff.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    PAST_DATE_REQUEST = "PAST_DATE_REQUEST"

    # Authentication/Authorization Errors (401/403)
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    STAFF_NOT_FOUND = "STAFF_NOT_FOUND"
    LEAVE_REQUEST_NOT_FOUND = "LEAVE_REQUEST_NOT_FOUND"
    BALANCE_NOT_FOUND = "BALANCE_NOT_FOUND"
    ATTENDANCE_NOT_FOUND = "ATTENDANCE_NOT_FOUND"
    PAYROLL_NOT_FOUND = "PAYROLL_NOT_FOUND"
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DUPLICATE_PERIOD = "DUPLICATE_PERIOD"
    DUPLICATE_BALANCE = "DUPLICATE_BALANCE"

    # Business Logic Errors (409/422)
    OVERLAPPING_REQUEST = "OVERLAPPING_REQUEST"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    NO_OPEN_CHECK_IN = "NO_OPEN_CHECK_IN"
    STAFF_INACTIVE = "STAFF_INACTIVE"
    INVALID_INVITE = "INVALID_INVITE"
    CANNOT_DELETE = "CANNOT_DELETE"

    # External Service Errors (502)
    EMAIL_SERVICE_ERROR = "EMAIL_SERVICE_ERROR"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidDateRangeException(ValidationException):
    """Start date is not before end date"""

    def __init__(self, start_date: date, end_date: date, message: Optional[str] = None):
        super().__init__(
            message=message or "End date must be after start date",
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )


class PastDateRequestException(ValidationException):
    """Leave requested for a day that has already passed"""

    def __init__(self, start_date: date):
        super().__init__(
            message="Cannot request leave for past dates",
            field="start_date",
            code=ErrorCode.PAST_DATE_REQUEST,
            details={"start_date": str(start_date)},
        )


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """No valid session"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            code=ErrorCode.UNAUTHENTICATED,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class InsufficientPermissionsException(AppException):
    """Role or ownership check failed"""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        required_role: Optional[str] = None,
        code: ErrorCode = ErrorCode.INSUFFICIENT_PERMISSIONS,
    ):
        details = {}
        if required_role:
            details["required_role"] = required_role
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class AccountDisabledException(InsufficientPermissionsException):
    """Caller's staff account is deactivated"""

    def __init__(self):
        super().__init__(
            message="Staff account is deactivated",
            code=ErrorCode.ACCOUNT_DISABLED,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class StaffNotFoundException(NotFoundException):
    """Staff member not found"""

    def __init__(self, staff_id: Optional[Union[str, UUID]] = None):
        super().__init__(
            resource_type="Staff member",
            resource_id=staff_id,
            code=ErrorCode.STAFF_NOT_FOUND,
        )


class LeaveRequestNotFoundException(NotFoundException):
    """Leave request not found"""

    def __init__(self, leave_id: Union[str, UUID]):
        super().__init__(
            resource_type="Leave request",
            resource_id=leave_id,
            code=ErrorCode.LEAVE_REQUEST_NOT_FOUND,
        )


class LeaveBalanceNotFoundException(NotFoundException):
    """No leave balance on record for the staff member"""

    def __init__(self, staff_id: Optional[Union[str, UUID]] = None, message: Optional[str] = None):
        super().__init__(
            resource_type="Leave balance",
            resource_id=staff_id,
            message=message or "Leave balance not found. Please contact administrator.",
            code=ErrorCode.BALANCE_NOT_FOUND,
        )


class AttendanceNotFoundException(NotFoundException):
    """Attendance record not found"""

    def __init__(self, attendance_id: Union[str, UUID]):
        super().__init__(
            resource_type="Attendance record",
            resource_id=attendance_id,
            code=ErrorCode.ATTENDANCE_NOT_FOUND,
        )


class PayrollNotFoundException(NotFoundException):
    """Payroll record not found"""

    def __init__(self, payroll_id: Union[str, UUID]):
        super().__init__(
            resource_type="Payroll record",
            resource_id=payroll_id,
            code=ErrorCode.PAYROLL_NOT_FOUND,
        )


class InviteNotFoundException(NotFoundException):
    """Invitation not found"""

    def __init__(self, invite_id: Union[str, UUID]):
        super().__init__(
            resource_type="Invitation",
            resource_id=invite_id,
            code=ErrorCode.INVITE_NOT_FOUND,
        )


class NotificationNotFoundException(NotFoundException):
    """Notification not found"""

    def __init__(self, notification_id: Union[str, UUID]):
        super().__init__(
            resource_type="Notification",
            resource_id=notification_id,
            code=ErrorCode.NOTIFICATION_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DUPLICATE_ENTRY,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            original_error=original_error,
        )


class DuplicateEntryException(ConflictException):
    """Duplicate entry exception"""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        details = {}
        if field:
            details = {"field": field, "value": value}
        super().__init__(message=message, details=details)


class DuplicatePeriodException(ConflictException):
    """Payroll already recorded for the calendar month"""

    def __init__(self, staff_id: Union[str, UUID], pay_period: str, original_error: Optional[Exception] = None):
        super().__init__(
            message="Payroll record already exists for this period",
            code=ErrorCode.DUPLICATE_PERIOD,
            details={"staff_id": str(staff_id), "pay_period": pay_period},
            original_error=original_error,
        )


class DuplicateBalanceException(ConflictException):
    """Leave balance already exists for the staff member"""

    def __init__(self, staff_id: Union[str, UUID]):
        super().__init__(
            message="Leave balance already exists for this staff member",
            code=ErrorCode.DUPLICATE_BALANCE,
            details={"staff_id": str(staff_id)},
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
            original_error=original_error,
        )


class OverlappingRequestException(BusinessRuleException):
    """Leave interval intersects an existing pending or approved request"""

    def __init__(
        self,
        conflicting_id: Optional[Union[str, UUID]] = None,
        original_error: Optional[Exception] = None,
    ):
        # The id is unknown when the database constraint caught the overlap
        details = {"conflicting_request_id": str(conflicting_id)} if conflicting_id else None
        super().__init__(
            message="You already have a leave request for this period",
            code=ErrorCode.OVERLAPPING_REQUEST,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            original_error=original_error,
        )


class InsufficientBalanceException(BusinessRuleException):
    """Not enough remaining leave days"""

    def __init__(self, available: int, requested: int):
        super().__init__(
            message=(
                f"Insufficient leave balance. You have {available} days remaining, "
                f"but requesting {requested} days."
            ),
            code=ErrorCode.INSUFFICIENT_BALANCE,
            details={"available_days": available, "requested_days": requested},
        )


class AlreadyProcessedException(BusinessRuleException):
    """Leave request is no longer pending"""

    def __init__(self, leave_id: Union[str, UUID], current_status: str):
        super().__init__(
            message=f"Leave request has already been processed (status: {current_status})",
            code=ErrorCode.ALREADY_PROCESSED,
            status_code=status.HTTP_409_CONFLICT,
            details={"leave_request_id": str(leave_id), "status": current_status},
        )


class AlreadyCheckedInException(BusinessRuleException):
    """An open attendance record exists for today"""

    def __init__(self, staff_id: Union[str, UUID], original_error: Optional[Exception] = None):
        super().__init__(
            message="Already checked in today",
            code=ErrorCode.ALREADY_CHECKED_IN,
            status_code=status.HTTP_409_CONFLICT,
            details={"staff_id": str(staff_id)},
            original_error=original_error,
        )


class NoOpenCheckInException(BusinessRuleException):
    """No open attendance record exists for today"""

    def __init__(self, staff_id: Union[str, UUID]):
        super().__init__(
            message="No check-in record found for today",
            code=ErrorCode.NO_OPEN_CHECK_IN,
            details={"staff_id": str(staff_id)},
        )


class StaffInactiveException(BusinessRuleException):
    """Operation requires an active staff member"""

    def __init__(self, staff_id: Union[str, UUID]):
        super().__init__(
            message="Staff member is inactive",
            code=ErrorCode.STAFF_INACTIVE,
            details={"staff_id": str(staff_id)},
        )


class InvalidInviteException(BusinessRuleException):
    """Invitation token unknown, used or expired"""

    def __init__(self, message: str = "Invalid invitation token"):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INVITE,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class CannotDeleteException(BusinessRuleException):
    """Record cannot be deleted in its current state"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.CANNOT_DELETE,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


# ============================================================================
# External Service Exceptions
# ============================================================================

class EmailDeliveryException(AppException):
    """Email could not be sent"""

    def __init__(self, recipient: str):
        super().__init__(
            code=ErrorCode.EMAIL_SERVICE_ERROR,
            message=f"Failed to send email to {recipient}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"recipient": recipient},
        )


# ============================================================================
# Database Exceptions
# ============================================================================

class DatabaseException(AppException):
    """Database error exception"""

    def __init__(
        self,
        message: str = "A database error occurred",
        code: ErrorCode = ErrorCode.DATABASE_ERROR,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            original_error=original_error,
        )


def database_exception_from(exc: SQLAlchemyError) -> AppException:
    """Translate a SQLAlchemy error into an application exception."""
    if isinstance(exc, IntegrityError):
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            return ConflictException(
                message="A record with this value already exists",
                original_error=exc,
            )
        return DatabaseException(
            message="Data integrity constraint violated",
            code=ErrorCode.DATA_INTEGRITY_ERROR,
            original_error=exc,
        )
    if isinstance(exc, OperationalError):
        return DatabaseException(
            message="Database operation failed",
            code=ErrorCode.CONNECTION_ERROR,
            original_error=exc,
        )
    if isinstance(exc, DataError):
        return DatabaseException(message="Invalid data format for database", original_error=exc)
    return DatabaseException(original_error=exc)


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Create an error response in the API envelope format"""
    content: Dict[str, Any] = {
        "success": False,
        "message": message,
        "code": code.value,
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    logger.warning(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={"code": exc.code.value, "path": request.url.path, "method": request.method},
    )
    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHENTICATED,
        403: ErrorCode.INSUFFICIENT_PERMISSIONS,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.DUPLICATE_ENTRY,
        422: ErrorCode.VALIDATION_ERROR,
    }
    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(code=error_code, message=message, status_code=exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic request validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method},
    )
    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors that escaped the service layer"""
    app_exc = database_exception_from(exc)
    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return create_error_response(
        code=app_exc.code,
        message=app_exc.message,
        status_code=app_exc.status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "AppException",
    "ErrorCode",
    "ValidationException",
    "InvalidDateRangeException",
    "PastDateRequestException",
    "AuthenticationException",
    "InsufficientPermissionsException",
    "AccountDisabledException",
    "NotFoundException",
    "StaffNotFoundException",
    "LeaveRequestNotFoundException",
    "LeaveBalanceNotFoundException",
    "AttendanceNotFoundException",
    "PayrollNotFoundException",
    "InviteNotFoundException",
    "NotificationNotFoundException",
    "ConflictException",
    "DuplicateEntryException",
    "DuplicatePeriodException",
    "DuplicateBalanceException",
    "BusinessRuleException",
    "OverlappingRequestException",
    "InsufficientBalanceException",
    "AlreadyProcessedException",
    "AlreadyCheckedInException",
    "NoOpenCheckInException",
    "StaffInactiveException",
    "InvalidInviteException",
    "CannotDeleteException",
    "EmailDeliveryException",
    "DatabaseException",
    "database_exception_from",
    "setup_exception_handlers",
    "create_error_response",
]
