"""
FarmStaff - Response Envelope

Every public operation goes through ``run_operation``: the service coroutine
is awaited, its result is serialized into an ``ApiResponse`` and any failure
is turned into ``{success: false, message, code}`` after rolling back the
session. Nothing raised by a service escapes to the caller.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, Union

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from farmstaff.schemas.common import ApiResponse, Pagination
from farmstaff.utils.error_handling import AppException, ErrorCode, database_exception_from

logger = logging.getLogger(__name__)

Serializer = Union[Type[BaseModel], Callable[[Any], Any], None]


def _serialize(value: Any, serializer: Serializer) -> Any:
    if serializer is None or value is None:
        return value
    if isinstance(serializer, type) and issubclass(serializer, BaseModel):
        convert = serializer.model_validate
    else:
        convert = serializer
    if isinstance(value, (list, tuple)):
        return [convert(item) for item in value]
    return convert(value)


async def run_operation(
    db: AsyncSession,
    operation: Awaitable[Any],
    *,
    failure_message: str,
    success_message: Optional[str] = None,
    serializer: Serializer = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Tuple[ApiResponse, int]:
    """
    Await a service operation and wrap the outcome in the envelope.

    When ``page`` and ``limit`` are given the operation must return
    ``(items, total)`` and the envelope carries pagination.

    Returns:
        The envelope and the HTTP status code that goes with it.
    """
    try:
        result = await operation
    except AppException as exc:
        await db.rollback()
        logger.warning(f"{failure_message}: {exc.code.value} - {exc.message}")
        return (
            ApiResponse(success=False, message=exc.message, code=exc.code.value),
            exc.status_code,
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"{failure_message}: database error", exc_info=True)
        app_exc = database_exception_from(exc)
        return (
            ApiResponse(success=False, message=failure_message, code=app_exc.code.value),
            app_exc.status_code,
        )
    except Exception:
        await db.rollback()
        logger.exception(f"{failure_message}: unexpected error")
        return (
            ApiResponse(success=False, message=failure_message, code=ErrorCode.INTERNAL_ERROR.value),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if page is not None and limit is not None:
        items, total = result
        return (
            ApiResponse(
                success=True,
                data=_serialize(items, serializer),
                message=success_message,
                pagination=Pagination.build(page, limit, total),
            ),
            status.HTTP_200_OK,
        )

    return (
        ApiResponse(success=True, data=_serialize(result, serializer), message=success_message),
        status.HTTP_200_OK,
    )


def envelope_response(
    envelope: ApiResponse,
    status_code: int = status.HTTP_200_OK,
    success_status: Optional[int] = None,
) -> JSONResponse:
    """Render an envelope as a JSON response."""
    if envelope.success and success_status is not None:
        status_code = success_status
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


async def respond(
    db: AsyncSession,
    operation: Awaitable[Any],
    *,
    failure_message: str,
    success_message: Optional[str] = None,
    serializer: Serializer = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Run an operation and render the envelope for a router."""
    envelope, status_code = await run_operation(
        db,
        operation,
        failure_message=failure_message,
        success_message=success_message,
        serializer=serializer,
        page=page,
        limit=limit,
    )
    return envelope_response(envelope, status_code, success_status=success_status)
