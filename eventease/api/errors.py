import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ScheduleConflictError,
    ServiceError,
    TransientIOError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def status_for(err: ServiceError) -> int:
    if isinstance(err, ValidationError):
        return 400
    if isinstance(err, AuthError):
        return 401
    if isinstance(err, PermissionDeniedError):
        return 403
    if isinstance(err, NotFoundError):
        return 404
    if isinstance(err, ConflictError):
        return 409
    if isinstance(err, TransientIOError):
        return 503
    return 500


def _error_body(err: ServiceError) -> dict:
    body = {"code": err.code, "message": err.message}
    if isinstance(err, ScheduleConflictError):
        body["conflicting_event_id"] = err.conflicting_event_id
    return body


async def service_error_handler(request: Request, err: ServiceError) -> JSONResponse:
    status = status_for(err)
    if status >= 500:
        logger.error("service_error", code=err.code, message=err.message)
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(status_code=status, content=_error_body(err), headers=headers)


async def database_unavailable_handler(request: Request, err: OperationalError) -> JSONResponse:
    logger.error("database_unavailable", error=str(err.orig or err))
    return await service_error_handler(
        request,
        TransientIOError(ErrorCode.SERVICE_UNAVAILABLE.value, "Service temporarily unavailable, please retry."),
    )


async def request_validation_handler(request: Request, err: RequestValidationError) -> JSONResponse:
    errors = err.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request.")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=400,
        content={
            "code": ErrorCode.VALIDATION_ERROR.value,
            "message": message,
            "errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
        },
    )


async def http_exception_handler(request: Request, err: StarletteHTTPException) -> JSONResponse:
    code = ErrorCode.NOT_FOUND.value if err.status_code == 404 else f"HTTP_{err.status_code}"
    return JSONResponse(
        status_code=err.status_code,
        content={"code": code, "message": str(err.detail)},
        headers=getattr(err, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
