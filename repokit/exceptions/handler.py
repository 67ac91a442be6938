from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from repokit.logging.logger import get_logger
from repokit.response import ResponseModel
from typing import Any
from repokit.config import settings

logger = get_logger("exception_handler")

class BusinessException(Exception):
    """Base class for business exceptions."""
    def __init__(self, message: str, status_code: int = 200, code: int = 400, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.detail = detail


class ConfigurationError(BusinessException):
    """The repository, entity or request criteria are set up in a way that cannot work."""
    def __init__(self, message: str, detail: Any = None):
        super().__init__(message, status_code=500, code=500, detail=detail)


class NotFoundError(BusinessException):
    """A single-record lookup that must succeed found nothing."""
    def __init__(self, model: str, key: Any):
        super().__init__(f"No query results for model [{model}] {key}", status_code=404, code=404, detail={"key": key})
        self.model = model
        self.key = key


class WriteFailureError(BusinessException):
    """An update, delete or bulk write affected no rows or was rejected."""
    def __init__(self, message: str, detail: Any = None):
        super().__init__(message, status_code=500, code=500, detail=detail)


class QueryExecutionError(BusinessException):
    """A criteria directive could not be applied (raised in strict mode only)."""
    def __init__(self, message: str, detail: Any = None):
        super().__init__(message, status_code=400, code=400, detail=detail)


def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    trace_id = getattr(request.state, "trace_id", "unknown")

    if isinstance(exc, NotFoundError):
        logger.info(f"Trace[{trace_id}] - NotFound: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(code=exc.code, message=exc.message)
        )

    if isinstance(exc, BusinessException):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"Trace[{trace_id}] - {type(exc).__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(
                code=exc.code,
                message=exc.message,
                data=exc.detail if settings.DEBUG else None
            )
        )

    if isinstance(exc, RequestValidationError):
        logger.error(f"Trace[{trace_id}] - ValidationError: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ResponseModel.fail(code=422, message="Invalid request parameters", data=jsonable_encoder(exc.errors()))
        )

    if isinstance(exc, SQLAlchemyError):
        logger.critical(f"Trace[{trace_id}] - DatabaseError: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Service temporarily unavailable")
        )

    logger.opt(exception=True).error(f"Trace[{trace_id}] - UncaughtException: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseModel.fail(
            code=500,
            message="System busy, please try again later",
            data={"trace_id": trace_id} if settings.DEBUG else None
        )
    )
