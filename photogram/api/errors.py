import logging

import asyncpg
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from photogram.schemas.schemas import ErrorDetail, ErrorResponse
from photogram.services.errors import ServiceError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a domain error with its code and HTTP status"""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.code, exc.message)


async def database_error_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    """Log an unexpected database error and hide its details from the client"""
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "Internal database error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(asyncpg.PostgresError, database_error_handler)
