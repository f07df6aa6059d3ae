"""API error type and handlers

Use case errors are raised as ClientError and rendered as
{"error": {"code", "message"}}.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error

logger = logging.getLogger(__name__)


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error.code} ({exc.error.reason})")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.error.code}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error.code, exc.error.message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("VALIDATION_ERROR", "Invalid request parameters"),
        )
