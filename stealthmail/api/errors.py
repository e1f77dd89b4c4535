from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stealthmail.models.results import Err, ErrorKind


logger = logging.getLogger(__name__)


STATUS_BY_KIND = {
    ErrorKind.INPUT: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
}


class GatewayError(Exception):
    """Raised by handlers; rendered as a ``{success: false, error}`` envelope."""

    def __init__(self, kind: ErrorKind, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @classmethod
    def from_result(cls, result: Err, public_message: Optional[str] = None) -> "GatewayError":
        # Upstream failures get a generic public message, the provider text goes to detail
        if result.kind == ErrorKind.UPSTREAM and public_message:
            return cls(result.kind, public_message, detail=result.reason)
        return cls(result.kind, result.reason)


class RateLimitExceeded(Exception):
    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


def error_response(status_code: int, message: str, detail: Optional[str] = None, expose_detail: bool = False) -> JSONResponse:
    content = {"success": False, "error": message}
    if expose_detail and detail:
        content["detail"] = detail
    return JSONResponse(status_code=status_code, content=content)


def rate_limited_response(message: str, retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": message},
        headers={"Retry-After": str(retry_after)},
    )


def install_error_handlers(app: FastAPI, expose_detail: bool) -> None:
    @app.exception_handler(GatewayError)
    async def _gateway_error(request: Request, exc: GatewayError):
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind.value, exc.detail or exc.message)
        return error_response(exc.status_code, exc.message, exc.detail, expose_detail)

    @app.exception_handler(RateLimitExceeded)
    async def _rate_limited(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit hit on %s from %s", request.url.path, request.client.host if request.client else "?")
        return rate_limited_response(exc.message, exc.retry_after)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg')}" for err in exc.errors()
        )
        return error_response(400, "Invalid request parameters", problems, expose_detail)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, f"Not found - {request.url.path}")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(500, "Internal server error", str(exc), expose_detail)
