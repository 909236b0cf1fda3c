from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarHTTP
import logging

from .schemas import RateLimitDenial

logger = logging.getLogger("flowrisk")


class FlowValidationError(ValueError):
    """Malformed or oversized flow input. Rejected before any analysis runs."""

    def __init__(self, message: str, error: str = "Invalid request"):
        super().__init__(message)
        self.error = error
        self.message = message


class RateLimitExceeded(Exception):
    error = "Too many requests"

    def __init__(self, retry_after: int, message: str, error: str | None = None):
        super().__init__(message)
        self.retry_after = retry_after
        self.message = message
        if error:
            self.error = error


class QuotaExceeded(RateLimitExceeded):
    error = "Daily AI limit reached"


class AIUnavailable(RuntimeError):
    """No credential, failed call or malformed AI response. Never leaves the AI layer."""


class InternalFault(RuntimeError):
    def __init__(self, message: str, diagnostic: str | None = None):
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic


def denial_response(exc: RateLimitExceeded) -> JSONResponse:
    body = RateLimitDenial(error=exc.error, message=exc.message, retry_after=exc.retry_after)
    return JSONResponse(
        body.model_dump(by_alias=True),
        status_code=429,
        headers={"Retry-After": str(exc.retry_after)},
    )


def install_error_handlers(app):
    @app.exception_handler(FlowValidationError)
    async def flow_invalid(_: Request, exc: FlowValidationError):
        return JSONResponse({"error": exc.error, "message": exc.message}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def body_invalid(_: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Invalid request", "message": "Malformed request body", "detail": jsonable_encoder(exc.errors())},
            status_code=400,
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limited(_: Request, exc: RateLimitExceeded):
        return denial_response(exc)

    @app.exception_handler(InternalFault)
    async def internal_fault(_: Request, exc: InternalFault):
        body = {"error": exc.message}
        if exc.diagnostic:
            body["details"] = exc.diagnostic
        return JSONResponse(body, status_code=500)

    @app.exception_handler(StarHTTP)
    async def http_exc(_: Request, exc: StarHTTP):
        return JSONResponse({"error": f"HTTP_{exc.status_code}", "detail": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse({"error": "INTERNAL_ERROR", "detail": "Unexpected error"}, status_code=500)
