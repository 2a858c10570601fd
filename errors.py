"""
Error taxonomy for the cash card API and the handlers that map it to HTTP.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CashCardAPIError(Exception):
    """Base exception; subclasses carry the HTTP status they map to."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        body: Dict[str, Any] = {"code": self.code, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return JSONResponse(status_code=self.status_code, content=body)


class AuthenticationFailure(CashCardAPIError):
    """Missing or invalid credentials."""

    status_code = 401
    code = "AUTHENTICATION_FAILURE"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        response = super().to_response()
        response.headers["WWW-Authenticate"] = 'Basic realm="cashcards"'
        return response


class AuthorizationFailure(CashCardAPIError):
    """Known identity lacking the role a path requires."""

    status_code = 403
    code = "AUTHORIZATION_FAILURE"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFound(CashCardAPIError):
    status_code = 404
    code = "NOT_FOUND"


class ValidationFailure(CashCardAPIError):
    status_code = 400
    code = "VALIDATION_FAILURE"


class Conflict(CashCardAPIError):
    status_code = 409
    code = "CONFLICT"


def _describe(error: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "loc": [str(part) for part in error.get("loc", ())],
        "msg": error.get("msg", ""),
        "type": error.get("type", ""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CashCardAPIError)
    async def cashcard_error_handler(request: Request, exc: CashCardAPIError):
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [_describe(e) for e in exc.errors()]
        logger.info(f"Rejected malformed request {request.method} {request.url.path}: {errors}")
        return ValidationFailure("Malformed request", {"errors": errors}).to_response()

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"code": "INTERNAL_ERROR", "detail": "Internal server error"},
        )
