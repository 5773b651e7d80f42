from __future__ import annotations
import enum
import logging

import openai
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logger import log_event
from .schemas import ErrorResponse


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    EXTERNAL_SERVICE = "external_service"
    STORAGE = "storage"


class VerificationError(Exception):
    """A failed verification request.

    ``kind`` is internal only; clients see ``message`` alone.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return 400 if self.kind is ErrorKind.VALIDATION else 500


def from_exception(exc: Exception) -> VerificationError:
    """Classify an exception raised while relaying a request."""
    if isinstance(exc, VerificationError):
        return exc
    # APITimeoutError subclasses APIConnectionError
    if isinstance(exc, openai.APIConnectionError):
        return VerificationError(ErrorKind.TRANSPORT, str(exc))
    if isinstance(exc, openai.OpenAIError):
        return VerificationError(ErrorKind.EXTERNAL_SERVICE, str(exc))
    if isinstance(exc, OSError):
        return VerificationError(ErrorKind.STORAGE, str(exc))
    return VerificationError(ErrorKind.EXTERNAL_SERVICE, str(exc))


def error_response(err: VerificationError) -> JSONResponse:
    body = ErrorResponse(error=err.message)
    return JSONResponse(status_code=err.status_code, content=body.model_dump())


async def verification_error_handler(request: Request, exc: VerificationError) -> JSONResponse:
    level = logging.WARNING if exc.kind is ErrorKind.VALIDATION else logging.ERROR
    # unexpected failures carry the original exception as __cause__
    log_event("verify_failed", level=level, exc_info=exc.__cause__ or False,
              route=request.url.path, kind=exc.kind.value, error=exc.message)
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in e.get("loc", ())[1:]) for e in exc.errors()]
    message = "Invalid request: " + ", ".join(f for f in fields if f) if any(fields) else "Invalid request"
    return await verification_error_handler(request, VerificationError(ErrorKind.VALIDATION, message))
