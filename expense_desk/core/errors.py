"""Domain exceptions and FastAPI error handlers.

Domain code raises the exceptions below; the handlers registered by the
application factory translate them into JSON bodies of the shape
``{"error": <code>, "detail": <message>}``. Authorization failures carry a
fixed message so callers learn nothing about other users' data.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("app.errors")


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "domain_error"
    default_detail: str = "The request could not be processed."

    def __init__(self, detail: Any = None):
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(str(self.detail))


# Validation ---------------------------------------------------------
class ValidationFailure(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error = "validation_error"


class InvalidExchangeRate(ValidationFailure):
    error = "invalid_exchange_rate"
    default_detail = "exchange_rate must be greater than zero for non-base currencies"


class InvalidInstallmentCount(ValidationFailure):
    error = "invalid_installment_count"
    default_detail = "installment_count must be an integer of at least 2"


class UnsupportedCurrency(ValidationFailure):
    error = "unsupported_currency"
    default_detail = "unsupported currency"


class InvalidPeriod(ValidationFailure):
    error = "invalid_period"
    default_detail = "period must use the YYYY-MM format"


class DocumentNotFound(ValidationFailure):
    error = "document_not_found"
    default_detail = "attached document reference could not be resolved"


class RegistrationError(DomainError):
    error = "registration_error"


class VerificationFailed(DomainError):
    error = "verification_failed"
    default_detail = "invalid verification code"


# Authorization ------------------------------------------------------
class Unauthorized(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "unauthorized"
    default_detail = "Not authorized."

    def __init__(self, detail: Any = None):
        # Detail is accepted for logging call sites but never exposed.
        super().__init__(None)


class CallerNotFound(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "unauthenticated"
    default_detail = "Caller identity could not be resolved."

    def __init__(self, detail: Any = None):
        super().__init__(None)


class InvalidCredentials(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "invalid_credentials"
    default_detail = "Incorrect email or password."


# Not found ----------------------------------------------------------
class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"
    default_detail = "resource not found"


class OwnerNotFound(NotFound):
    error = "owner_not_found"
    default_detail = "owner user not found"


class UserNotFound(NotFound):
    error = "user_not_found"
    default_detail = "user not found"


class TargetUserNotFound(NotFound):
    error = "target_user_not_found"
    default_detail = "target user not found"


class ExpenseNotFound(NotFound):
    error = "expense_not_found"
    default_detail = "expense not found"


class CardSummaryNotFound(NotFound):
    error = "card_summary_not_found"
    default_detail = "card summary not found"


# Handlers -----------------------------------------------------------
def domain_error_handler(request: Request, exc: DomainError):  # type: ignore
    if exc.status_code >= 500:
        logger.error("domain failure on %s %s: %s", request.method, request.url.path, exc)
    else:
        logger.info("request rejected: %s %s", exc.error, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail},
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "not_found",
                "detail": f"No route for {request.method} {request.url.path}",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": _jsonable_errors(exc.errors()),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )


def _jsonable_errors(errors: list) -> list:
    """Drop non-serializable pydantic context (e.g. raised ValueError objects)."""
    cleaned = []
    for err in errors:
        item = {k: v for k, v in err.items() if k not in ("ctx", "input", "url")}
        if "ctx" in err:
            item["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        cleaned.append(item)
    return cleaned
