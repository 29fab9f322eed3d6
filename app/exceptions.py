# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Domain errors (AgentExecutionError, N8NWebhookError, ...) are plain
# ApplicationErrors; their code decides the HTTP status here.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lib.supabase_client import SupabaseClientError
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

# ApplicationError.code -> HTTP status
ERROR_STATUS_CODES = {
    "AGENT_NOT_FOUND": 404,
    "AGENT_INACTIVE": 409,
    "AGENT_NOT_ENABLED": 403,
    "INSUFFICIENT_CREDITS": 402,
    "COMPANY_REQUIRED": 400,
    "UNKNOWN_AGENT_TYPE": 422,
    "EDGE_FUNCTION_NOT_CONFIGURED": 422,
    "EDGE_FUNCTION_FAILED": 502,
    "OPENAI_ERROR": 502,
    "N8N_NOT_CONFIGURED": 422,
    "N8N_AUTH_NOT_CONFIGURED": 500,
}

UPSTREAM_ERROR_PREFIX = "N8N_"


def status_for_code(code: str) -> int:
    if code in ERROR_STATUS_CODES:
        return ERROR_STATUS_CODES[code]
    if code.startswith(UPSTREAM_ERROR_PREFIX):
        return 502
    return 500


class BuilderaException(Exception):
    """
    Base exception for the Buildera API.

    Raised by routers for request-level problems (bad secret, unknown
    function name, ...). Provides structured error responses with
    actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "BUILDERA_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


class InvalidWebhookSecretError(BuilderaException):
    """Raised when an inbound webhook presents the wrong shared secret."""

    def __init__(self):
        super().__init__(
            message="Invalid webhook secret",
            code="INVALID_WEBHOOK_SECRET",
            status_code=401,
            suggestion="Append ?secret=<SENDGRID_INBOUND_SECRET> to the Inbound Parse URL",
        )


class CompanyAccessError(BuilderaException):
    """Raised when the user isn't a member of the requested company."""

    def __init__(self, company_id: str):
        super().__init__(
            message=f"Not a member of company: {company_id}",
            code="COMPANY_ACCESS_DENIED",
            status_code=403,
            suggestion="Use a company the authenticated user belongs to",
            details={"company_id": company_id},
        )


class TaskQueueUnavailableError(BuilderaException):
    """Raised when a task can't be queued."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to submit task: {error}",
            code="TASK_QUEUE_UNAVAILABLE",
            status_code=503,
            suggestion="Check that Redis is running and REDIS_URL is correct",
        )


class TaskNotFoundError(BuilderaException):
    """Raised when a task doesn't exist or belongs to another user."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            status_code=404,
            details={"task_id": task_id},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def buildera_exception_handler(
    request: Request,
    exc: BuilderaException
) -> JSONResponse:
    """
    Convert BuilderaException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def application_error_handler(
    request: Request,
    exc: ApplicationError | SupabaseClientError,
) -> JSONResponse:
    """Map a domain error to its HTTP status by code."""
    status_code = status_for_code(exc.code)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    content = {"detail": exc.message, "code": exc.code}
    if exc.suggestion:
        content["suggestion"] = exc.suggestion
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Missing or malformed fields are a client error (400).
    """
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ],
        }
    )
