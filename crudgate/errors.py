"""
Gateway error taxonomy.

Every per-request failure is raised as a GatewayError subclass and rendered
as a JSON body by the handler registered in crudgate.main.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error body."""

    error: str
    details: Optional[Any] = None


class GatewayError(Exception):
    """Base exception for per-request gateway failures."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None,
                 status_code: Optional[int] = None):
        self.message = message or self.message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, details=self.details)


class AuthMissing(GatewayError):
    status_code = 401
    message = "API key is missing"


class AuthInvalid(GatewayError):
    status_code = 403
    message = "Invalid or inactive API key"


class AuthzInsufficientScope(GatewayError):
    status_code = 403
    message = "Insufficient scope"


class AuthzProtectedResource(GatewayError):
    # status is configurable per gateway (GatewayConfig.protected_status_code)
    status_code = 403
    message = "You do not have permission to access this resource!"


class InvalidRequest(GatewayError):
    status_code = 400
    message = "Invalid request"


class UnknownIdentifier(GatewayError):
    status_code = 400
    message = "Unknown table or column"


class QueryFailure(GatewayError):
    status_code = 500
    message = "Database query failed"


class ConfigurationError(Exception):
    """Unsupported or incomplete startup configuration. Fatal."""


class KeyRevivalDenied(Exception):
    """Raised when re-activating a key while keys are configured as non-revivable."""


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    body: Dict[str, Any] = exc.to_response().model_dump(exclude_none=True)
    return JSONResponse(status_code=exc.status_code, content=body)
