"""Map engine failures onto HTTP responses.

Every error body has the same shape, ``{"code", "message", "details"}``.
Storage-layer details and stack traces never reach the client.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from canteen.errors import CanteenError, InvalidInput

logger = structlog.get_logger(__name__)


async def canteen_error_handler(request: Request, exc: CanteenError) -> JSONResponse:
    if exc.status_code == 401:
        logger.info("unauthenticated_request", path=request.url.path, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    error = InvalidInput("Invalid input", fields=exc.messages)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {}
    for issue in exc.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()) if part != "body")
        fields.setdefault(location or "body", []).append(issue.get("msg", "Invalid value"))
    error = InvalidInput("Invalid input", fields=fields)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"code": "not_found", "message": "Resource not found", "details": {}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install Protean's default handlers, then the engine's own mapping on top."""
    register_exception_handlers(app)
    app.add_exception_handler(CanteenError, canteen_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
