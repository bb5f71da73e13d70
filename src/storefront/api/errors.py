"""Maps the storefront error taxonomy onto HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_exception_handlers

from storefront.errors import ErrorKind, StorefrontError

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.STATE_CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXTERNAL: 502,
}


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to their HTTP status by error kind."""
    status_code = ERROR_STATUS_CODES[exc.kind]
    if exc.kind is ErrorKind.EXTERNAL:
        logger.error("Payment provider failure", path=request.url.path, error=exc.message, **exc.details)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Install storefront and Protean exception handlers on ``app``."""
    register_protean_exception_handlers(app)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
