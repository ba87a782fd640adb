"""Exception handlers for the storefront API.

Protean's own handlers translate ``ValidationError`` (400) and
``ObjectNotFoundError`` (404). Storefront errors render as
``{"error": code, "message": ..., **details}`` with the status each error
class declares.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import CheckoutError

logger = structlog.get_logger(__name__)


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.code, message=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, error=exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(CheckoutError, checkout_error_handler)
