"""Map the storefront error taxonomy to HTTP responses.

Error bodies share one shape: ``{"error", "messages", "retryable"}``.
Checkout rejections are 400, illegal lifecycle moves 409 and gateway
failures 503 (retryable). Everything else falls through to Protean's
handlers.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_exception_handlers

from storefront.errors import CheckoutError, GatewayError, InvalidOrderTransition

logger = structlog.get_logger(__name__)


def error_body(exc, retryable: bool = False) -> dict:
    return {"error": type(exc).__name__, "messages": exc.messages, "retryable": retryable}


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    logger.info("Checkout rejected", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=400, content=error_body(exc))


async def invalid_transition_handler(request: Request, exc: InvalidOrderTransition) -> JSONResponse:
    logger.info("Order transition refused", path=request.url.path, messages=exc.messages)
    return JSONResponse(status_code=409, content=error_body(exc))


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning("Gateway failure", path=request.url.path, error=type(exc).__name__, messages=exc.messages)
    return JSONResponse(status_code=503, content=error_body(exc, retryable=exc.retryable))


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_exception_handlers(app)
    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(InvalidOrderTransition, invalid_transition_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
