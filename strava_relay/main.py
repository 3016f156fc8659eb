"""
FastAPI application entrypoint for the Strava to Discord relay.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from strava_relay.api.routes import router as api_router
from strava_relay.core.config import get_settings
from strava_relay.core.errors import (
    ClientInputError,
    ConfigurationError,
    UpstreamError,
)
from strava_relay.core.logging import configure_logging

logger = logging.getLogger(__name__)

_SERVER_ERROR_BODY = "Internal server error"


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    missing = [".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()]
    logger.warning("Rejected %s: invalid parameters %s", request.url.path, missing)
    return PlainTextResponse(
        f"Missing or invalid parameters: {', '.join(missing)}",
        status_code=HTTPStatus.BAD_REQUEST,
    )


async def _handle_client_input_error(
    request: Request, exc: ClientInputError
) -> PlainTextResponse:
    logger.warning("Rejected %s: %s", request.url.path, exc)
    return PlainTextResponse(str(exc), status_code=HTTPStatus.BAD_REQUEST)


async def _handle_configuration_error(
    request: Request, exc: ConfigurationError
) -> PlainTextResponse:
    logger.error("Configuration error while handling %s: %s", request.url.path, exc)
    return PlainTextResponse(
        _SERVER_ERROR_BODY, status_code=HTTPStatus.INTERNAL_SERVER_ERROR
    )


async def _handle_upstream_error(
    request: Request, exc: UpstreamError
) -> PlainTextResponse:
    logger.error("Upstream failure while handling %s: %s", request.url.path, exc)
    return PlainTextResponse(
        _SERVER_ERROR_BODY, status_code=HTTPStatus.INTERNAL_SERVER_ERROR
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Error processing request %s", request.url.path)
    return PlainTextResponse(
        _SERVER_ERROR_BODY, status_code=HTTPStatus.INTERNAL_SERVER_ERROR
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Strava Discord Relay",
        version="0.1.0",
        description="Links Strava accounts to Discord users and relays new activities.",
    )
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(ClientInputError, _handle_client_input_error)
    app.add_exception_handler(ConfigurationError, _handle_configuration_error)
    app.add_exception_handler(UpstreamError, _handle_upstream_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
