"""Starlette ASGI application serving the Prometheus metrics feed."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import CONTENT_TYPE_LATEST
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from rpc_sentinel.constants import HEALTHZ_PATH, METRICS_PATH, SERVER_NAME, SERVER_VERSION
from rpc_sentinel.runtime.service import SentinelService

logger = logging.getLogger(__name__)


async def handle_metrics(request: Request) -> Response:
    """``GET /metrics`` — Prometheus text exposition of the gauge sink."""
    service: SentinelService = request.app.state.service
    return Response(content=service.sink.render(), media_type=CONTENT_TYPE_LATEST)


async def handle_healthz(request: Request) -> JSONResponse:
    """``GET /healthz`` — liveness of the exporter itself, not of the endpoints."""
    service: SentinelService = request.app.state.service
    return JSONResponse(
        {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "state": service.state.value,
            "endpoints": len(service.config.endpoints),
            "cycles_completed": service.checker.cycles_completed,
        }
    )


def create_app(service: SentinelService) -> Starlette:
    """Create the ASGI app; its lifespan starts and stops *service*."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Lifespan startup: starting probe service.")
        await service.start()
        try:
            yield
        finally:
            logger.info("Lifespan shutdown: stopping probe service.")
            await service.stop()

    application = Starlette(
        lifespan=lifespan,
        routes=[
            Route(METRICS_PATH, endpoint=handle_metrics, methods=["GET"]),
            Route(HEALTHZ_PATH, endpoint=handle_healthz, methods=["GET"]),
        ],
    )
    application.state.service = service
    logger.info(
        "Starlette ASGI app '%s' created. Metrics on %s, liveness on %s",
        SERVER_NAME,
        METRICS_PATH,
        HEALTHZ_PATH,
    )
    return application
