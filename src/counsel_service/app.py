from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from counsel_service.api.middleware.correlation_id import CorrelationIdMiddleware
from counsel_service.api.middleware.metrics import RequestTimingMiddleware
from counsel_service.api.v1.routers import (
    appointments,
    counselors,
    health,
    messages,
    payments,
    users,
    ws,
)
from counsel_service.application.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from counsel_service.application.uow import UoWFactory
from counsel_service.config import settings
from counsel_service.infrastructure.bus.redis_pubsub import RedisPubSubSubscriber
from counsel_service.infrastructure.db.session import dispose_engine
from counsel_service.infrastructure.db.uow import uow_scope
from counsel_service.infrastructure.ws.manager import RoomRegistry
from counsel_service.services.delivery_service import MessageDeliveryCoordinator
from counsel_service.services.message_service import MESSAGE_CREATED_EVENT

logger = logging.getLogger(__name__)


def _pubsub_handler(app: FastAPI):
    async def _on_event(event_type: str, data: dict[str, Any]) -> None:
        """Push messages committed by any instance to the rooms held here."""
        if event_type != MESSAGE_CREATED_EVENT:
            logger.debug("Ignoring pubsub event %s", event_type)
            return
        payload = data.get("message")
        try:
            appointment_id = UUID(data["appointment_id"])
            message_id = UUID(data["message_id"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed %s event: %r", event_type, data)
            return
        if not isinstance(payload, dict) or not payload:
            logger.warning("%s event %s carries no message body", event_type, message_id)
            return
        delivery: MessageDeliveryCoordinator = app.state.delivery
        await delivery.deliver(appointment_id, message_id, payload)

    return _on_event


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        _pubsub_handler(app),
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    await dispose_engine()
    logger.info("Redis and database pools closed")


def create_app(uow_factory: UoWFactory = uow_scope) -> FastAPI:
    app = FastAPI(
        title="Counseling Platform Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    rooms = RoomRegistry()
    app.state.rooms = rooms
    app.state.uow_factory = uow_factory
    app.state.delivery = MessageDeliveryCoordinator(
        rooms,
        uow_factory,
        retry_delay=settings.broadcast_retry_delay,
        ledger_size=settings.BROADCAST_LEDGER_SIZE,
        notify_sender_on_miss=settings.NOTIFY_SENDER_ON_BROADCAST_MISS,
    )

    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(counselors.router)
    app.include_router(users.router)
    app.include_router(appointments.router)
    app.include_router(payments.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(UnauthorizedError)
    async def _unauthorized(_req: Request, exc: UnauthorizedError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(InvalidStateError)
    async def _invalid_state(_req: Request, exc: InvalidStateError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": exc.detail, "errors": exc.errors},
        )

    @app.exception_handler(Exception)
    async def _unhandled(req: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", req.method, req.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
