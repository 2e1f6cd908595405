"""Entrypoint: python -m counsel_service"""
from __future__ import annotations

import logging

import uvicorn

from counsel_service.api.middleware.correlation_id import CorrelationIdFilter
from counsel_service.config import settings


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(CorrelationIdFilter())


def main() -> None:
    _configure_logging()
    uvicorn.run(
        "counsel_service.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


if __name__ == "__main__":
    main()
