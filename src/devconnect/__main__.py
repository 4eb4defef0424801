"""Entrypoint: python -m devconnect"""
from __future__ import annotations

import logging

import uvicorn

from devconnect.api.middleware.correlation_id import LOG_FORMAT, CorrelationIdFilter
from devconnect.config import settings


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT, handlers=[handler])


def main() -> None:
    configure_logging()
    uvicorn.run(
        "devconnect.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
