""" Pick the session store backend from settings. """

import logging
from typing import Optional

from ..config import Settings, get_settings
from .base import SessionStore
from .memory import InMemorySessionStore
from .redis_store import RedisSessionStore

logger = logging.getLogger(__name__)


def create_session_store(settings: Optional[Settings] = None, redis_client=None) -> SessionStore:
    settings = settings or get_settings()
    backend = settings.session_store
    if backend == "auto":
        backend = "redis" if (settings.redis_url or redis_client is not None) else "memory"

    if backend == "redis":
        if not settings.redis_url and redis_client is None:
            raise ValueError("session_store=redis requires REDIS_URL")
        logger.info("using redis session store")
        return RedisSessionStore(
            client=redis_client,
            url=settings.redis_url or "redis://localhost:6379/0",
            ttl_seconds=settings.session_ttl_seconds,
            retention_seconds=settings.expired_retention_seconds,
        )

    logger.info("using in-memory session store")
    return InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        retention_seconds=settings.expired_retention_seconds,
        cleanup_interval_seconds=settings.cleanup_interval_seconds,
    )
