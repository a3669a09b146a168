"""Wiring — build a Manager from settings."""

from __future__ import annotations

import logging

from assistant.agent.manager import Manager
from assistant.config import Settings
from assistant.config import settings as default_settings
from assistant.context.providers import (
    CachedContextProvider,
    ContextProvider,
    HttpContextProvider,
    NullContextProvider,
)
from assistant.llm.client import create_backend
from assistant.observability import LoggingSink
from assistant.store.sqlite import SqliteRecordStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the standard log format at the configured level."""
    settings = settings or default_settings
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )


def create_context_provider(settings: Settings) -> ContextProvider:
    """HTTP provider behind a TTL cache when a URL is set, otherwise a null provider."""
    if not settings.context_provider_url:
        logger.info("No CONTEXT_PROVIDER_URL set — PARA context disabled")
        return NullContextProvider()

    provider: ContextProvider = HttpContextProvider(
        url=settings.context_provider_url,
        token=settings.context_provider_token,
    )
    if settings.context_cache_ttl_seconds > 0:
        provider = CachedContextProvider(provider, ttl=settings.context_cache_ttl_seconds)
    logger.info("PARA context provider: %s", settings.context_provider_url)
    return provider


def create_manager(settings: Settings | None = None) -> Manager:
    """Build a Manager with the SQLite store, configured backend and context provider.

    Raises:
        ConfigurationError: When the model backend is not configured.
    """
    settings = settings or default_settings
    store = SqliteRecordStore(db_path=settings.database_path)
    return Manager(
        store=store,
        context_provider=create_context_provider(settings),
        backend=create_backend(settings),
        sink=LoggingSink(),
        settings=settings,
    )
