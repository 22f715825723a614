"""
FastAPI dependencies (shared across routes).

Each provider is cached per process; tests swap them out through
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends

from config.settings import config
from connectors.credential_manager import CredentialManager
from connectors.encryption import default_cipher
from connectors.notion import NotionConnector
from connectors.store import CredentialStore, InMemoryCredentialStore, SqlCredentialStore
from core.dispatcher import ActionDispatcher

logger = logging.getLogger(__name__)


@lru_cache
def get_credential_store() -> CredentialStore:
    """Store selected by ``CREDENTIAL_BACKEND`` (``database`` or ``memory``)."""
    if config.credential_backend == "memory":
        logger.warning("Using in-memory credential store — tokens are lost on restart")
        return InMemoryCredentialStore()

    from database.session import async_session_factory

    return SqlCredentialStore(async_session_factory, default_cipher())


@lru_cache
def get_connector() -> NotionConnector:
    return NotionConnector(config)


def get_credential_manager(
    store: CredentialStore = Depends(get_credential_store),
    connector: NotionConnector = Depends(get_connector),
) -> CredentialManager:
    return CredentialManager(store, connector)


def get_dispatcher(
    credentials: CredentialManager = Depends(get_credential_manager),
) -> ActionDispatcher:
    return ActionDispatcher(credentials, settings=config)
