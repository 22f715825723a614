"""
Credential stores — where the per-user Notion bearer token lives.

The contract is deliberately small: ``put`` upserts, ``get`` returns the
token or ``None``.  A completed ``put`` is visible to any ``get`` for the
same key issued after it returns.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from connectors.encryption import TokenCipher
from core.exceptions import CredentialStoreError
from database.models import NotionToken

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Key-value store mapping ``user_id`` → access token."""

    @abstractmethod
    async def put(
        self,
        user_id: str,
        access_token: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Insert or overwrite the token for ``user_id`` (last write wins)."""
        ...

    @abstractmethod
    async def get(self, user_id: str) -> Optional[str]:
        """Return the stored token, or ``None`` when the user never connected."""
        ...


class InMemoryCredentialStore(CredentialStore):
    """Process-local store; used for development and as the test double."""

    def __init__(self) -> None:
        self._tokens: Dict[str, str] = {}
        self._meta: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def put(
        self,
        user_id: str,
        access_token: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        async with self._lock:
            self._tokens[user_id] = access_token
            self._meta[user_id] = dict(meta or {})

    async def get(self, user_id: str) -> Optional[str]:
        return self._tokens.get(user_id)

    def meta(self, user_id: str) -> Dict[str, Any]:
        return dict(self._meta.get(user_id, {}))

    def __len__(self) -> int:
        return len(self._tokens)


class SqlCredentialStore(CredentialStore):
    """
    PostgreSQL-backed store on the ``notion_tokens`` table.

    ``put`` is a single ``INSERT … ON CONFLICT DO UPDATE`` statement so a
    reconnect replaces the previous token atomically.  Tokens are passed
    through ``cipher`` on the way in and out.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cipher: Optional[TokenCipher] = None,
    ) -> None:
        self._session_factory = session_factory
        self._cipher = cipher or TokenCipher(None)

    async def put(
        self,
        user_id: str,
        access_token: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        meta = meta or {}
        values = {
            "user_id": user_id,
            "access_token": self._cipher.encrypt(access_token),
            "workspace_id": meta.get("workspace_id"),
            "workspace_name": meta.get("workspace_name"),
            "bot_id": meta.get("bot_id"),
            "updated_at": datetime.now(timezone.utc),
        }
        stmt = pg_insert(NotionToken).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[NotionToken.user_id],
            set_={
                "access_token": stmt.excluded.access_token,
                "workspace_id": stmt.excluded.workspace_id,
                "workspace_name": stmt.excluded.workspace_name,
                "bot_id": stmt.excluded.bot_id,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        async with self._session_factory() as session:
            try:
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Failed to store token for user %s", user_id)
                raise CredentialStoreError("Could not save credential") from exc

    async def get(self, user_id: str) -> Optional[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(NotionToken.access_token).where(NotionToken.user_id == user_id)
                )
                stored = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Failed to load token for user %s", user_id)
            raise CredentialStoreError("Could not read credential") from exc
        if stored is None:
            return None
        return self._cipher.decrypt(stored)
