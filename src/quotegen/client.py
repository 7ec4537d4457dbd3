"""High-level async client tying the store, transport and sync together."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import aiohttp

from quotegen._transport import HttpTransport, Transport
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteError
from quotegen.models import Quote
from quotegen.storage import JsonFileStorage, MemoryStorage, Storage
from quotegen.store import QuoteStore
from quotegen.sync import QuoteSync, SyncResult

_logger = logging.getLogger(__name__)


class QuoteClient:
    """Async client for a locally stored, remotely synced quote collection.

    Usage::

        async with QuoteClient(config) as client:
            client.add_quote("Stay hungry.", "Motivation")
            result = await client.sync()
    """

    def __init__(
        self,
        config: QuoteConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        storage: Storage | None = None,
        transport: Transport | None = None,
        on_sync: Callable[[SyncResult], None] | None = None,
    ) -> None:
        self._config = config or QuoteConfig.from_env()
        self._external_session = session is not None
        self._http_session = session
        self._injected_transport = transport
        self._transport: Transport | None = None
        self._store = QuoteStore(
            storage if storage is not None else JsonFileStorage(self._config.storage_path),
            session=MemoryStorage(),
        )
        self._on_sync = on_sync
        self._sync: QuoteSync | None = None
        self._background: set[asyncio.Task[bool]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> QuoteClient:
        if self._injected_transport is not None:
            self._transport = self._injected_transport
        else:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)

        self._store.load()
        self._sync = QuoteSync(self._config, self._store, self._transport, on_result=self._on_sync)
        if self._config.auto_sync:
            self._sync.start(immediate=True)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._sync is not None:
            await self._sync.stop()
            self._sync = None
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_sync(self) -> QuoteSync:
        if self._sync is None:
            raise QuoteError("Client not initialized. Use 'async with QuoteClient(...) as client:'")
        return self._sync

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> QuoteConfig:
        return self._config

    @property
    def store(self) -> QuoteStore:
        return self._store

    @property
    def reconciler(self) -> QuoteSync:
        return self._require_sync()

    def add_quote(self, text: str, category: str) -> Quote:
        """Add a quote locally, then publish it in the background.

        The local add is complete when this returns; a failed publish is
        only logged.
        """
        sync = self._require_sync()
        quote = self._store.add(text, category)
        if self._config.publish_on_add:
            task = asyncio.create_task(sync.publish(quote), name=f"quotegen-publish-{quote.id}")
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        return quote

    async def sync(self) -> SyncResult:
        """Run one sync now (waits for a running one first)."""
        return await self._require_sync().sync()

    def start_auto_sync(self, *, immediate: bool = False) -> None:
        self._require_sync().start(immediate=immediate)

    async def stop_auto_sync(self) -> None:
        await self._require_sync().stop()

    def export_file(self, path: str | os.PathLike[str]) -> Path:
        """Write the whole collection to *path* as JSON."""
        target = Path(path)
        target.write_text(self._store.export_json(), encoding="utf-8")
        _logger.info("Exported %d quote(s) to %s", len(self._store), target)
        return target

    def import_file(self, path: str | os.PathLike[str]) -> list[Quote]:
        """Append every quote from a JSON file (all or nothing)."""
        return self._store.import_json(Path(path).read_bytes())

    async def wait_for_background(self) -> None:
        """Wait for pending background publishes."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
