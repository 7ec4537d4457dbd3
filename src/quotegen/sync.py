"""Reconciliation of the local quote sequence with the remote endpoint."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from quotegen._api.posts import fetch_remote_quotes, post_quote
from quotegen._transport import Transport
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteTransportError
from quotegen.merge import merge_quotes
from quotegen.models import Conflict, MergeResult, Quote, QuoteOrigin
from quotegen.store import QuoteStore

_logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of one sync run."""

    conflicts: tuple[Conflict, ...] = ()
    added: tuple[Quote, ...] = ()
    published: int = 0
    publish_failures: int = 0
    duration_ms: int = 0
    error: str | None = None
    finished_at: float = field(default_factory=time.time)

    @property
    def success(self) -> bool:
        """Return True if the remote snapshot was fetched and applied."""
        return self.error is None

    @property
    def message(self) -> str:
        """Short status line for the user."""
        if self.error is not None:
            return f"Sync failed: {self.error}"
        if self.conflicts:
            return f"Quotes synced with server; {len(self.conflicts)} conflict(s) resolved using server data."
        if self.added:
            return f"Quotes synced with server; {len(self.added)} new quote(s) received."
        return "Quotes synced with server!"


class QuoteSync:
    """Keep a :class:`~quotegen.store.QuoteStore` in line with the remote endpoint.

    Conflicts are settled by :func:`quotegen.merge.merge_quotes`: the remote
    side always wins. At most one :meth:`sync` runs at a time; overlapping
    callers wait for the running one to finish and then run their own.
    """

    def __init__(
        self,
        config: QuoteConfig,
        store: QuoteStore,
        transport: Transport,
        *,
        on_result: Callable[[SyncResult], None] | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._transport = transport
        self._on_result = on_result
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self.last_result: SyncResult | None = None

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def is_running(self) -> bool:
        """Whether the periodic sync task is active."""
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Single steps
    # ------------------------------------------------------------------

    async def fetch_remote(self) -> list[Quote]:
        """Fetch the remote snapshot.

        Raises
        ------
        QuoteTransportError
            On network, status or decode failure. Local state is untouched.
        """
        return await fetch_remote_quotes(self._config, self._transport)

    @staticmethod
    def merge(local: Sequence[Quote], remote: Sequence[Quote]) -> MergeResult:
        return merge_quotes(local, remote)

    async def publish(self, quote: Quote) -> bool:
        """Best-effort upload of one quote. Failures are logged, never raised."""
        try:
            await post_quote(self._config, self._transport, quote)
        except QuoteTransportError as exc:
            _logger.warning("Publishing quote id=%d failed: %s", quote.id, exc)
            return False
        _logger.debug("Published quote id=%d", quote.id)
        return True

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def sync(self) -> SyncResult:
        """Fetch, merge, persist, then publish local-only quotes."""
        if self._lock.locked():
            _logger.debug("Sync already in progress; waiting for it to finish")
        async with self._lock:
            result = await self._sync_once()
        self.last_result = result
        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception:
                _logger.debug("on_result callback failed", exc_info=True)
        return result

    async def _sync_once(self) -> SyncResult:
        started = time.monotonic()
        try:
            remote = await self.fetch_remote()
        except QuoteTransportError as exc:
            _logger.warning("Sync failed while fetching remote quotes: %s", exc)
            return SyncResult(error=str(exc), duration_ms=_elapsed_ms(started))

        # Snapshot the local side only after the fetch returns; merge and
        # replace run without yielding so concurrent adds cannot be lost.
        merged = self.merge(self._store.quotes, remote)
        self._store.replace(merged.quotes)
        for conflict in merged.conflicts:
            _logger.info(
                "Conflict on quote id=%d resolved with server data (%r -> %r)",
                conflict.id,
                conflict.local.text,
                conflict.remote.text,
            )

        remote_ids = {quote.id for quote in remote}
        pending = [
            quote for quote in merged.quotes if quote.origin == QuoteOrigin.LOCAL and quote.id not in remote_ids
        ]
        outcomes = await asyncio.gather(*(self.publish(quote) for quote in pending), return_exceptions=True)
        for quote, outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                _logger.warning("Publishing quote id=%d failed unexpectedly: %r", quote.id, outcome)
        published = sum(1 for ok in outcomes if ok is True)

        result = SyncResult(
            conflicts=merged.conflicts,
            added=merged.added,
            published=published,
            publish_failures=len(outcomes) - published,
            duration_ms=_elapsed_ms(started),
        )
        _logger.info(
            "Sync finished: %d added, %d conflict(s), %d published in %d ms",
            len(result.added),
            len(result.conflicts),
            result.published,
            result.duration_ms,
        )
        return result

    # ------------------------------------------------------------------
    # Periodic runs
    # ------------------------------------------------------------------

    def start(self, *, immediate: bool = False) -> None:
        """Start syncing every ``config.sync_interval`` seconds."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_periodic(immediate), name="quotegen-sync")

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to end."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run_periodic(self, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self._config.sync_interval)
        while True:
            try:
                await self.sync()
            except Exception:
                _logger.exception("Periodic sync crashed; will retry next interval")
            await asyncio.sleep(self._config.sync_interval)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
