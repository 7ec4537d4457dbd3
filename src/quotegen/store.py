"""Quote store: the single owner of the local sequence.

The in-memory sequence is mirrored to durable storage and rewritten
wholesale on every mutation. Nothing else is allowed to mutate it; the
sync layer hands merged sequences back through :meth:`QuoteStore.replace`.
"""

from __future__ import annotations

import json
import logging
import random
import time
from collections.abc import Callable, Iterable
from typing import Any

from quotegen._constants import (
    ALL_CATEGORIES,
    DEFAULT_QUOTES,
    LAST_VIEWED_KEY,
    QUOTES_KEY,
    SELECTED_CATEGORY_KEY,
)
from quotegen.exceptions import QuoteImportError, QuoteValidationError
from quotegen.models import Quote, QuoteOrigin, dump_quotes, validate_quotes
from quotegen.models.quote import clean_field
from quotegen.storage import MemoryStorage, Storage

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class QuoteStore:
    """In-memory quote sequence backed by a :class:`~quotegen.storage.Storage`.

    Parameters
    ----------
    storage : Storage
        Durable storage for the sequence and the selected category.
    session : Storage or None
        Transient storage for the last viewed index. Defaults to a fresh
        :class:`~quotegen.storage.MemoryStorage`.
    clock : callable
        Millisecond clock used to mint ids for local quotes.
    rng : random.Random or None
        Source of randomness for :meth:`random_quote`.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        session: Storage | None = None,
        clock: Callable[[], int] = _now_ms,
        rng: random.Random | None = None,
    ) -> None:
        self._storage = storage
        self._session = session if session is not None else MemoryStorage()
        self._clock = clock
        self._rng = rng or random.Random()
        self._quotes: list[Quote] = []
        self._last_id = 0

    # ------------------------------------------------------------------
    # Sequence access
    # ------------------------------------------------------------------

    @property
    def quotes(self) -> tuple[Quote, ...]:
        return tuple(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def get(self, quote_id: int) -> Quote | None:
        for quote in self._quotes:
            if quote.id == quote_id:
                return quote
        return None

    def _next_id(self) -> int:
        """Mint a fresh id: a clock reading, bumped past every id already seen."""
        candidate = max(self._clock(), self._last_id + 1)
        self._last_id = candidate
        return candidate

    def _track_ids(self) -> None:
        self._last_id = max((quote.id for quote in self._quotes), default=self._last_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> tuple[Quote, ...]:
        """Read the durable copy, falling back to the default quotes.

        Absent or malformed data is never raised: the defaults are installed
        and persisted instead.
        """
        raw = self._storage.get_item(QUOTES_KEY)
        quotes = self._decode(raw) if raw is not None else None

        if quotes is None:
            if raw is not None:
                _logger.warning("Stored quotes are malformed; restoring defaults")
            self._quotes = []
            self._track_ids()
            self._quotes = [
                Quote(id=self._next_id(), text=text, category=category, origin=QuoteOrigin.LOCAL)
                for text, category in DEFAULT_QUOTES
            ]
            self.save()
        else:
            self._quotes = quotes
            self._track_ids()
            _logger.debug("Loaded %d quote(s) from storage", len(quotes))
        return self.quotes

    def _decode(self, raw: str) -> list[Quote] | None:
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if not isinstance(items, list):
            return None

        # Records written before ids existed get fresh local ids.
        self._last_id = max(
            (item["id"] for item in items if isinstance(item, dict) and type(item.get("id")) is int),
            default=0,
        )
        prepared: list[Any] = []
        for item in items:
            if isinstance(item, dict) and item.get("id") is None:
                item = {**item, "id": self._next_id(), "origin": QuoteOrigin.LOCAL.value}
            prepared.append(item)

        try:
            return validate_quotes(prepared)
        except ValueError:
            _logger.debug("Stored quotes failed validation", exc_info=True)
            return None

    def save(self) -> None:
        """Overwrite the durable copy with the whole in-memory sequence."""
        self._persist(self._quotes)

    def _persist(self, quotes: list[Quote]) -> None:
        self._storage.set_item(QUOTES_KEY, dump_quotes(quotes))
        _logger.debug("Saved %d quote(s)", len(quotes))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, text: str, category: str) -> Quote:
        """Append a new local quote and persist.

        Raises
        ------
        QuoteValidationError
            If either field is empty after trimming. Nothing is changed.
        """
        clean_text = _require(text, "text")
        clean_category = _require(category, "category")
        quote = Quote(id=self._next_id(), text=clean_text, category=clean_category, origin=QuoteOrigin.LOCAL)
        # The in-memory sequence only changes once the write succeeded.
        quotes = [*self._quotes, quote]
        self._persist(quotes)
        self._quotes = quotes
        _logger.info("Added quote id=%d category=%s", quote.id, quote.category)
        return quote

    def replace(self, quotes: Iterable[Quote]) -> None:
        """Install a new sequence (typically a merge result) and persist."""
        installed = list(quotes)
        self._persist(installed)
        self._quotes = installed
        self._track_ids()

    # ------------------------------------------------------------------
    # Categories and display
    # ------------------------------------------------------------------

    def categories(self) -> list[str]:
        """Distinct categories, sorted."""
        return sorted({quote.category for quote in self._quotes})

    @property
    def selected_category(self) -> str:
        return self._storage.get_item(SELECTED_CATEGORY_KEY) or ALL_CATEGORIES

    def select_category(self, category: str) -> None:
        """Remember the category filter across restarts. ``"all"`` clears it."""
        value = category.strip() or ALL_CATEGORIES
        self._storage.set_item(SELECTED_CATEGORY_KEY, value)

    def filtered(self, category: str | None = None) -> list[Quote]:
        """Quotes in *category*, or in the selected category when omitted."""
        wanted = self.selected_category if category is None else category
        if wanted == ALL_CATEGORIES:
            return list(self._quotes)
        return [quote for quote in self._quotes if quote.category == wanted]

    def random_quote(self, category: str | None = None) -> Quote | None:
        """Pick a random quote from the filtered view and remember it as last viewed."""
        candidates = self.filtered(category)
        if not candidates:
            return None
        quote = self._rng.choice(candidates)
        self._session.set_item(LAST_VIEWED_KEY, str(self._quotes.index(quote)))
        return quote

    def last_viewed(self) -> Quote | None:
        raw = self._session.get_item(LAST_VIEWED_KEY)
        if raw is None:
            return None
        try:
            index = int(raw)
        except ValueError:
            return None
        if 0 <= index < len(self._quotes):
            return self._quotes[index]
        return None

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        """The whole sequence as an indented JSON document."""
        return dump_quotes(self._quotes, indent=2)

    def import_json(self, document: str | bytes) -> list[Quote]:
        """Append every quote in a JSON array document.

        Each entry must be an object with non-empty string ``text`` and
        ``category``. Any invalid entry rejects the whole document and
        leaves the sequence unchanged. Imported quotes get fresh local ids.
        """
        try:
            items = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise QuoteImportError(f"Import is not valid JSON: {exc}") from exc
        if not isinstance(items, list):
            raise QuoteImportError("Import must be a JSON array of quotes")

        validated: list[tuple[str, str]] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise QuoteImportError(f"Entry {index} is not an object", index=index)
            try:
                text = clean_field(item.get("text"), "text")
                category = clean_field(item.get("category"), "category")
            except ValueError as exc:
                raise QuoteImportError(f"Entry {index}: {exc}", index=index) from exc
            validated.append((text, category))

        imported = [
            Quote(id=self._next_id(), text=text, category=category, origin=QuoteOrigin.LOCAL)
            for text, category in validated
        ]
        quotes = [*self._quotes, *imported]
        self._persist(quotes)
        self._quotes = quotes
        _logger.info("Imported %d quote(s)", len(imported))
        return imported


def _require(value: str, name: str) -> str:
    try:
        return clean_field(value, name)
    except ValueError as exc:
        raise QuoteValidationError(f"Please enter both quote text and category ({exc})", field=name) from exc
