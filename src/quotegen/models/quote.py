"""Quote record and the JSON codec for quote sequences."""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
    model_validator,
)

from quotegen._constants import LOCAL_ID_MIN_DIGITS


class QuoteOrigin(StrEnum):
    """Where a quote record was first created."""

    LOCAL = "local"
    REMOTE = "remote"


def origin_for_id(quote_id: int) -> QuoteOrigin:
    """Guess the origin of a record stored without one.

    Local ids are millisecond clock readings (13 digits today); remote ids
    are small sequence numbers.
    """
    return QuoteOrigin.LOCAL if len(str(abs(quote_id))) >= LOCAL_ID_MIN_DIGITS else QuoteOrigin.REMOTE


def clean_field(value: Any, name: str) -> str:
    """Return *value* stripped, or raise ``ValueError`` if it is not usable text."""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{name} must be non-empty")
    return stripped


class Quote(BaseModel):
    """A single quote.

    Parameters
    ----------
    id : int
        Unique within the local sequence.
    text : str
        Quote text, stripped and non-empty.
    category : str
        Category label, stripped and non-empty.
    origin : QuoteOrigin
        ``local`` for quotes created on this side (user input, import,
        defaults), ``remote`` for quotes learned from the remote endpoint.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    text: str
    category: str
    origin: QuoteOrigin = QuoteOrigin.LOCAL

    @model_validator(mode="before")
    @classmethod
    def _infer_origin(cls, values: Any) -> Any:
        if not isinstance(values, dict) or values.get("origin") is not None:
            return values
        quote_id = values.get("id")
        if isinstance(quote_id, int) and not isinstance(quote_id, bool):
            return {**values, "origin": origin_for_id(quote_id)}
        return values

    @field_validator("id", mode="before")
    @classmethod
    def _reject_bool_id(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("id must be an integer")
        return value

    @field_validator("text", "category", mode="before")
    @classmethod
    def _strip_required(cls, value: Any, info: ValidationInfo) -> str:
        return clean_field(value, info.field_name)

    def same_payload(self, other: Quote) -> bool:
        """Whether *other* carries the same text and category."""
        return self.text == other.text and self.category == other.category


class Conflict(BaseModel):
    """A local and a remote record sharing an id but not a payload."""

    model_config = ConfigDict(frozen=True)

    local: Quote
    remote: Quote

    @property
    def id(self) -> int:
        return self.local.id


class MergeResult(BaseModel):
    """Outcome of merging a remote snapshot into the local sequence."""

    model_config = ConfigDict(frozen=True)

    quotes: tuple[Quote, ...] = ()
    conflicts: tuple[Conflict, ...] = ()
    added: tuple[Quote, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.conflicts or self.added)


class RemotePost(BaseModel):
    """An item from the remote posts endpoint.

    Only ``id`` and ``title`` matter; the title becomes the quote text.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int
    title: str
    body: str = ""
    user_id: int | None = Field(default=None, validation_alias=AliasChoices("userId", "user_id"))

    def to_quote(self, category: str) -> Quote:
        return Quote(id=self.id, text=self.title, category=category, origin=QuoteOrigin.REMOTE)


_QUOTE_LIST = TypeAdapter(list[Quote])


def validate_quotes(items: Any) -> list[Quote]:
    """Validate a decoded JSON value as a quote sequence.

    Raises ``ValueError`` (pydantic's ``ValidationError`` included) when an
    entry is invalid or two entries share an id.
    """
    quotes = _QUOTE_LIST.validate_python(items)
    seen: set[int] = set()
    for quote in quotes:
        if quote.id in seen:
            raise ValueError(f"duplicate quote id {quote.id}")
        seen.add(quote.id)
    return quotes


def dump_quotes(quotes: Iterable[Quote], *, indent: int | None = None) -> str:
    """Serialize quotes to a JSON array."""
    payload = [quote.model_dump(mode="json") for quote in quotes]
    if indent is None:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def parse_quotes(text: str | bytes) -> list[Quote]:
    """Inverse of :func:`dump_quotes`."""
    return validate_quotes(json.loads(text))
