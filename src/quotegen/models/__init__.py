"""Data models for quotes and remote payloads."""

from quotegen.models.quote import (
    Conflict,
    MergeResult,
    Quote,
    QuoteOrigin,
    RemotePost,
    dump_quotes,
    origin_for_id,
    parse_quotes,
    validate_quotes,
)

__all__ = [
    "Conflict",
    "MergeResult",
    "Quote",
    "QuoteOrigin",
    "RemotePost",
    "dump_quotes",
    "origin_for_id",
    "parse_quotes",
    "validate_quotes",
]
