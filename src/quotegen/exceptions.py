"""Custom exception hierarchy for quotegen."""

from __future__ import annotations


class QuoteError(Exception):
    """Base exception for all quotegen errors."""


class QuoteConfigError(QuoteError):
    """Invalid or missing configuration."""


class QuoteValidationError(QuoteError):
    """A quote field was missing or empty after trimming."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class QuoteImportError(QuoteValidationError):
    """An imported document was rejected as a whole.

    ``index`` is the position of the first offending entry, or ``None``
    when the document itself is not a JSON array.
    """

    def __init__(self, message: str, *, index: int | None = None, field: str = "") -> None:
        self.index = index
        super().__init__(message, field=field)


class QuoteTransportError(QuoteError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class QuoteDecodeError(QuoteTransportError):
    """The remote answered, but the body could not be turned into quotes."""
