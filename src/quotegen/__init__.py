"""quotegen - Async quote collection with local persistence and remote sync."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("quotegen")
except PackageNotFoundError:
    __version__ = "0+local"
from quotegen.client import QuoteClient
from quotegen.config import QuoteConfig
from quotegen.exceptions import (
    QuoteConfigError,
    QuoteDecodeError,
    QuoteError,
    QuoteImportError,
    QuoteTransportError,
    QuoteValidationError,
)
from quotegen.merge import merge_quotes
from quotegen.models import (
    Conflict,
    MergeResult,
    Quote,
    QuoteOrigin,
    dump_quotes,
    parse_quotes,
)
from quotegen.storage import JsonFileStorage, MemoryStorage, Storage
from quotegen.store import QuoteStore
from quotegen.sync import QuoteSync, SyncResult

__all__ = [
    "__version__",
    "Conflict",
    "JsonFileStorage",
    "MemoryStorage",
    "MergeResult",
    "Quote",
    "QuoteClient",
    "QuoteConfig",
    "QuoteConfigError",
    "QuoteDecodeError",
    "QuoteError",
    "QuoteImportError",
    "QuoteOrigin",
    "QuoteStore",
    "QuoteSync",
    "QuoteTransportError",
    "QuoteValidationError",
    "Storage",
    "SyncResult",
    "dump_quotes",
    "merge_quotes",
    "parse_quotes",
]
