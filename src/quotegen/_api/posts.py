"""Remote posts endpoint: read a snapshot, publish single quotes."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from quotegen._transport import Transport
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteDecodeError
from quotegen.models import Quote, RemotePost

_logger = logging.getLogger(__name__)


def parse_remote_items(items: Any, config: QuoteConfig, *, endpoint: str = "") -> list[Quote]:
    """Map a decoded posts listing to remote quotes.

    A body that is not a JSON array is a decode failure. Individual items
    that cannot form a valid quote are skipped.
    """
    if not isinstance(items, list):
        raise QuoteDecodeError(
            f"Expected a JSON array from {endpoint}, got {type(items).__name__}",
            endpoint=endpoint,
        )
    if config.remote_limit is not None:
        items = items[: config.remote_limit]

    quotes: list[Quote] = []
    for item in items:
        try:
            quotes.append(RemotePost.model_validate(item).to_quote(config.remote_category))
        except ValidationError:
            _logger.warning("Skipping unusable remote item: %r", item)
    return quotes


async def fetch_remote_quotes(config: QuoteConfig, transport: Transport) -> list[Quote]:
    """Fetch the remote snapshot as a list of quotes."""
    endpoint = config.posts_path
    decoded = await transport.get_json(endpoint)
    quotes = parse_remote_items(decoded, config, endpoint=endpoint)
    _logger.debug("Fetched %d remote quote(s)", len(quotes))
    return quotes


async def post_quote(config: QuoteConfig, transport: Transport, quote: Quote) -> Any:
    """Send one serialized quote to the remote endpoint.

    The response body is returned as-is; callers do not depend on it.
    """
    return await transport.post_json(config.posts_path, quote.model_dump(mode="json"))
