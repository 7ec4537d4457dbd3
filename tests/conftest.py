from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteTransportError
from quotegen.storage import MemoryStorage
from quotegen.store import QuoteStore

BASE_MS = 1_700_000_000_000


@dataclass
class FakeRemote:
    """In-memory stand-in for the posts endpoint, usable as a ``Transport``."""

    posts: list[Any] = field(default_factory=list)
    fail_get: Exception | None = None
    fail_post: Exception | None = None
    get_delay: float = 0.0
    gets: int = 0
    published: list[dict[str, Any]] = field(default_factory=list)
    active_gets: int = 0
    max_active_gets: int = 0

    async def get_json(self, endpoint: str) -> Any:
        self.gets += 1
        self.active_gets += 1
        self.max_active_gets = max(self.max_active_gets, self.active_gets)
        try:
            if self.get_delay:
                await asyncio.sleep(self.get_delay)
            if self.fail_get is not None:
                raise self.fail_get
            return copy.deepcopy(self.posts)
        finally:
            self.active_gets -= 1

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> Any:
        if self.fail_post is not None:
            raise self.fail_post
        self.published.append(dict(payload))
        return {"id": 101, **payload}


def post(post_id: int, title: str) -> dict[str, Any]:
    return {"userId": 1, "id": post_id, "title": title, "body": f"body of {post_id}"}


def transport_error(endpoint: str = "/posts") -> QuoteTransportError:
    return QuoteTransportError(f"Request to {endpoint} failed: boom", endpoint=endpoint)


def fixed_clock(start: int = BASE_MS):
    return lambda: start


@pytest.fixture
def config(tmp_path) -> QuoteConfig:
    return QuoteConfig(storage_path=tmp_path / "storage.json", remote_limit=None)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> QuoteStore:
    quote_store = QuoteStore(storage, clock=fixed_clock())
    quote_store.load()
    return quote_store


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()
