"""Client configuration for quotegen."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from quotegen._constants import BASE_URL, POSTS_PATH, REMOTE_CATEGORY
from quotegen.exceptions import QuoteConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _default_storage_path() -> Path:
    return Path.home() / ".quotegen" / "storage.json"


@dataclasses.dataclass(frozen=True)
class QuoteConfig:
    """Client configuration.

    Parameters
    ----------
    storage_path : Path
        JSON file backing the durable key/value storage.
    base_url : str
        Remote API base URL.
    posts_path : str
        Path of the endpoint used for both reading and publishing quotes.
    remote_category : str
        Category assigned to every quote learned from the remote endpoint.
    remote_limit : int or None
        Keep only the first ``remote_limit`` remote items per sync.
        ``None`` keeps the whole snapshot.
    sync_interval : float
        Seconds between periodic syncs.
    auto_sync : bool
        Start periodic sync when the client is entered.
    publish_on_add : bool
        Publish newly added quotes in the background.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    """

    storage_path: Path = dataclasses.field(default_factory=_default_storage_path)
    base_url: str = BASE_URL
    posts_path: str = POSTS_PATH
    remote_category: str = REMOTE_CATEGORY
    remote_limit: int | None = 10
    sync_interval: float = 15.0
    auto_sync: bool = False
    publish_on_add: bool = True
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.sync_interval <= 0:
            raise QuoteConfigError(f"sync_interval must be positive, got {self.sync_interval}")
        if self.request_timeout <= 0:
            raise QuoteConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.remote_limit is not None and self.remote_limit < 0:
            raise QuoteConfigError(f"remote_limit must not be negative, got {self.remote_limit}")
        if not self.remote_category.strip():
            raise QuoteConfigError("remote_category must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> QuoteConfig:
        """Create configuration from environment variables.

        Reads optional ``QUOTEGEN_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        QuoteConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "QUOTEGEN_BASE_URL": "base_url",
            "QUOTEGEN_POSTS_PATH": "posts_path",
            "QUOTEGEN_REMOTE_CATEGORY": "remote_category",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        path_env = env.get("QUOTEGEN_STORAGE_PATH")
        if path_env is not None:
            config_kwargs["storage_path"] = Path(path_env).expanduser()

        try:
            interval_env = env.get("QUOTEGEN_SYNC_INTERVAL")
            if interval_env is not None and "sync_interval" not in overrides:
                config_kwargs["sync_interval"] = float(interval_env)

            timeout_env = env.get("QUOTEGEN_REQUEST_TIMEOUT")
            if timeout_env is not None and "request_timeout" not in overrides:
                config_kwargs["request_timeout"] = float(timeout_env)

            limit_env = env.get("QUOTEGEN_REMOTE_LIMIT")
            if limit_env is not None and "remote_limit" not in overrides:
                # An empty value disables the limit.
                config_kwargs["remote_limit"] = int(limit_env) if limit_env.strip() else None
        except ValueError as exc:
            raise QuoteConfigError(f"Invalid numeric QUOTEGEN_* variable: {exc}") from exc

        if "auto_sync" not in overrides:
            config_kwargs["auto_sync"] = _env_bool(env.get("QUOTEGEN_AUTO_SYNC"), False)

        if "publish_on_add" not in overrides:
            config_kwargs["publish_on_add"] = _env_bool(env.get("QUOTEGEN_PUBLISH_ON_ADD"), True)

        config_kwargs.update(overrides)
        if "storage_path" in config_kwargs:
            config_kwargs["storage_path"] = Path(config_kwargs["storage_path"])

        return cls(**config_kwargs)
