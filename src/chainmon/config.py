"""Monitor configuration for chainmon."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Iterable
from typing import Any

from chainmon._constants import (
    DEFAULT_CYCLE_TIMEOUT,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_MIN_CHECK_INTERVAL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SUBSCRIBER_BUFFER,
    USER_AGENT,
)
from chainmon.exceptions import ChainMonConfigError
from chainmon.models.ids import SourceId

#: Sources polled when none are configured. The mirror needs a URL, so it
#: is enabled through ``mirror_url`` instead.
DIRECT_SOURCES: tuple[SourceId, ...] = tuple(source for source in SourceId if source is not SourceId.CHAIN_MONITOR)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, convert: Callable[[str], Any]) -> Any:
    try:
        return convert(value)
    except ValueError as exc:
        raise ChainMonConfigError(f"{env_key} must be a number, got {value!r}") from exc


def parse_sources(names: str | Iterable[str | SourceId]) -> tuple[SourceId, ...]:
    """Turn a comma list (or iterable) of source names into ids, keeping order."""
    if isinstance(names, str):
        names = [part for part in names.split(",")]
    result: list[SourceId] = []
    for name in names:
        cleaned = str(name).strip().lower()
        if not cleaned:
            continue
        try:
            source = SourceId(cleaned)
        except ValueError as exc:
            known = ", ".join(s.value for s in SourceId)
            raise ChainMonConfigError(f"Unknown source {name!r} (known: {known})") from exc
        if source not in result:
            result.append(source)
    return tuple(result)


@dataclasses.dataclass(frozen=True)
class MonitorConfig:
    """Monitor configuration.

    Parameters
    ----------
    listen_host : str
        Interface the HTTP/WebSocket server binds to.
    listen_port : int
        Port to listen on. ``0`` picks an ephemeral port.
    poll_interval : float
        Seconds to sleep between poll cycles.
    cycle_timeout : float
        Upper bound in seconds for one poll cycle across all sources.
    min_check_interval : float
        Lower bound in seconds on periodic re-checks of one chain by one
        source. Fast chains are still checked at most this often.
    subscriber_buffer : int
        Events buffered per subscriber before the oldest are dropped.
    http_timeout : float
        Total timeout for a single HTTP request to a provider.
    user_agent : str
        ``User-Agent`` header sent to providers.
    sources : tuple of SourceId
        Direct sources to poll.
    mirror_url : str or None
        Base URL of another chainmon instance to mirror. ``None`` disables
        the mirror source.
    periodic_check : bool
        Re-check chains periodically even when a source is not behind.
    """

    listen_host: str = "0.0.0.0"
    listen_port: int = 0
    poll_interval: float = DEFAULT_POLL_INTERVAL
    cycle_timeout: float = DEFAULT_CYCLE_TIMEOUT
    min_check_interval: float = DEFAULT_MIN_CHECK_INTERVAL
    subscriber_buffer: int = DEFAULT_SUBSCRIBER_BUFFER
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    user_agent: str = USER_AGENT
    sources: tuple[SourceId, ...] = DIRECT_SOURCES
    mirror_url: str | None = None
    periodic_check: bool = True

    def __post_init__(self) -> None:
        # Overrides may hand in plain strings; normalize once here.
        object.__setattr__(self, "sources", parse_sources(self.sources))
        if SourceId.CHAIN_MONITOR in self.sources:
            raise ChainMonConfigError("The chainmonitor source is configured through mirror_url")
        if not 0 <= self.listen_port <= 65535:
            raise ChainMonConfigError(f"listen_port out of range: {self.listen_port}")
        for name in ("poll_interval", "cycle_timeout", "http_timeout"):
            if getattr(self, name) <= 0:
                raise ChainMonConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_check_interval < 0:
            raise ChainMonConfigError(f"min_check_interval must not be negative, got {self.min_check_interval}")
        if self.subscriber_buffer < 1:
            raise ChainMonConfigError(f"subscriber_buffer must be at least 1, got {self.subscriber_buffer}")

    @classmethod
    def from_env(cls, **overrides: Any) -> MonitorConfig:
        """Create configuration from environment variables.

        Reads optional ``CHAINMON_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MonitorConfig
            Populated configuration.

        Raises
        ------
        ChainMonConfigError
            If a variable holds an invalid value.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        for env_key, field_name in {
            "CHAINMON_LISTEN_HOST": "listen_host",
            "CHAINMON_USER_AGENT": "user_agent",
        }.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMBER_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "CHAINMON_LISTEN_PORT": ("listen_port", int),
            "CHAINMON_POLL_INTERVAL": ("poll_interval", float),
            "CHAINMON_CYCLE_TIMEOUT": ("cycle_timeout", float),
            "CHAINMON_MIN_CHECK_INTERVAL": ("min_check_interval", float),
            "CHAINMON_SUBSCRIBER_BUFFER": ("subscriber_buffer", int),
            "CHAINMON_HTTP_TIMEOUT": ("http_timeout", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, convert)

        sources_env = env.get("CHAINMON_SOURCES")
        if sources_env is not None and "sources" not in overrides:
            config_kwargs["sources"] = parse_sources(sources_env)

        mirror_env = env.get("CHAINMON_MIRROR_URL")
        if mirror_env:
            config_kwargs["mirror_url"] = mirror_env

        if "periodic_check" not in overrides:
            config_kwargs["periodic_check"] = _env_bool(env.get("CHAINMON_PERIODIC_CHECK"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
