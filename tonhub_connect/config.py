"""Connector configuration.

Configuration is plain data: a frozen :class:`ConnectorConfig` built either
directly, from a mapping, or from a YAML file such as::

    network: testnet
    endpoint: https://connect.tonhubapi.com
    request_timeout: 5
    poll_interval: 1
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ENDPOINT = "https://connect.tonhubapi.com"
DEFAULT_LINK_ENDPOINT = "connect.tonhubapi.com"


class ConfigurationError(ValueError):
    """Raised when connector configuration is missing or invalid."""


class Network(Enum):
    """Blockchain network a connector is bound to."""

    MAINNET = "mainnet"
    TESTNET = "testnet"

    @classmethod
    def parse(cls, value: Network | str) -> Network:
        """Parse a network name, accepting ``sandbox`` as an alias of testnet."""
        if isinstance(value, Network):
            return value
        if value == "sandbox":
            return cls.TESTNET
        try:
            return cls(value)
        except ValueError as err:
            raise ConfigurationError(f"Unknown network: {value!r}") from err

    @property
    def is_testnet(self) -> bool:
        return self is Network.TESTNET


@dataclass(frozen=True, slots=True)
class ConnectorConfig:
    """Runtime settings for :class:`~tonhub_connect.connector.TonhubConnector`.

    Attributes:
        network: Network the connector accepts sessions for.
        endpoint: Base URL of the relay HTTP API.
        link_endpoint: Relay host embedded into connect deep links.
        request_timeout: Total timeout for regular relay calls (seconds).
        long_poll_timeout: Total timeout for ``session_wait`` calls (seconds).
        poll_interval: Delay between job/session polls (seconds).
        max_failures: Transport failures tolerated before giving up.
        min_backoff: Lower bound of the retry delay (seconds).
        max_backoff: Upper bound of the retry delay (seconds).
    """

    network: Network = Network.MAINNET
    endpoint: str = DEFAULT_ENDPOINT
    link_endpoint: str = DEFAULT_LINK_ENDPOINT
    request_timeout: float = 5.0
    long_poll_timeout: float = 40.0
    poll_interval: float = 1.0
    max_failures: int = 5
    min_backoff: float = 0.25
    max_backoff: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "network", Network.parse(self.network))
        if self.max_failures < 1:
            raise ConfigurationError("max_failures must be at least 1")
        if self.min_backoff < 0 or self.max_backoff < self.min_backoff:
            raise ConfigurationError("Invalid backoff bounds")
        for name in ("request_timeout", "long_poll_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")


def config_from_mapping(data: Mapping[str, Any]) -> ConnectorConfig:
    """Build a config from a mapping, rejecting unknown keys."""
    known = {f.name for f in fields(ConnectorConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
    try:
        return ConnectorConfig(**data)
    except TypeError as err:
        raise ConfigurationError(str(err)) from err


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file contents."""
    if not path.exists():
        raise ConfigurationError(f"File not found: {path}")
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root must be a mapping: {path}")
    return data


def load_config(path: Path | str) -> ConnectorConfig:
    """Load connector configuration from a YAML file.

    Raises:
        ConfigurationError: If the file is missing or holds invalid values.
    """
    return config_from_mapping(_load_yaml(Path(path)))
