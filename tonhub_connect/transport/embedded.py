"""Transport forwarding relay calls to an in-app bridge.

Wallet apps that embed a dApp browser expose a bridge object able to execute
relay methods directly. The bridge is injected instead of being looked up
from global state.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Protocol

from ..errors import TonhubProviderError


class EmbeddedBridge(Protocol):
    def call(self, method: str, args: dict[str, Any]) -> Awaitable[Any]: ...


class TonhubEmbeddedTransport:
    """Transport backed by an injected in-app bridge."""

    def __init__(self, bridge: EmbeddedBridge | None) -> None:
        if not self.is_available(bridge):
            raise TonhubProviderError("In-app bridge not found")
        self._bridge = bridge

    @staticmethod
    def is_available(bridge: object | None) -> bool:
        return bridge is not None and callable(getattr(bridge, "call", None))

    async def call(self, method: str, args: dict[str, Any]) -> Any:
        return await self._bridge.call(method, args)
