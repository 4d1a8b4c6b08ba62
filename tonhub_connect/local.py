"""Connector for apps running inside the wallet's dApp browser.

In local mode the wallet exposes a provider object instead of the relay: it
carries ``__IS_TON_X = True``, a versioned ``config`` describing the wallet
and its delegated subkey, and ``call(name, args, callback)`` for ``tx`` and
``sign`` requests. The provider is passed in explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .cells import cell_to_boc, empty_cell, parse_optional_boc, text_to_cell
from .config import Network
from .errors import TonhubProtocolError, TonhubProviderError
from .models import (
    LocalConfig,
    LocalSignRequest,
    LocalSignResponse,
    LocalTransactionRequest,
    LocalTransactionResponse,
    Rejected,
    SignSuccess,
    TransactionSuccess,
)
from .protocol import parse_local_config
from .verify import verify_local_config

_LOGGER = logging.getLogger(__name__)

PROVIDER_MARKER = "__IS_TON_X"


def _provider_config(provider: object | None) -> dict[str, Any]:
    """Validate a provider object and return its parsed config."""
    if provider is None:
        raise TonhubProviderError("Not running in dApp browser")
    if getattr(provider, PROVIDER_MARKER, None) is not True:
        raise TonhubProviderError("Not running in dApp browser")
    if not callable(getattr(provider, "call", None)):
        raise TonhubProviderError("Provider does not expose call()")
    try:
        return parse_local_config(getattr(provider, "config", None))
    except TonhubProtocolError as err:
        raise TonhubProviderError("Not running in dApp browser") from err


class TonhubLocalConnector:
    """Request transactions and signatures from the hosting wallet app."""

    @staticmethod
    def verify_wallet_config(config: LocalConfig) -> bool:
        """Check the provider's wallet config and delegated subkey."""
        return verify_local_config(config)

    @staticmethod
    def is_available(provider: object | None) -> bool:
        """True if ``provider`` is a usable in-app provider."""
        try:
            _provider_config(provider)
        except TonhubProviderError:
            return False
        return True

    def __init__(self, network: Network | str, provider: object | None) -> None:
        """Bind to the provider.

        Raises:
            TonhubProviderError: If the provider is missing or invalid, or is
                bound to another network.
        """
        network = Network.parse(network)
        raw = _provider_config(provider)
        if raw["network"] != network.value:
            raise TonhubProviderError("Invalid network")
        self.network = network
        self.config = LocalConfig.from_provider(raw)
        self._provider = provider

    async def request_transaction(
        self, request: LocalTransactionRequest
    ) -> LocalTransactionResponse:
        """Ask the wallet app to send a transfer."""
        res = await self._do_request(
            "tx",
            {
                "network": self.network.value,
                "to": request.to,
                "value": request.value,
                "stateInit": request.state_init or None,
                "text": request.text or None,
                "payload": request.payload or None,
            },
        )
        if res["state"] == "rejected":
            return Rejected()
        return TransactionSuccess(response=res["result"])

    async def request_sign(self, request: LocalSignRequest) -> LocalSignResponse:
        """Ask the wallet app to sign a comment and optional payload cell.

        Raises:
            ValueError: If the payload is not a valid BOC.
        """
        payload = parse_optional_boc(request.payload, "payload")
        if payload is None:
            payload = empty_cell()
        res = await self._do_request(
            "sign",
            {
                "network": self.network.value,
                "textCell": cell_to_boc(text_to_cell(request.text or "")),
                "payloadCell": cell_to_boc(payload),
            },
        )
        if res["state"] == "rejected":
            return Rejected()
        return SignSuccess(signature=res["result"])

    async def _do_request(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        """Invoke the provider and unwrap its ``{type, data}`` reply.

        Raises:
            TonhubProviderError: If the provider reports an error.
            TonhubProtocolError: If the reply has an unknown shape.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _resolve(res: Any) -> None:
            if not future.done():
                future.set_result(res)

        _LOGGER.debug("Local %s request", name)
        self._provider.call(
            name, args, lambda res: loop.call_soon_threadsafe(_resolve, res)
        )
        res = await future

        if not isinstance(res, dict):
            raise TonhubProtocolError("Unknown response")
        if res.get("type") == "error":
            raise TonhubProviderError(str(res.get("message", "Provider error")))
        if res.get("type") != "ok":
            raise TonhubProtocolError("Unknown response")
        data = res.get("data")
        if not isinstance(data, dict) or data.get("state") not in ("sent", "rejected"):
            raise TonhubProtocolError("Unknown response")
        if data["state"] == "sent" and not isinstance(data.get("result"), str):
            raise TonhubProtocolError("Unknown response")
        return data
