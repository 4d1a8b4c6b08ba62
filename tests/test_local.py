"""Tests for the in-app provider connector and embedded transport."""

from __future__ import annotations

import threading
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pytoniq_core import begin_cell

from tonhub_connect import (
    LocalSignRequest,
    LocalTransactionRequest,
    Rejected,
    SignSuccess,
    TonhubEmbeddedTransport,
    TonhubLocalConnector,
    TonhubProtocolError,
    TonhubProviderError,
    TransactionSuccess,
)
from tonhub_connect.cells import cell_from_boc, cell_to_boc, text_to_cell
from tonhub_connect.local import PROVIDER_MARKER

from .conftest import WalletFixture, make_local_config


class FakeProvider:
    """Provider object injected by the wallet's dApp browser."""

    def __init__(self, config: Any, reply: Any = None, *, threaded: bool = False):
        setattr(self, PROVIDER_MARKER, True)
        self.config = config
        self.reply = reply
        self.threaded = threaded
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def call(self, name: str, args: dict[str, Any], callback) -> None:
        self.calls.append((name, args))
        if self.threaded:
            threading.Thread(target=callback, args=(self.reply,)).start()
        else:
            callback(self.reply)


@pytest.fixture
def local_config(wallet: WalletFixture) -> dict[str, Any]:
    return make_local_config(wallet)


def _sent(result: str) -> dict[str, Any]:
    return {"type": "ok", "data": {"state": "sent", "result": result}}


class TestAvailability:
    """Test provider detection."""

    def test_valid_provider(self, local_config: dict[str, Any]) -> None:
        """Test a marked provider with a valid config is available."""
        assert TonhubLocalConnector.is_available(FakeProvider(local_config))

    def test_missing_provider(self) -> None:
        """Test no provider means not available."""
        assert not TonhubLocalConnector.is_available(None)
        with pytest.raises(TonhubProviderError, match="Not running in dApp browser"):
            TonhubLocalConnector("mainnet", None)

    def test_unmarked_provider(self, local_config: dict[str, Any]) -> None:
        """Test a provider without the marker is not available."""
        provider = FakeProvider(local_config)
        setattr(provider, PROVIDER_MARKER, False)
        assert not TonhubLocalConnector.is_available(provider)

    def test_unsupported_config_version(self, local_config: dict[str, Any]) -> None:
        """Test an unknown config version is not available."""
        local_config["version"] = 2
        assert not TonhubLocalConnector.is_available(FakeProvider(local_config))

    def test_unknown_platform(self, local_config: dict[str, Any]) -> None:
        """Test an unknown platform is not available."""
        local_config["platform"] = "desktop"
        assert not TonhubLocalConnector.is_available(FakeProvider(local_config))

    def test_network_mismatch(self, local_config: dict[str, Any]) -> None:
        """Test binding to a provider on another network fails."""
        with pytest.raises(TonhubProviderError, match="Invalid network"):
            TonhubLocalConnector("testnet", FakeProvider(local_config))

    def test_config_is_exposed(
        self, local_config: dict[str, Any], wallet: WalletFixture
    ) -> None:
        """Test the connector exposes the parsed provider config."""
        connector = TonhubLocalConnector("mainnet", FakeProvider(local_config))
        assert connector.config.address == wallet.address
        assert connector.config.subkey.domain == "app.example"
        assert TonhubLocalConnector.verify_wallet_config(connector.config)


class TestRequestTransaction:
    """Test local transfer requests."""

    async def test_sent(self, local_config: dict[str, Any]) -> None:
        """Test a sent transfer returns the wallet result."""
        provider = FakeProvider(local_config, _sent("boc"))
        connector = TonhubLocalConnector("mainnet", provider)

        res = await connector.request_transaction(
            LocalTransactionRequest(to="0:" + "12" * 32, value="1000", text="hi")
        )

        assert res == TransactionSuccess(response="boc")
        assert provider.calls == [
            (
                "tx",
                {
                    "network": "mainnet",
                    "to": "0:" + "12" * 32,
                    "value": "1000",
                    "stateInit": None,
                    "text": "hi",
                    "payload": None,
                },
            )
        ]

    async def test_rejected(self, local_config: dict[str, Any]) -> None:
        """Test a rejected transfer is reported as rejected."""
        provider = FakeProvider(local_config, {"type": "ok", "data": {"state": "rejected"}})
        connector = TonhubLocalConnector("mainnet", provider)

        res = await connector.request_transaction(
            LocalTransactionRequest(to="0:" + "12" * 32, value="1")
        )

        assert res == Rejected()

    async def test_callback_from_another_thread(
        self, local_config: dict[str, Any]
    ) -> None:
        """Test a provider answering from a foreign thread resolves the request."""
        provider = FakeProvider(local_config, _sent("boc"), threaded=True)
        connector = TonhubLocalConnector("mainnet", provider)

        res = await connector.request_transaction(
            LocalTransactionRequest(to="0:" + "12" * 32, value="1")
        )

        assert res.type == "success"

    async def test_provider_error(self, local_config: dict[str, Any]) -> None:
        """Test a provider error surfaces as TonhubProviderError."""
        provider = FakeProvider(local_config, {"type": "error", "message": "Locked"})
        connector = TonhubLocalConnector("mainnet", provider)

        with pytest.raises(TonhubProviderError, match="Locked"):
            await connector.request_transaction(
                LocalTransactionRequest(to="0:" + "12" * 32, value="1")
            )

    @pytest.mark.parametrize(
        "reply",
        [
            None,
            {"type": "weird"},
            {"type": "ok", "data": {"state": "pending"}},
            {"type": "ok", "data": {"state": "sent"}},
        ],
    )
    async def test_unknown_response(
        self, local_config: dict[str, Any], reply: Any
    ) -> None:
        """Test malformed provider replies raise TonhubProtocolError."""
        connector = TonhubLocalConnector("mainnet", FakeProvider(local_config, reply))

        with pytest.raises(TonhubProtocolError, match="Unknown response"):
            await connector.request_transaction(
                LocalTransactionRequest(to="0:" + "12" * 32, value="1")
            )


class TestRequestSign:
    """Test local sign requests."""

    async def test_sign_sends_cells(self, local_config: dict[str, Any]) -> None:
        """Test the text and payload are sent as BOC-encoded cells."""
        provider = FakeProvider(local_config, _sent("c2lnbmF0dXJl"))
        connector = TonhubLocalConnector("mainnet", provider)
        payload = begin_cell().store_uint(7, 16).end_cell()

        res = await connector.request_sign(
            LocalSignRequest(text="sign me", payload=cell_to_boc(payload))
        )

        assert res == SignSuccess(signature="c2lnbmF0dXJl")
        name, args = provider.calls[0]
        assert name == "sign"
        assert args["network"] == "mainnet"
        assert cell_from_boc(args["textCell"]).hash == text_to_cell("sign me").hash
        assert cell_from_boc(args["payloadCell"]).hash == payload.hash

    async def test_sign_defaults_to_empty_cells(
        self, local_config: dict[str, Any]
    ) -> None:
        """Test a bare sign request sends empty cells."""
        provider = FakeProvider(local_config, {"type": "ok", "data": {"state": "rejected"}})
        connector = TonhubLocalConnector("mainnet", provider)

        res = await connector.request_sign(LocalSignRequest())

        assert res == Rejected()
        _, args = provider.calls[0]
        empty = begin_cell().end_cell().hash
        assert cell_from_boc(args["textCell"]).hash == empty
        assert cell_from_boc(args["payloadCell"]).hash == empty


    async def test_malformed_payload_is_refused(
        self, local_config: dict[str, Any]
    ) -> None:
        """Test an invalid payload BOC raises ValueError before calling the wallet."""
        provider = FakeProvider(local_config, _sent("c2lnbmF0dXJl"))
        connector = TonhubLocalConnector("mainnet", provider)

        with pytest.raises(ValueError, match="Invalid payload BOC"):
            await connector.request_sign(LocalSignRequest(text="hi", payload="AAAA"))

        assert provider.calls == []


class TestEmbeddedTransport:
    """Test the in-app bridge transport."""

    async def test_forwards_calls(self) -> None:
        """Test relay calls are forwarded to the bridge."""
        bridge = AsyncMock()
        bridge.call.return_value = {"ok": True}
        transport = TonhubEmbeddedTransport(bridge)

        res = await transport.call("session_get", {"id": "abc"})

        assert res == {"ok": True}
        bridge.call.assert_awaited_once_with("session_get", {"id": "abc"})

    def test_missing_bridge(self) -> None:
        """Test construction fails without a bridge."""
        assert not TonhubEmbeddedTransport.is_available(None)
        with pytest.raises(TonhubProviderError, match="In-app bridge not found"):
            TonhubEmbeddedTransport(None)
