"""Pytest configuration and fixtures for tonhub_connect tests."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from nacl.signing import SigningKey
from pytoniq_core import Address, StateInit, WalletV4Data, begin_cell

from tonhub_connect.cells import (
    build_local_wallet_proof,
    build_subkey_binding_proof,
    build_wallet_binding_proof,
    cell_to_boc,
)
from tonhub_connect.config import ConnectorConfig, Network
from tonhub_connect.crypto import decode_base64, encode_base64, id_from_seed, safe_sign
from tonhub_connect.models import WalletConfig
from tonhub_connect.wallets import WALLET_V4_CODE

WALLET_ID = 698983191
ENDPOINT = "https://wallet.example/api"
SESSION_SEED = encode_base64(bytes(range(32)))
APP_PUBLIC_KEY = encode_base64(bytes(range(100, 132)))


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    if json_data is not None:
        response.json.return_value = json_data
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    return response


# -----------------------------------------------------------------------------
# Wallet material
# -----------------------------------------------------------------------------


@dataclass
class WalletFixture:
    """A v4 wallet with its signing key and relay-facing config blob."""

    signing_key: SigningKey
    wallet_config: str
    address: str

    @property
    def public_key(self) -> bytes:
        return bytes(self.signing_key.verify_key)

    @property
    def secret_key(self) -> bytes:
        return bytes(self.signing_key)


def make_wallet(seed: bytes = b"\x07" * 32, workchain: int = 0) -> WalletFixture:
    """Build a v4 wallet config blob and its raw address."""
    signing_key = SigningKey(seed)
    public_key = bytes(signing_key.verify_key)
    config = (
        begin_cell()
        .store_int(workchain, 8)
        .store_uint(WALLET_ID, 32)
        .store_bytes(public_key)
        .end_cell()
    )
    state_init = StateInit(
        code=WALLET_V4_CODE,
        data=WalletV4Data(wallet_id=WALLET_ID, public_key=public_key).serialize(),
    ).serialize()
    return WalletFixture(
        signing_key=signing_key,
        wallet_config=cell_to_boc(config),
        address=f"{workchain}:{state_init.hash.hex()}",
    )


def sign_wallet_config(
    wallet: WalletFixture,
    session_id: str,
    app_public_key: str = APP_PUBLIC_KEY,
    endpoint: str = ENDPOINT,
) -> WalletConfig:
    """Produce the wallet config a wallet relays after joining a session."""
    proof = build_wallet_binding_proof(
        session_id=decode_base64(session_id),
        address=Address(wallet.address),
        endpoint=endpoint,
        app_public_key=decode_base64(app_public_key),
    )
    return WalletConfig(
        address=wallet.address,
        endpoint=endpoint,
        wallet_type="org.ton.wallets.v4",
        wallet_config=wallet.wallet_config,
        wallet_sig=encode_base64(safe_sign(proof, wallet.secret_key)),
        app_public_key=app_public_key,
    )


def make_local_config(
    wallet: WalletFixture,
    *,
    network: str = "mainnet",
    domain: str = "app.example",
    subkey_seed: bytes = b"\x09" * 32,
) -> dict[str, Any]:
    """Build the provider config of an in-app wallet with a delegated subkey."""
    subkey = SigningKey(subkey_seed)
    subkey_public_key = bytes(subkey.verify_key)
    address = Address(wallet.address)
    subkey_proof = build_subkey_binding_proof(
        subkey_public_key, 1_700_000_000, address, domain
    )
    wallet_proof = build_local_wallet_proof(address, 1_700_000_100, domain)
    return {
        "version": 1,
        "platform": "ios",
        "platformVersion": "17.0",
        "network": network,
        "address": wallet.address,
        "publicKey": encode_base64(wallet.public_key),
        "walletConfig": wallet.wallet_config,
        "walletType": "org.ton.wallets.v4",
        "signature": encode_base64(safe_sign(wallet_proof, bytes(subkey))),
        "time": 1_700_000_100,
        "subkey": {
            "domain": domain,
            "publicKey": encode_base64(subkey_public_key),
            "time": 1_700_000_000,
            "signature": encode_base64(safe_sign(subkey_proof, wallet.secret_key)),
        },
    }


def ready_record(
    config: WalletConfig, *, testnet: bool = False, revoked: bool = False
) -> dict[str, Any]:
    return {
        "ok": True,
        "state": "ready",
        "name": "App",
        "url": "https://app.example",
        "testnet": testnet,
        "created": 1000,
        "updated": 2000,
        "revoked": revoked,
        "wallet": {
            "address": config.address,
            "endpoint": config.endpoint,
            "walletConfig": config.wallet_config,
            "walletType": config.wallet_type,
            "walletSig": config.wallet_sig,
            "appPublicKey": config.app_public_key,
        },
    }


def initing_record(*, testnet: bool = False, updated: int = 1000) -> dict[str, Any]:
    return {
        "ok": True,
        "state": "initing",
        "name": "App",
        "url": "https://app.example",
        "testnet": testnet,
        "created": 1000,
        "updated": updated,
        "revoked": False,
    }


@pytest.fixture
def wallet() -> WalletFixture:
    return make_wallet()


@pytest.fixture
def session_id() -> str:
    return id_from_seed(SESSION_SEED)


@pytest.fixture
def wallet_config(wallet: WalletFixture, session_id: str) -> WalletConfig:
    return sign_wallet_config(wallet, session_id)


# -----------------------------------------------------------------------------
# Fake relay
# -----------------------------------------------------------------------------


class FakeRelay:
    """In-memory relay transport.

    Responses are queued per method; the last queued response repeats. A
    queued exception is raised, a queued callable is called with the args.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._responses: dict[str, list[Any]] = defaultdict(list)
        self.jobs: list[str] = []

    def queue(self, method: str, *responses: Any) -> None:
        self._responses[method].extend(responses)

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    async def call(self, method: str, args: dict[str, Any]) -> Any:
        self.calls.append((method, args))
        if method == "command_new":
            self.jobs.append(args["job"])
        queue = self._responses[method]
        if not queue:
            raise AssertionError(f"Unexpected relay call: {method}")
        res = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(res, BaseException):
            raise res
        if callable(res):
            return res(args)
        return res


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def fast_config() -> ConnectorConfig:
    """Config with no backoff delay and a short poll interval."""
    return ConnectorConfig(
        network=Network.MAINNET,
        poll_interval=0.01,
        min_backoff=0,
        max_backoff=0,
    )
