"""Typed values exchanged with connector callers.

Outcomes are tagged variants: sessions carry a ``state`` discriminator and
request responses a ``type`` discriminator. Callers branch on them; only trust
violations and protocol mismatches are raised as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# -----------------------------------------------------------------------------
# Wallet and session
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WalletConfig:
    """Relayed proof binding a wallet to a session.

    Attributes:
        address: Friendly or raw wallet address.
        endpoint: Wallet endpoint the app may talk to.
        wallet_type: Wallet type key, e.g. ``org.ton.wallets.v4``.
        wallet_config: Base64 wallet-specific config blob.
        wallet_sig: Base64 wallet signature over the binding proof.
        app_public_key: Base64 app public key echoed by the wallet.
    """

    address: str
    endpoint: str
    wallet_type: str
    wallet_config: str
    wallet_sig: str
    app_public_key: str

    @classmethod
    def from_relay(cls, data: dict[str, Any]) -> WalletConfig:
        return cls(
            address=data["address"],
            endpoint=data["endpoint"],
            wallet_type=data["walletType"],
            wallet_config=data["walletConfig"],
            wallet_sig=data["walletSig"],
            app_public_key=data["appPublicKey"],
        )


@dataclass(frozen=True, slots=True)
class CreatedSession:
    """Freshly created session; ``seed`` is the only secret."""

    id: str
    seed: str
    link: str


@dataclass(frozen=True, slots=True)
class SessionStateIniting:
    name: str
    url: str
    created: int
    updated: int
    state: Literal["initing"] = field(default="initing", init=False)


@dataclass(frozen=True, slots=True)
class SessionStateReady:
    name: str
    url: str
    created: int
    updated: int
    wallet: WalletConfig
    state: Literal["ready"] = field(default="ready", init=False)


@dataclass(frozen=True, slots=True)
class SessionStateRevoked:
    state: Literal["revoked"] = field(default="revoked", init=False)


@dataclass(frozen=True, slots=True)
class SessionStateExpired:
    state: Literal["expired"] = field(default="expired", init=False)


SessionState = SessionStateIniting | SessionStateReady | SessionStateRevoked
SessionAwaited = SessionStateReady | SessionStateRevoked | SessionStateExpired

# -----------------------------------------------------------------------------
# Jobs
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class JobSubmitted:
    state: Literal["submitted"] = field(default="submitted", init=False)


@dataclass(frozen=True, slots=True)
class JobCompleted:
    result: str
    state: Literal["completed"] = field(default="completed", init=False)


@dataclass(frozen=True, slots=True)
class JobRejected:
    state: Literal["rejected"] = field(default="rejected", init=False)


@dataclass(frozen=True, slots=True)
class JobExpired:
    state: Literal["expired"] = field(default="expired", init=False)


JobState = JobSubmitted | JobCompleted | JobRejected | JobExpired
JobOutcome = JobCompleted | JobRejected | JobExpired

# -----------------------------------------------------------------------------
# Requests and responses
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionRequest:
    """Transfer request.

    ``value`` is in nanotons (decimal string), ``timeout`` in seconds;
    ``payload`` and ``state_init`` are base64 BOCs.
    """

    seed: str
    app_public_key: str
    to: str
    value: str
    timeout: float
    state_init: str | None = None
    text: str | None = None
    payload: str | None = None


@dataclass(frozen=True, slots=True)
class SignRequest:
    seed: str
    app_public_key: str
    timeout: float
    text: str | None = None
    payload: str | None = None


@dataclass(frozen=True, slots=True)
class TransactionSuccess:
    response: str
    type: Literal["success"] = field(default="success", init=False)


@dataclass(frozen=True, slots=True)
class SignSuccess:
    signature: str
    type: Literal["success"] = field(default="success", init=False)


@dataclass(frozen=True, slots=True)
class Rejected:
    type: Literal["rejected"] = field(default="rejected", init=False)


@dataclass(frozen=True, slots=True)
class Expired:
    type: Literal["expired"] = field(default="expired", init=False)


@dataclass(frozen=True, slots=True)
class InvalidSession:
    type: Literal["invalid_session"] = field(default="invalid_session", init=False)


TransactionResponse = TransactionSuccess | Rejected | Expired | InvalidSession
SignResponse = SignSuccess | Rejected | Expired | InvalidSession

# -----------------------------------------------------------------------------
# Local (in-app) mode
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LocalSubkey:
    domain: str
    public_key: str
    time: int
    signature: str


@dataclass(frozen=True, slots=True)
class LocalConfig:
    """Wallet config exposed by the in-app provider."""

    version: int
    network: Literal["mainnet", "testnet"]
    address: str
    public_key: str
    wallet_config: str
    wallet_type: str
    signature: str
    time: int
    subkey: LocalSubkey

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> LocalConfig:
        subkey = data["subkey"]
        return cls(
            version=data["version"],
            network=data["network"],
            address=data["address"],
            public_key=data["publicKey"],
            wallet_config=data["walletConfig"],
            wallet_type=data["walletType"],
            signature=data["signature"],
            time=data["time"],
            subkey=LocalSubkey(
                domain=subkey["domain"],
                public_key=subkey["publicKey"],
                time=subkey["time"],
                signature=subkey["signature"],
            ),
        )


@dataclass(frozen=True, slots=True)
class LocalTransactionRequest:
    to: str
    value: str
    state_init: str | None = None
    text: str | None = None
    payload: str | None = None


@dataclass(frozen=True, slots=True)
class LocalSignRequest:
    text: str | None = None
    payload: str | None = None


LocalTransactionResponse = TransactionSuccess | Rejected
LocalSignResponse = SignSuccess | Rejected
