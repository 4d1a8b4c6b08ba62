"""Relay payload validation and deep link helpers.

The relay is untrusted: every record is checked against the expected shape
before any field is read. A mismatch is a protocol error and is never retried.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from .config import Network
from .errors import TonhubProtocolError

SESSION_STATES = ("not_found", "initing", "ready")
JOB_STATES = ("empty", "submitted", "completed", "rejected", "expired")

_WALLET_FIELDS = (
    "address",
    "endpoint",
    "walletConfig",
    "walletType",
    "walletSig",
    "appPublicKey",
)


def _is_number(value: Any) -> bool:
    # bool is a subclass of int
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require(
    record: Mapping[str, Any], name: str, kind: str, *, context: str
) -> Any:
    """Return ``record[name]`` after checking its JSON type."""
    if name not in record:
        raise TonhubProtocolError(f"{context}: missing field {name!r}")
    value = record[name]
    if kind == "string":
        valid = isinstance(value, str)
    elif kind == "number":
        valid = _is_number(value)
    elif kind == "boolean":
        valid = isinstance(value, bool)
    elif kind == "object":
        valid = isinstance(value, Mapping)
    else:
        raise ValueError(f"Unknown field kind: {kind}")
    if not valid:
        raise TonhubProtocolError(
            f"{context}: field {name!r} must be {kind}, got {type(value).__name__}"
        )
    return value


def _require_mapping(raw: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise TonhubProtocolError(f"{context}: expected object, got {type(raw).__name__}")
    return raw


def parse_session_record(raw: Any) -> dict[str, Any]:
    """Validate a ``session_get``/``session_wait`` record.

    Returns:
        The record restricted to the fields of its state.

    Raises:
        TonhubProtocolError: If the record does not match any session shape.
    """
    context = "Invalid session record"
    record = _require_mapping(raw, context)
    state = _require(record, "state", "string", context=context)
    if state not in SESSION_STATES:
        raise TonhubProtocolError(f"{context}: unknown state {state!r}")
    if state == "not_found":
        return {"state": state}

    parsed: dict[str, Any] = {
        "state": state,
        "name": _require(record, "name", "string", context=context),
        "url": _require(record, "url", "string", context=context),
        "testnet": _require(record, "testnet", "boolean", context=context),
        "created": _require(record, "created", "number", context=context),
        "updated": _require(record, "updated", "number", context=context),
        "revoked": _require(record, "revoked", "boolean", context=context),
    }
    if state == "ready":
        wallet = _require(record, "wallet", "object", context=context)
        parsed["wallet"] = {
            name: _require(wallet, name, "string", context=f"{context} wallet")
            for name in _WALLET_FIELDS
        }
    return parsed


def parse_job_record(raw: Any) -> dict[str, Any]:
    """Validate a ``command_get`` record.

    Raises:
        TonhubProtocolError: If the record does not match any job shape.
    """
    context = "Invalid job record"
    record = _require_mapping(raw, context)
    state = _require(record, "state", "string", context=context)
    if state not in JOB_STATES:
        raise TonhubProtocolError(f"{context}: unknown state {state!r}")

    parsed: dict[str, Any] = {
        "state": state,
        "now": _require(record, "now", "number", context=context),
    }
    if state == "empty":
        return parsed

    parsed["job"] = _require(record, "job", "string", context=context)
    parsed["created"] = _require(record, "created", "number", context=context)
    parsed["updated"] = _require(record, "updated", "number", context=context)
    if state == "completed":
        parsed["result"] = _require(record, "result", "string", context=context)
    return parsed


def parse_local_config(raw: Any) -> dict[str, Any]:
    """Validate the versioned wallet config exposed by the in-app provider.

    Raises:
        TonhubProtocolError: If the config shape or version is not supported.
    """
    context = "Invalid local config"
    record = _require_mapping(raw, context)
    version = _require(record, "version", "number", context=context)
    if version != 1:
        raise TonhubProtocolError(f"{context}: unsupported version {version!r}")
    platform = _require(record, "platform", "string", context=context)
    if platform not in ("ios", "android"):
        raise TonhubProtocolError(f"{context}: unknown platform {platform!r}")
    platform_version = record.get("platformVersion")
    if not isinstance(platform_version, str) and not _is_number(platform_version):
        raise TonhubProtocolError(f"{context}: invalid platformVersion")
    network = _require(record, "network", "string", context=context)
    if network not in ("mainnet", "testnet"):
        raise TonhubProtocolError(f"{context}: unknown network {network!r}")

    subkey = _require(record, "subkey", "object", context=context)
    sub_context = f"{context} subkey"
    return {
        "version": version,
        "platform": platform,
        "platformVersion": platform_version,
        "network": network,
        "address": _require(record, "address", "string", context=context),
        "publicKey": _require(record, "publicKey", "string", context=context),
        "walletConfig": _require(record, "walletConfig", "string", context=context),
        "walletType": _require(record, "walletType", "string", context=context),
        "signature": _require(record, "signature", "string", context=context),
        "time": _require(record, "time", "number", context=context),
        "subkey": {
            "domain": _require(subkey, "domain", "string", context=sub_context),
            "publicKey": _require(subkey, "publicKey", "string", context=sub_context),
            "time": _require(subkey, "time", "number", context=sub_context),
            "signature": _require(subkey, "signature", "string", context=sub_context),
        },
    }


def build_connect_link(session_id: str, network: Network, endpoint: str) -> str:
    """Deep link a wallet app opens to join the session."""
    scheme = "ton-test" if network.is_testnet else "ton"
    return f"{scheme}://connect/{session_id}?endpoint={quote(endpoint, safe='.:/')}"
