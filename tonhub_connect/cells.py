"""Canonical cell layouts signed by the app, the relay and the wallet.

Field order and nesting are part of the signed contract: a wallet reconstructs
exactly these cells before signing or verifying, so any change here breaks
compatibility with deployed wallets.
"""

from __future__ import annotations

from pytoniq_core import Address, Cell, begin_cell

from .crypto import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, decode_base64, encode_base64

# 1023 data bits per cell
CELL_BYTES_CAPACITY = 127


def bytes_to_cell(data: bytes) -> Cell:
    """Store bytes in a cell, chaining overflow through the first ref."""
    chunks = [
        data[i : i + CELL_BYTES_CAPACITY]
        for i in range(0, len(data), CELL_BYTES_CAPACITY)
    ]
    tail: Cell | None = None
    for chunk in reversed(chunks):
        builder = begin_cell().store_bytes(chunk)
        if tail is not None:
            builder.store_ref(tail)
        tail = builder.end_cell()
    return tail if tail is not None else empty_cell()


def text_to_cell(text: str) -> Cell:
    """Encode a comment as a UTF-8 string tail."""
    return bytes_to_cell(text.encode("utf-8"))


def empty_cell() -> Cell:
    return begin_cell().end_cell()


def cell_from_boc(boc: str) -> Cell:
    """Parse a single-root base64 BOC."""
    return Cell.one_from_boc(decode_base64(boc))


def cell_to_boc(cell: Cell) -> str:
    return encode_base64(cell.to_boc(has_idx=False))


def parse_optional_boc(value: str | None, field_name: str) -> Cell | None:
    """Parse a caller-supplied BOC, treating an empty value as absent.

    Raises:
        ValueError: If ``value`` is not a single-root BOC.
    """
    if not value:
        return None
    try:
        return cell_from_boc(value)
    except Exception as err:  # noqa: BLE001 - BOC parser raises several types
        raise ValueError(f"Invalid {field_name} BOC") from err



def build_wallet_binding_proof(
    session_id: bytes,
    address: Address,
    endpoint: str,
    app_public_key: bytes,
) -> Cell:
    """Cell the wallet signs to bind itself to a relay session."""
    return (
        begin_cell()
        .store_coins(0)
        .store_bytes(session_id)
        .store_address(address)
        .store_bit(1)
        .store_ref(bytes_to_cell(endpoint.encode("utf-8")))
        .store_ref(bytes_to_cell(app_public_key))
        .end_cell()
    )


def build_subkey_binding_proof(
    subkey_public_key: bytes,
    subkey_time: int,
    address: Address,
    domain: str,
) -> Cell:
    """Cell the wallet key signs to delegate a domain-scoped subkey."""
    return (
        begin_cell()
        .store_coins(1)
        .store_bytes(subkey_public_key)
        .store_uint(subkey_time, 32)
        .store_address(address)
        .store_ref(bytes_to_cell(domain.encode("utf-8")))
        .end_cell()
    )


def build_local_wallet_proof(address: Address, time: int, domain: str) -> Cell:
    """Cell the subkey signs to prove the in-app wallet config."""
    return (
        begin_cell()
        .store_coins(1)
        .store_address(address)
        .store_uint(time, 32)
        .store_ref(bytes_to_cell(domain.encode("utf-8")))
        .end_cell()
    )


def build_transaction_job(
    app_public_key: bytes,
    expires: int,
    to: Address,
    value: int,
    text: str = "",
    payload: Cell | None = None,
    state_init: Cell | None = None,
) -> Cell:
    """Job cell requesting a transfer from the wallet."""
    transfer = (
        begin_cell()
        .store_address(to)
        .store_coins(value)
        .store_ref(text_to_cell(text))
        .store_maybe_ref(payload)
        .store_maybe_ref(state_init)
        .end_cell()
    )
    return (
        begin_cell()
        .store_bytes(app_public_key)
        .store_uint(expires, 32)
        .store_coins(0)
        .store_ref(transfer)
        .end_cell()
    )


def build_sign_response_payload(text: str = "", payload: Cell | None = None) -> Cell:
    """Cell a wallet actually signs when answering a sign job."""
    return (
        begin_cell()
        .store_ref(text_to_cell(text))
        .store_ref(payload if payload is not None else empty_cell())
        .end_cell()
    )


def build_sign_job(
    app_public_key: bytes,
    expires: int,
    text: str = "",
    payload: Cell | None = None,
) -> Cell:
    """Job cell requesting a message signature from the wallet."""
    return (
        begin_cell()
        .store_bytes(app_public_key)
        .store_uint(expires, 32)
        .store_coins(1)
        .store_ref(build_sign_response_payload(text, payload))
        .end_cell()
    )


def build_job_envelope(signature: bytes, public_key: bytes, job: Cell) -> str:
    """Wrap a signed job into the base64 BOC submitted to the relay."""
    if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValueError("Invalid signature or public key length")
    envelope = (
        begin_cell()
        .store_bytes(signature)
        .store_bytes(public_key)
        .store_ref(job)
        .end_cell()
    )
    return cell_to_boc(envelope)


def parse_job_envelope(boc: str) -> tuple[bytes, bytes, Cell]:
    """Split a job envelope into ``(signature, public_key, job)``."""
    sl = cell_from_boc(boc).begin_parse()
    signature = sl.load_bytes(SIGNATURE_LENGTH)
    public_key = sl.load_bytes(PUBLIC_KEY_LENGTH)
    return signature, public_key, sl.load_ref()


def parse_sign_result(boc: str) -> bytes:
    """Read the wallet signature from a completed sign job result."""
    return cell_from_boc(boc).begin_parse().load_bytes(SIGNATURE_LENGTH)
