"""Verification of wallet-signed data relayed to the app.

Verifiers answer a yes/no question about untrusted input: malformed data is a
``False``, never an exception.
"""

from __future__ import annotations

import logging

from pytoniq_core import Address

from .cells import (
    build_local_wallet_proof,
    build_sign_response_payload,
    build_subkey_binding_proof,
    build_wallet_binding_proof,
    cell_from_boc,
)
from .crypto import decode_base64, safe_sign_verify
from .models import LocalConfig, WalletConfig
from .wallets import ExtractedWallet, extract_public_key_and_address

_LOGGER = logging.getLogger(__name__)


def _extract_matching_wallet(
    address: str, wallet_type: str, wallet_config: str
) -> tuple[Address, ExtractedWallet] | None:
    """Decode the wallet config and require it to match the claimed address."""
    try:
        claimed = Address(address)
    except Exception as err:  # noqa: BLE001 - address parser raises several types
        _LOGGER.debug("Invalid wallet address %r: %s", address, err)
        return None

    extracted = extract_public_key_and_address(wallet_type, wallet_config)
    if extracted is None:
        return None
    if extracted.address != claimed:
        _LOGGER.debug("Wallet config does not match address %s", address)
        return None
    return claimed, extracted


def verify_wallet_config(session_id: str, config: WalletConfig) -> bool:
    """Check that ``config`` was signed by its wallet for ``session_id``."""
    matched = _extract_matching_wallet(
        config.address, config.wallet_type, config.wallet_config
    )
    if matched is None:
        return False
    address, extracted = matched

    try:
        proof = build_wallet_binding_proof(
            session_id=decode_base64(session_id),
            address=address,
            endpoint=config.endpoint,
            app_public_key=decode_base64(config.app_public_key),
        )
        signature = decode_base64(config.wallet_sig)
    except Exception as err:  # noqa: BLE001 - cell builder raises several types
        _LOGGER.debug("[%s] Malformed wallet config: %s", session_id, err)
        return False
    return safe_sign_verify(proof, signature, extracted.public_key)


def verify_signature_response(
    signature: str,
    config: WalletConfig,
    text: str | None = None,
    payload: str | None = None,
) -> bool:
    """Check a sign job result against the message that was requested.

    The signed payload is rebuilt from the original ``text``/``payload`` so a
    signature over one message can not pass as approval of another.
    """
    matched = _extract_matching_wallet(
        config.address, config.wallet_type, config.wallet_config
    )
    if matched is None:
        return False
    _, extracted = matched

    try:
        payload_cell = cell_from_boc(payload) if payload else None
        data = build_sign_response_payload(text or "", payload_cell)
        raw_signature = decode_base64(signature)
    except Exception as err:  # noqa: BLE001 - BOC parser raises several types
        _LOGGER.debug("Malformed sign response: %s", err)
        return False
    return safe_sign_verify(data, raw_signature, extracted.public_key)


def verify_local_config(config: LocalConfig) -> bool:
    """Check an in-app wallet config and the subkey it delegates to."""
    matched = _extract_matching_wallet(
        config.address, config.wallet_type, config.wallet_config
    )
    if matched is None:
        return False
    _, extracted = matched
    subkey = config.subkey

    try:
        subkey_public_key = decode_base64(subkey.public_key)
        subkey_proof = build_subkey_binding_proof(
            subkey_public_key=subkey_public_key,
            subkey_time=int(subkey.time),
            address=extracted.address,
            domain=subkey.domain,
        )
        wallet_proof = build_local_wallet_proof(
            address=extracted.address,
            time=int(config.time),
            domain=subkey.domain,
        )
        subkey_signature = decode_base64(subkey.signature)
        wallet_signature = decode_base64(config.signature)
    except Exception as err:  # noqa: BLE001 - cell builder raises several types
        _LOGGER.debug("Malformed local config: %s", err)
        return False

    if not safe_sign_verify(subkey_proof, subkey_signature, extracted.public_key):
        return False
    return safe_sign_verify(wallet_proof, wallet_signature, subkey_public_key)
