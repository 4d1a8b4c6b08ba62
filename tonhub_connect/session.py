"""Session state normalization.

Session records come from the relay and are trusted only after validation: a
record for another network is treated as revoked, and a ready record must
carry a wallet config that verifies for this session. A ready record that
fails verification is an integrity failure and is raised, never downgraded.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import Network
from .errors import TonhubIntegrityError
from .models import (
    SessionState,
    SessionStateIniting,
    SessionStateReady,
    SessionStateRevoked,
    WalletConfig,
)
from .protocol import parse_session_record
from .verify import verify_wallet_config

_LOGGER = logging.getLogger(__name__)


def normalize_session_state(
    session_id: str, raw: Any, network: Network
) -> SessionState:
    """Map a raw relay session record onto a client-visible state.

    Raises:
        TonhubProtocolError: If the record is malformed.
        TonhubIntegrityError: If a ready record's wallet config does not verify.
    """
    record = parse_session_record(raw)
    state = record["state"]

    if state == "initing":
        if record["testnet"] != network.is_testnet:
            _LOGGER.warning("[%s] Session is bound to another network", session_id)
            return SessionStateRevoked()
        return SessionStateIniting(
            name=record["name"],
            url=record["url"],
            created=record["created"],
            updated=record["updated"],
        )

    if state == "ready":
        if record["revoked"]:
            return SessionStateRevoked()
        if record["testnet"] != network.is_testnet:
            _LOGGER.warning("[%s] Session is bound to another network", session_id)
            return SessionStateRevoked()
        wallet = WalletConfig.from_relay(record["wallet"])
        if not verify_wallet_config(session_id, wallet):
            _LOGGER.error(
                "[%s] Wallet config for %s failed verification",
                session_id,
                wallet.address,
            )
            raise TonhubIntegrityError("Integrity check failed")
        return SessionStateReady(
            name=record["name"],
            url=record["url"],
            created=record["created"],
            updated=record["updated"],
            wallet=wallet,
        )

    return SessionStateRevoked()
