"""Wallet-type specific decoding of relayed wallet configs.

A wallet config is an opaque, wallet-specific blob. Each supported wallet type
registers a decoder that recovers the wallet public key and the address the
wallet contract is deployed at. The address is always derived from the
contract code pinned for the wallet type, never from code carried by the
blob. Unknown types and undecodable blobs fail closed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from pytoniq_core import Address, Cell, StateInit, WalletV4Data

from .cells import cell_from_boc
from .crypto import PUBLIC_KEY_LENGTH

_LOGGER = logging.getLogger(__name__)

WALLET_V4 = "org.ton.wallets.v4"

# Wallet v4 revision 2 contract code
WALLET_V4_CODE = cell_from_boc(
    "te6ccgECFAEAAtQAART/APSkE/S88sgLAQIBIAIDAgFIBAUE+PKDCNcYINMf0x/THwL4I7vyZO1E"
    "0NMf0x/T//QE0VFDuvKhUVG68qIF+QFUEGT5EPKj+AAkpMjLH1JAyx9SMMv/UhD0AMntVPgPAdMH"
    "IcAAn2xRkyDXSpbTB9QC+wDoMOAhwAHjACHAAuMAAcADkTDjDQOkyMsfEssfy/8QERITAubQAdDT"
    "AyFxsJJfBOAi10nBIJJfBOAC0x8hghBwbHVnvSKCEGRzdHK9sJJfBeAD+kAwIPpEAcjKB8v/ydDt"
    "RNCBAUDXIfQEMFyBAQj0Cm+hMbOSXwfgBdM/yCWCEHBsdWe6kjgw4w0DghBkc3Ryu5JfBuMNBgcC"
    "ASAICQB4AfoA9AQw+CdvIjBQCqEhvvLgUIIQcGx1Z4MesXCAGFAEywUmzxZY+gIZ9ADLaRfLH1Jg"
    "yz8gyYBA+wAGAIpQBIEBCPRZMO1E0IEBQNcgyAHPFvQAye1UAXKwjiOCEGRzdHKDHrFwgBhQBcsF"
    "UAPPFiP6AhPLassfyz/JgED7AJJfA+ICASAKCwBZvSQrb2omhAgKBrkPoCGEcNQICEekk30pkQzm"
    "kD6f+YN4EoAbeBAUiYcVnzGEAgFYDA0AEbjJftRNDXCx+AA9sp37UTQgQFA1yH0BDACyMoHy//J0"
    "AGBAQj0Cm+hMYAIBIA4PABmtznaiaEAga5Drhf/AABmvHfaiaEAQa5DrhY/AAG7SB/oA1NQi+QAF"
    "yMoHFcv/ydB3dIAYyMsFywIizxZQBfoCFMtrEszMyXP7AMhAFIEBCPRR8qcCAHCBAQjXGPoA0z/I"
    "VCBHgQEI9FHyp4IQbm90ZXB0gBjIywXLAlAGzxZQBPoCFMtqEssfyz/Jc/sAAgBsgQEI1xj6ANM/"
    "MFIkgQEI9Fnyp4IQZHN0cnB0gBjIywXLAlAFzxZQA/oCE8tqyx8Syz/Jc/sAAAr0AMntVA=="
)


@dataclass(frozen=True, slots=True)
class ExtractedWallet:
    """Public key and contract address recovered from a wallet config."""

    public_key: bytes
    address: Address


class WalletDecoder(Protocol):
    """Decoder for a single wallet type."""

    def decode(self, wallet_config: str) -> ExtractedWallet:
        """Decode the config blob; raise on malformed input."""


def contract_address(workchain: int, code: Cell, data: Cell) -> Address:
    """Address of a contract deployed with the given code and data."""
    state_init = StateInit(code=code, data=data).serialize()
    return Address((workchain, state_init.hash))


class WalletV4Decoder:
    """Decoder for v4 wallets.

    The config is a BOC of ``workchain:int8 wallet_id:uint32
    public_key:bits256``. The initial wallet data is rebuilt from these
    fields and deployed against :data:`WALLET_V4_CODE`.
    """

    def decode(self, wallet_config: str) -> ExtractedWallet:
        sl = cell_from_boc(wallet_config).begin_parse()
        workchain = sl.load_int(8)
        wallet_id = sl.load_uint(32)
        public_key = sl.load_bytes(PUBLIC_KEY_LENGTH)
        if sl.remaining_bits or sl.remaining_refs:
            raise ValueError("Trailing data in v4 wallet config")

        data = WalletV4Data(wallet_id=wallet_id, public_key=public_key).serialize()
        return ExtractedWallet(
            public_key=public_key,
            address=contract_address(workchain, WALLET_V4_CODE, data),
        )


WALLET_DECODERS: dict[str, WalletDecoder] = {WALLET_V4: WalletV4Decoder()}


def register_wallet_decoder(wallet_type: str, decoder: WalletDecoder) -> None:
    """Register (or replace) the decoder for a wallet type."""
    WALLET_DECODERS[wallet_type] = decoder


def extract_public_key_and_address(
    wallet_type: str, wallet_config: str
) -> ExtractedWallet | None:
    """Decode a wallet config, returning None for unknown or malformed input."""
    decoder = WALLET_DECODERS.get(wallet_type)
    if decoder is None:
        _LOGGER.debug("Unsupported wallet type: %s", wallet_type)
        return None
    try:
        return decoder.decode(wallet_config)
    except Exception as err:  # noqa: BLE001 - any decode failure fails closed
        _LOGGER.debug("Failed to decode %s wallet config: %s", wallet_type, err)
        return None
