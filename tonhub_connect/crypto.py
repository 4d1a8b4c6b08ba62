"""Session key material and cell signing helpers.

Session keys are plain ed25519 keypairs derived from a 32-byte seed. Cells are
never signed directly: both sides sign a domain-separated digest of the cell
hash, so a signature over a job can not be reused as a signature over an
arbitrary message.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey
from pytoniq_core import Cell

SEED_LENGTH = 32
SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 32

SAFE_SIGN_SEED = "ton-safe-sign-magic"
_SAFE_SIGN_PREFIX = b"\xff\xff"


@dataclass(frozen=True, slots=True)
class KeyPair:
    """Ed25519 keypair; ``secret_key`` is the 32-byte seed."""

    public_key: bytes
    secret_key: bytes


def decode_base64(value: str) -> bytes:
    """Decode standard or url-safe base64, with or without padding."""
    normalized = value.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except binascii.Error as err:
        raise ValueError(f"Invalid base64 value: {value!r}") from err


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_url_safe(value: str) -> str:
    """Convert a standard base64 string to unpadded url-safe base64."""
    return value.replace("+", "-").replace("/", "_").rstrip("=")


def new_seed() -> str:
    """Generate a fresh session seed, base64 encoded."""
    return encode_base64(secrets.token_bytes(SEED_LENGTH))


def keypair_from_seed(seed: str | bytes) -> KeyPair:
    raw = decode_base64(seed) if isinstance(seed, str) else seed
    if len(raw) != SEED_LENGTH:
        raise ValueError(f"Seed must be {SEED_LENGTH} bytes, got {len(raw)}")
    signing_key = SigningKey(raw)
    return KeyPair(public_key=bytes(signing_key.verify_key), secret_key=raw)


def id_from_seed(seed: str | bytes) -> str:
    """Derive the session id (url-safe base64 public key) from a seed."""
    return to_url_safe(encode_base64(keypair_from_seed(seed).public_key))


def _safe_sign_hash(cell: Cell, seed: str = SAFE_SIGN_SEED) -> bytes:
    seed_data = seed.encode("utf-8")
    if not 8 <= len(seed_data) <= 64:
        raise ValueError("Safe sign seed must be 8..64 bytes")
    return hashlib.sha256(_SAFE_SIGN_PREFIX + seed_data + cell.hash).digest()


def safe_sign(cell: Cell, secret_key: bytes) -> bytes:
    """Sign a cell with the session secret key."""
    return SigningKey(secret_key).sign(_safe_sign_hash(cell)).signature


def safe_sign_verify(cell: Cell, signature: bytes, public_key: bytes) -> bool:
    """Check a safe-sign signature; malformed keys or signatures fail."""
    if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
        return False
    try:
        VerifyKey(public_key).verify(_safe_sign_hash(cell), signature)
    except (BadSignatureError, CryptoError):
        return False
    return True
