"""secp256k1 signing keys for Stacks transactions.

Keys use the Stacks hex convention: 64 hex characters describe a key whose
public half is serialized uncompressed, while 66 characters ending in ``01``
mark a compressed public key.
"""

from __future__ import annotations

import binascii
import hashlib
import logging

from Crypto.Hash import RIPEMD160, SHA512
from eth_keys import keys
from eth_keys.constants import SECPK1_N

from .c32 import c32_address

logger = logging.getLogger(__name__)

PRIVATE_KEY_LENGTH = 32
COMPRESSED_SUFFIX = "01"
RECOVERABLE_SIGNATURE_LENGTH = 65


class InvalidSigningKeyError(ValueError):
    """Raised when a private key string cannot be used for signing."""


def sha512_256(data: bytes) -> bytes:
    return SHA512.new(data, truncate="256").digest()


def hash160(data: bytes) -> bytes:
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


class StacksPrivateKey:
    """A signing key together with its public key encoding preference."""

    def __init__(self, secret: bytes, compressed: bool) -> None:
        if len(secret) != PRIVATE_KEY_LENGTH:
            raise InvalidSigningKeyError(f"Private key must be {PRIVATE_KEY_LENGTH} bytes")
        if not 0 < int.from_bytes(secret, "big") < SECPK1_N:
            raise InvalidSigningKeyError("Private key is outside the secp256k1 range")
        self._key = keys.PrivateKey(secret)
        self.compressed = compressed

    @classmethod
    def from_hex(cls, value: str) -> "StacksPrivateKey":
        """Parse a 64- or 66-character hex private key."""

        cleaned = value.strip()
        if cleaned.startswith("0x"):
            cleaned = cleaned[2:]
        if len(cleaned) == 66:
            if not cleaned.lower().endswith(COMPRESSED_SUFFIX):
                raise InvalidSigningKeyError(
                    "66-character private keys must end with the 01 compression flag"
                )
            compressed = True
            cleaned = cleaned[:64]
        elif len(cleaned) == 64:
            compressed = False
        else:
            raise InvalidSigningKeyError(
                f"Private key must be 64 or 66 hex characters, got {len(cleaned)}"
            )
        try:
            secret = binascii.unhexlify(cleaned)
        except (binascii.Error, ValueError) as exc:
            raise InvalidSigningKeyError("Private key is not valid hex") from exc
        return cls(secret, compressed)

    def __repr__(self) -> str:
        return f"StacksPrivateKey(compressed={self.compressed}, secret=<redacted>)"

    @property
    def public_key(self) -> bytes:
        """Return the SEC1-encoded public key (33 or 65 bytes)."""

        public = self._key.public_key
        if self.compressed:
            return public.to_compressed_bytes()
        return b"\x04" + public.to_bytes()

    def address(self, version: int) -> str:
        return c32_address(version, hash160(self.public_key))

    def sign(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest and return ``recovery_id || r || s``."""

        signature = self._key.sign_msg_hash(digest)
        logger.debug("Signed %d-byte digest", len(digest))
        return (
            bytes([signature.v])
            + signature.r.to_bytes(32, "big")
            + signature.s.to_bytes(32, "big")
        )
