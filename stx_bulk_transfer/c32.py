"""c32check encoding helpers for Stacks addresses.

Stacks addresses are ``S`` followed by a c32check string: a version character
plus the Crockford base32 encoding of ``hash160 || checksum``, where the
checksum is the first four bytes of a double SHA-256 over ``version || hash160``.
Leading zero bytes are carried as leading ``0`` characters, mirroring the way
Base58Check keeps leading ``1`` characters.
"""

from __future__ import annotations

import hashlib
from typing import Tuple

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

HASH160_LENGTH = 20
CHECKSUM_LENGTH = 4

# Address version bytes for single- and multi-sig accounts.
MAINNET_SINGLE_SIG = 22
MAINNET_MULTI_SIG = 20
TESTNET_SINGLE_SIG = 26
TESTNET_MULTI_SIG = 21

KNOWN_VERSIONS = frozenset(
    {MAINNET_SINGLE_SIG, MAINNET_MULTI_SIG, TESTNET_SINGLE_SIG, TESTNET_MULTI_SIG}
)


class C32Error(ValueError):
    """Raised when a c32 or c32check string cannot be decoded."""


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def c32_checksum(data: bytes) -> bytes:
    return _double_sha256(data)[:CHECKSUM_LENGTH]


def _normalize(value: str) -> str:
    # Crockford aliases: O reads as zero, I and L read as one.
    return value.upper().replace("O", "0").replace("I", "1").replace("L", "1")


def c32_encode(data: bytes) -> str:
    """Encode bytes as a c32 string, keeping one ``0`` per leading zero byte."""

    value = int.from_bytes(data, "big")
    output = []
    while value > 0:
        value, remainder = divmod(value, 32)
        output.append(C32_ALPHABET[remainder])
    encoded = "".join(reversed(output))

    leading_zero_count = 0
    for byte in data:
        if byte == 0:
            leading_zero_count += 1
        else:
            break

    return C32_ALPHABET[0] * leading_zero_count + encoded


def c32_decode(value: str) -> bytes:
    """Decode a c32 string produced by :func:`c32_encode`."""

    normalized = _normalize(value)
    number = 0
    for character in normalized:
        index = C32_ALPHABET.find(character)
        if index == -1:
            raise C32Error(f"Invalid c32 character: {character}")
        number = number * 32 + index

    decoded = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""

    padding = 0
    for character in normalized:
        if character == C32_ALPHABET[0]:
            padding += 1
        else:
            break
    return b"\x00" * padding + decoded


def c32check_encode(version: int, data: bytes) -> str:
    if not 0 <= version < 32:
        raise C32Error(f"Invalid c32check version: {version}")
    version_byte = version.to_bytes(1, "big")
    checksum = c32_checksum(version_byte + data)
    return C32_ALPHABET[version] + c32_encode(data + checksum)


def c32check_decode(value: str) -> Tuple[int, bytes]:
    normalized = _normalize(value)
    if len(normalized) < 2:
        raise C32Error("c32check string is too short")
    version = C32_ALPHABET.find(normalized[0])
    if version == -1:
        raise C32Error(f"Invalid c32check version character: {normalized[0]}")

    decoded = c32_decode(normalized[1:])
    if len(decoded) < CHECKSUM_LENGTH:
        raise C32Error("c32check payload is too short")
    data, checksum = decoded[:-CHECKSUM_LENGTH], decoded[-CHECKSUM_LENGTH:]
    if c32_checksum(version.to_bytes(1, "big") + data) != checksum:
        raise C32Error("c32check checksum mismatch")
    return version, data


def c32_address(version: int, hash160: bytes) -> str:
    """Return the Stacks address for *version* and a 20-byte *hash160*."""

    if len(hash160) != HASH160_LENGTH:
        raise C32Error(f"hash160 must be {HASH160_LENGTH} bytes, got {len(hash160)}")
    return "S" + c32check_encode(version, hash160)


def c32_address_decode(address: str) -> Tuple[int, bytes]:
    """Split a Stacks address into its version byte and hash160."""

    if len(address) <= 5:
        raise C32Error(f"Address is too short: {address!r}")
    if address[0] != "S":
        raise C32Error(f"Address must start with 'S': {address!r}")
    version, hash160 = c32check_decode(address[1:])
    if len(hash160) != HASH160_LENGTH:
        raise C32Error(f"Address does not carry a {HASH160_LENGTH}-byte hash: {address!r}")
    return version, hash160


def is_valid_address(address: str) -> bool:
    """Return ``True`` when *address* is a well-formed Stacks account address."""

    try:
        version, _ = c32_address_decode(address)
    except C32Error:
        return False
    return version in KNOWN_VERSIONS
