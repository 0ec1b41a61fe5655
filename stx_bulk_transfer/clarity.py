"""Clarity value serialization for contract-call arguments.

Only the value types needed to call ``send-many`` are modelled: unsigned
integers, standard principals, tuples and lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Mapping, Tuple

from .c32 import C32Error, c32_address_decode

UINT128_MAX = 2**128 - 1
MAX_CLARITY_NAME_LENGTH = 128


class EncodingError(ValueError):
    """Raised when a value cannot be encoded for the Stacks wire format."""


class ClarityType(IntEnum):
    UINT = 0x01
    PRINCIPAL_STANDARD = 0x05
    LIST = 0x0B
    TUPLE = 0x0C


def _u32(value: int) -> bytes:
    return value.to_bytes(4, "big")


def encode_name(name: str) -> bytes:
    """Length-prefix an ASCII Clarity name (one length byte)."""

    try:
        raw = name.encode("ascii")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Clarity name must be ASCII: {name!r}") from exc
    if not raw or len(raw) > MAX_CLARITY_NAME_LENGTH:
        raise EncodingError(
            f"Clarity name must be 1-{MAX_CLARITY_NAME_LENGTH} characters: {name!r}"
        )
    return bytes([len(raw)]) + raw


class ClarityValue:
    type_id: ClarityType

    def serialize(self) -> bytes:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True)
class UIntCV(ClarityValue):
    value: int

    type_id = ClarityType.UINT

    def serialize(self) -> bytes:
        if not 0 <= self.value <= UINT128_MAX:
            raise EncodingError(f"uint value out of range: {self.value}")
        return bytes([self.type_id]) + self.value.to_bytes(16, "big")


@dataclass(frozen=True)
class StandardPrincipalCV(ClarityValue):
    version: int
    hash160: bytes

    type_id = ClarityType.PRINCIPAL_STANDARD

    @classmethod
    def from_address(cls, address: str) -> "StandardPrincipalCV":
        try:
            version, hash_bytes = c32_address_decode(address)
        except C32Error as exc:
            raise EncodingError(f"Invalid principal {address!r}: {exc}") from exc
        return cls(version, hash_bytes)

    def serialize(self) -> bytes:
        return bytes([self.type_id, self.version]) + self.hash160


@dataclass(frozen=True)
class TupleCV(ClarityValue):
    data: Tuple[Tuple[str, ClarityValue], ...]

    type_id = ClarityType.TUPLE

    @classmethod
    def from_mapping(cls, data: Mapping[str, ClarityValue]) -> "TupleCV":
        return cls(tuple(data.items()))

    def serialize(self) -> bytes:
        # Tuple entries are serialized in lexicographic order of their names.
        entries = sorted(self.data, key=lambda item: item[0].encode("ascii"))
        parts = [bytes([self.type_id]), _u32(len(entries))]
        for name, value in entries:
            parts.append(encode_name(name))
            parts.append(value.serialize())
        return b"".join(parts)


@dataclass(frozen=True)
class ListCV(ClarityValue):
    items: Tuple[ClarityValue, ...]

    type_id = ClarityType.LIST

    @classmethod
    def of(cls, items: Iterable[ClarityValue]) -> "ListCV":
        return cls(tuple(items))

    def serialize(self) -> bytes:
        parts = [bytes([self.type_id]), _u32(len(self.items))]
        parts.extend(item.serialize() for item in self.items)
        return b"".join(parts)
