"""Stacks transaction model, serialization and single-sig signing.

Only standard (non-sponsored) authorization with a single-sig P2PKH spending
condition and a contract-call payload are supported; that is everything a
``send-many`` bulk transfer needs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Sequence

from .clarity import ClarityValue, EncodingError, encode_name
from .c32 import C32Error, c32_address_decode
from .fees import DEFAULT_FEE_RATE, calculate_fee
from .keys import RECOVERABLE_SIGNATURE_LENGTH, StacksPrivateKey, hash160, sha512_256

logger = logging.getLogger(__name__)

UINT64_MAX = 2**64 - 1
CONTRACT_NAME_PATTERN = re.compile(r"[a-zA-Z]([a-zA-Z0-9]|[-_]){0,39}")
EMPTY_SIGNATURE = bytes(RECOVERABLE_SIGNATURE_LENGTH)


class AnchorMode(IntEnum):
    ON_CHAIN_ONLY = 0x01
    OFF_CHAIN_ONLY = 0x02
    ANY = 0x03


class PostConditionMode(IntEnum):
    ALLOW = 0x01
    DENY = 0x02


class AuthType(IntEnum):
    STANDARD = 0x04
    SPONSORED = 0x05


class HashMode(IntEnum):
    P2PKH = 0x00


class KeyEncoding(IntEnum):
    COMPRESSED = 0x00
    UNCOMPRESSED = 0x01


class FungibleConditionCode(IntEnum):
    EQUAL = 0x01
    GREATER = 0x02
    GREATER_EQUAL = 0x03
    LESS = 0x04
    LESS_EQUAL = 0x05


POST_CONDITION_STX = 0x00
POST_CONDITION_PRINCIPAL_STANDARD = 0x02
PAYLOAD_CONTRACT_CALL = 0x02


def _u64(value: int, label: str) -> bytes:
    if not 0 <= value <= UINT64_MAX:
        raise EncodingError(f"{label} must fit in an unsigned 64-bit integer: {value}")
    return value.to_bytes(8, "big")


def _address_bytes(version: int, hash_bytes: bytes) -> bytes:
    return bytes([version]) + hash_bytes


def make_sighash_presign(cur_sighash: bytes, auth_type: int, fee: int, nonce: int) -> bytes:
    """Digest that the origin key signs for the given fee and nonce."""

    return sha512_256(cur_sighash + bytes([auth_type]) + _u64(fee, "fee") + _u64(nonce, "nonce"))


def split_contract_identifier(identifier: str) -> tuple[int, bytes, str]:
    """Split ``<address>.<contract-name>`` into address version, hash and name."""

    address, sep, name = identifier.partition(".")
    if not sep:
        raise EncodingError(
            f"Contract identifier {identifier!r} must look like <address>.<contract-name>"
        )
    try:
        version, hash_bytes = c32_address_decode(address)
    except C32Error as exc:
        raise EncodingError(f"Invalid contract address in {identifier!r}: {exc}") from exc
    if not CONTRACT_NAME_PATTERN.fullmatch(name):
        raise EncodingError(f"Invalid contract name in {identifier!r}: {name!r}")
    return version, hash_bytes, name


@dataclass
class SingleSigSpendingCondition:
    signer: bytes
    nonce: int
    fee: int
    key_encoding: KeyEncoding
    signature: bytes = EMPTY_SIGNATURE
    hash_mode: HashMode = HashMode.P2PKH

    def serialize(self) -> bytes:
        return b"".join(
            [
                bytes([self.hash_mode]),
                self.signer,
                _u64(self.nonce, "nonce"),
                _u64(self.fee, "fee"),
                bytes([self.key_encoding]),
                self.signature,
            ]
        )

    def cleared(self) -> "SingleSigSpendingCondition":
        return replace(self, nonce=0, fee=0, signature=EMPTY_SIGNATURE)


@dataclass
class STXPostCondition:
    """Assert how many µSTX a standard principal sends."""

    address_version: int
    address_hash: bytes
    condition_code: FungibleConditionCode
    amount: int

    def serialize(self) -> bytes:
        return b"".join(
            [
                bytes([POST_CONDITION_STX, POST_CONDITION_PRINCIPAL_STANDARD]),
                _address_bytes(self.address_version, self.address_hash),
                bytes([self.condition_code]),
                _u64(self.amount, "post-condition amount"),
            ]
        )


@dataclass
class ContractCallPayload:
    address_version: int
    address_hash: bytes
    contract_name: str
    function_name: str
    function_args: List[ClarityValue] = field(default_factory=list)

    @classmethod
    def from_identifier(
        cls, identifier: str, function_name: str, function_args: Sequence[ClarityValue]
    ) -> "ContractCallPayload":
        address_version, address_hash, contract_name = split_contract_identifier(identifier)
        return cls(
            address_version=address_version,
            address_hash=address_hash,
            contract_name=contract_name,
            function_name=function_name,
            function_args=list(function_args),
        )

    def serialize(self) -> bytes:
        parts = [
            bytes([PAYLOAD_CONTRACT_CALL]),
            _address_bytes(self.address_version, self.address_hash),
            encode_name(self.contract_name),
            encode_name(self.function_name),
            len(self.function_args).to_bytes(4, "big"),
        ]
        parts.extend(arg.serialize() for arg in self.function_args)
        return b"".join(parts)


@dataclass
class StacksTransaction:
    version: int
    chain_id: int
    spending_condition: SingleSigSpendingCondition
    payload: ContractCallPayload
    post_conditions: List[STXPostCondition] = field(default_factory=list)
    anchor_mode: AnchorMode = AnchorMode.ANY
    post_condition_mode: PostConditionMode = PostConditionMode.DENY
    auth_type: AuthType = AuthType.STANDARD

    def serialize(self) -> bytes:
        parts = [
            bytes([self.version]),
            self.chain_id.to_bytes(4, "big"),
            bytes([self.auth_type]),
            self.spending_condition.serialize(),
            bytes([self.anchor_mode, self.post_condition_mode]),
            len(self.post_conditions).to_bytes(4, "big"),
        ]
        parts.extend(condition.serialize() for condition in self.post_conditions)
        parts.append(self.payload.serialize())
        return b"".join(parts)

    def hex(self) -> str:
        return self.serialize().hex()

    def txid(self) -> str:
        return sha512_256(self.serialize()).hex()

    def initial_sighash(self) -> bytes:
        """Sighash of the transaction with the origin condition cleared."""

        cleared = replace(self, spending_condition=self.spending_condition.cleared())
        return sha512_256(cleared.serialize())

    def sign(self, private_key: StacksPrivateKey) -> None:
        condition = self.spending_condition
        presign = make_sighash_presign(
            self.initial_sighash(), self.auth_type, condition.fee, condition.nonce
        )
        condition.signature = private_key.sign(presign)


def make_contract_call(
    *,
    version: int,
    chain_id: int,
    payload: ContractCallPayload,
    private_key: StacksPrivateKey,
    nonce: int,
    fee: int | None = None,
    fee_rate: int = DEFAULT_FEE_RATE,
    post_conditions: Sequence[STXPostCondition] = (),
    post_condition_mode: PostConditionMode = PostConditionMode.DENY,
    anchor_mode: AnchorMode = AnchorMode.ANY,
) -> StacksTransaction:
    """Build and sign a contract-call transaction.

    When *fee* is omitted it is derived from *fee_rate* and the serialized
    length, which does not depend on the fee or the signature.
    """

    key_encoding = (
        KeyEncoding.COMPRESSED if private_key.compressed else KeyEncoding.UNCOMPRESSED
    )
    condition = SingleSigSpendingCondition(
        signer=hash160(private_key.public_key),
        nonce=nonce,
        fee=fee or 0,
        key_encoding=key_encoding,
    )
    tx = StacksTransaction(
        version=version,
        chain_id=chain_id,
        spending_condition=condition,
        payload=payload,
        post_conditions=list(post_conditions),
        anchor_mode=anchor_mode,
        post_condition_mode=post_condition_mode,
    )
    if fee is None:
        condition.fee = calculate_fee(fee_rate, len(tx.serialize()))
        logger.info("Estimated fee %d uSTX at %d uSTX/byte", condition.fee, fee_rate)

    tx.sign(private_key)
    logger.info(
        "Signed contract call %s::%s (txid %s)",
        payload.contract_name,
        payload.function_name,
        tx.txid(),
    )
    return tx
