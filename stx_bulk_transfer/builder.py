"""Assemble and sign ``send-many`` bulk transfer transactions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol

from .c32 import c32_address_decode
from .clarity import ListCV, StandardPrincipalCV, TupleCV, UIntCV
from .fees import DEFAULT_FEE_RATE
from .keys import StacksPrivateKey
from .network import StacksNetwork
from .recipients import NoRecipientsError, Recipient
from .transaction import (
    ContractCallPayload,
    FungibleConditionCode,
    PostConditionMode,
    STXPostCondition,
    StacksTransaction,
    make_contract_call,
)

logger = logging.getLogger(__name__)

SEND_MANY_FUNCTION = "send-many"


class NonceSource(Protocol):
    def get_account_nonce(self, address: str) -> int:
        ...


@dataclass
class TransactionRequest:
    """Everything needed to build one bulk transfer transaction."""

    recipients: List[Recipient]
    network: StacksNetwork
    sender_key: str
    contract_identifier: str
    nonce: int | None = None
    fee: int | None = None
    fee_rate: int = DEFAULT_FEE_RATE

    def __post_init__(self) -> None:
        if not self.recipients:
            raise NoRecipientsError()

    def __repr__(self) -> str:
        return (
            f"TransactionRequest(recipients={len(self.recipients)}, network={self.network.name!r}, "
            f"contract_identifier={self.contract_identifier!r}, nonce={self.nonce!r}, fee={self.fee!r})"
        )


def recipients_to_clarity(recipients: List[Recipient]) -> ListCV:
    """Encode recipients as ``(list {to: principal, ustx: uint})``."""

    return ListCV.of(
        TupleCV.from_mapping(
            {
                "to": StandardPrincipalCV.from_address(recipient.address),
                "ustx": UIntCV(recipient.ustx),
            }
        )
        for recipient in recipients
    )


def total_amount(recipients: List[Recipient]) -> int:
    return sum(recipient.ustx for recipient in recipients)


def send_many(request: TransactionRequest, client: NonceSource) -> StacksTransaction:
    """Build and sign a ``send-many`` contract call for *request*.

    The sender's nonce is fetched from *client* unless ``request.nonce`` is set.
    """

    private_key = StacksPrivateKey.from_hex(request.sender_key)
    # Parsed before any network read.
    payload = ContractCallPayload.from_identifier(
        request.contract_identifier,
        SEND_MANY_FUNCTION,
        [recipients_to_clarity(request.recipients)],
    )
    network = request.network
    sender = private_key.address(network.address_version)
    sender_version, sender_hash = c32_address_decode(sender)

    total = total_amount(request.recipients)
    post_condition = STXPostCondition(
        address_version=sender_version,
        address_hash=sender_hash,
        condition_code=FungibleConditionCode.EQUAL,
        amount=total,
    )
    logger.info(
        "Building %s for %d recipients totalling %d uSTX from %s",
        SEND_MANY_FUNCTION,
        len(request.recipients),
        total,
        sender,
    )

    if request.nonce is not None:
        nonce = request.nonce
    else:
        nonce = client.get_account_nonce(sender)

    return make_contract_call(
        version=network.transaction_version,
        chain_id=network.chain_id,
        payload=payload,
        private_key=private_key,
        nonce=nonce,
        fee=request.fee,
        fee_rate=request.fee_rate,
        post_conditions=[post_condition],
        post_condition_mode=PostConditionMode.DENY,
    )
