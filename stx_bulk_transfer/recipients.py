"""Parsing and validation of ``address,amount`` recipient tokens."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List

from .c32 import is_valid_address

logger = logging.getLogger(__name__)

NORMAL_INTEGER_PATTERN = re.compile(r"0|[1-9][0-9]*")


class RecipientError(ValueError):
    """Raised when a recipient token is malformed."""

    def __init__(self, token: str, message: str) -> None:
        super().__init__(message)
        self.token = token


class InvalidAddressError(RecipientError):
    """The address half of a recipient token is not a valid STX address."""


class InvalidAmountError(RecipientError):
    """The amount half of a recipient token is not a positive integer."""


class NoRecipientsError(RecipientError):
    """Raised when a transfer is requested without any recipient."""

    def __init__(self) -> None:
        super().__init__("", "A bulk transfer needs at least one recipient")


@dataclass(frozen=True)
class Recipient:
    address: str
    amount: str

    @property
    def ustx(self) -> int:
        return int(self.amount)


def is_normal_integer(value: str) -> bool:
    """Return ``True`` for plain non-negative integer strings like ``"100"``.

    Signs, decimals, separators and leading zeros (other than ``"0"`` itself)
    are rejected.
    """

    return bool(NORMAL_INTEGER_PATTERN.fullmatch(value))


def parse_recipient(token: str) -> Recipient:
    address, _, amount = token.partition(",")
    if not is_valid_address(address):
        raise InvalidAddressError(token, f"{address} is not a valid STX address (in {token!r})")
    if not is_normal_integer(amount) or amount == "0":
        raise InvalidAmountError(
            token, f"{amount!r} is not a valid positive integer amount (in {token!r})"
        )
    return Recipient(address=address, amount=amount)


def parse_recipients(tokens: Iterable[str]) -> List[Recipient]:
    """Parse recipient tokens in order, failing on the first invalid one."""

    recipients = [parse_recipient(token) for token in tokens]
    if not recipients:
        raise NoRecipientsError()
    logger.debug("Parsed %d recipients", len(recipients))
    return recipients
