"""Fee helpers for Stacks transactions."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# µSTX per serialized byte; matches the node's minimum relay rate.
DEFAULT_FEE_RATE = 1


def calculate_fee(fee_rate: int, tx_length: int) -> int:
    """Return the fee in µSTX for a transaction of *tx_length* bytes."""

    if fee_rate < 0:
        raise ValueError(f"fee rate must not be negative: {fee_rate}")
    fee = fee_rate * tx_length
    logger.debug("Fee for %d bytes at %d uSTX/byte: %d", tx_length, fee_rate, fee)
    return fee
