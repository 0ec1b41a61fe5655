"""Print or broadcast a signed transaction and report the outcome."""

from __future__ import annotations

import logging
from typing import Protocol

from .network import StacksNetwork
from .transaction import StacksTransaction

logger = logging.getLogger(__name__)

EXPLORER_URL = "https://explorer.stacks.co"


class Broadcaster(Protocol):
    def broadcast_transaction(self, raw_tx: bytes) -> str:
        ...


def explorer_link(txid: str, network: StacksNetwork) -> str:
    return f"{EXPLORER_URL}/txid/0x{txid}?chain={network.explorer_chain}"


def report_transaction(
    tx: StacksTransaction,
    network: StacksNetwork,
    client: Broadcaster,
    *,
    broadcast: bool = False,
    verbose: bool = False,
) -> str | None:
    """Emit the transaction hex, or broadcast it and emit the txid.

    The unlabeled primary line is the hex, or the txid when broadcasting. In
    verbose mode a labeled hex line always comes first, and a broadcast reports
    labeled txid and explorer lines in place of the bare txid. Returns the
    broadcast txid.
    """

    tx_hex = tx.hex()
    if verbose:
        print("Transaction hex:", tx_hex, flush=True)

    if not broadcast:
        print(tx_hex)
        return None

    txid = client.broadcast_transaction(tx.serialize())
    logger.info("Broadcast accepted for %s", network.name)
    if verbose:
        print("Transaction ID:", txid)
        print("View in explorer:", explorer_link(txid, network))
    else:
        print(txid)
    return txid
