"""Bulk STX transfers through the ``send-many`` Clarity contract."""

from .api_client import BroadcastError, NonceResolutionError, StacksAPIClient
from .builder import TransactionRequest, send_many
from .c32 import is_valid_address
from .clarity import EncodingError
from .keys import InvalidSigningKeyError, StacksPrivateKey
from .network import (
    DEFAULT_MAINNET_CONTRACT,
    DEFAULT_TESTNET_CONTRACT,
    ChainID,
    Network,
    NetworkResolutionError,
    StacksNetwork,
    resolve_contract,
    resolve_network,
)
from .recipients import (
    InvalidAddressError,
    InvalidAmountError,
    NoRecipientsError,
    Recipient,
    is_normal_integer,
    parse_recipients,
)
from .reporter import report_transaction
from .transaction import StacksTransaction, make_contract_call

__all__ = [
    "BroadcastError",
    "NonceResolutionError",
    "StacksAPIClient",
    "TransactionRequest",
    "send_many",
    "is_valid_address",
    "EncodingError",
    "InvalidSigningKeyError",
    "StacksPrivateKey",
    "DEFAULT_MAINNET_CONTRACT",
    "DEFAULT_TESTNET_CONTRACT",
    "ChainID",
    "Network",
    "NetworkResolutionError",
    "StacksNetwork",
    "resolve_contract",
    "resolve_network",
    "InvalidAddressError",
    "InvalidAmountError",
    "NoRecipientsError",
    "Recipient",
    "is_normal_integer",
    "parse_recipients",
    "report_transaction",
    "StacksTransaction",
    "make_contract_call",
]
