"""Command-line interface for STX bulk transfers.

A bulk transfer is executed in a single transaction by invoking a
``contract-call`` on the ``send-many`` contract. The command validates the
recipients, resolves the network and contract, signs the transaction and
either prints its hex or broadcasts it.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .api_client import APITransportError, BroadcastError, NonceResolutionError, StacksAPIClient
from .builder import TransactionRequest, send_many
from .clarity import EncodingError
from .config import ConfigurationError, TransferConfig, load_transfer_config
from .keys import InvalidSigningKeyError
from .network import (
    DEFAULT_MAINNET_CONTRACT,
    DEFAULT_TESTNET_CONTRACT,
    NETWORK_NAMES,
    NetworkResolutionError,
    resolve_contract,
    resolve_network,
)
from .recipients import RecipientError, parse_recipients
from .reporter import report_transaction

logger = logging.getLogger(__name__)

DESCRIPTION = f"""\
Execute a bulk STX transfer.

The bulk transfer is executed in a single transaction by invoking a
`contract-call` on the "send-many" contract.

The default contracts can be found below:

  Testnet: https://explorer.stacks.co/txid/{DEFAULT_TESTNET_CONTRACT}?chain=testnet
  Mainnet: https://explorer.stacks.co/txid/{DEFAULT_MAINNET_CONTRACT}?chain=mainnet
"""

EPILOG = """\
example:
  stx-bulk-transfer STADMRP577SC3MCNP7T3PRSTZBJ75FJ59JGABZTW,100 \\
    ST2WPFYAW85A0YK9ACJR8JGWPM19VWYF90J8P5ZTH,50 -k my_private_key -n testnet -b
"""


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stx-bulk-transfer",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "recipients",
        nargs="+",
        metavar="recipient",
        help='A recipient in the format "address,amount_ustx", e.g. '
        "STADMRP577SC3MCNP7T3PRSTZBJ75FJ59JGABZTW,100",
    )
    parser.add_argument(
        "-k", "--privateKey", dest="private_key", required=True, help="Your private key"
    )
    parser.add_argument(
        "-b",
        "--broadcast",
        action="store_true",
        help="Whether to broadcast this transaction or not.",
    )
    parser.add_argument(
        "-n",
        "--network",
        choices=NETWORK_NAMES,
        default=None,
        help="Which network to broadcast this to (default: testnet)",
    )
    parser.add_argument("-u", "--nodeUrl", dest="node_url", help="Override the node API URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print labeled details")
    parser.add_argument(
        "-c",
        "--contractAddress",
        dest="contract_address",
        help="Manually specify the contract address for send-many. "
        "If omitted, default contracts will be used.",
    )
    parser.add_argument(
        "--nonce", type=int, help="Optionally specify a nonce for this transaction"
    )
    parser.add_argument(
        "--fee", type=int, help="Optionally specify the fee in uSTX instead of estimating it"
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        help="YAML config file (default: ~/.stx-bulk-transfer.yaml when present)",
    )
    return parser


def _validate_numeric_flags(args: argparse.Namespace) -> None:
    if args.nonce is not None and args.nonce < 0:
        raise CLIError("--nonce must not be negative")
    if args.fee is not None and args.fee < 0:
        raise CLIError("--fee must not be negative")


def cmd_send_many(args: argparse.Namespace, config: TransferConfig) -> str | None:
    """Validate, build, sign and print or broadcast one bulk transfer."""

    _validate_numeric_flags(args)
    recipients = parse_recipients(args.recipients)
    network = resolve_network(config.network, config.node_url)
    contract_identifier = resolve_contract(network, config.contract_address)
    client = StacksAPIClient(network.api_url, timeout=config.timeout)

    request = TransactionRequest(
        recipients=recipients,
        network=network,
        sender_key=args.private_key,
        contract_identifier=contract_identifier,
        nonce=args.nonce,
        fee=args.fee,
        fee_rate=config.fee_rate,
    )
    logger.info("Prepared %r", request)
    tx = send_many(request, client)
    return report_transaction(
        tx, network, client, broadcast=args.broadcast, verbose=args.verbose
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    try:
        config = load_transfer_config(
            config_path=args.config_path,
            overrides={
                "network": args.network,
                "node_url": args.node_url,
                "contract_address": args.contract_address,
            },
        )
        cmd_send_many(args, config)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
        parser.exit(130)
    except (
        CLIError,
        ConfigurationError,
        RecipientError,
        NetworkResolutionError,
        InvalidSigningKeyError,
        EncodingError,
        NonceResolutionError,
        APITransportError,
        BroadcastError,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
