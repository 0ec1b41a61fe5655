"""Network presets and default ``send-many`` contract selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum

from .c32 import MAINNET_SINGLE_SIG, TESTNET_SINGLE_SIG

logger = logging.getLogger(__name__)

DEFAULT_TESTNET_CONTRACT = "STB44HYPYAT2BB2QE513NSP81HTMYWBJP02HPGK6.send-many"
# No production deployment exists yet; mainnet users must pass --contractAddress.
DEFAULT_MAINNET_CONTRACT = "not-deployed"


class NetworkResolutionError(ValueError):
    """Raised when a network name does not map to a known preset."""


class ChainID(IntEnum):
    MAINNET = 0x00000001
    TESTNET = 0x80000000


class TransactionVersion(IntEnum):
    MAINNET = 0x00
    TESTNET = 0x80


@dataclass(frozen=True)
class NetworkPreset:
    name: str
    chain_id: ChainID
    default_api_url: str


class Network(Enum):
    """The closed set of networks a bulk transfer can target."""

    MAINNET = NetworkPreset("mainnet", ChainID.MAINNET, "https://stacks-node-api.mainnet.stacks.co")
    TESTNET = NetworkPreset("testnet", ChainID.TESTNET, "https://stacks-node-api.testnet.stacks.co")
    MOCKNET = NetworkPreset("mocknet", ChainID.TESTNET, "http://localhost:3999")

    @classmethod
    def from_name(cls, name: str) -> "Network":
        for member in cls:
            if member.value.name == name:
                return member
        choices = ", ".join(member.value.name for member in cls)
        raise NetworkResolutionError(f"Unknown network {name!r}; expected one of: {choices}")


NETWORK_NAMES = tuple(member.value.name for member in Network)


@dataclass(frozen=True)
class StacksNetwork:
    """A resolved network: a preset plus the API endpoint to talk to."""

    preset: Network
    api_url: str

    @property
    def name(self) -> str:
        return self.preset.value.name

    @property
    def chain_id(self) -> ChainID:
        return self.preset.value.chain_id

    @property
    def is_mainnet(self) -> bool:
        return self.chain_id == ChainID.MAINNET

    @property
    def transaction_version(self) -> TransactionVersion:
        return TransactionVersion.MAINNET if self.is_mainnet else TransactionVersion.TESTNET

    @property
    def address_version(self) -> int:
        return MAINNET_SINGLE_SIG if self.is_mainnet else TESTNET_SINGLE_SIG

    @property
    def explorer_chain(self) -> str:
        return "mainnet" if self.is_mainnet else "testnet"

    def with_api_url(self, api_url: str) -> "StacksNetwork":
        return replace(self, api_url=api_url.rstrip("/"))


def resolve_network(name: str, node_url: str | None = None) -> StacksNetwork:
    """Return the network for *name*, optionally pointed at *node_url*."""

    preset = Network.from_name(name)
    network = StacksNetwork(preset=preset, api_url=preset.value.default_api_url)
    if node_url:
        network = network.with_api_url(node_url)
    logger.info("Using %s network via %s", network.name, network.api_url)
    return network


def resolve_contract(network: StacksNetwork, explicit: str | None = None) -> str:
    """Return the ``send-many`` contract identifier to call on *network*."""

    if explicit:
        return explicit
    if network.chain_id == ChainID.TESTNET:
        return DEFAULT_TESTNET_CONTRACT
    logger.warning(
        "No send-many contract is deployed on %s yet; pass --contractAddress to target one",
        network.name,
    )
    return DEFAULT_MAINNET_CONTRACT
