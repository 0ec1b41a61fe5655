"""Configuration loader for stx-bulk-transfer.

Settings are layered as explicit overrides (command-line flags), then
``STX_BULK_*`` environment variables, then the ``transfer`` section of a YAML
file, then built-in defaults. Signing keys are never read from configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from .api_client import DEFAULT_TIMEOUT
from .fees import DEFAULT_FEE_RATE
from .network import NETWORK_NAMES


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".stx-bulk-transfer.yaml"
DEFAULT_NETWORK = "testnet"

ENV_NETWORK = "STX_BULK_NETWORK"
ENV_NODE_URL = "STX_BULK_NODE_URL"
ENV_CONTRACT_ADDRESS = "STX_BULK_CONTRACT_ADDRESS"
ENV_FEE_RATE = "STX_BULK_FEE_RATE"
ENV_TIMEOUT = "STX_BULK_TIMEOUT"


@dataclass
class TransferConfig:
    """Resolved settings that shape a bulk transfer run."""

    network: str = DEFAULT_NETWORK
    node_url: str | None = None
    contract_address: str | None = None
    fee_rate: int = DEFAULT_FEE_RATE
    timeout: float = DEFAULT_TIMEOUT


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'transfer' section")
    return loaded


def _first_value(*candidates: tuple[Any, str]) -> tuple[Any, str | None]:
    """Return the first non-empty ``(value, source)`` pair, highest priority first."""

    for value, source in candidates:
        if value is not None and value != "":
            return value, source
    return None, None


def _coerce_int(raw: Any, *, source: str, minimum: int = 0) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer in {source}: {raw}") from exc
    if value < minimum:
        raise ConfigurationError(f"{source} must be at least {minimum}, got {value}")
    return value


def _coerce_timeout(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if value <= 0:
        raise ConfigurationError(f"{source} must be positive, got {value}")
    return value


def _check_url(raw: str | None, *, source: str) -> str | None:
    if not raw:
        return None
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid node URL in {source}: {raw}")
    return raw


def load_transfer_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> TransferConfig:
    """Load transfer settings from overrides, environment and optional YAML."""

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    file_config = _load_config_file(path, required=config_path is not None)
    section = file_config.get("transfer", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'transfer' to be a mapping in {path}")

    override_map = {key: value for key, value in (overrides or {}).items() if value is not None}
    file_source = f"{path} transfer"

    def layered(key: str, env_name: str, flag: str) -> tuple[Any, str | None]:
        return _first_value(
            (override_map.get(key), flag),
            (env_map.get(env_name), env_name),
            (section.get(key), f"{file_source}.{key}"),
        )

    network, _ = layered("network", ENV_NETWORK, "--network")
    network = network or DEFAULT_NETWORK
    if network not in NETWORK_NAMES:
        raise ConfigurationError(
            f"Unknown network {network!r}; expected one of: {', '.join(NETWORK_NAMES)}"
        )

    raw_url, url_source = layered("node_url", ENV_NODE_URL, "--nodeUrl")
    node_url = _check_url(raw_url, source=url_source)
    contract_address, _ = layered("contract_address", ENV_CONTRACT_ADDRESS, "--contractAddress")

    raw_rate, rate_source = layered("fee_rate", ENV_FEE_RATE, "overrides")
    fee_rate = _coerce_int(raw_rate, source=rate_source)
    raw_timeout, timeout_source = layered("timeout", ENV_TIMEOUT, "overrides")
    timeout = _coerce_timeout(raw_timeout, source=timeout_source)

    return TransferConfig(
        network=network,
        node_url=node_url,
        contract_address=contract_address,
        fee_rate=DEFAULT_FEE_RATE if fee_rate is None else fee_rate,
        timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
    )
