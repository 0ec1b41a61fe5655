"""HTTP client for the Stacks node API.

Only the two calls a bulk transfer needs are wrapped: reading an account's
current nonce and broadcasting a serialized transaction. Neither call is
retried; failures surface as typed errors with the node's reason attached when
one is available.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

import requests
from requests import RequestException, Response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class APITransportError(RuntimeError):
    """Raised when the node API is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NonceResolutionError(RuntimeError):
    """Raised when the sender's current nonce cannot be fetched."""


class BroadcastError(RuntimeError):
    """Raised when a transaction cannot be submitted or the node rejects it."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        reason_data: Any = None,
        txid: str | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.reason_data = reason_data
        self.txid = txid


def format_broadcast_hint(reason: str | None) -> str | None:
    """Return a remediation hint for common node rejection reasons."""

    if reason in {"BadNonce", "ConflictingNonceInMempool"}:
        return (
            "The nonce is stale or already used by a pending transaction. Omit --nonce to use "
            "the account's current nonce, or pass the next unused value."
        )
    if reason == "FeeTooLow":
        return "The fee is below the node's minimum. Pass a higher --fee or raise fee_rate."
    if reason == "NotEnoughFunds":
        return "The sender cannot cover the transfer total plus the fee."
    if reason == "NoSuchContract":
        return (
            "The send-many contract does not exist on this network. Pass --contractAddress "
            "with a deployed contract identifier."
        )
    if reason == "BadAddressVersionByte":
        return "A recipient or contract address belongs to a different network than --network."
    return None


class StacksAPIClient:
    """Thin wrapper over the Stacks node API endpoints used by the CLI."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> Response:
        url = f"{self.base_url}{path}"
        logger.debug("API %s %s", method, url)
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as exc:
            logger.error(
                "API connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise APITransportError(
                f"Could not reach the Stacks node at {self.base_url}. "
                "Check --nodeUrl or STX_BULK_NODE_URL."
            ) from exc

    def get_account(self, address: str) -> Dict[str, Any]:
        response = self._request("GET", f"/v2/accounts/{address}", params={"proof": 0})
        if not response.ok:
            logger.error("API HTTP error %s from %s", response.status_code, response.url)
            raise APITransportError(
                f"Account lookup for {address} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            logger.debug("API JSON parse error: %s", response.text, exc_info=True)
            raise APITransportError("Account lookup returned malformed JSON") from exc
        if not isinstance(payload, dict):
            raise APITransportError("Account lookup returned an unexpected payload")
        return payload

    def get_account_nonce(self, address: str) -> int:
        """Return the next nonce the node expects from *address*."""

        try:
            account = self.get_account(address)
        except APITransportError as exc:
            raise NonceResolutionError(f"Unable to fetch nonce for {address}: {exc}") from exc
        try:
            nonce = int(account["nonce"])
        except (KeyError, TypeError, ValueError) as exc:
            raise NonceResolutionError(
                f"Account response for {address} does not contain a nonce"
            ) from exc
        logger.info("Resolved nonce %d for %s", nonce, address)
        return nonce

    def broadcast_transaction(self, raw_tx: bytes) -> str:
        """Submit *raw_tx* and return the transaction id reported by the node."""

        try:
            response = self._request(
                "POST",
                "/v2/transactions",
                data=raw_tx,
                headers={"content-type": "application/octet-stream"},
            )
        except APITransportError as exc:
            raise BroadcastError(str(exc)) from exc

        if not response.ok:
            raise self._rejection(response)

        try:
            result = response.json()
        except ValueError:
            # Some node versions answer with the bare txid instead of a JSON string.
            result = response.text.strip()
        if not isinstance(result, str) or not result:
            raise BroadcastError(f"Unexpected broadcast response: {response.text!r}")
        txid = result[2:] if result.startswith("0x") else result
        logger.info("Broadcast accepted as %s", txid)
        return txid

    @staticmethod
    def _rejection(response: Response) -> BroadcastError:
        try:
            body = response.json()
        except ValueError:
            body = response.text

        logger.error("Broadcast rejected with HTTP %s", response.status_code)
        logger.error("Broadcast error body: %s", body)
        if not isinstance(body, dict):
            return BroadcastError(
                f"Broadcast failed with HTTP {response.status_code}: {body}"
            )

        reason = body.get("reason")
        reason_data = body.get("reason_data")
        message = f"Broadcast failed: {body.get('error', 'transaction rejected')}"
        if reason:
            message += f" ({reason})"
        if reason_data:
            message += f": {json.dumps(reason_data, separators=(',', ':'))}"
        hint = format_broadcast_hint(reason)
        if hint:
            message += f"\nHint: {hint}"
        return BroadcastError(message, reason=reason, reason_data=reason_data, txid=body.get("txid"))
