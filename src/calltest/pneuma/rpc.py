"""
JSON-RPC transport for an Ethereum node.

Lightweight alternative to web3.py: uses httpx for HTTP and leaves ABI work
to eth-abi. One endpoint per transport, fixed timeout, no retries. Every
failure (DNS, TLS, timeout, non-2xx, malformed envelope, JSON-RPC error)
surfaces as ``TransportError`` with the underlying cause chained.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Optional

import httpx

from ..errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _to_int(value: Any, method: str) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise TransportError(f"RPC {method} returned a non-quantity result: {value!r}")
    try:
        return int(value, 16)
    except ValueError:
        raise TransportError(f"RPC {method} returned a non-quantity result: {value!r}") from None


class RpcTransport:
    """
    JSON-RPC 2.0 client for a single HTTPS endpoint.

    Args:
        url: Endpoint URL (may embed an API key; it is never logged)
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RpcTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RpcTransport(host={httpx.URL(self.url).host!r})"

    def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            TransportError: If the call fails for any reason
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": request_id,
        }
        logger.debug("RPC -> %s (id=%d)", method, request_id)

        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"RPC {method} failed: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"RPC {method} failed: {type(exc).__name__}: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"RPC {method} returned a non-JSON body") from exc

        if not isinstance(data, dict) or data.get("jsonrpc") != "2.0":
            raise TransportError(f"RPC {method} returned a malformed JSON-RPC envelope")

        if "error" in data and data["error"] is not None:
            error = data["error"]
            if isinstance(error, dict):
                raise TransportError(
                    f"RPC error: {error.get('message', error)}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise TransportError(f"RPC error: {error}")

        if "result" not in data:
            raise TransportError(f"RPC {method} response has neither result nor error")

        return data["result"]

    # ---------------------------------------------------------------------
    # Typed helpers
    # ---------------------------------------------------------------------

    def chain_id(self) -> int:
        return _to_int(self.request("eth_chainId"), "eth_chainId")

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        return _to_int(self.request("eth_getBalance", [address, "latest"]), "eth_getBalance")

    def get_nonce(self, address: str, block: str = "pending") -> int:
        """Transaction count for an address (pending by default)."""
        result = self.request("eth_getTransactionCount", [address, block])
        return _to_int(result, "eth_getTransactionCount")

    def get_gas_price(self) -> int:
        """Current gas price in wei."""
        return _to_int(self.request("eth_gasPrice"), "eth_gasPrice")

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        """Estimate gas for a call object ({from, to, data, value})."""
        return _to_int(self.request("eth_estimateGas", [tx]), "eth_estimateGas")

    def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Read-only call; returns hex return data."""
        result = self.request("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise TransportError(f"RPC eth_call returned a non-hex result: {result!r}")
        return result

    def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Args:
            raw_tx: 0x-prefixed hex encoded signed transaction

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        tx_hash = self.request("eth_sendRawTransaction", [raw_tx])
        if not isinstance(tx_hash, str):
            raise TransportError(f"RPC eth_sendRawTransaction returned {tx_hash!r}")
        logger.debug("Submitted transaction %s", tx_hash)
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return self.request("eth_getTransactionReceipt", [tx_hash])

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
        poll_interval: float = 2.0,
    ) -> Optional[dict]:
        """
        Poll for a transaction receipt.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Receipt dict, or None if not included within ``timeout``
        """
        deadline = time.monotonic() + timeout
        while True:
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug("No receipt for %s after %.1fs", tx_hash, timeout)
                return None
            time.sleep(max(0.0, min(poll_interval, remaining)))
