"""
Transaction Builder - Build, sign, and send contract transactions.

Uses eth-account (through the Signer) for signing and the JSON-RPC
transport for nonce, gas price, chain id, submission and receipt polling.
All gas is paid by the signing account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from eth_utils import is_address, to_checksum_address

from ..errors import TransactionFailedError
from ..sigil.eth import Signer
from .abi import AbiMethod
from .rpc import RpcTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionRequest:
    """
    A write call before signing.

    Attributes:
        method: ABI method being invoked
        args: Call arguments
        to: Checksummed contract address
        sender: Checksummed address of the signing account
        gas_limit: Gas limit (None = estimate through the node)
        value: ETH value in wei
    """
    method: AbiMethod
    args: tuple[Any, ...]
    to: str
    sender: str
    gas_limit: Optional[int] = None
    value: int = 0

    @property
    def data(self) -> str:
        return self.method.encode_call(self.args)

    def call_object(self) -> dict[str, Any]:
        """Fields for eth_estimateGas."""
        return {
            "from": self.sender,
            "to": self.to,
            "data": self.data,
            "value": hex(self.value),
        }

    def to_transaction(self, nonce: int, gas_price: int, chain_id: int, gas: int) -> dict[str, Any]:
        """Unsigned legacy (EIP-155) transaction dict for eth-account."""
        return {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "nonce": nonce,
            "gas": gas,
            "gasPrice": gas_price,
            "chainId": chain_id,
        }


@dataclass(frozen=True)
class Receipt:
    """Inclusion record of a submitted transaction."""
    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, tx_hash: str, receipt: dict[str, Any]) -> "Receipt":
        def _quantity(key: str) -> Optional[int]:
            value = receipt.get(key)
            return int(value, 16) if isinstance(value, str) else value

        return cls(
            tx_hash=receipt.get("transactionHash", tx_hash),
            status=_quantity("status") or 0,
            block_number=_quantity("blockNumber"),
            gas_used=_quantity("gasUsed"),
            raw=dict(receipt),
        )


def build_transaction(request: TransactionRequest, transport: RpcTransport) -> dict[str, Any]:
    """
    Fill in nonce, gas price, chain id and gas for a request.

    Returns:
        Unsigned transaction dict
    """
    nonce = transport.get_nonce(request.sender)
    gas_price = transport.get_gas_price()
    chain_id = transport.chain_id()
    gas = request.gas_limit or transport.estimate_gas(request.call_object())
    return request.to_transaction(nonce=nonce, gas_price=gas_price, chain_id=chain_id, gas=gas)


def send_signed(tx: dict[str, Any], signer: Signer, transport: RpcTransport) -> str:
    """Sign a transaction and submit it; returns the transaction hash."""
    raw_tx = "0x" + signer.sign(tx).hex()
    return transport.send_raw_transaction(raw_tx)


def sign_and_send(
    tx: dict[str, Any],
    signer: Signer,
    transport: RpcTransport,
    timeout: float = 120,
    poll_interval: float = 2.0,
) -> Receipt:
    """
    Sign a transaction, send it, and wait for inclusion.

    Args:
        tx: Unsigned transaction dict
        signer: Signing account
        transport: JSON-RPC transport
        timeout: Receipt wait timeout in seconds
        poll_interval: Receipt polling interval in seconds

    Returns:
        Receipt of the included transaction

    Raises:
        TransactionFailedError: Reverted, or not included within ``timeout``
    """
    tx_hash = send_signed(tx, signer, transport)

    receipt = transport.wait_for_receipt(tx_hash, timeout=timeout, poll_interval=poll_interval)
    if receipt is None:
        raise TransactionFailedError(
            f"Transaction {tx_hash} not confirmed within {timeout}s", tx_hash=tx_hash
        )

    result = Receipt.from_rpc(tx_hash, receipt)
    if not result.succeeded:
        raise TransactionFailedError(
            f"Transaction {tx_hash} reverted", tx_hash=tx_hash, receipt=result
        )

    logger.debug("Transaction %s included in block %s", tx_hash, result.block_number)
    return result


def checksum(address: str) -> str:
    """EIP-55 checksum an address; ValueError if it is not one."""
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)
