"""
Contract Binding - One deployed contract, its ABI, and a transport.

``call`` runs read-only methods through eth_call; ``send`` signs and submits
a transaction for mutating methods and blocks until the node reports it
included. Method lookup and the mutability check happen before any network
request is made.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from ..config import DEFAULT_POLL_INTERVAL, DEFAULT_RECEIPT_TIMEOUT
from ..errors import (
    MethodMutabilityMismatchError,
    SignerUnavailableError,
    TransactionFailedError,
)
from ..sigil.eth import Signer
from .abi import AbiMethod, ContractAbi, as_contract_abi
from .rpc import RpcTransport
from .tx import Receipt, TransactionRequest, build_transaction, checksum, sign_and_send

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractBinding:
    """
    A deployed contract bound to an ABI and a transport.

    Attributes:
        abi: Method table
        address: Checksummed contract address
        transport: JSON-RPC transport
        signer: Account used by ``send`` (optional for read-only use)
    """
    abi: ContractAbi
    address: str
    transport: RpcTransport
    signer: Optional[Signer] = None

    def _method(self, name: str, read_only: bool) -> AbiMethod:
        method = self.abi.method(name)
        if read_only and not method.read_only:
            raise MethodMutabilityMismatchError(
                f"{method.signature} is {method.mutability}; use send() instead of call()"
            )
        if not read_only and method.read_only:
            raise MethodMutabilityMismatchError(
                f"{method.signature} is {method.mutability}; use call() instead of send()"
            )
        return method

    def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        """
        Run a read-only method.

        Args:
            method: Method name or full signature
            args: Method arguments

        Returns:
            Decoded result (None, a single value, or a tuple)

        Raises:
            MethodNotFoundError: Unknown method
            MethodMutabilityMismatchError: Method mutates state
            TransportError: RPC failure
            TransactionFailedError: Call returned no data
        """
        abi_method = self._method(method, read_only=True)
        calldata = abi_method.encode_call(args)

        result = self.transport.eth_call(self.address, calldata)
        if abi_method.output_types and result in ("0x", ""):
            raise TransactionFailedError(
                f"Call to {abi_method.signature} returned no data "
                f"(reverted, or no contract at {self.address})"
            )
        return abi_method.decode_result(result)

    def send(
        self,
        method: str,
        args: Sequence[Any] = (),
        sender: Optional[str] = None,
        gas_limit: Optional[int] = None,
        value: int = 0,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> Receipt:
        """
        Sign and submit a transaction for a mutating method.

        Blocks until the transaction is included or ``timeout`` expires.

        Args:
            method: Method name or full signature
            args: Method arguments
            sender: Sending address (default: the bound signer)
            gas_limit: Gas limit (default: estimate)
            value: ETH value in wei (payable methods only)
            timeout: Receipt wait timeout in seconds
            poll_interval: Receipt polling interval in seconds

        Returns:
            Receipt of the included transaction

        Raises:
            MethodNotFoundError: Unknown method
            MethodMutabilityMismatchError: Read-only method, or value on a
                                           non-payable one
            SignerUnavailableError: No signer for ``sender``
            ValueError: Bad arguments, or a negative or non-finite timeout
            TransportError: RPC failure
            TransactionFailedError: Reverted or not included in time
        """
        abi_method = self._method(method, read_only=False)
        if value and not abi_method.payable:
            raise MethodMutabilityMismatchError(
                f"{abi_method.signature} is not payable; cannot send value"
            )

        if self.signer is None:
            raise SignerUnavailableError("No signer bound; cannot send transactions")
        sender = checksum(sender) if sender else self.signer.address
        if sender != self.signer.address:
            raise SignerUnavailableError(f"No signer available for {sender}")

        request = TransactionRequest(
            method=abi_method,
            args=tuple(args),
            to=self.address,
            sender=sender,
            gas_limit=gas_limit,
            value=value,
        )
        # Bad arguments fail here, before any network request
        abi_method.encode_call(request.args)
        timeout = DEFAULT_RECEIPT_TIMEOUT if timeout is None else timeout
        poll_interval = DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval
        for name, seconds in (("timeout", timeout), ("poll_interval", poll_interval)):
            if not math.isfinite(seconds) or seconds < 0:
                raise ValueError(f"{name} must be a non-negative number of seconds, got {seconds!r}")

        tx = build_transaction(request, self.transport)
        logger.debug("Sending %s from %s (gas=%d)", abi_method.signature, sender, tx["gas"])
        return sign_and_send(
            tx,
            self.signer,
            self.transport,
            timeout=timeout,
            poll_interval=poll_interval,
        )


def bind(
    abi: Union[ContractAbi, list],
    address: str,
    transport: RpcTransport,
    signer: Optional[Signer] = None,
) -> ContractBinding:
    """
    Bind an ABI to a deployed contract.

    Args:
        abi: ContractAbi or raw ABI entry list
        address: Contract address (any case)
        transport: JSON-RPC transport
        signer: Account for ``send``

    Raises:
        InvalidAbiError: Empty or malformed ABI
        ValueError: Invalid address
    """
    return ContractBinding(
        abi=as_contract_abi(abi),
        address=checksum(address),
        transport=transport,
        signer=signer,
    )
