"""
Error taxonomy for calltest.

Every error carries the pipeline stage it belongs to and the process exit
code the CLI should use when it escapes.
"""

from __future__ import annotations

from typing import Any, Optional


class CallTestError(RuntimeError):
    stage: str = "run"
    exit_code: int = 1


class MissingConfigurationError(CallTestError):
    stage = "configuration"
    exit_code = 2

    def __init__(self, key: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{key} is not set")
        self.key = key


class InvalidKeyError(CallTestError):
    stage = "signer"
    exit_code = 3


class InvalidAbiError(CallTestError):
    stage = "abi"
    exit_code = 4


class MethodNotFoundError(CallTestError):
    stage = "contract"
    exit_code = 5

    def __init__(self, method: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Method {method!r} not found in ABI")
        self.method = method


class MethodMutabilityMismatchError(CallTestError):
    stage = "contract"
    exit_code = 5


class SignerUnavailableError(CallTestError):
    stage = "contract"
    exit_code = 5


class TransportError(CallTestError):
    stage = "transport"
    exit_code = 6

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class TransactionFailedError(CallTestError):
    stage = "transaction"
    exit_code = 7

    def __init__(self, message: str, tx_hash: Optional[str] = None, receipt: Any = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash
        self.receipt = receipt
