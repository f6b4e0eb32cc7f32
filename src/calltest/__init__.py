__all__ = [
    # Configuration
    "Configuration",
    "load_configuration",
    # Errors
    "CallTestError",
    "MissingConfigurationError",
    "InvalidKeyError",
    "InvalidAbiError",
    "MethodNotFoundError",
    "MethodMutabilityMismatchError",
    "SignerUnavailableError",
    "TransportError",
    "TransactionFailedError",
    # Signer
    "Signer",
    "create_signer",
    "generate_signer",
    # ABI
    "AbiMethod",
    "ContractAbi",
    "load_abi_file",
    "parse_abi",
    # Transport / contract
    "RpcTransport",
    "ContractBinding",
    "Receipt",
    "TransactionRequest",
    "bind",
    # Driver
    "InvocationDriver",
    "RunReport",
    "RunState",
    "run_demo",
]

from .config import Configuration, load_configuration
from .errors import (
    CallTestError,
    InvalidAbiError,
    InvalidKeyError,
    MethodMutabilityMismatchError,
    MethodNotFoundError,
    MissingConfigurationError,
    SignerUnavailableError,
    TransactionFailedError,
    TransportError,
)
from .sigil.eth import Signer, create_signer, generate_signer
from .pneuma.abi import AbiMethod, ContractAbi, load_abi_file, parse_abi
from .pneuma.rpc import RpcTransport
from .pneuma.contract import ContractBinding, bind
from .pneuma.tx import Receipt, TransactionRequest
from .theurgy.drive import InvocationDriver, RunReport, RunState, run_demo
