"""
Configuration Resolver - Gather run settings from the environment.

Reads the network name, RPC provider API key, contract address and signer
key once, up front. Components receive the resulting ``Configuration``
explicitly; nothing downstream reads the environment on its own.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import MissingConfigurationError

ENV_NETWORK = "ETHEREUM_NETWORK"
ENV_API_KEY = "INFURA_API_KEY"
ENV_CONTRACT = "DEMO_CONTRACT"
ENV_PRIVATE_KEY = "SIGNER_PRIVATE_KEY"

ENV_ABI_PATH = "CONTRACT_ABI_PATH"
ENV_GAS_LIMIT = "GAS_LIMIT"
ENV_RECEIPT_TIMEOUT = "RECEIPT_TIMEOUT"
ENV_POLL_INTERVAL = "POLL_INTERVAL"
ENV_RPC_URL = "ETHEREUM_RPC_URL"

REQUIRED_KEYS = (ENV_NETWORK, ENV_API_KEY, ENV_CONTRACT, ENV_PRIVATE_KEY)

DEFAULT_ABI_PATH = "Test.json"
DEFAULT_GAS_LIMIT = 1_000_000
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0


def infura_url(network: str, api_key: str) -> str:
    """Build the Infura HTTPS endpoint for a network name."""
    return f"https://{network}.infura.io/v3/{api_key}"


@dataclass(frozen=True)
class Configuration:
    """
    Immutable run settings.

    Attributes:
        network: Network name used in the endpoint host (e.g. "sepolia")
        api_key: RPC provider API key
        contract_address: 0x-prefixed address of the deployed contract
        private_key: Hex private key of the signing account
        abi_path: Path to the compiled contract artifact
        gas_limit: Gas limit for the write call (None = ask the node)
        receipt_timeout: Seconds to wait for inclusion
        poll_interval: Seconds between receipt polls
        rpc_url: Explicit endpoint; overrides the Infura URL
    """
    network: str
    api_key: str = field(repr=False)
    contract_address: str
    private_key: str = field(repr=False)
    abi_path: Path = Path(DEFAULT_ABI_PATH)
    gas_limit: Optional[int] = DEFAULT_GAS_LIMIT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    rpc_url: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        values = {
            ENV_NETWORK: self.network,
            ENV_API_KEY: self.api_key,
            ENV_CONTRACT: self.contract_address,
            ENV_PRIVATE_KEY: self.private_key,
        }
        for key in REQUIRED_KEYS:
            if not values[key] or not values[key].strip():
                raise MissingConfigurationError(key)

    @property
    def endpoint(self) -> str:
        """The JSON-RPC endpoint this run talks to."""
        return self.rpc_url or infura_url(self.network, self.api_key)


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise MissingConfigurationError(key, f"{key} must be a number, got {raw!r}") from None


def _seconds(env: Mapping[str, str], key: str, default: float) -> float:
    value = _number(env, key, default, float)
    if not math.isfinite(value) or value < 0:
        raise MissingConfigurationError(key, f"{key} must be a non-negative number of seconds, got {value!r}")
    return value


def load_configuration(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
) -> Configuration:
    """
    Resolve the run configuration.

    Args:
        environ: Mapping to read from. If None, the process environment is
                 used after loading ``env_file`` (or ``./.env``) into it.
        env_file: Path to a .env file; only used when ``environ`` is None.

    Returns:
        Configuration

    Raises:
        MissingConfigurationError: If a required value is absent or blank,
                                   or an optional number does not parse
                                   or is out of range
    """
    if environ is None:
        load_dotenv(env_file or find_dotenv(usecwd=True), override=False)
        environ = os.environ

    values = {}
    for key in REQUIRED_KEYS:
        value = environ.get(key, "").strip()
        if not value:
            raise MissingConfigurationError(key)
        values[key] = value

    gas_limit = _number(environ, ENV_GAS_LIMIT, DEFAULT_GAS_LIMIT, int)
    if gas_limit is not None and gas_limit <= 0:
        # zero or negative means "estimate"
        gas_limit = None

    return Configuration(
        network=values[ENV_NETWORK],
        api_key=values[ENV_API_KEY],
        contract_address=values[ENV_CONTRACT],
        private_key=values[ENV_PRIVATE_KEY],
        abi_path=Path(environ.get(ENV_ABI_PATH, "").strip() or DEFAULT_ABI_PATH),
        gas_limit=gas_limit,
        receipt_timeout=_seconds(environ, ENV_RECEIPT_TIMEOUT, DEFAULT_RECEIPT_TIMEOUT),
        poll_interval=_seconds(environ, ENV_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
        rpc_url=environ.get(ENV_RPC_URL, "").strip() or None,
    )
