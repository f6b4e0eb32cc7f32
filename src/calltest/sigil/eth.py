"""
ECDSA / secp256k1 signer for calltest.

Derives the sending account from a raw hex private key and signs the
outgoing transaction with it. The key stays in process memory; it is never
logged, printed, or written anywhere.

Dependencies: eth-account (no full web3.py needed)
"""

from __future__ import annotations

import re
import secrets
from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError

from ..errors import InvalidKeyError

_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")

# secp256k1 group order; valid keys are in [1, N)
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class Signer:
    """Sending account: an address plus the ability to sign for it."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @property
    def address(self) -> str:
        """0x-prefixed checksummed address."""
        return self._account.address

    def sign(self, transaction: dict[str, Any]) -> bytes:
        """
        Sign an unsigned transaction dict.

        Args:
            transaction: eth-account transaction fields (to, data, nonce,
                         gas, gasPrice, chainId, value)

        Returns:
            Raw signed transaction bytes, ready for eth_sendRawTransaction
        """
        signed = self._account.sign_transaction(transaction)
        return bytes(signed.raw_transaction)

    def sign_message(self, message: str) -> str:
        """Sign a text message using EIP-191 personal_sign."""
        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + bytes(signed.signature).hex()

    def __repr__(self) -> str:
        return f"Signer(address={self.address!r})"


def normalize_private_key(private_key_hex: str) -> str:
    """
    Validate a hex private key and return it 0x-prefixed.

    Raises:
        InvalidKeyError: If the key is not 32 bytes of hex
    """
    if not isinstance(private_key_hex, str):
        raise InvalidKeyError("Private key must be a hex string")
    key = private_key_hex.strip()
    if key[:2] in ("0x", "0X"):
        key = key[2:]
    if not _KEY_RE.match(key):
        # Never echo the key itself
        raise InvalidKeyError(
            f"Private key must be 64 hex characters, got {len(key)} characters"
        )
    if not 0 < int(key, 16) < SECP256K1_N:
        raise InvalidKeyError("Private key is outside the secp256k1 range")
    return "0x" + key.lower()


def create_signer(private_key_hex: str) -> Signer:
    """
    Create a signer from a raw private key.

    Args:
        private_key_hex: 64 hex chars, with or without a leading 0x

    Returns:
        Signer

    Raises:
        InvalidKeyError: Wrong length, non-hex, or not a valid secp256k1 scalar
    """
    key = normalize_private_key(private_key_hex)
    try:
        account = Account.from_key(key)
    except (ValueError, TypeError, ValidationError) as exc:
        raise InvalidKeyError(f"Private key rejected: {type(exc).__name__}") from None
    return Signer(account)


def generate_signer() -> tuple[str, Signer]:
    """
    Generate a fresh random key and its signer.

    Returns:
        Tuple of (private_key_hex, signer), key 0x-prefixed
    """
    private_key = "0x" + secrets.token_hex(32)
    return private_key, create_signer(private_key)
