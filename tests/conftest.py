"""
Shared fixtures: an in-process fake Ethereum node.

The node speaks JSON-RPC through ``httpx.MockTransport``, decodes submitted
raw transactions with rlp, and keeps the single uint256 slot that
setData/getData write and read. No network access.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
import rlp
from eth_abi import decode, encode
from eth_hash.auto import keccak

from calltest.config import Configuration
from calltest.pneuma.rpc import RpcTransport

# Hardhat / Anvil default account #0
PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
CHAIN_ID = 11155111  # Sepolia
GAS_PRICE = 1_000_000_000
ESTIMATED_GAS = 45_000

SET_SELECTOR = keccak(b"setData(uint256)")[:4]
GET_SELECTOR = keccak(b"getData()")[:4]

TEST_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "setData",
        "inputs": [{"name": "_data", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "getData",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "DataChanged",
        "inputs": [{"name": "value", "type": "uint256", "indexed": False}],
        "anonymous": False,
    },
]


class FakeNode:
    """Minimal JSON-RPC node holding one contract storage slot."""

    def __init__(self) -> None:
        self.storage = 0
        self.nonce = 0
        self.calls: list[str] = []
        self.sent: list[list[bytes]] = []
        self.receipts: dict[str, dict[str, Any]] = {}
        self.revert = False
        self.pending_polls = 0
        self.fail_method: Optional[str] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append(method)

        if method == self.fail_method:
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": body["id"],
                    "error": {"code": -32000, "message": f"{method} unavailable"},
                },
            )

        result = getattr(self, method)(body["params"])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    # ---- RPC methods ----

    def eth_chainId(self, params: list) -> str:
        return hex(CHAIN_ID)

    def eth_getTransactionCount(self, params: list) -> str:
        return hex(self.nonce)

    def eth_gasPrice(self, params: list) -> str:
        return hex(GAS_PRICE)

    def eth_estimateGas(self, params: list) -> str:
        return hex(ESTIMATED_GAS)

    def eth_getBalance(self, params: list) -> str:
        return hex(10**18)

    def eth_sendRawTransaction(self, params: list) -> str:
        raw = bytes.fromhex(params[0][2:])
        fields = rlp.decode(raw)
        self.sent.append(fields)
        data = fields[5]
        if data[:4] == SET_SELECTOR and not self.revert:
            (self.storage,) = decode(["uint256"], data[4:])

        tx_hash = "0x" + keccak(raw).hex()
        self.nonce += 1
        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "status": "0x0" if self.revert else "0x1",
            "blockNumber": hex(100 + self.nonce),
            "gasUsed": hex(ESTIMATED_GAS),
        }
        return tx_hash

    def eth_getTransactionReceipt(self, params: list) -> Optional[dict]:
        if self.pending_polls > 0:
            self.pending_polls -= 1
            return None
        return self.receipts.get(params[0])

    def eth_call(self, params: list) -> str:
        data = bytes.fromhex(params[0]["data"][2:])
        if data[:4] == GET_SELECTOR:
            return "0x" + encode(["uint256"], [self.storage]).hex()
        return "0x"


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def transport(node: FakeNode):
    with RpcTransport(
        "https://sepolia.infura.io/v3/test-key",
        transport=httpx.MockTransport(node.handler),
    ) as rpc:
        yield rpc


@pytest.fixture()
def abi_file(tmp_path: Path) -> Path:
    """Truffle-style artifact with the setData/getData ABI."""
    path = tmp_path / "Test.json"
    path.write_text(json.dumps({"contractName": "Test", "abi": TEST_ABI}), encoding="utf-8")
    return path


@pytest.fixture()
def config(abi_file: Path) -> Configuration:
    return Configuration(
        network="sepolia",
        api_key="test-key",
        contract_address=CONTRACT.lower(),
        private_key=PRIVATE_KEY,
        abi_path=abi_file,
        gas_limit=1_000_000,
        receipt_timeout=5,
        poll_interval=0,
    )
