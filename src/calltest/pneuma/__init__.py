"""
Pneuma - On-chain interaction layer for calltest.

Provides the JSON-RPC transport, ABI method table, transaction utilities
and the contract binding used to invoke a single deployed contract.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
