"""
Sigil - Key handling for calltest.

Turns the configured private key into a signer for outgoing transactions.
"""
