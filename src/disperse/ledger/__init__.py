"""
Ledger Integration Layer.

Provides the ledger client contract used by the planning engine and a
Cardano implementation backed by PyCardano and Blockfrost.
"""

from disperse.ledger.interface import LedgerClient, LedgerConnectionError
from disperse.ledger.cardano import CardanoLedgerClient

__all__ = [
    "LedgerClient",
    "LedgerConnectionError",
    "CardanoLedgerClient",
]
