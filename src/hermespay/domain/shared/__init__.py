"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .ledger_protocol import ChannelLedgerProtocol, TokenLedgerProtocol

__all__ = ["ChannelLedgerProtocol", "TokenLedgerProtocol"]
