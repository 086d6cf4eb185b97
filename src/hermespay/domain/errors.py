"""Domain-specific exceptions.

Every validation failure raises one of these before the dependent state write
happens, so callers can tell which invariant broke.
"""

from __future__ import annotations


class ProtocolError(Exception):
    """Base class for payment-channel protocol failures."""


class SigningError(ProtocolError):
    """Raised when a freshly produced signature does not verify against its signer."""


class SignatureMismatchError(ProtocolError):
    """Raised when a message signature does not verify against the expected signer."""


class ForeignChannelError(SignatureMismatchError):
    """Raised when a promise names a channel the payer does not own."""


class StateInconsistencyError(ProtocolError):
    """Raised when amounts or totals disagree with the tracked channel state."""


class InsufficientBalanceError(StateInconsistencyError):
    """Raised when a channel's balance cannot cover the requested increment."""

    def __init__(self, channel_id: str, balance: int, amount: int) -> None:
        super().__init__(
            f"Channel {channel_id} balance {balance} is insufficient for amount {amount}"
        )
        self.channel_id = channel_id
        self.balance = balance
        self.amount = amount


class AgreementMismatchError(StateInconsistencyError):
    """Raised when an agreement id or total does not match what was invoiced or tracked."""


class PromiseAmountMismatchError(StateInconsistencyError):
    """Raised when a promise amount was not computed from the current channel base."""


class ReplayOrStaleReferenceError(ProtocolError):
    """Raised when a message references a reused, unknown or foreign identifier."""


class HashlockCollisionError(ReplayOrStaleReferenceError):
    """Raised when an invoice hashlock is already outstanding."""


class UnknownInvoiceError(ReplayOrStaleReferenceError):
    """Raised when no invoice exists for a hashlock."""


class ReceiverMismatchError(ReplayOrStaleReferenceError):
    """Raised when an exchange message was signed for a different party."""


class NonceReuseError(ReplayOrStaleReferenceError):
    """Raised when an authorization nonce does not strictly increase."""


class HashlockReplayError(ReplayOrStaleReferenceError):
    """Raised when an exchange message for an already matched hashlock arrives again."""


class ChainMismatchError(ReplayOrStaleReferenceError):
    """Raised when a promise is signed for a different chain than the relay serves."""


class ExternalLookupError(ProtocolError):
    """Raised when a ledger or token collaborator cannot be reached.

    Lookups are read-only, so callers may safely retry.
    """

    retryable = True
