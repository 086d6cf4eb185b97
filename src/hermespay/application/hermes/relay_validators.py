"""Pure validation functions for relaying promises between channels.

These functions contain the relay's accounting rules and can be tested in
isolation without ledger collaborators or channel stores.
"""

from __future__ import annotations

from ...domain.entities import ChannelState
from ...domain.errors import (
    AgreementMismatchError,
    InsufficientBalanceError,
    PromiseAmountMismatchError,
)


def compute_relay_amount(
    channel_state: ChannelState, agreement_id: int, agreement_total: int
) -> int:
    """Amount of ``agreement_total`` not yet covered by earlier promises.

    Raises:
        AgreementMismatchError: If the total is below what was already covered.
    """
    covered = channel_state.agreement_total(agreement_id)
    if agreement_total < covered:
        raise AgreementMismatchError(
            f"Agreement {agreement_id} total {agreement_total} is below covered amount {covered}"
        )
    return agreement_total - covered


def validate_channel_balance(channel_state: ChannelState, amount: int) -> None:
    """Raises InsufficientBalanceError if the channel cannot cover ``amount``."""
    if channel_state.balance < amount:
        raise InsufficientBalanceError(
            channel_state.channel_id or "<unknown>", channel_state.balance, amount
        )


def validate_promise_amount(
    promise_amount: int, channel_state: ChannelState, amount: int, fee: int = 0
) -> None:
    """The payer's promise must extend the channel's current ``promised`` base
    by the uncovered agreement amount plus the promise fee.

    Raises:
        PromiseAmountMismatchError: If the promise was built on a stale base.
    """
    expected = channel_state.promised + amount + fee
    if promise_amount != expected:
        raise PromiseAmountMismatchError(
            f"Promise amount {promise_amount} does not match expected {expected}"
        )
