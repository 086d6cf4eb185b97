"""Hermes relay: turn a payer's promise into a promise on the payee's channel."""

from __future__ import annotations

import logging
from typing import List, Optional

from eth_utils import to_checksum_address

from ....crypto.keys import Identity
from ....crypto.promises import create_promise
from ....domain.entities import (
    ChannelState,
    ExchangeMessage,
    Promise,
    normalize_channel_id,
)
from ....domain.errors import (
    ChainMismatchError,
    ForeignChannelError,
    HashlockReplayError,
    ReplayOrStaleReferenceError,
)
from ....domain.hermes.channel_repository import ChannelStateRepository
from ....domain.shared import ChannelLedgerProtocol, TokenLedgerProtocol
from ...shared.exchange_validators import validate_exchange_message
from ..channel_locks import ChannelLocks
from ..relay_validators import (
    compute_relay_amount,
    validate_channel_balance,
    validate_promise_amount,
)

logger = logging.getLogger(__name__)


class HermesService:
    """Relays exchange messages between consumer and provider channels.

    For every verified debit of ``amount`` on the payer's channel the service
    issues exactly one promise crediting ``amount`` on the receiver's outgoing
    channel, under the same hashlock. Both channel states are committed together
    or not at all.

    Payers may only spend the channel the registry assigns them under
    ``hermes_id``. With ``chain_id`` set, promises for other chains are refused.
    """

    def __init__(
        self,
        operator: Identity,
        hermes_id: str,
        channel_ledger: ChannelLedgerProtocol,
        token_ledger: TokenLedgerProtocol,
        channel_repository: ChannelStateRepository,
        *,
        chain_id: Optional[int] = None,
        channel_locks: Optional[ChannelLocks] = None,
    ) -> None:
        self.operator = operator
        self.hermes_id = to_checksum_address(hermes_id)
        self.chain_id = chain_id
        self.channel_ledger = channel_ledger
        self.token_ledger = token_ledger
        self.channel_repository = channel_repository
        self.channel_locks = channel_locks or ChannelLocks()

    async def _load_payer_channel(self, channel_id: str) -> ChannelState:
        """Cached payer channel, or a fresh one funded by its token balance."""
        state = await self.channel_repository.get(channel_id)
        if state is None:
            balance = await self.token_ledger.balance_of(channel_id)
            state = ChannelState(channel_id=channel_id, balance=balance)
            logger.debug("Loaded payer channel %s with balance %s", channel_id, balance)
        return state

    async def _load_outgoing_channel(self, channel_id: str) -> ChannelState:
        """Cached outgoing channel, or one seeded from its on-chain record."""
        state = await self.channel_repository.get(channel_id)
        if state is None:
            record = await self.channel_ledger.channel_record(channel_id)
            state = ChannelState(
                channel_id=channel_id,
                settled=record.settled,
                balance=record.balance,
                promised=record.promised,
                agreements=dict(record.agreements),
            )
            logger.debug("Loaded outgoing channel %s", channel_id)
        return state

    async def get_channel_state(self, channel_id: str) -> Optional[ChannelState]:
        return await self.channel_repository.get(normalize_channel_id(channel_id))

    async def get_all_channel_states(self) -> List[ChannelState]:
        return await self.channel_repository.get_all()

    async def exchange_promise(
        self, exchange_msg: ExchangeMessage, payer: str, receiver: str
    ) -> Promise:
        """Verify ``exchange_msg`` from ``payer`` and issue a promise to ``receiver``.

        Raises:
            SignatureMismatchError: If the message or promise is not signed by ``payer``.
            ForeignChannelError: If the promise names a channel ``payer`` does not own.
            ReceiverMismatchError: If the message was signed for another party.
            ChainMismatchError: If the promise is for another chain than this relay.
            HashlockReplayError: If the hashlock was already relayed from the payer channel.
            AgreementMismatchError: If the agreement total went backwards.
            InsufficientBalanceError: If the payer channel cannot cover the amount.
            PromiseAmountMismatchError: If the payer promise has a stale base.
            ExternalLookupError: If a ledger lookup fails. No state is changed.
        """
        # 1) Message and promise must be signed by the payer for this receiver
        validate_exchange_message(receiver, exchange_msg, payer)

        promise = exchange_msg.promise
        agreement_id = exchange_msg.agreement_id
        payer_channel_id = promise.channel_id
        receiver = to_checksum_address(receiver)

        if self.chain_id is not None and promise.chain_id != self.chain_id:
            raise ChainMismatchError(
                f"Promise is for chain {promise.chain_id}, relay serves {self.chain_id}"
            )

        # 2) The promise must debit the payer's own channel
        owned_channel_id = normalize_channel_id(
            await self.channel_ledger.get_channel_address(payer, self.hermes_id)
        )
        if owned_channel_id != payer_channel_id:
            raise ForeignChannelError(
                f"Payer {payer} owns channel {owned_channel_id}, not {payer_channel_id}"
            )

        # 3) Resolve the receiver's outgoing channel before taking any lock
        outgoing_channel_id = normalize_channel_id(
            await self.channel_ledger.get_outgoing_channel_id(receiver)
        )
        if outgoing_channel_id == payer_channel_id:
            raise ReplayOrStaleReferenceError(
                f"Channel {payer_channel_id} cannot pay into itself"
            )

        async with self.channel_locks.hold(payer_channel_id, outgoing_channel_id):
            # 4) Load both channels; nothing is written until both are known
            payer_state = await self._load_payer_channel(payer_channel_id)
            outgoing_state = await self._load_outgoing_channel(outgoing_channel_id)

            # 5) Each hashlock is relayed once; the uncovered amount needs balance
            if promise.hashlock in payer_state.relayed_hashlocks:
                raise HashlockReplayError(
                    f"Hashlock 0x{promise.hashlock.hex()} was already relayed "
                    f"from channel {payer_channel_id}"
                )
            amount = compute_relay_amount(
                payer_state, agreement_id, exchange_msg.agreement_total
            )
            debit = amount + promise.fee
            validate_channel_balance(payer_state, debit)
            validate_promise_amount(promise.amount, payer_state, amount, promise.fee)

            # 6) Sign the outgoing promise before committing anything
            outgoing_promised = outgoing_state.promised + amount
            outgoing_promise = create_promise(
                promise.chain_id,
                outgoing_channel_id,
                outgoing_promised,
                0,
                promise.hashlock,
                self.operator,
                receiver,
            )

            # 7) Commit both channel states together
            payer_state.balance -= debit
            payer_state.agreements[agreement_id] = (
                payer_state.agreement_total(agreement_id) + amount
            )
            payer_state.promised += debit
            payer_state.relayed_hashlocks.add(promise.hashlock)
            outgoing_state.promised = outgoing_promised
            await self.channel_repository.save_all([payer_state, outgoing_state])

        logger.info(
            "Relayed %s from channel %s to %s (agreement %s)",
            amount,
            payer_channel_id,
            outgoing_channel_id,
            agreement_id,
        )
        return outgoing_promise
