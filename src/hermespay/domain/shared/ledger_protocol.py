"""Protocol interfaces for the on-chain ledger collaborators.

The relay and the agents only read channel data from the chain and submit
settlements to it. These protocols describe that boundary so services can be
given an RPC-backed client in production and an in-memory fake in tests.
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities import ChannelState


class ChannelLedgerProtocol(Protocol):
    """Registry and hermes contract reads, plus promise settlement.

    Implementations raise ExternalLookupError when the chain cannot be reached.
    Reads must be safe to repeat.
    """

    async def get_channel_address(self, identity: str, hermes_id: str) -> str:
        """Resolve the consumer channel address of ``identity`` under ``hermes_id``.

        Args:
            identity: Consumer identity address
            hermes_id: Hermes contract address

        Returns:
            Channel contract address
        """
        ...

    async def get_outgoing_channel_id(self, party: str) -> str:
        """Resolve the hermes outgoing channel id for a receiving party.

        Args:
            party: Provider identity address

        Returns:
            32 byte channel id as 0x-hex
        """
        ...

    async def channel_record(self, channel_id: str) -> "ChannelState":
        """Read the on-chain record of a hermes channel.

        Args:
            channel_id: Channel id as returned by ``get_outgoing_channel_id``

        Returns:
            Channel state seeded with the on-chain ``settled`` and ``balance``
        """
        ...

    async def settle(
        self,
        identity: str,
        amount: int,
        fee: int,
        preimage: bytes,
        signature: bytes,
    ) -> str:
        """Redeem one promise on-chain.

        Returns:
            Transaction hash as 0x-hex
        """
        ...


class TokenLedgerProtocol(Protocol):
    """Token balance reads."""

    async def balance_of(self, address: str) -> int:
        """Return the token balance held by ``address``."""
        ...
