"""Ledger collaborators backed by an Ethereum JSON-RPC node."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Type
from types import TracebackType

import httpx
from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from ...crypto.encoding import to_bytes, to_hex
from ...domain.entities import ChannelState
from ...domain.errors import ExternalLookupError
from ..http.json_rpc_client import AsyncJsonRpcClient, JsonRpcError
from .settlement import construct_settle_payload

logger = logging.getLogger(__name__)

GET_CHANNEL_ADDRESS = "getChannelAddress(address,address)"
GET_CHANNEL_ID = "getChannelId(address)"
CHANNELS = "channels(bytes32)"
BALANCE_OF = "balanceOf(address)"


class RpcLedgerClient:
    """Reads registry, hermes and token contracts with ``eth_call``.

    Implements both ``ChannelLedgerProtocol`` and ``TokenLedgerProtocol``.
    Reads are retried on transport errors; settlement is sent once.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        registry_address: str,
        hermes_address: str,
        token_address: str,
        sender: Optional[str] = None,
        timeout: float = 10.0,
        retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._node = AsyncJsonRpcClient(rpc_url, timeout=timeout, transport=transport)
        self.registry_address = to_checksum_address(registry_address)
        self.hermes_address = to_checksum_address(hermes_address)
        self.token_address = to_checksum_address(token_address)
        self.sender = to_checksum_address(sender) if sender else None
        self.retries = max(1, retries)

    async def _rpc(self, method: str, params: List[Any], *, attempts: int) -> Any:
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._node.request(method, params)
            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    "RPC %s failed (attempt %s/%s): %s", method, attempt, attempts, e
                )
            except httpx.HTTPStatusError as e:
                raise ExternalLookupError(
                    f"RPC {method} returned {e.response.status_code}"
                ) from e
            except JsonRpcError as e:
                raise ExternalLookupError(f"RPC {e}") from e

        raise ExternalLookupError(
            f"Could not reach ledger node for {method}: {last_error}"
        ) from last_error

    async def _call(
        self,
        to: str,
        signature: str,
        arg_types: Sequence[str],
        args: Sequence[Any],
        out_types: Sequence[str],
    ) -> tuple:
        data = function_signature_to_4byte_selector(signature) + encode(
            list(arg_types), list(args)
        )
        result = await self._rpc(
            "eth_call", [{"to": to, "data": to_hex(data)}, "latest"], attempts=self.retries
        )
        try:
            return decode(list(out_types), to_bytes(result or "0x"))
        except Exception as e:
            raise ExternalLookupError(f"Cannot decode {signature} result: {e}") from e

    async def get_channel_address(self, identity: str, hermes_id: str) -> str:
        (address,) = await self._call(
            self.registry_address,
            GET_CHANNEL_ADDRESS,
            ["address", "address"],
            [to_checksum_address(identity), to_checksum_address(hermes_id)],
            ["address"],
        )
        return to_checksum_address(address)

    async def get_outgoing_channel_id(self, party: str) -> str:
        (channel_id,) = await self._call(
            self.hermes_address,
            GET_CHANNEL_ID,
            ["address"],
            [to_checksum_address(party)],
            ["bytes32"],
        )
        return to_hex(channel_id)

    async def channel_record(self, channel_id: str) -> ChannelState:
        settled, stake, _last_used_nonce, _timelock = await self._call(
            self.hermes_address,
            CHANNELS,
            ["bytes32"],
            [to_bytes(channel_id).rjust(32, b"\x00")],
            ["uint256", "uint256", "uint256", "uint256"],
        )
        return ChannelState(channel_id=channel_id, settled=settled, balance=stake)

    async def balance_of(self, address: str) -> int:
        (balance,) = await self._call(
            self.token_address,
            BALANCE_OF,
            ["address"],
            [to_checksum_address(address)],
            ["uint256"],
        )
        return balance

    async def settle(
        self,
        identity: str,
        amount: int,
        fee: int,
        preimage: bytes,
        signature: bytes,
    ) -> str:
        if self.sender is None:
            raise ValueError("Settlement requires a sender address")
        tx = {
            "from": self.sender,
            "to": self.hermes_address,
            "data": construct_settle_payload(identity, amount, fee, preimage, signature),
        }
        return await self._rpc("eth_sendTransaction", [tx], attempts=1)

    async def aclose(self) -> None:
        await self._node.aclose()

    async def __aenter__(self) -> "RpcLedgerClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
