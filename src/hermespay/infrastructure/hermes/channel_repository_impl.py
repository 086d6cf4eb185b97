"""In-process channel state store for the hermes relay."""

from __future__ import annotations

from typing import Dict, List, Optional

from ...domain.entities import ChannelState, normalize_channel_id
from ...domain.hermes.channel_repository import ChannelStateRepository


class InMemoryChannelStateRepository(ChannelStateRepository):
    """Channel states kept for the lifetime of the process.

    Callers get deep copies, so a state only changes through ``save_all``.
    """

    def __init__(self) -> None:
        self._states: Dict[str, ChannelState] = {}

    async def get(self, channel_id: str) -> Optional[ChannelState]:
        state = self._states.get(normalize_channel_id(channel_id))
        return state.model_copy(deep=True) if state else None

    async def save_all(self, states: List[ChannelState]) -> None:
        for state in states:
            if state.channel_id is None:
                raise ValueError("Cannot store a channel state without channel id")
        for state in states:
            self._states[state.channel_id] = state.model_copy(deep=True)  # type: ignore[index]

    async def get_all(self) -> List[ChannelState]:
        return [state.model_copy(deep=True) for state in self._states.values()]
