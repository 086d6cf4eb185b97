"""Hermes channel state repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..entities import ChannelState


class ChannelStateRepository(ABC):
    """Abstract repository for the channel states a hermes relays through."""

    @abstractmethod
    async def get(self, channel_id: str) -> Optional[ChannelState]:
        """Return a copy of the cached state, or None if the channel is not cached."""
        pass

    @abstractmethod
    async def save_all(self, states: List[ChannelState]) -> None:
        """Store several channel states together, replacing cached ones."""
        pass

    @abstractmethod
    async def get_all(self) -> List[ChannelState]:
        """Return copies of every cached channel state."""
        pass
