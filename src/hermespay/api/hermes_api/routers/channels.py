"""Channel state API routes (Hermes)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ....application.hermes.dtos import ChannelStateResponseDTO
from ....application.hermes.use_cases.exchange import HermesService
from ..dependencies import get_hermes_service

router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("", response_model=List[ChannelStateResponseDTO])
async def list_channels(
    hermes_service: HermesService = Depends(get_hermes_service),
) -> List[ChannelStateResponseDTO]:
    states = await hermes_service.get_all_channel_states()
    return [ChannelStateResponseDTO(**state.model_dump()) for state in states]


@router.get("/{channel_id}", response_model=ChannelStateResponseDTO)
async def get_channel(
    channel_id: str = Path(..., description="Channel address or 32 byte channel id"),
    hermes_service: HermesService = Depends(get_hermes_service),
) -> ChannelStateResponseDTO:
    """Return the cached state of a channel hermes has relayed through."""
    try:
        state = await hermes_service.get_channel_state(channel_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Channel not cached"
        )
    return ChannelStateResponseDTO(**state.model_dump())
