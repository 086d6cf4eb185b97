"""Promise exchange API routes (Hermes)."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter, Histogram

from ....application.hermes.dtos import ExchangePromiseDTO, ProtocolErrorDTO
from ....application.hermes.use_cases.exchange import HermesService
from ....domain.entities import Promise
from ....domain.errors import (
    ExternalLookupError,
    ProtocolError,
    ReplayOrStaleReferenceError,
    SignatureMismatchError,
    StateInconsistencyError,
)
from ..dependencies import get_hermes_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promises", tags=["promises"])


exchange_requests_total = Counter(
    "hermes_exchange_requests_total",
    "Total promise exchange requests processed",
    ["status"],
)

exchange_request_duration_seconds = Histogram(
    "hermes_exchange_request_duration_seconds",
    "Wall time to process a promise exchange request",
    ["status"],
)


def protocol_error_status(error: ProtocolError) -> int:
    """HTTP status for a protocol failure."""
    if isinstance(error, SignatureMismatchError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, (StateInconsistencyError, ReplayOrStaleReferenceError)):
        return status.HTTP_409_CONFLICT
    if isinstance(error, ExternalLookupError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _observe(label: str, start_time: float) -> None:
    exchange_requests_total.labels(status=label).inc()
    exchange_request_duration_seconds.labels(status=label).observe(
        time.perf_counter() - start_time
    )


@router.post("/exchange", response_model=Promise, status_code=status.HTTP_201_CREATED)
async def exchange_promise(
    request: ExchangePromiseDTO,
    hermes_service: HermesService = Depends(get_hermes_service),
) -> Promise:
    """Relay a consumer's exchange message into a promise for the receiver."""
    start_time = time.perf_counter()
    try:
        promise = await hermes_service.exchange_promise(
            request.exchange_message, request.payer, request.receiver
        )
    except ProtocolError as e:
        status_code = protocol_error_status(e)
        _observe("server_error" if status_code >= 500 else "client_error", start_time)
        raise HTTPException(
            status_code=status_code,
            detail=ProtocolErrorDTO(error=type(e).__name__, detail=str(e)).model_dump(),
        )
    except Exception as e:
        _observe("server_error", start_time)
        logger.exception("Failed to exchange promise")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to exchange promise: {str(e)}",
        )
    _observe("success", start_time)
    return promise
