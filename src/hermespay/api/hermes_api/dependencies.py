"""FastAPI dependencies for the hermes API."""

from __future__ import annotations

from fastapi import Request

from ...application.hermes.use_cases.exchange import HermesService
from ...crypto.keys import Identity
from ...envs.hermes_env import Settings
from ...infrastructure.hermes.channel_repository_impl import (
    InMemoryChannelStateRepository,
)
from ...infrastructure.ledger.rpc_ledger_client import RpcLedgerClient


def build_ledger_client(settings: Settings) -> RpcLedgerClient:
    """RPC client for registry, hermes and token contracts."""
    return RpcLedgerClient(
        settings.rpc_url,
        registry_address=settings.registry_address,
        hermes_address=settings.hermes_contract_address,
        token_address=settings.token_address,
        sender=settings.hermes_address,
        timeout=settings.rpc_timeout,
        retries=settings.rpc_retries,
    )


def build_hermes_service(settings: Settings, ledger: RpcLedgerClient) -> HermesService:
    """Hermes service holding this process's channel cache."""
    return HermesService(
        Identity.from_hex(settings.hermes_private_key),
        settings.hermes_contract_address,
        ledger,
        ledger,
        InMemoryChannelStateRepository(),
        chain_id=settings.chain_id,
    )


def get_hermes_service(request: Request) -> HermesService:
    """Get the hermes service bound to the running app."""
    return request.app.state.hermes_service
