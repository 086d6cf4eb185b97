"""FastAPI application configuration (Hermes API)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...application.hermes.dtos import HermesPublicKeyDTO
from ...application.hermes.use_cases.exchange import HermesService
from ...crypto.encoding import to_hex
from ...envs.hermes_env import Settings, get_settings
from .dependencies import build_hermes_service, build_ledger_client
from .routers import channels, exchange


def create_app(
    settings: Optional[Settings] = None,
    hermes_service: Optional[HermesService] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Without an explicit ``hermes_service`` one is built on startup around an
    RPC ledger client, and the client is closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if hermes_service is not None:
            app.state.hermes_service = hermes_service
            yield
            return
        async with build_ledger_client(settings) as ledger:
            app.state.hermes_service = build_hermes_service(settings, ledger)
            yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="HermesPay promise relay API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Relay routes
    app.include_router(exchange.router, prefix="/api/v1/hermes")
    app.include_router(channels.router, prefix="/api/v1/hermes")

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": f"{settings.app_name} hermes relay",
            "version": settings.app_version,
            "exchange": "/api/v1/hermes/promises/exchange",
        }

    @app.get("/health")
    async def health_check() -> dict[str, object]:
        """Liveness plus the relay identity and how many channels it caches."""
        service: HermesService = app.state.hermes_service
        cached = await service.get_all_channel_states()
        return {
            "status": "healthy",
            "service": f"{settings.app_name} Hermes",
            "operator": service.operator.address,
            "cached_channels": len(cached),
            "chain_id": settings.chain_id,
        }

    @app.get("/api/v1/hermes/keys/public", response_model=HermesPublicKeyDTO)
    async def get_hermes_public_key() -> HermesPublicKeyDTO:
        """Return the key hermes signs outgoing promises with."""
        operator = app.state.hermes_service.operator
        return HermesPublicKeyDTO(
            address=operator.address, public_key=to_hex(operator.public_key)
        )

    return app
