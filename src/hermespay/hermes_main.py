from __future__ import annotations

import asyncio
import logging
import sys
import uvicorn

# Install uvloop for better async performance (Linux/macOS only)
if sys.platform != "win32":
    try:
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    except ImportError:
        pass

from .envs.hermes_env import get_settings


def main() -> None:
    """Main entry point for the hermes relay."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Starting {settings.app_name} Hermes v{settings.app_version}")
    print(f"Hermes operator: {settings.hermes_address}")
    print(f"Ledger RPC: {settings.rpc_url}")
    print(
        f"Hermes API will be available at: http://{settings.api_host}:{settings.api_port}"
    )
    print(f"Docs: http://{settings.api_host}:{settings.api_port}/docs")

    # Channel state lives in process memory, so run a single worker.
    uvicorn.run(
        "hermespay.api.hermes_api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
