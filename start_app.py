#!/usr/bin/env python
"""Serve the stock API and sync relay; host and port come from the environment."""
import os
import uvicorn

from app.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))

    print(f"Stock sync server on {host}:{port}, relay at {settings.SYNC_WS_PATH}")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        # Clients send their own ping frames; the relay answers them
        ws_ping_interval=None,
        proxy_headers=True,
    )
