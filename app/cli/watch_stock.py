# app/cli/watch_stock.py
"""
Headless sync client: keeps a local copy of the stock list current and logs
every event the relay pushes.

    python -m app.cli.watch_stock --server http://localhost:8000
"""
import asyncio
import logging

import click

from app.client.cache import StockCache, aiohttp_fetcher
from app.client.connection import ConnectionManager
from app.client.network import NetworkMonitor
from app.client.offline_queue import OfflineQueue
from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.schemas.sync import SyncMessage

logger = logging.getLogger("app.cli.watch_stock")


def _ws_url(server: str, path: str) -> str:
    if server.startswith("https://"):
        return "wss://" + server[len("https://"):].rstrip("/") + path
    if server.startswith("http://"):
        return "ws://" + server[len("http://"):].rstrip("/") + path
    return server.rstrip("/") + path


@click.command()
@click.option('--server', default='http://localhost:8000', show_default=True, help='Base URL of the stock server')
@click.option('--log-level', default=None, help='Overrides LOG_LEVEL')
def watch_stock(server, log_level):
    """Connect to the relay and log incoming stock events"""
    settings = get_settings()
    configure_logging(log_level or settings.LOG_LEVEL)
    server = server.rstrip("/")

    async def _watch():
        network = NetworkMonitor(online=True)
        cache = StockCache(fetcher=aiohttp_fetcher(f"{server}/api/stock"))
        manager = ConnectionManager(
            _ws_url(server, settings.SYNC_WS_PATH),
            queue=OfflineQueue(max_size=settings.CLIENT_OFFLINE_QUEUE_LIMIT),
            network=network,
            reconnect_delay=settings.CLIENT_RECONNECT_DELAY,
            keepalive_interval=settings.CLIENT_KEEPALIVE_INTERVAL,
        )

        async def log_event(message: SyncMessage):
            logger.info(f"{message.type.value} at {message.timestamp}; cache holds {len(cache)} item(s)")

        manager.subscribe(cache.apply)
        manager.subscribe(log_event)

        await cache.refresh()
        probe = asyncio.create_task(
            network.probe(f"{server}/health", interval=settings.NETWORK_PROBE_INTERVAL)
        )
        await manager.start()
        try:
            while True:
                await asyncio.sleep(60)
                logger.info(f"Status: {manager.status()}")
        finally:
            probe.cancel()
            await manager.close()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        print("Stopped")

if __name__ == "__main__":
    watch_stock()
