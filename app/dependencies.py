from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session
from app.services.websockets.relay import SyncRelay, relay


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_relay() -> SyncRelay:
    """Dependency returning the process-wide sync relay."""
    return relay
