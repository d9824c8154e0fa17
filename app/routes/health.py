from fastapi import APIRouter
from sqlalchemy import text

from app.services.websockets.relay import relay

router = APIRouter(tags=["health"])

@router.get("/health")
async def health_check():
    """Basic health check; also the target of the client's network probe"""
    return {"status": "healthy", "service": "Stock Sync", "connections": relay.connection_count}

@router.get("/health/db")
async def database_health():
    """Check database connectivity"""
    try:
        from app.database import async_session

        async with async_session() as session:
            await session.execute(text("SELECT 1"))
            return {"status": "healthy", "database": "connected"}
    except Exception as e:
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e)
        }
