# app/routes/websockets.py
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from app.core.config import get_settings
from app.services.websockets.relay import relay
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

settings = get_settings()


@router.websocket(settings.SYNC_WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    """
    Relay endpoint. Frames from one client are passed on verbatim to every
    other client; pings are answered on the same channel only.
    """
    try:
        await relay.register(websocket)
        while True:
            data = await websocket.receive_text()
            await relay.handle_message(websocket, data)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        relay.unregister(websocket)
