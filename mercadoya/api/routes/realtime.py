from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ...events.broadcaster import EventBroadcaster
from ..dependencies import get_broadcaster
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def order_events(
        websocket: WebSocket,
        broadcaster: EventBroadcaster = Depends(get_broadcaster)
):
    """Канал событий new_order и order_status_updated (только сервер -> клиент)"""
    await websocket.accept()
    await broadcaster.connect(websocket)

    try:
        await websocket.send_json({"event": "connected", "data": {"subscribers": broadcaster.connection_count}})

        while True:
            # Команды от клиента не поддерживаются, входящие кадры игнорируем
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"⚠️ WebSocket connection closed with error: {e}")
    finally:
        await broadcaster.disconnect(websocket)
