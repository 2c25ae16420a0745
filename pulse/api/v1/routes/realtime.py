from fastapi import APIRouter, WebSocket

router = APIRouter()


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket) -> None:
    gateway = getattr(websocket.app.state, "realtime_gateway", None)
    if gateway is None:
        await websocket.close(code=1011, reason="Realtime gateway not initialized")
        return

    await gateway.serve(websocket)
