import asyncio

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from aristotest.models.session import SessionStatus

router = APIRouter()


@router.websocket("/ws/sessions/{session_id}")
async def session_state_socket(websocket: WebSocket, session_id: str):
    runtime = websocket.app.state.runtime
    interval = websocket.app.state.settings.state_push_interval
    await websocket.accept()
    try:
        while True:
            try:
                state = await runtime.state(session_id)
            except HTTPException as exc:
                await websocket.send_json({"type": "error", "status": exc.status_code, "detail": exc.detail})
                await websocket.close(code=4404)
                return
            await websocket.send_json({"type": "state", "state": state.model_dump(mode="json")})
            if state.status == SessionStatus.COMPLETED:
                await websocket.close()
                return
            await asyncio.sleep(interval)
    except WebSocketDisconnect:
        return
