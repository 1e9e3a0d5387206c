import asyncio
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.config import settings
from app.schemas import command_adapter
from app.services.simulator import Simulator, get_simulator
from utils.images import save_png, to_data_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

# Every connected client receives every rendered frame
_connections: list[WebSocket] = []


async def broadcast_frame(data: dict):
    """Send a rendered frame to all connected clients, dropping dead sockets."""
    dead = []
    for ws in _connections:
        try:
            await ws.send_json(data)
        except Exception:
            dead.append(ws)
    for ws in dead:
        _connections.remove(ws)


async def _render_frame(sim: Simulator) -> dict:
    png = await asyncio.to_thread(sim.render_png)
    state = await asyncio.to_thread(sim.state)
    if settings.save_relay_frames:
        path = await asyncio.to_thread(save_png, settings.exports_dir, "rendered_image", png)
        logger.info(f"Saved relay frame {path.name}")
    return {
        "type": "image",
        "data": to_data_url(png),
        "robot": state.model_dump(),
    }


@router.websocket("/ws/robot")
async def robot_relay_ws(websocket: WebSocket, sim: Simulator = Depends(get_simulator)):
    """Command relay for remote robot drivers.

    Protocol:
    - Client sends JSON commands:
      {"type": "forward"} | {"type": "backward"} | {"type": "turn", "value": radians}
      {"type": "ping"}
    - Server applies the command to the robot, re-renders from the follow
      camera and broadcasts:
      {"type": "image", "data": "data:image/png;base64,...", "robot": {...}}
    - Bad messages get {"type": "error", "message": "..."}; the socket stays open.
    """
    await websocket.accept()
    _connections.append(websocket)
    logger.info(f"Relay client connected ({len(_connections)} total)")

    try:
        while True:
            text = await websocket.receive_text()
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                await websocket.send_json({"type": "error", "message": f"Invalid JSON: {e}"})
                continue

            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            try:
                command = command_adapter.validate_python(data)
            except ValidationError as e:
                await websocket.send_json({"type": "error", "message": f"Invalid command: {e}"})
                continue

            state = await asyncio.to_thread(sim.apply_command, command)
            logger.info(f"Relay command: {command.type}")

            if not sim.loaded:
                await websocket.send_json({
                    "type": "error",
                    "message": "No scene loaded",
                    "robot": state.model_dump(),
                })
                continue

            try:
                frame = await _render_frame(sim)
            except Exception as e:
                logger.error(f"Relay render error: {e}", exc_info=True)
                await websocket.send_json({"type": "error", "message": str(e)})
                continue
            await broadcast_frame(frame)

    except WebSocketDisconnect:
        logger.info("Relay client disconnected")
    except Exception as e:
        logger.error(f"Relay WebSocket error: {e}", exc_info=True)
    finally:
        if websocket in _connections:
            _connections.remove(websocket)
