import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, UploadFile, File

from app.config import settings
from app.schemas import RenderOverrides, RobotCommand, RobotState, SceneInfo
from app.services.simulator import NoSceneLoadedError, Simulator, get_simulator
from splats.errors import PlyDecodeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scene"])

ALLOWED_EXTS = {".ply"}


@router.get("/scene", response_model=SceneInfo)
async def get_scene(sim: Simulator = Depends(get_simulator)):
    return sim.info()


@router.post("/scene", response_model=SceneInfo)
async def upload_scene(file: UploadFile = File(...), sim: Simulator = Depends(get_simulator)):
    """Upload a splat PLY (or a plain point-cloud PLY) and make it the current scene."""
    if file.filename and not file.filename.lower().endswith(tuple(ALLOWED_EXTS)):
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {file.filename}")

    buffer = await file.read()
    if len(buffer) > settings.max_upload_size_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        return await asyncio.to_thread(sim.load_bytes, buffer)
    except PlyDecodeError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/scene/render")
async def render_scene(
    overrides: Annotated[RenderOverrides, Query()],
    sim: Simulator = Depends(get_simulator),
):
    """PNG of the scene from the current follow-camera pose."""
    try:
        png = await asyncio.to_thread(sim.render_png, overrides)
    except NoSceneLoadedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return Response(content=png, media_type="image/png")


@router.get("/robot", response_model=RobotState)
async def get_robot(sim: Simulator = Depends(get_simulator)):
    return await asyncio.to_thread(sim.state)


@router.post("/robot/command", response_model=RobotState)
async def command_robot(command: RobotCommand, sim: Simulator = Depends(get_simulator)):
    return await asyncio.to_thread(sim.apply_command, command)


@router.post("/robot/reset", response_model=RobotState)
async def reset_robot(sim: Simulator = Depends(get_simulator)):
    return await asyncio.to_thread(sim.reset_robot)
