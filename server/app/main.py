"""Splat navigator API server.

Run from the ``server/`` directory:

    uvicorn app.main:app --reload

or ``python -m app.main``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.routes import exports, relay, scene
from app.services.simulator import get_simulator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load the startup scene, if configured
    if settings.scene_path is not None:
        if settings.scene_path.exists():
            await get_simulator().load_file(settings.scene_path)
        else:
            logger.warning(f"Startup scene not found: {settings.scene_path}")
    yield


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
)

# CORS for frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(scene.router)
app.include_router(exports.router)
app.include_router(relay.router)

# Serve saved frames
settings.exports_dir.mkdir(parents=True, exist_ok=True)
app.mount("/data/exports", StaticFiles(directory=str(settings.exports_dir)), name="exports")


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name, "scene_loaded": get_simulator().loaded}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
