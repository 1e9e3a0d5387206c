import logging

from fastapi import APIRouter, HTTPException

from app.config import settings
from app.schemas import SaveImageRequest, SaveImageResponse
from utils.images import save_png, decode_data_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["exports"])


@router.post("/save-image", response_model=SaveImageResponse)
async def save_image(data: SaveImageRequest):
    """Save a client-captured frame as ``manual_export_<timestamp>.png``."""
    try:
        png = decode_data_url(data.image)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    path = save_png(settings.exports_dir, "manual_export", png, data.timestamp)
    logger.info(f"Saved manual export {path.name} ({len(png) / 1e3:.1f}KB)")
    return SaveImageResponse(success=True, filename=path.name)
