import math
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

from splats.shading import RenderConfig


class Settings(BaseSettings):
    app_name: str = "Splat Navigator"
    data_dir: Path = Path(__file__).parent.parent / "data"
    exports_dir: Path = Path(__file__).parent.parent / "data" / "exports"
    scene_path: Path | None = None  # PLY loaded on startup
    max_upload_size_mb: int = 1024
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Frame / camera
    frame_width: int = 800
    frame_height: int = 600
    camera_fov: float = 75.0
    camera_near: float = 0.1
    camera_far: float = 1000.0

    # Robot
    move_speed: float = 0.3
    turn_speed: float = math.pi / 16
    follow_offset: tuple[float, float, float] = (0.0, 1.5, 3.0)
    look_ahead: float = 1.0

    # Render defaults
    footprint: Literal["covariance", "ellipse"] = "ellipse"
    harmonic_degree: int = 2
    point_scale: float = 1000.0
    chi_scale: float = 32.0
    debug_ring: bool = False
    blend: Literal["normal", "additive"] = "normal"
    background: tuple[float, float, float] = (0.8, 0.8, 0.8)
    max_point_size: float = 512.0

    save_relay_frames: bool = True

    model_config = {"env_prefix": "SPLATNAV_"}

    def render_config(self) -> RenderConfig:
        return RenderConfig(
            footprint=self.footprint,
            harmonic_degree=self.harmonic_degree,
            point_scale=self.point_scale,
            chi_scale=self.chi_scale,
            debug_ring=self.debug_ring,
            blend=self.blend,
            background=self.background,
            max_point_size=self.max_point_size,
        )


settings = Settings()

# Ensure data directory exists
settings.data_dir.mkdir(parents=True, exist_ok=True)
