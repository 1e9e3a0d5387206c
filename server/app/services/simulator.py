"""Scene + robot + follow camera shared by the HTTP routes and the relay socket."""

import dataclasses
import logging
import threading
from pathlib import Path

import numpy as np

from app.config import settings
from app.schemas import RenderOverrides, RobotState, SceneInfo
from splats.camera import Camera
from splats.columns import ColumnStore, assemble_columns
from splats.decoder import decode_with_fallback, load_splat_file
from splats.model import SplatCollection
from splats.navigation import CameraController, RobotController, apply_command
from splats.rasterizer import RenderResult, SplatRasterizer, encode_png
from splats.shading import RenderConfig

logger = logging.getLogger(__name__)


class NoSceneLoadedError(RuntimeError):
    pass


class Simulator:
    """One loaded scene with a robot driving a follow camera through it.

    All mutation happens under ``self.lock`` so the relay socket and the
    HTTP routes can share an instance across worker threads. The lock is
    not held while rasterizing, and event-loop callers reach it through
    ``asyncio.to_thread``.
    """

    def __init__(self, render_config: RenderConfig | None = None):
        self.lock = threading.Lock()
        self.render_config = render_config or settings.render_config()
        self.collection: SplatCollection | None = None
        self.columns: ColumnStore | None = None
        self.home = np.zeros(3)
        self.camera = Camera(
            width=settings.frame_width,
            height=settings.frame_height,
            fov=settings.camera_fov,
            near=settings.camera_near,
            far=settings.camera_far,
        )
        self.robot = RobotController(move_speed=settings.move_speed, turn_speed=settings.turn_speed)
        self.follow = CameraController(
            camera=self.camera,
            robot=self.robot,
            offset=np.array(settings.follow_offset, dtype=np.float64),
            look_ahead=settings.look_ahead,
        )
        self.follow.update()

    @property
    def loaded(self) -> bool:
        return self.columns is not None

    # ------------------------------------------------------------------
    # Scene loading
    # ------------------------------------------------------------------

    def load_collection(self, collection: SplatCollection) -> SceneInfo:
        columns = assemble_columns(collection)
        with self.lock:
            self.collection = collection
            self.columns = columns
            if len(columns):
                # Start the robot in front of the scene, facing -Z toward its center
                center, distance = columns.frame_scene()
                self.home = center + np.array([0.0, 0.0, distance])
            else:
                self.home = np.zeros(3)
            self.robot.reset()
            self.robot.set_position(*self.home)
            self.follow.update()
        logger.info(f"Scene loaded: {len(collection):,} splats ({collection.source}, {collection.format})")
        return self.info()

    def load_bytes(self, buffer: bytes) -> SceneInfo:
        """Decode with point-cloud fallback. Raises PlyDecodeError if both fail."""
        return self.load_collection(decode_with_fallback(buffer))

    async def load_file(self, path: Path) -> SceneInfo:
        return self.load_collection(await load_splat_file(path))

    def info(self) -> SceneInfo:
        if self.collection is None:
            return SceneInfo(loaded=False)
        lo, hi = self.columns.bounds()
        center, distance = self.columns.frame_scene()
        return SceneInfo(
            loaded=True,
            source=self.collection.source,
            format=self.collection.format,
            vertex_count=len(self.collection),
            properties=list(self.collection.properties),
            bounds_min=tuple(float(v) for v in lo),
            bounds_max=tuple(float(v) for v in hi),
            center=tuple(float(v) for v in center),
            distance=distance,
        )

    # ------------------------------------------------------------------
    # Robot
    # ------------------------------------------------------------------

    def apply_command(self, command) -> RobotState:
        with self.lock:
            apply_command(self.robot, command)
            self.follow.update()
            return self._state()

    def reset_robot(self) -> RobotState:
        with self.lock:
            self.robot.reset()
            self.robot.set_position(*self.home)
            self.follow.update()
            return self._state()

    def state(self) -> RobotState:
        with self.lock:
            return self._state()

    def snapshot_camera(self) -> Camera:
        return dataclasses.replace(
            self.camera,
            position=np.array(self.camera.position, dtype=np.float64),
            target=np.array(self.camera.target, dtype=np.float64),
            up=np.array(self.camera.up, dtype=np.float64),
        )

    def _state(self) -> RobotState:
        return RobotState(
            position=tuple(float(v) for v in self.robot.position),
            rotation=float(self.robot.rotation),
            camera_position=tuple(float(v) for v in self.camera.position),
            camera_target=tuple(float(v) for v in self.camera.target),
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, overrides: RenderOverrides | None = None) -> RenderResult:
        if self.columns is None:
            raise NoSceneLoadedError("No scene loaded")
        config = self.render_config
        if overrides is not None:
            config = config.with_overrides(**overrides.model_dump())
        # Snapshot under the lock, rasterize outside it
        with self.lock:
            columns = self.columns
            camera = self.snapshot_camera()
        return SplatRasterizer().rasterize(columns, camera, config)

    def render_png(self, overrides: RenderOverrides | None = None) -> bytes:
        return encode_png(self.render(overrides).image)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_simulator: Simulator | None = None
_simulator_lock = threading.Lock()


def get_simulator() -> Simulator:
    """FastAPI dependency: the shared simulator, created on first use."""
    global _simulator
    with _simulator_lock:
        if _simulator is None:
            _simulator = Simulator()
        return _simulator


def reset_simulator() -> None:
    global _simulator
    with _simulator_lock:
        _simulator = None
