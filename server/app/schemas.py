from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


# --- Robot commands ---


class ForwardCommand(BaseModel):
    type: Literal["forward"]


class BackwardCommand(BaseModel):
    type: Literal["backward"]


class TurnCommand(BaseModel):
    type: Literal["turn"]
    value: float  # radians, positive turns left


RobotCommand = Annotated[
    Union[ForwardCommand, BackwardCommand, TurnCommand],
    Field(discriminator="type"),
]

command_adapter = TypeAdapter(RobotCommand)


class RobotState(BaseModel):
    position: tuple[float, float, float]
    rotation: float
    camera_position: tuple[float, float, float]
    camera_target: tuple[float, float, float]


# --- Scene ---


class SceneInfo(BaseModel):
    loaded: bool
    source: str | None = None  # gaussian | point_cloud
    format: str | None = None
    vertex_count: int = 0
    properties: list[str] = []
    bounds_min: tuple[float, float, float] | None = None
    bounds_max: tuple[float, float, float] | None = None
    center: tuple[float, float, float] | None = None
    distance: float | None = None


class RenderOverrides(BaseModel):
    footprint: Literal["covariance", "ellipse"] | None = None
    harmonic_degree: int | None = Field(default=None, ge=0, le=2)
    point_scale: float | None = Field(default=None, gt=0)
    chi_scale: float | None = Field(default=None, gt=0)
    debug_ring: bool | None = None
    blend: Literal["normal", "additive"] | None = None


# --- Exports ---


class SaveImageRequest(BaseModel):
    image: str  # PNG data URL
    timestamp: str | None = None


class SaveImageResponse(BaseModel):
    success: bool
    filename: str
