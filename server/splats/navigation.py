"""Simulated robot and the camera that follows it.

Heading 0 faces -Z; positive headings turn left (counter-clockwise seen from
above).
"""

import math
from dataclasses import dataclass, field

import numpy as np

from splats.camera import Camera

MOVE_SPEED = 0.3
TURN_SPEED = math.pi / 16


@dataclass
class RobotController:
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: float = 0.0
    move_speed: float = MOVE_SPEED
    turn_speed: float = TURN_SPEED

    def forward_vector(self) -> np.ndarray:
        return np.array([-math.sin(self.rotation), 0.0, -math.cos(self.rotation)])

    def move_forward(self, distance: float | None = None) -> None:
        step = self.move_speed if distance is None else distance
        self.position = self.position + step * self.forward_vector()

    def move_backward(self, distance: float | None = None) -> None:
        step = self.move_speed if distance is None else distance
        self.position = self.position - step * self.forward_vector()

    def turn_left(self, angle: float | None = None) -> None:
        self.rotation += self.turn_speed if angle is None else angle

    def turn_right(self, angle: float | None = None) -> None:
        self.rotation -= self.turn_speed if angle is None else angle

    def set_position(self, x: float, y: float, z: float) -> None:
        self.position = np.array([x, y, z], dtype=np.float64)

    def reset(self) -> None:
        self.position = np.zeros(3)
        self.rotation = 0.0


def _rotate_y(v: np.ndarray, angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([v[0] * c + v[2] * s, v[1], -v[0] * s + v[2] * c])


@dataclass
class CameraController:
    """Keeps the camera behind and above the robot, looking ahead of it."""

    camera: Camera
    robot: RobotController
    offset: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.5, 3.0]))
    look_ahead: float = 1.0

    def update(self) -> None:
        self.camera.move_to(self.robot.position + _rotate_y(self.offset, self.robot.rotation))
        self.camera.look_at(self.robot.position + self.look_ahead * self.robot.forward_vector())


def apply_command(robot: RobotController, command) -> None:
    """Apply one relay command (``forward``, ``backward`` or ``turn``)."""
    kind = command.type
    if kind == "forward":
        robot.move_forward()
    elif kind == "backward":
        robot.move_backward()
    elif kind == "turn":
        if command.value > 0:
            robot.turn_left(abs(command.value))
        else:
            robot.turn_right(abs(command.value))
    else:
        raise ValueError(f"Unknown robot command: {kind!r}")
