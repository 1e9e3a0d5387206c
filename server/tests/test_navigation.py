"""Tests for splats.navigation: robot motion and follow camera."""

import math
from types import SimpleNamespace

import numpy as np
import pytest


class TestRobotController:
    def test_forward_faces_negative_z(self):
        from splats.navigation import RobotController
        robot = RobotController()
        robot.move_forward()
        np.testing.assert_allclose(robot.position, [0.0, 0.0, -0.3], atol=1e-12)

    def test_backward(self):
        from splats.navigation import RobotController
        robot = RobotController()
        robot.move_backward()
        np.testing.assert_allclose(robot.position, [0.0, 0.0, 0.3], atol=1e-12)

    def test_turns(self):
        from splats.navigation import RobotController
        robot = RobotController()
        robot.turn_left()
        assert robot.rotation == pytest.approx(math.pi / 16)
        robot.turn_right()
        robot.turn_right()
        assert robot.rotation == pytest.approx(-math.pi / 16)

    def test_forward_after_left_quarter_turn(self):
        from splats.navigation import RobotController
        robot = RobotController()
        robot.turn_left(math.pi / 2)
        robot.move_forward()
        np.testing.assert_allclose(robot.position, [-0.3, 0.0, 0.0], atol=1e-12)

    def test_set_position_and_reset(self):
        from splats.navigation import RobotController
        robot = RobotController()
        robot.set_position(1.0, 2.0, 3.0)
        robot.turn_left()
        robot.reset()
        assert robot.position.tolist() == [0.0, 0.0, 0.0]
        assert robot.rotation == 0.0


class TestCameraController:
    def test_follow_pose(self):
        from splats.camera import Camera
        from splats.navigation import CameraController, RobotController

        robot = RobotController()
        follow = CameraController(Camera(), robot)
        follow.update()
        np.testing.assert_allclose(follow.camera.position, [0.0, 1.5, 3.0], atol=1e-12)
        np.testing.assert_allclose(follow.camera.target, [0.0, 0.0, -1.0], atol=1e-12)

    def test_offset_rotates_with_heading(self):
        from splats.camera import Camera
        from splats.navigation import CameraController, RobotController

        robot = RobotController()
        robot.set_position(1.0, 0.0, 0.0)
        robot.turn_left(math.pi / 2)
        follow = CameraController(Camera(), robot)
        follow.update()
        # Robot faces -X, so the camera sits behind it on +X
        np.testing.assert_allclose(follow.camera.position, [4.0, 1.5, 0.0], atol=1e-12)
        np.testing.assert_allclose(follow.camera.target, [0.0, 0.0, 0.0], atol=1e-12)


class TestApplyCommand:
    def test_forward_and_backward(self):
        from splats.navigation import RobotController, apply_command
        robot = RobotController()
        apply_command(robot, SimpleNamespace(type="forward"))
        apply_command(robot, SimpleNamespace(type="forward"))
        apply_command(robot, SimpleNamespace(type="backward"))
        np.testing.assert_allclose(robot.position, [0.0, 0.0, -0.3], atol=1e-12)

    def test_turn_sign(self):
        from splats.navigation import RobotController, apply_command
        robot = RobotController()
        apply_command(robot, SimpleNamespace(type="turn", value=math.pi / 8))
        assert robot.rotation == pytest.approx(math.pi / 8)
        apply_command(robot, SimpleNamespace(type="turn", value=-math.pi / 4))
        assert robot.rotation == pytest.approx(-math.pi / 8)

    def test_schema_commands(self):
        from app.schemas import TurnCommand
        from splats.navigation import RobotController, apply_command
        robot = RobotController()
        apply_command(robot, TurnCommand(type="turn", value=0.25))
        assert robot.rotation == pytest.approx(0.25)

    def test_unknown_command(self):
        from splats.navigation import RobotController, apply_command
        with pytest.raises(ValueError):
            apply_command(RobotController(), SimpleNamespace(type="jump"))
