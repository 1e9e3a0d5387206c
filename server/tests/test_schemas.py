"""Tests for app.schemas and app.config."""

import pytest
from pydantic import ValidationError


class TestRobotCommand:
    def test_forward(self):
        from app.schemas import ForwardCommand, command_adapter
        assert isinstance(command_adapter.validate_python({"type": "forward"}), ForwardCommand)

    def test_turn(self):
        from app.schemas import TurnCommand, command_adapter
        cmd = command_adapter.validate_python({"type": "turn", "value": 0.3927})
        assert isinstance(cmd, TurnCommand)
        assert cmd.value == 0.3927

    def test_turn_requires_value(self):
        from app.schemas import command_adapter
        with pytest.raises(ValidationError):
            command_adapter.validate_python({"type": "turn"})

    def test_unknown_type(self):
        from app.schemas import command_adapter
        with pytest.raises(ValidationError):
            command_adapter.validate_python({"type": "jump"})


class TestRenderOverrides:
    def test_defaults_are_none(self):
        from app.schemas import RenderOverrides
        assert all(v is None for v in RenderOverrides().model_dump().values())

    def test_degree_bounds(self):
        from app.schemas import RenderOverrides
        with pytest.raises(ValidationError):
            RenderOverrides(harmonic_degree=3)

    def test_applied_to_render_config(self):
        from app.schemas import RenderOverrides
        from splats.shading import RenderConfig
        cfg = RenderConfig().with_overrides(**RenderOverrides(blend="additive").model_dump())
        assert cfg.blend == "additive"
        assert cfg.footprint == "ellipse"


class TestSaveImage:
    def test_timestamp_optional(self):
        from app.schemas import SaveImageRequest
        assert SaveImageRequest(image="data:image/png;base64,").timestamp is None


class TestSettings:
    def test_defaults(self):
        from app.config import Settings
        s = Settings()
        assert s.move_speed == 0.3
        assert s.follow_offset == (0.0, 1.5, 3.0)
        cfg = s.render_config()
        assert cfg.chi_scale == 32.0
        assert cfg.point_scale == 1000.0

    def test_env_prefix(self, monkeypatch):
        from app.config import Settings
        monkeypatch.setenv("SPLATNAV_FOOTPRINT", "covariance")
        monkeypatch.setenv("SPLATNAV_SAVE_RELAY_FRAMES", "false")
        s = Settings()
        assert s.render_config().footprint == "covariance"
        assert s.save_relay_frames is False
