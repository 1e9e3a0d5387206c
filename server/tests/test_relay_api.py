"""Tests for the /ws/robot command relay."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(tmp_path, monkeypatch):
    from app.config import settings
    from app.main import app
    from app.services.simulator import reset_simulator

    monkeypatch.setattr(settings, "exports_dir", tmp_path / "exports")
    monkeypatch.setattr(settings, "frame_width", 96)
    monkeypatch.setattr(settings, "frame_height", 72)
    reset_simulator()
    yield TestClient(app)
    reset_simulator()


def _load_ring():
    from app.services.simulator import get_simulator
    from splats.encoder import encode_ply
    from splats.fixtures import ring_fixture
    get_simulator().load_bytes(encode_ply(ring_fixture()))


class TestRelay:
    def test_ping(self, client):
        with client.websocket_connect("/ws/robot") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_invalid_messages_keep_socket_open(self, client):
        with client.websocket_connect("/ws/robot") as ws:
            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"type": "fly"})
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_command_without_scene(self, client):
        with client.websocket_connect("/ws/robot") as ws:
            ws.send_json({"type": "forward"})
            reply = ws.receive_json()
        assert reply["type"] == "error"
        assert reply["message"] == "No scene loaded"
        assert reply["robot"]["position"] == pytest.approx([0.0, 0.0, -0.3])

    def test_forward_returns_frame(self, client, tmp_path):
        _load_ring()
        with client.websocket_connect("/ws/robot") as ws:
            ws.send_json({"type": "forward"})
            reply = ws.receive_json()
            ws.send_json({"type": "turn", "value": -0.3927})
            turned = ws.receive_json()

        assert reply["type"] == "image"
        assert reply["data"].startswith("data:image/png;base64,")
        assert turned["robot"]["rotation"] == pytest.approx(-0.3927)

        from utils.images import decode_data_url
        assert decode_data_url(reply["data"]).startswith(b"\x89PNG")
        assert len(list((tmp_path / "exports").glob("rendered_image_*.png"))) >= 1

    def test_frames_not_saved_when_disabled(self, client, tmp_path, monkeypatch):
        from app.config import settings
        monkeypatch.setattr(settings, "save_relay_frames", False)
        _load_ring()
        with client.websocket_connect("/ws/robot") as ws:
            ws.send_json({"type": "backward"})
            assert ws.receive_json()["type"] == "image"
        assert not (tmp_path / "exports").exists() or not list((tmp_path / "exports").iterdir())
