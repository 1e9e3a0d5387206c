"""Tests for the scene, robot and export HTTP endpoints.

Uses the ring fixture encoded in memory; the follow camera renders small
frames so the CPU rasterizer stays quick.
"""

import asyncio
import base64
import math

import pytest
from httpx import AsyncClient, ASGITransport


def _ring_ply() -> bytes:
    from splats.encoder import encode_ply
    from splats.fixtures import ring_fixture
    return encode_ply(ring_fixture())


@pytest.fixture
async def client(tmp_path, monkeypatch):
    from app.config import settings
    from app.main import app
    from app.services.simulator import reset_simulator

    monkeypatch.setattr(settings, "exports_dir", tmp_path / "exports")
    monkeypatch.setattr(settings, "frame_width", 160)
    monkeypatch.setattr(settings, "frame_height", 120)
    reset_simulator()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    reset_simulator()


async def _upload(client, data: bytes, name: str = "ring.ply"):
    return await client.post("/api/scene", files={"file": (name, data, "application/octet-stream")})


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["scene_loaded"] is False


class TestScene:
    @pytest.mark.asyncio
    async def test_no_scene(self, client):
        resp = await client.get("/api/scene")
        assert resp.status_code == 200
        assert resp.json()["loaded"] is False

    @pytest.mark.asyncio
    async def test_upload(self, client):
        resp = await _upload(client, _ring_ply())
        assert resp.status_code == 200
        data = resp.json()
        assert data["loaded"] is True
        assert data["source"] == "gaussian"
        assert data["format"] == "binary_little_endian"
        assert data["vertex_count"] == 12
        assert data["distance"] == pytest.approx(6.0, rel=1e-6)

        resp = await client.get("/api/scene")
        assert resp.json()["vertex_count"] == 12

    @pytest.mark.asyncio
    async def test_upload_garbage(self, client):
        resp = await _upload(client, b"not a ply at all")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_truncated(self, client):
        resp = await _upload(client, _ring_ply()[:-10])
        # Truncated Gaussian files also fail the point-cloud path
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_wrong_extension(self, client):
        resp = await _upload(client, _ring_ply(), name="ring.obj")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_render_requires_scene(self, client):
        resp = await client.get("/api/scene/render")
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_render_png(self, client):
        await _upload(client, _ring_ply())
        resp = await client.get("/api/scene/render")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content.startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_render_overrides(self, client):
        await _upload(client, _ring_ply())
        resp = await client.get("/api/scene/render", params={"footprint": "covariance", "harmonic_degree": 0})
        assert resp.status_code == 200
        resp = await client.get("/api/scene/render", params={"harmonic_degree": 5})
        assert resp.status_code == 422


class TestRobot:
    @pytest.mark.asyncio
    async def test_commands(self, client):
        await _upload(client, _ring_ply())
        home = (await client.get("/api/robot")).json()

        resp = await client.post("/api/robot/command", json={"type": "forward"})
        assert resp.status_code == 200
        moved = resp.json()
        assert moved["position"][2] == pytest.approx(home["position"][2] - 0.3)

        resp = await client.post("/api/robot/command", json={"type": "turn", "value": math.pi / 8})
        assert resp.json()["rotation"] == pytest.approx(math.pi / 8)

        resp = await client.post("/api/robot/reset")
        assert resp.json()["position"] == pytest.approx(home["position"])
        assert resp.json()["rotation"] == 0.0

    @pytest.mark.asyncio
    async def test_starts_in_front_of_scene(self, client):
        info = (await _upload(client, _ring_ply())).json()
        robot = (await client.get("/api/robot")).json()
        assert robot["position"][2] == pytest.approx(info["center"][2] + info["distance"])
        # Follow camera sits behind and above the robot
        assert robot["camera_position"][1] == pytest.approx(robot["position"][1] + 1.5)

    @pytest.mark.asyncio
    async def test_invalid_command(self, client):
        resp = await client.post("/api/robot/command", json={"type": "fly"})
        assert resp.status_code == 422


class TestSaveImage:
    @pytest.mark.asyncio
    async def test_save(self, client, tmp_path):
        png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8
        resp = await client.post("/api/save-image", json={
            "image": "data:image/png;base64," + base64.b64encode(png).decode(),
            "timestamp": "2024-05-01T12:30:00.000Z",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["filename"] == "manual_export_2024-05-01T12-30-00-000Z.png"
        assert (tmp_path / "exports" / data["filename"]).read_bytes() == png

    @pytest.mark.asyncio
    async def test_bad_image(self, client):
        resp = await client.post("/api/save-image", json={"image": "data:image/png;base64,!!"})
        assert resp.status_code == 400


class TestLockContention:
    @staticmethod
    async def _hold_lock(sim, seconds: float):
        """Hold the simulator lock from another thread; returns once it is taken."""
        import threading
        import time

        acquired = threading.Event()

        def hold():
            with sim.lock:
                acquired.set()
                time.sleep(seconds)

        thread = threading.Thread(target=hold)
        thread.start()
        while not acquired.is_set():
            await asyncio.sleep(0.001)
        return thread

    @pytest.mark.asyncio
    async def test_command_does_not_block_event_loop(self, client):
        from app.services.simulator import get_simulator

        await _upload(client, _ring_ply())
        sim = get_simulator()
        loop = asyncio.get_running_loop()
        gaps = []
        done = False

        async def tick():
            last = loop.time()
            while not done:
                await asyncio.sleep(0.01)
                now = loop.time()
                gaps.append(now - last)
                last = now

        ticker = asyncio.create_task(tick())
        thread = await self._hold_lock(sim, 0.5)
        resp = await client.post("/api/robot/command", json={"type": "forward"})
        done = True
        await ticker
        thread.join()

        assert resp.status_code == 200
        assert max(gaps) < 0.2

    @pytest.mark.asyncio
    async def test_render_releases_lock_while_rasterizing(self, client, monkeypatch):
        from app.services.simulator import get_simulator
        from splats.rasterizer import SplatRasterizer

        await _upload(client, _ring_ply())
        sim = get_simulator()
        seen = []
        rasterize = SplatRasterizer.rasterize

        def spy(self, columns, camera, config):
            seen.append(sim.lock.locked())
            # The frame's camera is a copy of the follow camera
            assert camera is not sim.camera
            return rasterize(self, columns, camera, config)

        monkeypatch.setattr(SplatRasterizer, "rasterize", spy)
        resp = await client.get("/api/scene/render")
        assert resp.status_code == 200
        assert seen == [False]
