import json

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.exceptions import AVAILABLE_ENDPOINTS
from app.presentation.api.v1.dependencies.render import build_render_video_use_case
from app.presentation.main import create_application

pytestmark = pytest.mark.integration


@pytest.fixture
def client(fake_adapters, artifact_store):
    app = create_application(
        render_use_case=build_render_video_use_case(fake_adapters),
        artifact_store=artifact_store,
    )
    with TestClient(app) as c:
        yield c


def test_root_lists_endpoints(client):
    resp = client.get("/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "running"
    assert body["service"] == settings.service_name
    assert body["endpoints"] == AVAILABLE_ENDPOINTS


def test_health_reports_ok_and_slots(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "remotion-renderer"
    assert body["timestamp"]
    assert body["uptime"] >= 0
    assert body["renderSlots"] == {"active": 0, "limit": settings.max_concurrent_renders}


def test_render_success_then_download(client, fake_engine, sample_payload):
    resp = client.post("/render", json=sample_payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["videoId"] == "v1"
    assert body["outputPath"].endswith("v1.mp4")
    assert body["composition"]["durationInFrames"] == 150
    assert body["composition"]["durationInSeconds"] == 5.0
    assert fake_engine.leftover_bundles() == []

    video = client.get("/videos/v1")
    assert video.status_code == 200
    assert video.headers["content-type"] == "video/mp4"
    assert video.content.startswith(b"\x00\x00\x00\x18ftyp")


@pytest.mark.parametrize(
    "payload",
    [{}, {"foo": 1}, {"videoData": None}, {"videoData": {}}],
)
def test_render_without_video_data_is_400(client, fake_engine, payload):
    resp = client.post("/render", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "videoData is required", "received": payload}
    assert fake_engine.render_calls == []


def test_render_with_malformed_json_is_400(client):
    resp = client.post(
        "/render", content=b"{not json", headers={"content-type": "application/json"}
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "videoData is required", "received": None}


def test_render_with_invalid_scene_is_400(client):
    resp = client.post(
        "/render",
        json={"videoData": {"videoAssets": [{"url": "a.mp4", "duration": "long"}]}},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid videoData"
    assert body["details"][0]["loc"] == ["videoAssets", 0, "duration"]


def test_render_engine_failure_is_500(client, fake_engine, sample_payload):
    fake_engine.fail_at = "composition"

    resp = client.post("/render", json=sample_payload)

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Video rendering failed"
    assert "Could not find composition with ID VideoShort" in body["message"]
    assert body["kind"] == "CompositionError"
    assert fake_engine.leftover_bundles() == []


def test_unknown_route_returns_404_with_endpoints(client):
    resp = client.get("/does-not-exist")

    assert resp.status_code == 404
    assert resp.json() == {
        "error": "Not found",
        "path": "/does-not-exist",
        "availableEndpoints": AVAILABLE_ENDPOINTS,
    }


def test_wrong_method_keeps_status(client):
    resp = client.get("/render")

    assert resp.status_code == 405
    assert resp.json()["detail"]["details"] == "Method Not Allowed"


def test_missing_video_is_404(client):
    resp = client.get("/videos/never-rendered")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Video not found", "videoId": "never-rendered"}


def test_cors_headers_present(client):
    resp = client.get("/health", headers={"Origin": "http://example.test"})

    assert resp.headers["access-control-allow-origin"] == "*"


def test_oversized_body_is_413(fake_adapters, artifact_store, fake_engine, monkeypatch):
    monkeypatch.setattr(settings, "max_request_body_size", 64)
    app = create_application(
        render_use_case=build_render_video_use_case(fake_adapters),
        artifact_store=artifact_store,
    )

    with TestClient(app) as c:
        resp = c.post(
            "/render",
            json={"videoData": {"videoId": "v1", "audioBase64": "A" * 500}},
        )

    assert resp.status_code == 413
    assert resp.json() == {"error": "Payload too large", "limit": 64}
    assert fake_engine.bundles == []


def test_chunked_body_over_limit_is_413(
    fake_adapters, artifact_store, fake_engine, monkeypatch
):
    monkeypatch.setattr(settings, "max_request_body_size", 64)
    app = create_application(
        render_use_case=build_render_video_use_case(fake_adapters),
        artifact_store=artifact_store,
    )

    def body():
        yield b'{"videoData": {"videoId": "v1", "audioBase64": "'
        for _ in range(10):
            yield b"A" * 60
        yield b'"}}'

    with TestClient(app) as c:
        resp = c.post(
            "/render", content=body(), headers={"Content-Type": "application/json"}
        )

    assert resp.status_code == 413
    assert resp.json() == {"error": "Payload too large", "limit": 64}
    assert fake_engine.bundles == []


def test_small_chunked_body_is_accepted(client, fake_engine, sample_payload):
    raw = json.dumps(sample_payload).encode("utf-8")

    def body():
        yield raw[:10]
        yield raw[10:]

    resp = client.post(
        "/render", content=body(), headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 200
    assert len(fake_engine.bundles) == 1
