from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from services.clipper.app import create_app
from services.clipper.downloader import AcquisitionError, StageTimeoutError
from services.clipper.service import ClipService


def _client(settings, acquire_error=None) -> TestClient:
    def acquire(url, dest_path, _settings):
        dest_path.write_bytes(b"source")
        if acquire_error:
            raise acquire_error
        return dest_path

    def extract(source_path, start, end, dest_path, _settings):
        dest_path.write_bytes(b"clip")
        return dest_path

    return TestClient(create_app(ClipService(settings, acquirer=acquire, extractor=extract)))


def test_post_clip_returns_servable_url(settings) -> None:
    client = _client(settings)
    response = client.post(
        "/api/clip",
        json={"url": "https://youtu.be/abc", "startTime": "00:30", "endTime": "01:15"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Clip created successfully!"
    assert body["clipUrl"].startswith("/clips/clip-")
    assert body["requestId"]

    served = client.get(body["clipUrl"])
    assert served.status_code == 200
    assert served.content == b"clip"


def test_snake_case_fields_accepted(settings) -> None:
    response = _client(settings).post(
        "/api/clip",
        json={"url": "https://youtu.be/abc", "start_time": "0:05", "end_time": "0:09"},
    )
    assert response.status_code == 200


@pytest.mark.parametrize(
    "payload,error",
    [
        ({"url": "https://youtu.be/abc"}, "Missing required parameters."),
        ({"url": "https://youtu.be/abc", "startTime": "99:99", "endTime": "01:00"}, "Invalid timestamp format. Please use MM:SS."),
        ({"url": "https://youtu.be/abc", "startTime": "01:00", "endTime": "00:10"}, "End time must be after start time."),
    ],
)
def test_validation_errors_are_400(settings, payload, error) -> None:
    response = _client(settings).post("/api/clip", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == error
    assert response.json()["errorKind"] == "validation_error"


def test_acquisition_error_hides_diagnostic(settings) -> None:
    client = _client(settings, AcquisitionError("acquiring failed", diagnostic="ERROR: secret internal path /srv/x"))
    response = client.post(
        "/api/clip",
        json={"url": "https://youtu.be/abc", "startTime": "00:30", "endTime": "01:15"},
    )

    assert response.status_code == 500
    assert response.json()["error"] == "An internal server error occurred."
    assert "secret" not in response.text
    assert list(Path(settings.scratch_root).iterdir()) == []


def test_timeout_is_504(settings) -> None:
    client = _client(settings, StageTimeoutError("acquiring exceeded 5s timeout", stage="acquiring"))
    response = client.post(
        "/api/clip",
        json={"url": "https://youtu.be/abc", "startTime": "00:30", "endTime": "01:15"},
    )

    assert response.status_code == 504
    assert response.json()["errorKind"] == "timeout_error"


def test_get_on_clip_endpoint_not_allowed(settings) -> None:
    assert _client(settings).get("/api/clip").status_code == 405


def test_healthz_reports_tools(monkeypatch, settings) -> None:
    monkeypatch.setattr("services.clipper.app.shutil.which", lambda name: None)
    body = _client(settings).get("/healthz").json()
    assert body == {"status": "degraded", "tools": {"yt-dlp": False, "ffmpeg": False}}


def test_metrics_exposed(settings) -> None:
    response = _client(settings).get("/metrics/")
    assert response.status_code == 200
    assert "clip_request_duration_seconds" in response.text


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"url": 123, "startTime": "00:30", "endTime": "01:15"}},
        {"content": b"url=https://youtu.be/abc", "headers": {"content-type": "application/json"}},
    ],
)
def test_malformed_body_uses_error_envelope(settings, kwargs) -> None:
    response = _client(settings).post("/api/clip", **kwargs)

    assert response.status_code == 400
    body = response.json()
    assert body["errorKind"] == "validation_error"
    assert body["error"].startswith("Invalid request body")
    assert body["requestId"]
    assert "detail" not in body
    assert list(Path(settings.scratch_root).iterdir()) == []
