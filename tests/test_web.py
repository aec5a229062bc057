"""Unit tests for the clipstitch job API."""

import time
from unittest.mock import patch

import pytest

from clipstitch.engine import PipelineResult, SkippedRequest
from clipstitch.web import create_app
from clipstitch.web.routes import _jobs

TASKS = [
    {"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ", "startTime": "00:10", "endTime": "00:20"},
    {"url": "https://youtu.be/9bZkp7q19f0", "startTime": "5", "endTime": "9"},
]


@pytest.fixture
def app(tmp_path):
    app = create_app(work_dir=tmp_path / "work", cache_dir=tmp_path / "cache")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _create(client, payload=None):
    return client.post("/api/jobs", json=payload if payload is not None else {"tasks": TASKS})


def _wait_for(job_id: str, status: str, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if _jobs[job_id]["status"] == status:
            return _jobs[job_id]
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} never reached {status!r}")


class TestHealth:
    def test_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"


class TestCreateJob:
    def test_create_success(self, client, tmp_path):
        resp = _create(client)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["task_count"] == 2
        assert (tmp_path / "work" / data["job_id"]).is_dir()

    def test_bare_list_accepted(self, client):
        resp = _create(client, TASKS)
        assert resp.status_code == 200

    def test_missing_field_rejects_batch(self, client):
        resp = _create(client, {"tasks": [TASKS[0], {"url": "https://youtu.be/9bZkp7q19f0"}]})
        assert resp.status_code == 400
        assert "Task 2" in resp.get_json()["error"]

    def test_not_json(self, client):
        resp = client.post("/api/jobs", data="nope", content_type="text/plain")
        assert resp.status_code == 400

    def test_bad_max_height(self, client):
        resp = _create(client, {"tasks": TASKS, "max_height": "tall"})
        assert resp.status_code == 400


class TestProcess:
    def test_process_unknown_job(self, client):
        resp = client.post("/api/jobs/nonexistent/process")
        assert resp.status_code == 404

    @patch("clipstitch.web.routes.process")
    def test_process_runs_and_reports(self, mock_process, client, tmp_path):
        job_id = _create(client).get_json()["job_id"]
        mock_process.return_value = PipelineResult(
            output_path=tmp_path / "work" / job_id / "output.mp4",
            produced_clip_count=1,
            merged=True,
            skipped=[SkippedRequest(2, "https://youtu.be/9bZkp7q19f0", "fetch", "Video unavailable")],
            duration=10.0,
        )

        resp = client.post(f"/api/jobs/{job_id}/process")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "started"

        _wait_for(job_id, "done")
        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert status["result"]["produced_clip_count"] == 1
        assert status["result"]["skipped_count"] == 1
        assert status["result"]["skipped"][0]["stage"] == "fetch"

        config = mock_process.call_args[0][0]
        assert config.output == tmp_path / "work" / job_id / "output.mp4"
        assert config.scratch_dir == tmp_path / "work" / job_id / "segments"
        assert config.fetch.cache_dir == tmp_path / "cache"
        assert len(mock_process.call_args[0][1]) == 2

    @patch("clipstitch.web.routes.process")
    def test_process_error_is_reported(self, mock_process, client):
        from clipstitch.errors import MergeError

        mock_process.side_effect = MergeError("Failed to join 2 segments")
        job_id = _create(client).get_json()["job_id"]

        client.post(f"/api/jobs/{job_id}/process")
        _wait_for(job_id, "error")

        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert "Failed to join" in status["error"]


class TestStatus:
    def test_status_after_create(self, client):
        job_id = _create(client).get_json()["job_id"]

        resp = client.get(f"/api/jobs/{job_id}/status")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "created"

    def test_status_unknown_job(self, client):
        resp = client.get("/api/jobs/nonexistent/status")
        assert resp.status_code == 404


class TestProgress:
    def test_no_processing_yet(self, client):
        job_id = _create(client).get_json()["job_id"]
        resp = client.get(f"/api/jobs/{job_id}/progress")
        assert resp.status_code == 409


class TestDownload:
    def test_download_not_complete(self, client):
        job_id = _create(client).get_json()["job_id"]

        resp = client.get(f"/api/jobs/{job_id}/result")
        assert resp.status_code == 409

    def test_download_unknown_job(self, client):
        resp = client.get("/api/jobs/nonexistent/result")
        assert resp.status_code == 404

    @patch("clipstitch.web.routes.process")
    def test_download_empty_result(self, mock_process, client, tmp_path):
        mock_process.return_value = PipelineResult(output_path=tmp_path / "unused.mp4")
        job_id = _create(client).get_json()["job_id"]

        client.post(f"/api/jobs/{job_id}/process")
        _wait_for(job_id, "done")

        resp = client.get(f"/api/jobs/{job_id}/result")
        assert resp.status_code == 404
