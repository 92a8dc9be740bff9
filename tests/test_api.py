import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeOracle, build_orchestrator

from reelcut.main import app
from reelcut.routers import uploads
from reelcut.services import orchestrator as orchestrator_module
from reelcut.services.object_store import LocalObjectStore


SEGMENTS = [
    {"start_time": 10, "end_time": 40, "score": 9.2, "type": "hook", "rationale": "great opener"},
    {"start_time": 200, "end_time": 245, "score": 7.5, "type": "insight", "rationale": "solid"},
]


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(orchestrator_module, "_orchestrator", build_orchestrator(FakeOracle(segments=SEGMENTS)))
    with TestClient(app) as test_client:
        yield test_client


def wait_for_terminal(client, job_id):
    for _ in range(500):
        body = client.post("/api/repurpose", json={"action": "get_status", "job_id": job_id}).json()
        if body["state"] in ("completed", "failed", "cancelled"):
            return body
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish")


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_and_poll_job(client):
    response = client.post("/api/repurpose", json={
        "action": "create_job",
        "owner": "alice",
        "source": "uploads/talk.mp4",
        "constraints": {"target_clip_count": 5},
    })

    assert response.status_code == 200
    created = response.json()
    assert created["state"] == "queued"

    job = wait_for_terminal(client, created["job_id"])

    assert job["state"] == "completed"
    assert job["progress"] == 100
    assert len(job["result"]["clips"]) == 2
    assert job["result"]["statistics"]["total_clips"] == 2


def test_create_job_without_source_is_rejected(client):
    response = client.post("/api/repurpose", json={"action": "create_job", "owner": "alice"})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert client.get("/api/jobs/").json() == []


def test_unknown_action_and_missing_job_id(client):
    unknown = client.post("/api/repurpose", json={"action": "explode"})
    missing_id = client.post("/api/repurpose", json={"action": "get_status"})

    assert unknown.status_code == 400
    assert missing_id.status_code == 400


def test_unknown_job_is_404(client):
    response = client.post("/api/repurpose", json={"action": "get_status", "job_id": "nope"})

    assert response.status_code == 404
    assert response.json()["error"] == "JOB_NOT_FOUND"


def test_cancel_completed_job_conflicts(client):
    created = client.post("/api/jobs/", json={"owner": "alice", "source": "uploads/talk.mp4"})
    assert created.status_code == 202
    job_id = created.json()["id"]
    wait_for_terminal(client, job_id)

    response = client.post("/api/repurpose", json={"action": "cancel_job", "job_id": job_id})

    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE"


def test_list_jobs_by_owner(client):
    client.post("/api/jobs/", json={"owner": "alice", "source": "uploads/a.mp4"})
    client.post("/api/jobs/", json={"owner": "bob", "source": "uploads/b.mp4"})

    jobs = client.get("/api/jobs/", params={"owner": "bob"}).json()

    assert [job["source"] for job in jobs] == ["uploads/b.mp4"]


def test_upload_stores_video(client, monkeypatch, tmp_path):
    store = LocalObjectStore(str(tmp_path / "media"))
    monkeypatch.setattr(uploads, "get_object_store", lambda: store)

    response = client.post(
        "/api/uploads",
        data={"owner": "alice"},
        files={"file": ("talk.mp4", b"\x00\x01fake-video", "video/mp4")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["source"].startswith("uploads/")
    assert body["source"].endswith("_talk.mp4")
    assert body["key"] == f"alice/{body['source']}"
    assert (tmp_path / "media" / body["key"]).read_bytes() == b"\x00\x01fake-video"


def test_upload_rejects_non_video(client):
    response = client.post(
        "/api/uploads",
        data={"owner": "alice"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
