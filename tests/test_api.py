"""
API tests for the translation, document and session endpoints.

The app is built with fake providers, so no request leaves the process.
"""

import dataclasses
import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.app_factory import _register_error_handlers, _register_middlewares, create_app
from core.providers import build_registry
from translation.errors import UpstreamError

DOCUMENT = b"Hello world. This document is translated into several languages."


def _make_client(settings):
    app = create_app(registry=build_registry(use_fake=True, settings=settings), settings=settings)
    return TestClient(app)


@pytest.fixture
def client(test_settings):
    with _make_client(test_settings) as c:
        yield c


def _wait_for_status(client, url, attempts=300):
    for _ in range(attempts):
        body = client.get(url).json()
        if body["status"] in ("completed", "error"):
            return body
        time.sleep(0.01)
    pytest.fail(f"{url} did not finish")


def _upload(client, name="report.txt", content=DOCUMENT, content_type="text/plain"):
    return client.post("/documents/upload", files={"file": (name, content, content_type)})


def test_root_and_request_id(client):
    response = client.get("/", headers={"X-Request-Id": "req-123"})
    assert response.status_code == 200
    assert response.headers["X-Request-Id"] == "req-123"


class TestTranslateEndpoints:
    def test_translate(self, client):
        response = client.post("/translate", json={"text": "Hello world.", "target_lang": "de"})

        assert response.status_code == 200
        assert response.json() == {
            "translated_text": "[DE] Hello world.",
            "source_lang": "AUTO",
            "target_lang": "DE",
            "chunks": 1,
            "fallback_chunks": 0,
        }

    def test_large_text_is_chunked(self, client):
        text = " ".join(f"Sentence {n}." for n in range(30))
        body = client.post("/translate", json={"text": text, "target_lang": "FR"}).json()

        assert body["chunks"] > 1
        assert body["translated_text"].startswith("[FR] Sentence 0.")

    def test_unsupported_language_uses_error_envelope(self, client):
        response = client.post("/translate", json={"text": "Hi", "target_lang": "XX"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["request_id"]

    def test_request_validation_error(self, client):
        response = client.post("/translate", json={"target_lang": "DE"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_latest_translation(self, client):
        assert client.get("/translate/latest").status_code == 404

        client.post("/translate", json={"text": "Hello.", "target_lang": "ES"})
        body = client.get("/translate/latest").json()

        assert body["done"] is True
        assert body["translated_text"] == "[ES] Hello."

    def test_text_job_lifecycle(self, client):
        response = client.post(
            "/translate/jobs",
            json={"text": "Hello world.", "target_langs": ["DE", "FR"]},
        )
        assert response.status_code == 202
        task_id = response.json()["task_id"]

        body = _wait_for_status(client, f"/translate/jobs/{task_id}")

        assert body["status"] == "completed"
        assert body["progress"] == 100.0
        assert [r["translated_text"] for r in body["results"]] == [
            "[DE] Hello world.",
            "[FR] Hello world.",
        ]

    def test_unknown_text_job(self, client):
        response = client.get("/translate/jobs/task_missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestDocumentEndpoints:
    def test_upload_process_download(self, client):
        upload = _upload(client)
        assert upload.status_code == 201
        file_id = upload.json()["file_id"]

        response = client.post(
            "/documents/process",
            json={"file_id": file_id, "target_langs": ["DE", "FR"]},
        )
        assert response.status_code == 202
        task_id = response.json()["task_id"]

        status = _wait_for_status(client, f"/documents/status?task_id={task_id}")
        assert status["status"] == "completed"
        assert status["kind"] == "document"
        assert [r["status"] for r in status["results"]] == ["completed", "completed"]

        download = client.get(f"/documents/download?task_id={task_id}&lang_code=de")
        assert download.status_code == 200
        assert download.headers["content-disposition"] == (
            "attachment; filename=\"report_DE.txt\"; filename*=UTF-8''report_DE.txt"
        )
        assert download.text.startswith("[DE] Hello world.")
        assert "Target language: German (DE)" in download.text
        assert f"Job ID: {task_id}" in download.text

    def test_unsupported_upload(self, client):
        response = _upload(client, name="photo.png", content=b"x", content_type="image/png")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    def test_upload_too_large(self, client):
        response = _upload(client, content=b"x" * 2048)
        assert response.status_code == 413
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    def test_process_unknown_file(self, client):
        response = client.post(
            "/documents/process", json={"file_id": "file_missing", "target_langs": ["DE"]}
        )
        assert response.status_code == 404

    def test_status_unknown_task(self, client):
        response = client.get("/documents/status?task_id=task_missing")
        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"task_id": "task_missing"}

    def test_download_unrequested_language(self, client):
        file_id = _upload(client).json()["file_id"]
        task_id = client.post(
            "/documents/process", json={"file_id": file_id, "target_langs": ["DE"]}
        ).json()["task_id"]
        _wait_for_status(client, f"/documents/status?task_id={task_id}")

        response = client.get(f"/documents/download?task_id={task_id}&lang_code=IT")
        assert response.status_code == 404

    def test_queue_pause_clear_resume(self, client):
        assert client.post("/documents/queue/pause").json()["paused"] is True

        file_id = _upload(client).json()["file_id"]
        task_id = client.post(
            "/documents/process", json={"file_id": file_id, "target_langs": ["DE"]}
        ).json()["task_id"]

        queue = client.get("/documents/queue").json()
        assert queue["pending"] == 1
        assert queue["items"][0]["id"] == task_id
        assert queue["items"][0]["position"] == 1

        assert client.delete("/documents/queue").json() == {"removed": 1}
        assert client.get(f"/documents/status?task_id={task_id}").status_code == 404

        resumed = client.post("/documents/queue/resume").json()
        assert resumed["paused"] is False
        assert resumed["items"] == []


class TestSessionGate:
    @pytest.fixture
    def gated_client(self, test_settings):
        settings = dataclasses.replace(test_settings, dev_mode=False, admin_token="secret")
        with _make_client(settings) as c:
            yield c

    def test_missing_token_is_unauthorized(self, gated_client):
        response = gated_client.post("/translate", json={"text": "Hi", "target_lang": "DE"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_pending_then_approved(self, gated_client):
        started = gated_client.post("/auth/sessions")
        assert started.status_code == 201
        session_id = started.json()["session_id"]
        headers = {"X-Session-Token": session_id}
        payload = {"text": "Hi", "target_lang": "DE"}

        pending = gated_client.post("/translate", json=payload, headers=headers)
        assert pending.status_code == 403
        assert pending.json()["error"]["details"] == {"access": "pending"}

        denied = gated_client.post(
            f"/auth/sessions/{session_id}/approve", headers={"X-Admin-Token": "wrong"}
        )
        assert denied.status_code == 403

        approved = gated_client.post(
            f"/auth/sessions/{session_id}/approve", headers={"X-Admin-Token": "secret"}
        )
        assert approved.json()["access"] == "allowed"

        assert gated_client.post("/translate", json=payload, headers=headers).status_code == 200

    def test_denied_session(self, gated_client):
        session_id = gated_client.post("/auth/sessions").json()["session_id"]
        gated_client.post(f"/auth/sessions/{session_id}/deny", headers={"X-Admin-Token": "secret"})

        status = gated_client.get(f"/auth/sessions/{session_id}").json()
        assert status["status"] == "denied"
        assert status["access"] == "denied"

        response = gated_client.post(
            "/translate",
            json={"text": "Hi", "target_lang": "DE"},
            headers={"X-Session-Token": session_id},
        )
        assert response.status_code == 403

    def _approved_session(self, client):
        session_id = client.post("/auth/sessions").json()["session_id"]
        client.post(f"/auth/sessions/{session_id}/approve", headers={"X-Admin-Token": "secret"})
        return {"X-Session-Token": session_id}

    def test_latest_is_private_to_the_session(self, gated_client):
        owner = self._approved_session(gated_client)
        other = self._approved_session(gated_client)
        gated_client.post(
            "/translate", json={"text": "Private memo.", "target_lang": "DE"}, headers=owner
        )

        anonymous = gated_client.get("/translate/latest")
        assert anonymous.status_code == 401

        assert gated_client.get("/translate/latest", headers=other).status_code == 404

        mine = gated_client.get("/translate/latest", headers=owner)
        assert mine.status_code == 200
        assert mine.json()["translated_text"] == "[DE] Private memo."

    def test_status_polling_is_open(self, gated_client):
        assert gated_client.get("/documents/queue").status_code == 200


def test_expiry_sweep_removes_finished_jobs(client):
    file_id = _upload(client).json()["file_id"]
    task_id = client.post(
        "/documents/process", json={"file_id": file_id, "target_langs": ["DE"]}
    ).json()["task_id"]
    _wait_for_status(client, f"/documents/status?task_id={task_id}")

    services = client.app.state.services
    removed = services.sweep_expired(now=time.time() + 10 * 24 * 60 * 60)

    assert task_id in removed
    assert client.get(f"/documents/status?task_id={task_id}").status_code == 404
    assert client.get("/documents/queue").json()["items"] == []
    storage = services.registry.document_storage
    assert storage.get_upload(file_id) is None
    assert storage._documents == {}


def test_expiry_sweep_releases_unprocessed_uploads(client):
    file_id = _upload(client).json()["file_id"]
    services = client.app.state.services
    storage = services.registry.document_storage

    services.sweep_expired(now=time.time() + 60)
    assert storage.get_upload(file_id) is not None

    services.sweep_expired(now=time.time() + 10 * 24 * 60 * 60)
    assert storage.get_upload(file_id) is None


def test_escaped_upstream_error_maps_to_bad_gateway():
    app = FastAPI()
    _register_middlewares(app)
    _register_error_handlers(app)

    @app.get("/boom")
    async def boom():
        raise UpstreamError("DeepLX unavailable", status_code=503)

    response = TestClient(app).get("/boom")

    assert response.status_code == 502
    error = response.json()["error"]
    assert error["code"] == "UPSTREAM_ERROR"
    assert error["details"] == {"retryable": True, "upstream_status": 503}
