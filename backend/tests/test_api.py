import pytest
from fastapi.testclient import TestClient

from fakes import LLM_URL, SUCCESS, FakeWorker, RecordingLog, delta, llm_transport, progress, sse_frames
from localingo.dependencies import (
    get_artifact_store,
    get_pdf_orchestrator,
    get_text_relay,
    get_translation_log,
)
from localingo.main import app
from localingo.services.history.translation_log import TranslationLog, build_text_record
from localingo.services.pdf_tasks.artifact_store import ArtifactStore
from localingo.services.pdf_tasks.orchestrator import PdfTaskOrchestrator
from localingo.services.relay.stream_relay import TextTranslationRelay


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def pdf_setup(tmp_path):
    worker = FakeWorker(states=[progress(1, 2), SUCCESS])
    store = ArtifactStore(tmp_path / "pdfs")
    log = RecordingLog()
    orch = PdfTaskOrchestrator(worker, store, translation_log=log)
    app.dependency_overrides[get_pdf_orchestrator] = lambda: orch
    app.dependency_overrides[get_artifact_store] = lambda: store
    return worker, orch, log


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_languages(client):
    items = client.get("/api/languages").json()["items"]
    assert {"code": "ja", "name": "Japanese"} in items


def test_translate_text_streams_events(client):
    log = RecordingLog()
    chunks = [(delta("Hel") + delta("lo") + "data: [DONE]\n\n").encode()]
    relay = TextTranslationRelay(
        endpoint_url=LLM_URL,
        model="m",
        translation_log=log,
        transport=llm_transport(chunks),
    )
    app.dependency_overrides[get_text_relay] = lambda: relay

    resp = client.post("/api/translate-text", json={"text": "こんにちは", "source_lang": "ja", "target_lang": "en"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert sse_frames(resp.text) == [{"token": "Hel"}, {"token": "lo"}, {"done": True}]
    assert log.records[0]["input"] == "こんにちは"


def test_translate_text_requires_text(client):
    assert client.post("/api/translate-text", json={"text": ""}).status_code == 422


def test_pdf_submit_poll_and_download(client, pdf_setup):
    worker, orch, log = pdf_setup

    resp = client.post(
        "/api/translate-pdf",
        files={"file": ("paper.pdf", b"%PDF-original", "application/pdf")},
        data={"source_lang": "en", "target_lang": "ja", "pages": "1-2"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"task_id": "task-1", "status": "submitted"}
    assert worker.submitted[0]["data"]["pages"] == [1, 2]

    status = client.get("/api/translate-pdf/task-1/status").json()
    assert status["status"] == "progress"
    assert status["progress"] == 50.0
    assert "mono_url" not in status

    done = client.get("/api/translate-pdf/task-1/status").json()
    assert done["status"] == "success"
    assert done["mono_url"] == "/api/translate-pdf/task-1/mono"
    assert len(log.records) == 1

    mono = client.get(done["mono_url"])
    assert mono.status_code == 200
    assert mono.content == b"%PDF-mono"
    assert mono.headers["content-type"] == "application/pdf"

    original = client.get("/api/translate-pdf/task-1/original")
    assert original.content == b"%PDF-original"


def test_pdf_submit_without_file(client, pdf_setup):
    worker, _, _ = pdf_setup
    resp = client.post("/api/translate-pdf", data={"source_lang": "en"})
    assert resp.status_code == 400
    assert worker.submitted == []


def test_pdf_submit_bad_pages(client, pdf_setup):
    resp = client.post(
        "/api/translate-pdf",
        files={"file": ("paper.pdf", b"%PDF", "application/pdf")},
        data={"pages": "3-1"},
    )
    assert resp.status_code == 400


def test_missing_artifact_is_404(client, pdf_setup):
    assert client.get("/api/translate-pdf/nope/mono").status_code == 404
    assert client.get("/api/translate-pdf/nope/triple").status_code == 404


def test_cancel(client, pdf_setup):
    worker, _, _ = pdf_setup
    resp = client.delete("/api/translate-pdf/task-9")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "task_id": "task-9"}
    assert worker.deleted == ["task-9"]


def test_cancel_failure_uses_worker_status(client, pdf_setup):
    worker, _, _ = pdf_setup
    worker.delete_status = 503
    assert client.delete("/api/translate-pdf/task-9").status_code == 503


def test_translation_history(client, tmp_path):
    log = TranslationLog(tmp_path / "translations.json")
    for i in range(3):
        log.append(
            build_text_record(
                input_text=f"in-{i}",
                output_text=f"out-{i}",
                source_lang="en",
                target_lang="ja",
                metrics={},
            )
        )
    app.dependency_overrides[get_translation_log] = lambda: log

    items = client.get("/api/translations", params={"limit": 2}).json()["items"]
    assert [item["input"] for item in items] == ["in-2", "in-1"]


@pytest.mark.parametrize(
    "body,expected",
    [
        ({"state": 7}, {"status": "unknown", "task_id": "task-1", "state": "7"}),
        (
            {"state": "PROGRESS", "info": [1, 2]},
            {"status": "progress", "task_id": "task-1", "current": 0, "total": 0, "progress": 0},
        ),
    ],
)
def test_malformed_worker_status_is_not_a_server_error(client, tmp_path, body, expected):
    orch = PdfTaskOrchestrator(FakeWorker(states=[body]), ArtifactStore(tmp_path), translation_log=RecordingLog())
    app.dependency_overrides[get_pdf_orchestrator] = lambda: orch

    resp = client.get("/api/translate-pdf/task-1/status")

    assert resp.status_code == 200
    assert resp.json() == expected
