import io

import pytest

import ai_client
import app as app_module
from image_encoder import INVALID_TYPE_MESSAGE, OVERSIZED_MESSAGE
from scat_content import DEFAULT_ANALYSIS
from errors import AnalysisError
from conftest import FakeAnalyzer, JPEG_HEADER


@pytest.fixture
def analyzer(monkeypatch):
    fake = FakeAnalyzer(result="1. Red Fox\n- Type: Twisted scat\n- plain note\nSee a field guide.")
    monkeypatch.setattr(ai_client, "call_ai", fake)
    return fake


@pytest.fixture
def client(analyzer, monkeypatch, tmp_path):
    monkeypatch.delenv("ANALYSIS_TIMEOUT", raising=False)
    monkeypatch.setattr(app_module, "ERROR_LOG", str(tmp_path / "last_error.log"))
    monkeypatch.setattr(app_module, "_controllers", app_module.OrderedDict())
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()


def _post_image(client, path="/api/upload", data=JPEG_HEADER, filename="scat.jpg",
                content_type="image/jpeg"):
    return client.post(
        path,
        data={"image": (io.BytesIO(data), filename, content_type)},
        content_type="multipart/form-data",
    )


def test_index_shows_default_content(client, analyzer):
    resp = client.get("/")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Scat Analysis Results" in html
    assert "Deer (Odocoileus species)" in html
    assert "data:image/jpeg;base64," in html
    assert analyzer.calls == []


def test_session_snapshot(client):
    payload = client.get("/api/session").get_json()
    assert payload["analysis_text"] == DEFAULT_ANALYSIS
    assert payload["loading"] is False
    assert payload["error"] is None
    assert payload["blocks"][0] == {"kind": "section_header", "text": "Scat Identification:"}


def test_upload_analyzes_image(client, analyzer):
    resp = _post_image(client)
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["analysis_text"] == analyzer.result
    assert payload["error"] is None
    assert [b["kind"] for b in payload["blocks"]] == [
        "section_header", "labeled_item", "list_item", "paragraph",
    ]
    assert len(analyzer.calls) == 1


def test_state_is_kept_per_browser_session(client):
    _post_image(client)
    assert client.get("/api/session").get_json()["analysis_text"].startswith("1. Red Fox")


def test_upload_rejects_non_image(client, analyzer):
    payload = _post_image(client, data=b"hello", filename="notes.txt", content_type="text/plain").get_json()
    assert payload["error"] == INVALID_TYPE_MESSAGE
    assert payload["analysis_text"] == DEFAULT_ANALYSIS
    assert analyzer.calls == []


def test_upload_without_file(client):
    resp = client.post("/api/upload", data={}, content_type="multipart/form-data")
    assert resp.status_code == 400
    assert resp.get_json()["notice"] == "No file received."


def test_oversized_request_sets_error(client, monkeypatch):
    monkeypatch.setitem(app_module.app.config, "MAX_CONTENT_LENGTH", 1024)
    resp = _post_image(client, data=b"\0" * 4096)
    assert resp.status_code == 413
    assert resp.get_json()["error"] == OVERSIZED_MESSAGE


def test_analysis_failure_is_reported(client, analyzer, tmp_path):
    analyzer.error = AnalysisError("Gemini is down")
    payload = _post_image(client).get_json()
    assert payload["error"] == "Gemini is down"
    assert payload["loading"] is False
    assert payload["analysis_text"] == DEFAULT_ANALYSIS
    assert "Gemini is down" in (tmp_path / "last_error.log").read_text(encoding="utf-8")


def test_reanalyze_form(client, analyzer):
    client.get("/")
    resp = client.post("/analyze")
    assert resp.status_code == 200
    assert "Red Fox" in resp.get_data(as_text=True)
    assert len(analyzer.calls) == 1


def test_overlapping_request_gets_409(client, analyzer):
    client.post("/api/analyze")  # registers the browser session
    statuses = []
    analyzer.on_call = lambda: statuses.append(client.post("/api/analyze").status_code)
    client.post("/api/analyze")
    assert statuses == [409]
    assert len(analyzer.calls) == 2


def test_robots(client):
    assert "Disallow: /" in client.get("/robots.txt").get_data(as_text=True)


def test_oversized_upload_during_analysis(client, analyzer, monkeypatch):
    client.post("/api/analyze")
    monkeypatch.setitem(app_module.app.config, "MAX_CONTENT_LENGTH", 1024)
    seen = []

    def second_tab_acts():
        resp = _post_image(client, data=b"\0" * 4096)
        seen.append((resp.status_code, resp.get_json()["loading"], resp.get_json()["error"]))
        seen.append(client.post("/api/analyze").status_code)

    analyzer.on_call = second_tab_acts
    payload = client.post("/api/analyze").get_json()

    assert seen == [(413, True, OVERSIZED_MESSAGE), 409]
    assert len(analyzer.calls) == 2
    assert payload["loading"] is False


def test_page_views_do_not_register_sessions(client):
    client.get("/")
    client.get("/api/session")
    assert len(app_module._controllers) == 0


def test_session_count_is_capped(client, monkeypatch):
    monkeypatch.setattr(app_module, "MAX_SESSIONS", 2)
    for _ in range(3):
        app_module.app.test_client().post("/api/analyze")
    assert len(app_module._controllers) == 2


def test_held_upload_bytes_are_capped(client, monkeypatch):
    monkeypatch.setattr(app_module, "MAX_SESSION_BYTES", 1)
    first = app_module.app.test_client()
    _post_image(first)
    _post_image(client)
    assert len(app_module._controllers) == 1
    # The evicted browser starts over from the default content
    assert first.get("/api/session").get_json()["analysis_text"] == DEFAULT_ANALYSIS
    assert client.get("/api/session").get_json()["analysis_text"].startswith("1. Red Fox")


def test_malformed_timeout_does_not_break_pages(client, monkeypatch):
    monkeypatch.setenv("ANALYSIS_TIMEOUT", "soon")
    assert client.get("/").status_code == 200
    assert client.post("/api/analyze").status_code == 200


def test_bundled_sample_is_a_jpeg():
    with open(app_module.DEFAULT_IMAGE_PATH, "rb") as f:
        assert f.read(2) == b"\xff\xd8"
