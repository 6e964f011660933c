import pytest
import requests

from backend_client import MALFORMED_REPLY, BackendError, VoiceChatClient


class DummyResponse:
    def __init__(self, status_code: int = 200, payload=None, *, reason: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _capture(monkeypatch, response):
    captured: dict[str, object] = {}

    def fake_post(url, *, json=None, files=None, data=None, timeout=None):
        captured.update({"url": url, "json": json, "files": files, "data": data, "timeout": timeout})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    return captured


def test_send_text_posts_json_and_parses_reply(monkeypatch):
    captured = _capture(monkeypatch, DummyResponse(payload={"replyText": "hi there", "audioBase64": "QUJD"}))

    client = VoiceChatClient("http://relay.local/", timeout=7)
    reply = client.send_text("hello")

    assert captured["url"] == "http://relay.local/api/voice-chat"
    assert captured["json"] == {"text": "hello"}
    assert captured["files"] is None
    assert captured["timeout"] == 7
    assert reply.reply_text == "hi there"
    assert reply.audio_base64 == "QUJD"


def test_send_file_uses_multipart_fields(monkeypatch):
    captured = _capture(monkeypatch, DummyResponse(payload={"replyText": "ok", "audioBase64": "QUJD"}))

    VoiceChatClient().send_file("notes.pdf", b"%PDF", mime="application/pdf", question="Summarize")

    assert captured["url"] == "http://localhost:3000/api/file-chat"
    assert captured["files"] == {"file": ("notes.pdf", b"%PDF", "application/pdf")}
    assert captured["data"] == {"question": "Summarize"}
    assert captured["json"] is None


def test_server_error_includes_status_and_detail(monkeypatch):
    _capture(monkeypatch, DummyResponse(500, {"error": "Gemini unavailable"}))

    with pytest.raises(BackendError) as excinfo:
        VoiceChatClient().send_text("hello")

    assert str(excinfo.value) == "Server error 500: Gemini unavailable"
    assert excinfo.value.status_code == 500


def test_server_error_without_json_body(monkeypatch):
    _capture(monkeypatch, DummyResponse(502, ValueError("no json"), reason="Bad Gateway"))

    with pytest.raises(BackendError, match=r"^Server error 502:?$"):
        VoiceChatClient().send_text("hello")


@pytest.mark.parametrize(
    "payload",
    [
        {"replyText": "hi"},
        {"audioBase64": "QUJD"},
        {"replyText": "", "audioBase64": "QUJD"},
        ["not", "a", "mapping"],
        ValueError("invalid json"),
    ],
)
def test_malformed_success_reply(monkeypatch, payload):
    _capture(monkeypatch, DummyResponse(200, payload))

    with pytest.raises(BackendError) as excinfo:
        VoiceChatClient().send_text("hello")

    assert str(excinfo.value) == MALFORMED_REPLY


def test_network_failure(monkeypatch):
    _capture(monkeypatch, requests.ConnectionError("connection refused"))

    with pytest.raises(BackendError) as excinfo:
        VoiceChatClient().send_text("hello")

    assert str(excinfo.value) == "Network error: connection refused"
    assert excinfo.value.status_code is None
