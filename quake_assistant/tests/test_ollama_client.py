import threading

import httpx
import pytest

from quake_assistant.domain.exceptions import (
    ApiError,
    ModelError,
    ParseError,
    RequestCancelledError,
    TransientTransportError,
)
from quake_assistant.providers.ollama_client import OllamaClient
from quake_assistant.providers.retry import RetryPolicy


class SettingsStub:
    ollama_url = "http://localhost:11434/api/chat"
    http_timeout = 1.0


PAYLOAD = {
    "model": "llama3",
    "messages": [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}],
    "stream": False,
    "options": {"temperature": 0.2},
}


class Resp:
    def __init__(self, data=None, status_code=200, invalid=False):
        self._data = data
        self.status_code = status_code
        self._invalid = invalid
        self.text = ""

    def json(self):
        if self._invalid:
            raise ValueError("Expecting value")
        return self._data


def make_client(responses, calls):
    """返回一个按顺序产出 responses（对象或异常）的假 httpx.Client。"""

    queue = list(responses)

    class Client:
        def __init__(self, *a, **kw):
            calls.setdefault("init_kwargs", []).append(kw)

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None):
            calls.setdefault("posts", []).append({"url": url, "json": json, "headers": headers})
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, Exception):
                raise item
            return item

    return Client


def test_send_returns_message_content(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([Resp({"message": {"content": "Merhaba"}})], calls))
    text = OllamaClient(SettingsStub()).send(PAYLOAD)
    assert text == "Merhaba"
    post = calls["posts"][0]
    assert post["url"] == "http://localhost:11434/api/chat"
    assert post["json"] == PAYLOAD
    assert post["headers"]["Content-Type"] == "application/json"
    assert calls["init_kwargs"][0]["timeout"] == 1.0


def test_send_uses_explicit_url_and_timeout(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([Resp({"message": {"content": "ok"}})], calls))
    OllamaClient(SettingsStub()).send(PAYLOAD, url="http://gpu-box:11434/api/chat", timeout=60)
    assert calls["posts"][0]["url"] == "http://gpu-box:11434/api/chat"
    assert calls["init_kwargs"][0]["timeout"] == 60


def test_timeout_retried_up_to_bound(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([httpx.ReadTimeout("timed out")], calls))
    client = OllamaClient(SettingsStub(), retry=RetryPolicy(max_retries=2))
    with pytest.raises(TransientTransportError) as exc:
        client.send(PAYLOAD)
    assert len(calls["posts"]) == 3
    assert exc.value.code == "TIMEOUT"
    assert exc.value.message.startswith("Bağlantı hatası")


def test_connect_error_retried_then_succeeds(monkeypatch):
    calls = {}
    responses = [
        httpx.ConnectError("no route"),
        httpx.ConnectError("no route"),
        Resp({"message": {"content": "Sonunda"}}),
    ]
    monkeypatch.setattr("httpx.Client", make_client(responses, calls))
    text = OllamaClient(SettingsStub(), retry=RetryPolicy(max_retries=2)).send(PAYLOAD)
    assert text == "Sonunda"
    assert len(calls["posts"]) == 3
    # 每次重试都使用同一份载荷
    assert all(p["json"] == PAYLOAD for p in calls["posts"])


def test_non_transient_transport_error_not_retried(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([httpx.ReadError("connection reset")], calls))
    with pytest.raises(ApiError):
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert len(calls["posts"]) == 1


def test_model_error_not_retried(monkeypatch):
    calls = {}
    resp = Resp({"error": "model 'llama3' not found"}, status_code=404)
    monkeypatch.setattr("httpx.Client", make_client([resp], calls))
    with pytest.raises(ModelError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.message == "Yapay zeka hatası: model 'llama3' not found"
    assert len(calls["posts"]) == 1


def test_invalid_json_is_parse_error(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([Resp(invalid=True)], calls))
    with pytest.raises(ParseError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.message == "Yanıt işleme hatası"
    assert len(calls["posts"]) == 1


@pytest.mark.parametrize(
    "data",
    [
        {"message": {}},
        {"message": "text"},
        {"done": True},
        {"message": {"content": 42}},
    ],
)
def test_missing_content_is_parse_error(monkeypatch, data):
    monkeypatch.setattr("httpx.Client", make_client([Resp(data)], {}))
    with pytest.raises(ParseError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.message == "Geçersiz yanıt formatı"


def test_non_object_body_is_parse_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client([Resp(["a", "b"])], {}))
    with pytest.raises(ParseError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.message == "Geçersiz yanıt"


def test_http_error_without_error_field(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client([Resp({}, status_code=500)], {}))
    with pytest.raises(ApiError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.http_status == 500


def test_http_error_with_non_json_body(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([Resp(status_code=502, invalid=True)], calls))
    with pytest.raises(ApiError) as exc:
        OllamaClient(SettingsStub()).send(PAYLOAD)
    assert exc.value.http_status == 502
    assert len(calls["posts"]) == 1


def test_backoff_delays_between_retries(monkeypatch):
    calls = {}
    sleeps = []
    monkeypatch.setattr("httpx.Client", make_client([httpx.ConnectTimeout("slow")], calls))
    client = OllamaClient(
        SettingsStub(),
        retry=RetryPolicy(max_retries=2, base_seconds=0.5, factor=2.0),
        sleep=sleeps.append,
    )
    with pytest.raises(TransientTransportError):
        client.send(PAYLOAD)
    assert sleeps == [0.5, 1.0]
    assert len(calls["posts"]) == 3


def test_cancelled_before_send(monkeypatch):
    calls = {}
    monkeypatch.setattr("httpx.Client", make_client([Resp({"message": {"content": "x"}})], calls))
    event = threading.Event()
    event.set()
    with pytest.raises(RequestCancelledError):
        OllamaClient(SettingsStub()).send(PAYLOAD, cancel_event=event)
    assert "posts" not in calls


def test_cancel_stops_retry_loop(monkeypatch):
    event = threading.Event()
    posts = []

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            posts.append(a)
            # 请求飞行中被 reset() 取消
            event.set()
            raise httpx.ReadTimeout("timed out")

    monkeypatch.setattr("httpx.Client", Client)
    with pytest.raises(RequestCancelledError):
        OllamaClient(SettingsStub(), retry=RetryPolicy(max_retries=2)).send(PAYLOAD, cancel_event=event)
    assert len(posts) == 1
