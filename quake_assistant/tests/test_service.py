import threading
import time

import pytest

import quake_assistant.api.service as service
from quake_assistant.domain.exceptions import SessionBusyError


class FakeTransport:
    name = "fake"

    def __init__(self, reply="Deprem anında sakin kalın."):
        self.reply = reply

    def send(self, payload, url=None, timeout=None, cancel_event=None):
        return self.reply


@pytest.fixture
def fake_backend(monkeypatch):
    monkeypatch.setattr(service, "_sessions", {})
    monkeypatch.setattr(service, "create_transport", lambda profile: FakeTransport())


def test_ask_returns_reply(fake_backend):
    result = service.ask("Deprem nedir?", profile_name="llama", timeout=5)
    assert result == {
        "profile": "llama",
        "reply": "Deprem anında sakin kalın.",
        "error": None,
        "message_count": 3,
    }


def test_ask_blank_input(fake_backend):
    result = service.ask("   ", profile_name="mistral")
    assert result["reply"] is None
    assert result["message_count"] == 1


def test_default_session_is_cached_per_profile(fake_backend):
    llama = service.get_default_session("llama")
    assert service.get_default_session("LLAMA") is llama
    assert service.get_default_session("mistral") is not llama


def test_conversation_helpers(fake_backend):
    service.ask("Deprem nedir?", profile_name="llama", timeout=5)
    messages = service.get_conversation_messages("llama")
    assert [m["role"] for m in messages] == ["system", "user", "assistant"]
    assert messages[1]["content"] == "Deprem nedir?"
    assert messages[0]["id"].startswith("m-")
    service.reset_conversation("llama")
    assert len(service.get_conversation_messages("llama")) == 1


def test_create_session_uses_given_transport(fake_backend):
    transport = FakeTransport("Özel yanıt.")
    session = service.create_session("mistral", transport=transport)
    assert session.profile.name == "mistral"
    assert session.submit("Deprem nedir?").result(timeout=5).content == "Özel yanıt."


def test_ask_propagates_busy(fake_backend, monkeypatch):
    session = service.get_default_session("llama")

    def busy(_):
        raise SessionBusyError(code="SESSION_BUSY", message="Önceki mesaj hâlâ yanıtlanıyor")

    monkeypatch.setattr(session, "submit", busy)
    with pytest.raises(SessionBusyError):
        service.ask("Deprem nedir?", profile_name="llama")


def test_default_session_created_once_under_concurrency(monkeypatch):
    monkeypatch.setattr(service, "_sessions", {})

    def slow_transport(profile):
        time.sleep(0.01)
        return FakeTransport()

    monkeypatch.setattr(service, "create_transport", slow_transport)
    barrier = threading.Barrier(8)
    sessions = []

    def worker():
        barrier.wait()
        sessions.append(service.get_default_session("llama"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)
    assert len(sessions) == 8
    assert len({id(s) for s in sessions}) == 1
