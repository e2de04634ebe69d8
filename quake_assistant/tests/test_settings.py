import pytest
from pydantic import ValidationError

from quake_assistant.config.settings import Settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    s = Settings(_env_file=None)
    assert s.ollama_url == "http://localhost:11434/api/chat"
    assert s.default_profile == "llama"
    assert s.max_retries is None
    assert s.retry_jitter is False


def test_yaml_config_file(monkeypatch, tmp_path):
    config = tmp_path / "assistant.yaml"
    config.write_text(
        "default_profile: Mistral\nollama_url: http://gpu-box:11434/api/chat\nmax_retries: 1\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(config))
    s = Settings(_env_file=None)
    assert s.default_profile == "mistral"
    assert s.ollama_url == "http://gpu-box:11434/api/chat"
    assert s.max_retries == 1


def test_env_overrides_yaml(monkeypatch, tmp_path):
    config = tmp_path / "assistant.yaml"
    config.write_text("mistral_model: mistral:7b\n", encoding="utf-8")
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(config))
    monkeypatch.setenv("MISTRAL_MODEL", "mistral:latest")
    s = Settings(_env_file=None)
    assert s.mistral_model == "mistral:latest"


def test_invalid_url_rejected(monkeypatch, tmp_path):
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    with pytest.raises(ValidationError):
        Settings(_env_file=None, ollama_url="localhost:11434")
