from types import SimpleNamespace

import httpx
import openai
import pytest

from ultron_core.config.run_config import BackendConfig
from ultron_core.domain.exceptions import (
    BackendMalformedError,
    BackendStatusError,
    BackendTimeoutError,
    BackendTransportError,
)
from ultron_core.domain.models import ChatMessage
from ultron_core.providers.deepseek_client import DeepSeekBackend
from ultron_core.providers.openai_client import OpenAIBackend


REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _install_fake_sdk(monkeypatch, result=None, error=None):
    captured = {}

    class Completions:
        def create(self, **kwargs):
            captured["request"] = kwargs
            if error is not None:
                raise error
            return result

    class FakeOpenAI:
        def __init__(self, **kwargs):
            captured["init"] = kwargs
            self.chat = SimpleNamespace(completions=Completions())

    monkeypatch.setattr("ultron_core.providers.openai_client.OpenAI", FakeOpenAI)
    return captured


def _response(*contents):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=c)) for c in contents]
    )


def _config(kind="openai", model="gpt-test", base_url=None):
    return BackendConfig(kind=kind, api_key="sk-test", model=model, base_url=base_url, timeout=30.0)


def test_openai_backend_returns_first_choice(monkeypatch):
    captured = _install_fake_sdk(monkeypatch, result=_response("first", "second"))
    backend = OpenAIBackend(_config())
    conversation = [ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="hi")]
    before = list(conversation)

    reply = backend.complete(conversation)

    assert reply == ChatMessage(role="assistant", content="first")
    assert conversation == before
    assert captured["request"] == {
        "model": "gpt-test",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
    }
    assert captured["init"]["timeout"] == 30.0
    assert captured["init"]["max_retries"] == 0


def test_openai_backend_none_content_becomes_empty(monkeypatch):
    _install_fake_sdk(monkeypatch, result=_response(None))
    reply = OpenAIBackend(_config()).complete([ChatMessage(role="user", content="hi")])
    assert reply.content == ""
    assert reply.role == "assistant"


def test_openai_backend_empty_choices_is_malformed(monkeypatch):
    _install_fake_sdk(monkeypatch, result=SimpleNamespace(choices=[]))
    with pytest.raises(BackendMalformedError):
        OpenAIBackend(_config()).complete([ChatMessage(role="user", content="hi")])


def test_openai_backend_timeout(monkeypatch):
    _install_fake_sdk(monkeypatch, error=openai.APITimeoutError(request=REQUEST))
    with pytest.raises(BackendTimeoutError) as exc_info:
        OpenAIBackend(_config()).complete([ChatMessage(role="user", content="hi")])
    assert isinstance(exc_info.value, BackendTransportError)


def test_openai_backend_connection_error(monkeypatch):
    _install_fake_sdk(monkeypatch, error=openai.APIConnectionError(request=REQUEST))
    with pytest.raises(BackendTransportError) as exc_info:
        OpenAIBackend(_config()).complete([ChatMessage(role="user", content="hi")])
    assert not isinstance(exc_info.value, BackendTimeoutError)


def test_openai_backend_status_error(monkeypatch):
    response = httpx.Response(503, request=REQUEST)
    _install_fake_sdk(monkeypatch, error=openai.APIStatusError("unavailable", response=response, body=None))
    with pytest.raises(BackendStatusError) as exc_info:
        OpenAIBackend(_config()).complete([ChatMessage(role="user", content="hi")])
    assert exc_info.value.status == 503


def test_deepseek_backend_uses_deepseek_endpoint(monkeypatch):
    captured = _install_fake_sdk(monkeypatch, result=_response("ok"))
    backend = DeepSeekBackend(_config(kind="deepseek", model=None))
    reply = backend.complete([ChatMessage(role="user", content="hi")])

    assert backend.name == "deepseek"
    assert reply.content == "ok"
    assert captured["init"]["base_url"] == "https://api.deepseek.com"
    assert captured["request"]["model"] == "deepseek-chat"


def test_openai_backend_base_url_override(monkeypatch):
    captured = _install_fake_sdk(monkeypatch, result=_response("ok"))
    OpenAIBackend(_config(base_url="http://proxy.local/v1"))
    assert captured["init"]["base_url"] == "http://proxy.local/v1"
