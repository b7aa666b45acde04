import json

import httpx
import pytest

from ultron_core.config.run_config import BackendConfig
from ultron_core.domain.exceptions import (
    BackendMalformedError,
    BackendSerializationError,
    BackendStatusError,
    BackendTimeoutError,
    BackendTransportError,
)
from ultron_core.domain.models import ChatMessage
from ultron_core.providers.custom_client import CustomBackend


def _backend(api_key="k"):
    return CustomBackend(
        BackendConfig(kind="custom", api_key=api_key, model="local-model", base_url="http://llm.local/v1/", timeout=2.0)
    )


def _install_client(monkeypatch, status_code=200, payload=None, error=None, captured=None):
    captured = captured if captured is not None else {}

    class Resp:
        def __init__(self):
            self.status_code = status_code

        def json(self):
            if isinstance(payload, Exception):
                raise payload
            return payload

    class Client:
        def __init__(self, *a, **kw):
            captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, content=None, headers=None, **_):
            captured["url"] = url
            captured["body"] = json.loads(content)
            captured["headers"] = headers
            if error is not None:
                raise error
            return Resp()

    monkeypatch.setattr("httpx.Client", Client)
    return captured


def test_custom_backend_basic(monkeypatch):
    captured = _install_client(
        monkeypatch,
        payload={"choices": [{"index": 0, "message": {"role": "assistant", "content": "ok"}}, {"message": {"content": "no"}}]},
    )
    reply = _backend().complete([ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="hi")])

    assert reply == ChatMessage(role="assistant", content="ok")
    assert captured["url"] == "http://llm.local/v1/chat/completions"
    assert captured["body"] == {
        "model": "local-model",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
    }
    assert captured["headers"]["Authorization"] == "Bearer k"
    assert captured["client_kwargs"]["timeout"] == 2.0


def test_custom_backend_without_key_sends_no_auth(monkeypatch):
    captured = _install_client(monkeypatch, payload={"choices": [{"message": {"content": "ok"}}]})
    _backend(api_key=None).complete([ChatMessage(role="user", content="hi")])
    assert "Authorization" not in captured["headers"]


def test_custom_backend_non_200(monkeypatch):
    _install_client(monkeypatch, status_code=502, payload={})
    with pytest.raises(BackendStatusError) as exc_info:
        _backend().complete([ChatMessage(role="user", content="hi")])
    assert exc_info.value.status == 502


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        {"error": "boom"},
        {"choices": [{"message": {"role": "assistant"}}]},
        {"choices": {"a": 1}},
        {"choices": "ok"},
        {"choices": ["ok"]},
        {"choices": [{"message": "ok"}]},
        ["not", "an", "object"],
        ValueError("not json"),
    ],
)
def test_custom_backend_malformed(monkeypatch, payload):
    _install_client(monkeypatch, payload=payload)
    with pytest.raises(BackendMalformedError):
        _backend().complete([ChatMessage(role="user", content="hi")])


def test_custom_backend_timeout(monkeypatch):
    _install_client(monkeypatch, error=httpx.ReadTimeout("timed out"))
    with pytest.raises(BackendTimeoutError):
        _backend().complete([ChatMessage(role="user", content="hi")])


def test_custom_backend_connection_refused(monkeypatch):
    _install_client(monkeypatch, error=httpx.ConnectError("connection refused"))
    with pytest.raises(BackendTransportError) as exc_info:
        _backend().complete([ChatMessage(role="user", content="hi")])
    assert not isinstance(exc_info.value, BackendTimeoutError)


def test_custom_backend_serialization_failure_skips_network(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            raise AssertionError("no request should be made")

    monkeypatch.setattr("httpx.Client", Client)
    bad = ChatMessage(role="user", content=object())  # type: ignore[arg-type]
    with pytest.raises(BackendSerializationError):
        _backend().complete([bad])
