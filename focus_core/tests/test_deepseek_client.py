import itertools
import json

import httpx
import pytest

from focus_core.config.settings import load_settings
from focus_core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
    StreamError,
)
from focus_core.pipeline.builder import build_chat_request
from focus_core.providers.deepseek_client import DeepSeekClient
from focus_core.providers.registry import resolve_role_config


def _settings(**kw):
    values = {"deepseek_api_key": "sk-test-0123456789", "http_timeout": 5.0, "log_dir": None}
    values.update(kw)
    return load_settings(**values)


def _request(stream=False):
    return build_chat_request(resolve_role_config("deepseek-chat", 0.2), "hi", context="ctx", stream=stream)


class Resp:
    """假的 httpx 流式响应：sync 路径读 iter_bytes，流式路径读 iter_text。"""

    def __init__(self, status_code=200, data=None, text="", texts=(), parts=None):
        self.status_code = status_code
        body = json.dumps(data) if data is not None else text
        self._parts = [p.encode("utf-8") for p in parts] if parts is not None else [body.encode("utf-8")]
        self._texts = list(texts)

    def iter_bytes(self):
        yield from self._parts

    def iter_text(self):
        yield from self._texts


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


def _fake_client(calls, response=None, error=None):
    class Client:
        def __init__(self, *a, **kw):
            calls.append(("init", kw))

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, method, url, json=None, headers=None, **_):
            calls.append(("stream", method, url, json, headers))
            if error is not None:
                raise error
            return StreamContext(response)

    return Client


def _ticking_clock(step):
    ticks = itertools.count(0.0, step)
    return lambda: next(ticks)


def test_chat_parses_response_and_builds_payload(monkeypatch):
    calls = []
    data = {
        "model": "deepseek-chat",
        "choices": [{"message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    monkeypatch.setattr("httpx.Client", _fake_client(calls, response=Resp(data=data)))
    res = DeepSeekClient(_settings()).chat(_request())

    assert res.content == "ok"
    assert res.finish_reason == "stop"
    assert res.usage.total_tokens == 2
    _, method, url, payload, headers = calls[1]
    assert method == "POST"
    assert url == "https://api.deepseek.com/v1/chat/completions"
    assert headers["Authorization"] == "Bearer sk-test-0123456789"
    assert payload["model"] == "deepseek-chat"
    assert payload["temperature"] == 0.2
    assert payload["max_tokens"] == 300
    assert payload["stream"] is False
    assert [m["role"] for m in payload["messages"]] == ["system", "user", "user"]
    assert payload["messages"][1]["content"] == "ctx"
    assert calls[0][1]["timeout"] == 5.0


def test_missing_key_fails_before_network(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", _fake_client(calls, response=Resp(data={})))
    client = DeepSeekClient(_settings(deepseek_api_key=None))
    with pytest.raises(ConfigurationError) as exc:
        client.chat(_request())
    assert exc.value.code == "MISSING_API_KEY"
    with pytest.raises(ConfigurationError):
        list(client.chat_stream(_request(stream=True)))
    assert calls == []


def test_rate_limit_and_api_errors(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", _fake_client(calls, response=Resp(status_code=429)))
    with pytest.raises(RateLimitError):
        DeepSeekClient(_settings()).chat(_request())

    body = '{"error": {"message": "Insufficient Balance"}}'
    monkeypatch.setattr("httpx.Client", _fake_client(calls, response=Resp(status_code=402, text=body)))
    with pytest.raises(ApiError) as exc:
        DeepSeekClient(_settings()).chat(_request())
    assert exc.value.message == "Insufficient Balance"
    assert exc.value.http_status == 402


def test_empty_choices_is_api_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(data={"choices": []})))
    with pytest.raises(ApiError) as exc:
        DeepSeekClient(_settings()).chat(_request())
    assert exc.value.code == "EMPTY_RESPONSE"


@pytest.mark.parametrize(
    "body",
    [
        {"choices": ["oops"]},
        {"choices": [{"message": {"content": 42}}]},
        {"choices": {"first": {}}},
        {"choices": [{"message": "plain text"}]},
        {"choices": [None]},
        [1, 2, 3],
    ],
)
def test_malformed_success_body_is_invalid_response(monkeypatch, body):
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(data=body)))
    with pytest.raises(ApiError) as exc:
        DeepSeekClient(_settings()).chat(_request())
    assert exc.value.code == "INVALID_RESPONSE"


def test_non_json_body_is_invalid_response(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(text="<html>oops</html>")))
    with pytest.raises(ApiError) as exc:
        DeepSeekClient(_settings()).chat(_request())
    assert exc.value.code == "INVALID_RESPONSE"


def test_null_content_is_empty_string(monkeypatch):
    data = {"choices": [{"message": {"content": None}, "finish_reason": "length"}]}
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(data=data)))
    assert DeepSeekClient(_settings()).chat(_request()).content == ""


def test_network_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client([], error=httpx.ConnectError("boom")))
    with pytest.raises(NetworkError) as exc:
        DeepSeekClient(_settings()).chat(_request())
    assert exc.value.code == "NETWORK_ERROR"


def test_chat_enforces_overall_deadline_while_reading_body(monkeypatch):
    # 响应体一点一点地到达，每块之间时钟前进 0.3s
    parts = ['{"choices": [', '{"message": ', '{"content": "late"}', "}]}"] * 3
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(parts=parts)))
    client = DeepSeekClient(_settings(http_timeout=1.0), clock=_ticking_clock(0.3))
    with pytest.raises(NetworkError) as exc:
        client.chat(_request())
    assert exc.value.code == "UPSTREAM_TIMEOUT"


def test_chat_stream_yields_deltas_until_done(monkeypatch):
    calls = []
    texts = [
        'data: {"choices": [{"delta": {"content": "A"}}]}\n\ndata: {"choi',
        'ces": [{"delta": {"content": "B"}}]}\n\n: keep-alive\n\n',
        "data: not-json\n\n",
        'data: {"choices": {"0": {"delta": {"content": "bad shape"}}}}\n\n',
        'data: {"choices": [{"delta": {"content": 7}}]}\n\n',
        "data: [DONE]\n\n",
        'data: {"choices": [{"delta": {"content": "after done"}}]}\n\n',
    ]
    monkeypatch.setattr("httpx.Client", _fake_client(calls, response=Resp(texts=texts)))
    chunks = list(DeepSeekClient(_settings()).chat_stream(_request(stream=True)))
    assert [c.content for c in chunks] == ["A", "B"]
    assert calls[1][0] == "stream"
    assert calls[1][3]["stream"] is True


def test_chat_stream_http_error(monkeypatch):
    resp = Resp(status_code=500, text="upstream down")
    monkeypatch.setattr("httpx.Client", _fake_client([], response=resp))
    with pytest.raises(ApiError) as exc:
        list(DeepSeekClient(_settings()).chat_stream(_request(stream=True)))
    assert exc.value.message == "upstream down"
    assert exc.value.http_status == 500


def test_chat_stream_network_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client([], error=httpx.ReadTimeout("slow")))
    with pytest.raises(NetworkError):
        list(DeepSeekClient(_settings()).chat_stream(_request(stream=True)))


def test_chat_stream_keep_alives_cannot_outlive_deadline(monkeypatch):
    texts = [": keep-alive\n\n"] * 8 + ["data: [DONE]\n\n"]
    monkeypatch.setattr("httpx.Client", _fake_client([], response=Resp(texts=texts)))
    client = DeepSeekClient(_settings(http_timeout=1.0), clock=_ticking_clock(0.3))
    with pytest.raises(StreamError) as exc:
        list(client.chat_stream(_request(stream=True)))
    assert exc.value.code == "STREAM_TIMEOUT"
