import types

import pytest

from core.llm_client import (
    AsyncClaudeLLMClient,
    AsyncGeminiLLMClient,
    AsyncOpenAILLMClient,
)
from core.llm_factory import available_providers, get_async_llm_client
from core.obs import NullLogger


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    from core import config as cfg

    # Factory requires timeout to be configured (used by all providers).
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "60")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    monkeypatch.setenv("GOOGLE_API_KEY", "fake")
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    cfg._config_adapter.cache_clear()  # type: ignore[attr-defined]
    yield


class _AsyncIter:
    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


@pytest.mark.parametrize(
    "provider,expected",
    [
        ("openai", AsyncOpenAILLMClient),
        ("claude", AsyncClaudeLLMClient),
        ("gemini", AsyncGeminiLLMClient),
    ],
)
def test_factory_returns_expected_clients(monkeypatch, provider, expected):
    monkeypatch.setenv("LLM_PROVIDER", provider)
    assert isinstance(get_async_llm_client(logger=NullLogger()), expected)


def test_factory_defaults_to_openai():
    assert isinstance(get_async_llm_client(logger=NullLogger()), AsyncOpenAILLMClient)
    assert available_providers() == ["claude", "gemini", "openai"]


def test_factory_unknown_provider_raises(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "does-not-exist")
    with pytest.raises(ValueError):
        get_async_llm_client(logger=NullLogger())


def _fake_openai(calls: dict, *, stream_chunks=None):
    class FakeResp:
        def __init__(self):
            self.choices = [types.SimpleNamespace(message=types.SimpleNamespace(content="ok"))]
            self.usage = None

    class FakeCompletions:
        async def create(self, **kwargs):
            calls.update(kwargs)
            if kwargs.get("stream"):
                return _AsyncIter(
                    types.SimpleNamespace(
                        choices=[types.SimpleNamespace(delta=types.SimpleNamespace(content=c))]
                    )
                    for c in stream_chunks
                )
            return FakeResp()

    class FakeAsyncOpenAI:
        def __init__(self, *args, **kwargs):
            self.chat = types.SimpleNamespace(completions=FakeCompletions())

    return FakeAsyncOpenAI


@pytest.mark.asyncio
async def test_gpt5_temperature_stripped(monkeypatch):
    calls: dict = {}
    monkeypatch.setattr("core.llm_client.AsyncOpenAI", _fake_openai(calls))

    llm = get_async_llm_client(logger=NullLogger())
    out = await llm.chat(messages=[{"role": "user", "content": "hi"}], model="gpt-5", temperature=0.3)
    assert out == "ok"
    assert "temperature" not in calls  # stripped for gpt-5


@pytest.mark.asyncio
async def test_openai_stream_chat_forwards_chunks(monkeypatch):
    calls: dict = {}
    monkeypatch.setattr(
        "core.llm_client.AsyncOpenAI", _fake_openai(calls, stream_chunks=["{\"a\"", None, ": 1}"])
    )
    llm = get_async_llm_client(logger=NullLogger())
    seen: list[str] = []
    out = await llm.stream_chat(
        messages=[{"role": "user", "content": "hi"}],
        model="gpt-4.1-mini",
        temperature=0.2,
        on_chunk=seen.append,
    )
    assert out == '{"a": 1}'
    assert seen == ['{"a"', ": 1}"]
    assert calls["stream"] is True
    assert calls["temperature"] == 0.2


@pytest.mark.asyncio
async def test_claude_chat_and_stream(monkeypatch):
    payloads: list[dict] = []

    class FakeResp:
        def __init__(self):
            self.content = [types.SimpleNamespace(text="hello")]  # anthropic message format
            self.usage = None

    class FakeStream:
        def __init__(self):
            self.text_stream = _AsyncIter(["hel", "", "lo"])

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

    class FakeMessages:
        async def create(self, **kwargs):
            payloads.append(kwargs)
            return FakeResp()

        def stream(self, **kwargs):
            payloads.append(kwargs)
            return FakeStream()

    class FakeAsyncAnthropic:
        def __init__(self, *args, **kwargs):
            self.messages = FakeMessages()

    monkeypatch.setenv("LLM_PROVIDER", "claude")
    monkeypatch.setattr("core.llm_client.AsyncAnthropic", FakeAsyncAnthropic)

    llm = get_async_llm_client(logger=NullLogger())
    messages = [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "hi"}]
    assert await llm.chat(messages=messages, model="claude-3", temperature=0.5) == "hello"

    seen: list[str] = []
    out = await llm.stream_chat(messages=messages, model="claude-3", temperature=0.5, on_chunk=seen.append)
    assert out == "hello"
    assert seen == ["hel", "lo"]
    assert payloads[1]["system"] == "Be brief."
    assert payloads[1]["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_gemini_chat_and_stream(monkeypatch):
    class FakeGenResponse:
        def __init__(self, text):
            self.text = text
            self.usage_metadata = None

    class FakeModel:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs

        async def generate_content_async(
            self, messages, generation_config=None, request_options=None, stream=False
        ):
            if stream:
                return _AsyncIter([FakeGenResponse("gem"), FakeGenResponse("ini")])
            return FakeGenResponse("gemini")

    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    monkeypatch.setattr("core.llm_client.genai.GenerativeModel", FakeModel)

    llm = get_async_llm_client(logger=NullLogger())
    messages = [{"role": "user", "content": "hi"}]
    assert await llm.chat(messages=messages, model="gemini-1.5-pro", temperature=0.2) == "gemini"

    seen: list[str] = []
    out = await llm.stream_chat(
        messages=messages, model="gemini-1.5-pro", temperature=0.2, on_chunk=seen.append
    )
    assert out == "gemini"
    assert seen == ["gem", "ini"]
