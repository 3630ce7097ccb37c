""" LLM client port and provider adapters (async, with streaming). """

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from typing import Any, Callable, Optional, Protocol

import anthropic
import google.generativeai as genai
import httpx
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from core.config import get_bool_setting, get_config_value, get_float_setting, get_int_setting
from core.obs import Logger, NullLogger, with_span

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]

_RETRYABLE = (openai.APITimeoutError, httpx.ReadTimeout)


def _normalize_temperature(model: str, temperature: float | None, logger: Logger, req_id: str) -> float | None:
    """gpt-5* models reject custom temperatures; drop it unless exactly 1."""
    if model.lower().startswith("gpt-5"):
        if temperature is not None and temperature != 1:
            logger.warn(
                "llm.temperature_ignored",
                req_id=req_id,
                model=model,
                requested=temperature,
                reason="gpt-5 only supports default temperature",
            )
        return None
    return temperature if temperature is not None else 0.0


def _ensure_req_id(_args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
    req_id = kwargs.get("req_id")
    if not isinstance(req_id, str) or not req_id:
        kwargs["req_id"] = str(uuid.uuid4())


def _llm_span_fields(*args: Any, **kwargs: Any) -> dict[str, Any]:
    model = kwargs.get("model")
    if model is None and len(args) >= 3:
        model = args[2]
    return {"req_id": kwargs.get("req_id"), "model": model}


def _llm_span(provider: str, event: str = "llm.chat") -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    return with_span(
        event,
        logger_attr="_logger",
        fields={"provider": provider},
        fields_fn=_llm_span_fields,
        pre=_ensure_req_id,
    )


def _log_content_enabled() -> bool:
    """Whether logs may include prompt/response text previews (``LLM_LOG_CONTENT``)."""
    return get_bool_setting("LLM_LOG_CONTENT", True)


def _safe_text_preview(text: str, limit: int = 1000) -> str:
    return (text or "")[:limit]


def _safe_messages(messages: list[dict[str, Any]], *, log_content: bool) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for m in messages:
        content = m.get("content")
        if content is None:
            content = "\n".join(str(p or "") for p in (m.get("parts") or []))
        entry: dict[str, Any] = {"role": m.get("role")}
        if log_content:
            entry["content"] = _safe_text_preview(str(content))
        else:
            entry["content_len"] = len(str(content))
        out.append(entry)
    return out


def _response_fields(
    req_id: str, provider: str, model: str, content: str, usage: Any, *, attempt: int = 1, chunks: int | None = None
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "req_id": req_id,
        "provider": provider,
        "model": model,
        "attempt": attempt,
        "usage": getattr(usage, "__dict__", None) if usage else None,
        "content_len": len(content or ""),
    }
    if chunks is not None:
        fields["chunks"] = chunks
    if _log_content_enabled():
        fields["preview"] = _safe_text_preview(content or "")
    return fields


class AsyncLLMClient(Protocol):
    """Port interface for async LLM calls."""

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
    ) -> str:
        """Send chat messages and return the assistant's full content."""
        ...

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        on_chunk: ChunkCallback | None = None,
    ) -> str:
        """Stream the assistant's reply, calling ``on_chunk`` per text delta.

        Returns the concatenated content once the provider finishes.
        """
        ...


# ---------- OpenAI ----------


class AsyncOpenAILLMClient(AsyncLLMClient):
    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int = 3,
        logger: Optional[Logger] = None,
        api_key: str | None = None,
    ):
        self._timeout = float(timeout) if timeout is not None else get_float_setting("LLM_TIMEOUT_SECONDS", 120.0)
        self._max_retries = max_retries
        api_key = api_key or get_config_value("OPENAI_API_KEY")
        self._client = AsyncOpenAI(api_key=api_key)
        self._logger: Logger = logger or NullLogger()

    def _payload(self, messages, model, temp_for_request, **kwargs) -> dict[str, Any]:
        payload: dict[str, Any] = dict(model=model, messages=messages, timeout=self._timeout, **kwargs)
        if temp_for_request is not None:
            payload["temperature"] = temp_for_request
        return payload

    def _log_request(self, req_id, model, temperature, messages, kwargs, *, stream: bool) -> None:
        self._logger.info(
            "llm.request",
            req_id=req_id,
            provider="openai",
            model=model,
            temperature=temperature,
            stream=stream,
            kwargs=kwargs,
            message_count=len(messages),
            messages=_safe_messages(messages, log_content=_log_content_enabled()),
        )

    @_llm_span("openai")
    async def chat(self, messages, model, temperature=0.0, **kwargs) -> str:
        req_id = kwargs.pop("req_id", str(uuid.uuid4()))
        temp_for_request = _normalize_temperature(model, temperature, self._logger, req_id)
        self._log_request(req_id, model, temperature, messages, kwargs, stream=False)
        for attempt in range(self._max_retries):
            try:
                resp = await self._client.chat.completions.create(
                    **self._payload(messages, model, temp_for_request, **kwargs)
                )
                content = resp.choices[0].message.content or ""
                self._logger.info(
                    "llm.response",
                    **_response_fields(req_id, "openai", model, content, getattr(resp, "usage", None), attempt=attempt + 1),
                )
                return content
            except _RETRYABLE as e:
                self._logger.warn(
                    "llm.timeout",
                    req_id=req_id,
                    provider="openai",
                    model=model,
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt == self._max_retries - 1:
                    raise
                logger.warning("llm.retry provider=openai model=%s attempt=%s", model, attempt + 1)
                await asyncio.sleep(2 ** attempt + random.random())
        raise RuntimeError("OpenAI chat exhausted retries")  # pragma: no cover

    @_llm_span("openai", "llm.stream")
    async def stream_chat(self, messages, model, temperature=0.0, on_chunk=None, **kwargs) -> str:
        req_id = kwargs.pop("req_id", str(uuid.uuid4()))
        temp_for_request = _normalize_temperature(model, temperature, self._logger, req_id)
        self._log_request(req_id, model, temperature, messages, kwargs, stream=True)
        stream = await self._client.chat.completions.create(
            stream=True, **self._payload(messages, model, temp_for_request, **kwargs)
        )
        parts: list[str] = []
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                parts.append(delta)
                if on_chunk:
                    on_chunk(delta)
        content = "".join(parts)
        self._logger.info(
            "llm.response", **_response_fields(req_id, "openai", model, content, None, chunks=len(parts))
        )
        return content


# ---------- Anthropic Claude ----------


def _split_anthropic_messages(messages: list[dict[str, str]]):
    system = None
    converted: list[dict[str, str]] = []
    for m in messages:
        role = m.get("role")
        content = m.get("content", "")
        if role == "system" and system is None:
            system = content
            continue
        if role == "assistant":
            converted.append({"role": "assistant", "content": content})
        else:
            converted.append({"role": "user", "content": content})
    return system, converted


class AsyncClaudeLLMClient(AsyncLLMClient):
    """Async Claude client implementing the AsyncLLMClient protocol."""

    def __init__(
        self,
        timeout: float | None = None,
        logger: Optional[Logger] = None,
        max_tokens: int | None = None,
        api_key: str | None = None,
    ):
        timeout_value = float(timeout) if timeout is not None else get_float_setting("LLM_TIMEOUT_SECONDS", 120.0)
        api_key = api_key or get_config_value("ANTHROPIC_API_KEY")
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout_value)
        self._logger: Logger = logger or NullLogger()
        self._max_tokens = max_tokens or get_int_setting("CLAUDE_MAX_TOKENS", 4096)

    def _payload(self, messages, model, temperature, kwargs, *, stream: bool) -> tuple[str, dict[str, Any]]:
        req_id = kwargs.pop("req_id", str(uuid.uuid4()))
        system, converted = _split_anthropic_messages(messages)
        payload: dict[str, Any] = {
            "model": model,
            "messages": converted,
            "max_tokens": kwargs.pop("max_tokens", self._max_tokens),
            "temperature": temperature,
        }
        if system:
            payload["system"] = system
        log_content = _log_content_enabled()
        self._logger.info(
            "llm.request",
            req_id=req_id,
            provider="anthropic",
            model=model,
            stream=stream,
            kwargs=kwargs,
            message_count=len(converted),
            messages=_safe_messages(converted, log_content=log_content),
            system=_safe_text_preview(system) if (log_content and system) else None,
            system_len=len(system) if system else 0,
        )
        return req_id, payload

    @_llm_span("anthropic")
    async def chat(self, messages, model, temperature=1.0, **kwargs) -> str:
        req_id, payload = self._payload(messages, model, temperature, kwargs, stream=False)
        try:
            resp = await self._client.messages.create(**payload)
        except anthropic.APITimeoutError as e:
            self._logger.warn("llm.timeout", req_id=req_id, provider="anthropic", model=model, error=str(e))
            raise
        content = resp.content[0].text if resp.content else ""
        self._logger.info(
            "llm.response", **_response_fields(req_id, "anthropic", model, content, getattr(resp, "usage", None))
        )
        return content

    @_llm_span("anthropic", "llm.stream")
    async def stream_chat(self, messages, model, temperature=1.0, on_chunk=None, **kwargs) -> str:
        req_id, payload = self._payload(messages, model, temperature, kwargs, stream=True)
        parts: list[str] = []
        async with self._client.messages.stream(**payload) as stream:
            async for text in stream.text_stream:
                if not text:
                    continue
                parts.append(text)
                if on_chunk:
                    on_chunk(text)
        content = "".join(parts)
        self._logger.info(
            "llm.response", **_response_fields(req_id, "anthropic", model, content, None, chunks=len(parts))
        )
        return content


# ---------- Google Gemini ----------


def _split_gemini_messages(messages: list[dict[str, str]]):
    system = None
    converted = []
    for m in messages:
        role = m.get("role")
        content = m.get("content", "")
        if role == "system" and system is None:
            system = content
            continue
        if role == "assistant":
            converted.append({"role": "model", "parts": [content]})
        else:
            converted.append({"role": "user", "parts": [content]})
    return system, converted


def _finish_reason_to_str(reason: object) -> str:
    name = getattr(reason, "name", None)
    if isinstance(name, str) and name:
        return name
    return str(reason)


def _extract_gemini_text(resp: object, *, allow_empty: bool = False) -> str:
    """Best-effort extraction of text from a Gemini response or stream chunk.

    ``response.text`` raises when a candidate has no text part (blocked
    output, tool-only parts), so fall back to walking the candidates.
    """
    try:
        return getattr(resp, "text") or ""
    except (ValueError, AttributeError):
        candidates = getattr(resp, "candidates", None) or []
        if candidates:
            cand0 = candidates[0]
            parts = getattr(getattr(cand0, "content", None), "parts", None) or []
            texts = [str(getattr(part, "text", "")) for part in parts if getattr(part, "text", None)]
            if texts or allow_empty:
                return "".join(texts)
            raise RuntimeError(
                "Gemini returned no text parts (candidate finish_reason="
                f"{_finish_reason_to_str(getattr(cand0, 'finish_reason', None))}). "
                "If this is MAX_TOKENS, increase GEMINI_MAX_TOKENS."
            )
        if allow_empty:
            return ""
        raise RuntimeError("Gemini returned no candidates / no text parts")


class AsyncGeminiLLMClient(AsyncLLMClient):
    def __init__(
        self,
        api_key: str | None = None,
        logger: Optional[Logger] = None,
        max_output_tokens: int | None = None,
        timeout: float | None = None,
    ):
        self._logger: Logger = logger or NullLogger()
        api_key = api_key or get_config_value("GOOGLE_API_KEY")
        genai.configure(api_key=api_key)
        self._max_tokens = max_output_tokens or get_int_setting("GEMINI_MAX_TOKENS", 8192)
        self._timeout = float(timeout) if timeout is not None else get_float_setting("LLM_TIMEOUT_SECONDS", 120.0)

    def _prepare(self, messages, model, temperature, kwargs, *, stream: bool):
        req_id = kwargs.pop("req_id", str(uuid.uuid4()))
        system, converted = _split_gemini_messages(messages)
        gen_config = {
            "temperature": temperature,
            "max_output_tokens": kwargs.pop("max_output_tokens", self._max_tokens),
        }
        gm = genai.GenerativeModel(model_name=model, system_instruction=system)
        request_options = genai.types.RequestOptions(timeout=self._timeout) if self._timeout else None
        log_content = _log_content_enabled()
        self._logger.info(
            "llm.request",
            req_id=req_id,
            provider="gemini",
            model=model,
            stream=stream,
            kwargs=kwargs,
            message_count=len(converted),
            messages=_safe_messages(converted, log_content=log_content),
            system=_safe_text_preview(system) if (log_content and system) else None,
            system_len=len(system) if system else 0,
        )
        return req_id, gm, converted, gen_config, request_options

    @_llm_span("gemini")
    async def chat(self, messages, model, temperature=1.0, **kwargs) -> str:
        req_id, gm, converted, gen_config, request_options = self._prepare(
            messages, model, temperature, kwargs, stream=False
        )
        resp = await gm.generate_content_async(converted, generation_config=gen_config, request_options=request_options)
        content = _extract_gemini_text(resp).strip()
        self._logger.info(
            "llm.response",
            **_response_fields(req_id, "gemini", model, content, getattr(resp, "usage_metadata", None)),
        )
        return content

    @_llm_span("gemini", "llm.stream")
    async def stream_chat(self, messages, model, temperature=1.0, on_chunk=None, **kwargs) -> str:
        req_id, gm, converted, gen_config, request_options = self._prepare(
            messages, model, temperature, kwargs, stream=True
        )
        resp = await gm.generate_content_async(
            converted, generation_config=gen_config, request_options=request_options, stream=True
        )
        parts: list[str] = []
        async for chunk in resp:
            text = _extract_gemini_text(chunk, allow_empty=True)
            if not text:
                continue
            parts.append(text)
            if on_chunk:
                on_chunk(text)
        content = "".join(parts).strip()
        self._logger.info(
            "llm.response", **_response_fields(req_id, "gemini", model, content, None, chunks=len(parts))
        )
        return content
